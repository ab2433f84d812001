"""Blueprint Engine - turns content into habit blueprints with a retrying AI pipeline."""

__version__ = "0.1.0"
