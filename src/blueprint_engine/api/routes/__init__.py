"""API route modules."""

from blueprint_engine.api.routes import blueprints, health

__all__ = ["blueprints", "health"]
