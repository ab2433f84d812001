"""Prompt construction for blueprint generation."""

SYSTEM_ROLE = (
    "You are a habit formation expert. Analyze this content and create a "
    "personalized, actionable blueprint for the user's goal."
)

INSTRUCTIONS = """Generate a JSON response adapted to the content. Always include:

"overview": an object with
- "summary": 2-3 sentences on the key insights from the content
- "mistakes": common mistakes to avoid when applying these ideas
- "guidance": strategic guidance for success

Then include only the sections that fit the content:
- "sequential_steps": ordered steps, each with step_number, title, description, deliverable and optional estimated_time
- "daily_habits": repeatable habits, each with id, title, description and timeframe (e.g. "Week 1")
- "trigger_actions": if-then responses, each with situation, immediate_action and timeframe
- "decision_checklist": questions to ask before acting, each with question and optional weight (Critical, Important, Consider)
- "resources": tools, books, articles or courses mentioned, each with name, type and description"""

CONSTRAINTS = "Make every item specific, actionable, and directly related to the user's goal."

OUTPUT_FORMAT = "Return only valid JSON."


def build_blueprint_prompt(goal: str, content: str) -> str:
    """Build the complete prompt sent to the AI provider."""
    return "\n".join(
        [
            SYSTEM_ROLE,
            "",
            f"User Goal: {goal}",
            "",
            f"Content: {content}",
            "",
            INSTRUCTIONS,
            "",
            CONSTRAINTS,
            OUTPUT_FORMAT,
        ]
    )
