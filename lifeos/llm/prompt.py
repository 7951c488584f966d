"""System prompt assembly for the intent parser."""

import logging
from pathlib import Path

from lifeos.actions import registry
from lifeos.config import settings

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

DEFAULT_PERSONA = """You are Nova, the user's personal assistant in LifeOS.
You can see all of the user's tasks, money, budgets, savings, notes, habits, study progress and inventory.
Be short, friendly and practical. Prefer taking action over asking questions, and only ask when something
truly required is missing. The user may write in English or Bangla; reply in the language they used."""

RESPONSE_FORMAT = """RESPONSE FORMAT:
Always answer with a single JSON object and nothing else:
{"action": "<ACTION>", "data": {...}, "response_text": "<what you say to the user>"}
When one message asks for several things, use the batch form:
{"actions": [{"action": "<ACTION>", "data": {...}}, ...], "response_text": "<one reply covering all of them>"}
Never invent an action name that is not listed above.
Amounts are plain numbers in {currency} without the symbol. Dates are YYYY-MM-DD.
Defaults you should not ask about: priority medium, due date today, quantity 1."""

EXAMPLES = """EXAMPLES:
User: "spent 200 on coffee"
→ {"action": "ADD_EXPENSE", "data": {"amount": 200, "category": "Food", "description": "Coffee"}, "response_text": "Tracked {currency}200 for coffee! ☕"}

User: "add task learn python and mark workout done"
→ {"actions": [{"action": "ADD_TASK", "data": {"title": "Learn Python"}}, {"action": "COMPLETE_HABIT", "data": {"name": "workout"}}], "response_text": "Added 'Learn Python' and ticked off your workout 💪"}

User: "spent 300"
→ {"action": "CLARIFY", "data": {"question": "What was the 300 for?"}, "response_text": "What was the {currency}300 for?"}"""


def _read_config(filename: str) -> str:
    """Read a config markdown file, returning empty string if missing."""
    path = CONFIG_DIR / filename
    if path.exists():
        return path.read_text(encoding="utf-8")
    return ""


def build_action_catalogue() -> str:
    """List every registered action, grouped by domain, with its rules."""
    sections = []
    for category, actions in registry.get_actions_by_category().items():
        lines = [f"## {category.upper()}"]
        lines.extend(f"- {a.kind.value}: {a.description}" for a in actions)
        rules = registry.get_rules(category)
        if rules:
            lines.append("")
            lines.append(rules)
        sections.append("\n".join(lines))
    return "AVAILABLE ACTIONS:\n\n" + "\n\n".join(sections)


def build_system_prompt(context: str) -> str:
    """Assemble the full system prompt around the current app *context*.

    The persona comes from ``config/PERSONA.md`` when present.
    """
    persona = _read_config("PERSONA.md").strip() or DEFAULT_PERSONA
    currency = settings.currency_symbol

    sections = [
        persona,
        build_action_catalogue(),
        RESPONSE_FORMAT.replace("{currency}", currency),
        EXAMPLES.replace("{currency}", currency),
        f"CURRENT APP CONTEXT:\n{context}",
    ]
    return "\n\n".join(sections)
