"""Note enhancement: rewrite, extend or generate a note's content with the model.

The current note is sent together with the user's other notes (titles, tags
and content) so requests like "summarise everything about the trip" work, but
the model is told to leave the other notes alone unless asked.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from lifeos.actions.resolve import resolve
from lifeos.config import settings
from lifeos.llm.client import LLMError, complete_text

if TYPE_CHECKING:
    from lifeos.stores.container import Stores
    from lifeos.stores.models import Note

logger = logging.getLogger(__name__)

ENHANCE_TEMPERATURE = 0.5
ENHANCE_MAX_TOKENS = 2048

ENHANCE_SYSTEM = """\
You are Nova's note-writing assistant in LifeOS. You enhance, rewrite or
generate notes following the user's instruction.

FORMATTING (markdown):
- **bold** for important terms, *italic* for emphasis
- "- [ ] item" for open checklist items, "- [x] item" for finished ones
- "- " for plain bullets, "1." for ordered steps
- "## " for section headings, --- between sections, `code` for technical terms

STYLE:
- Concise but complete, in clear sections
- Every checklist item is one specific, actionable task
- Professional and warm

RULES:
- Return ONLY the note content: no preamble, no "here's your note", no code
  fence around the whole answer.
- Change only the CURRENT NOTE. Use OTHER NOTES only when the instruction asks
  for them (for example "summarise all my notes about the trip").
- When improving existing content, keep what the user meant.
"""

_FENCE = re.compile(r"^```[a-z]*\n(.*)\n```$", re.DOTALL)


def _note_block(note: Note) -> str:
    tags = ", ".join(note.tags) if note.tags else "none"
    return f"Title: {note.title or '(untitled)'}\nTags: {tags}\n{note.content or '(empty)'}"


def build_enhance_message(instruction: str, note: Note, others: list[Note]) -> str:
    """The user message: current note, up to ``snapshot_note_limit`` other notes, request."""
    context = "\n---\n".join(
        f"[Note {i}] {_note_block(n)}"
        for i, n in enumerate(others[: settings.snapshot_note_limit], start=1)
    )
    return (
        f"CURRENT NOTE:\n{_note_block(note)}\n\n"
        f"OTHER NOTES:\n{context or '(none)'}\n\n"
        f"USER'S REQUEST: {instruction}"
    )


def clean_enhanced(text: str) -> str:
    """Drop a code fence the model wrapped around the whole note."""
    text = text.strip()
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text


async def enhance_note(
    stores: Stores, note_query: str, instruction: str, *, model: str | None = None
) -> tuple[Note, str]:
    """Rewrite the note matching *note_query* and save the result.

    Returns the note as it was before the rewrite and the new content.
    Raises ``LookupError`` when no note matches and ``LLMError`` when the
    model returns nothing usable; transport errors and ``TimeoutError``
    propagate from the client.
    """
    notes = [n for n in await stores.notes.list() if not n.is_trashed]
    match = resolve(notes, note_query, record_id=note_query)
    if match is None:
        msg = f"No note matching '{note_query}'"
        raise LookupError(msg)
    note: Note = match.entity
    others = [n for n in notes if n.id != note.id]

    raw = await complete_text(
        [{"role": "user", "content": build_enhance_message(instruction, note, others)}],
        system=ENHANCE_SYSTEM,
        model=model,
        temperature=ENHANCE_TEMPERATURE,
        max_tokens=ENHANCE_MAX_TOKENS,
    )
    content = clean_enhanced(raw)
    if not content:
        msg = "The model returned an empty note"
        raise LLMError(msg)

    await stores.notes.update(note.id, {"content": content})
    logger.info("Enhanced note %s (%d -> %d chars)", note.id, len(note.content), len(content))
    return note, content
