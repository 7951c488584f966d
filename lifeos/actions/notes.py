"""Note actions."""

from __future__ import annotations

import logging

from pydantic import model_validator

from lifeos.actions.base import ActionContext, ActionOutcome, ActionParams, Flag, Tags, Text
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry
from lifeos.actions.resolve import ambiguity_note, resolve
from lifeos.stores.models import Note

logger = logging.getLogger(__name__)

registry.rules(
    "notes",
    """
NOTE RULES:
For ADD_NOTE: title (string), content (string), tags (optional list of strings).
Checklists use one "[ ] item" per line; "[x] item" marks it done.
For UPDATE_NOTE: id or title (to find the note), then content, new_title, tags, is_pinned, is_archived.
Set append true to add the content to the end instead of replacing it.
For DELETE_NOTE: id or title.

Note Examples:
- "note: remember to check the oven" → ADD_NOTE with title "Reminder", content "Check the oven"
- "add milk to my shopping list note" → UPDATE_NOTE with title "shopping", content "[ ] Milk", append true
- "pin the meeting note" → UPDATE_NOTE with title "meeting", is_pinned true
""",
)


class AddNoteParams(ActionParams):
    title: Text = None
    content: Text = None
    tags: Tags = []
    color: Text = None

    @model_validator(mode="after")
    def _title_or_content(self) -> AddNoteParams:
        if not self.title and not self.content:
            msg = "title or content is required"
            raise ValueError(msg)
        return self


class NoteRefParams(ActionParams):
    id: Text = None
    title: Text = None


class UpdateNoteParams(NoteRefParams):
    new_title: Text = None
    content: Text = None
    append: Flag = None
    tags: Tags = []
    color: Text = None
    is_pinned: Flag = None
    is_archived: Flag = None
    is_trashed: Flag = None


async def _find_note(ctx: ActionContext, params: NoteRefParams):  # noqa: ANN202
    notes = [n for n in await ctx.stores.notes.list() if not n.is_trashed]
    return resolve(notes, params.title, record_id=params.id)


def _not_found(kind: ActionKind, params: NoteRefParams) -> ActionOutcome:
    return ActionOutcome.skipped(kind, f"I couldn't find a note matching '{params.title or params.id or ''}'.")


@registry.action(
    ActionKind.ADD_NOTE,
    description="Write a note",
    category="notes",
    params_model=AddNoteParams,
)
async def add_note(ctx: ActionContext, params: AddNoteParams) -> ActionOutcome:
    title = params.title or "Quick Note"
    note_id = await ctx.stores.notes.create({
        "title": title,
        "content": params.content or params.title or "",
        "tags": params.tags,
        "color": params.color,
    })
    logger.info("Added note: %s (%s)", title, note_id)
    return ActionOutcome.done(ActionKind.ADD_NOTE, f"Saved note '{title}'.", note_id)


@registry.action(
    ActionKind.UPDATE_NOTE,
    description="Edit, pin or archive a note",
    category="notes",
    params_model=UpdateNoteParams,
)
async def update_note(ctx: ActionContext, params: UpdateNoteParams) -> ActionOutcome:
    match = await _find_note(ctx, params)
    if match is None:
        return _not_found(ActionKind.UPDATE_NOTE, params)
    note: Note = match.entity

    content = params.content
    if content and params.append and note.content:
        content = f"{note.content.rstrip()}\n{content}"

    changes = {
        "title": params.new_title,
        "content": content,
        "tags": params.tags or None,
        "color": params.color,
        "is_pinned": params.is_pinned,
        "is_archived": params.is_archived,
        "is_trashed": params.is_trashed,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        return ActionOutcome.skipped(ActionKind.UPDATE_NOTE, f"Nothing to change on '{note.title}'.")

    await ctx.stores.notes.update(note.id, changes)
    note_text = ambiguity_note(match, lambda n: n.title)
    return ActionOutcome.done(ActionKind.UPDATE_NOTE, f"Updated note '{note.title}'{note_text}.", note.id)


@registry.action(
    ActionKind.DELETE_NOTE,
    description="Delete a note",
    category="notes",
    params_model=NoteRefParams,
)
async def delete_note(ctx: ActionContext, params: NoteRefParams) -> ActionOutcome:
    match = await _find_note(ctx, params)
    if match is None:
        return _not_found(ActionKind.DELETE_NOTE, params)
    note: Note = match.entity
    await ctx.stores.notes.delete(note.id)
    note_text = ambiguity_note(match, lambda n: n.title)
    return ActionOutcome.done(ActionKind.DELETE_NOTE, f"Deleted note '{note.title}'{note_text}.", note.id)
