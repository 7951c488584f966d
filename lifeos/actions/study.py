"""Study tracking actions: subjects, chapters and their parts."""

from __future__ import annotations

import logging

from pydantic import AliasChoices, Field

from lifeos.actions.base import ActionContext, ActionOutcome, ActionParams, Amount, Required, Text
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry
from lifeos.actions.resolve import ambiguity_note, resolve
from lifeos.actions.saga import Saga
from lifeos.stores.models import StudyChapter, StudySubject
from lifeos.stores.study import PART_PRESETS

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "General"

registry.rules(
    "study",
    f"""
STUDY RULES:
For ADD_STUDY_SUBJECT: name (string).
For ADD_STUDY_CHAPTER: chapter_name (string), subject (string, created if new),
preset (optional: {", ".join(f"'{p}'" for p in PART_PRESETS)}; adds the preset's parts to the chapter).
For UPDATE_STUDY_PROGRESS: chapter_name (to find the chapter), subject (optional, narrows the search),
and either progress (0-100 percent) or part (name of a part that is now done).
For DELETE_STUDY_CHAPTER: chapter_name.

Study Examples:
- "add chapter calculus to math" → ADD_STUDY_CHAPTER with chapter_name "Calculus", subject "Math"
- "I'm halfway through calculus" → UPDATE_STUDY_PROGRESS with chapter_name "calculus", progress 50
- "finished the practice for calculus" → UPDATE_STUDY_PROGRESS with chapter_name "calculus", part "practice"
""",
)


class AddSubjectParams(ActionParams):
    name: Required = Field(validation_alias=AliasChoices("name", "subject", "title"))


class AddChapterParams(ActionParams):
    chapter_name: Required = Field(validation_alias=AliasChoices("chapter_name", "title", "chapter", "name"))
    subject: Text = None
    preset: Text = None


class ChapterRefParams(ActionParams):
    id: Text = None
    chapter_name: Text = Field(default=None, validation_alias=AliasChoices("chapter_name", "title", "chapter", "name"))
    subject: Text = None


class UpdateProgressParams(ChapterRefParams):
    progress: Amount = Field(default=None, validation_alias=AliasChoices("progress", "progress_percentage", "percentage"))
    part: Text = None


async def _find_subject(ctx: ActionContext, name: str | None) -> StudySubject | None:
    match = resolve(await ctx.stores.study.list_subjects(), name, key=lambda s: s.name)
    return match.entity if match else None


async def _find_chapter(ctx: ActionContext, params: ChapterRefParams):  # noqa: ANN202
    study = ctx.stores.study
    chapters = await study.list_chapters()
    if params.subject and not params.id:
        subject = await _find_subject(ctx, params.subject)
        if subject is not None:
            chapters = [c for c in chapters if c.subject_id == subject.id]
    return resolve(chapters, params.chapter_name, record_id=params.id, key=lambda c: c.chapter_name)


def _not_found(kind: ActionKind, params: ChapterRefParams) -> ActionOutcome:
    return ActionOutcome.skipped(
        kind, f"I couldn't find a chapter matching '{params.chapter_name or params.id or ''}'."
    )


@registry.action(
    ActionKind.ADD_STUDY_SUBJECT,
    description="Add a study subject",
    category="study",
    params_model=AddSubjectParams,
)
async def add_study_subject(ctx: ActionContext, params: AddSubjectParams) -> ActionOutcome:
    existing = [s for s in await ctx.stores.study.list_subjects() if s.name.lower() == params.name.lower()]
    if existing:
        return ActionOutcome.skipped(ActionKind.ADD_STUDY_SUBJECT, f"You already have a subject called '{params.name}'.")
    subject_id = await ctx.stores.study.add_subject(params.name)
    logger.info("Added study subject: %s (%s)", params.name, subject_id)
    return ActionOutcome.done(ActionKind.ADD_STUDY_SUBJECT, f"Added subject '{params.name}'.", subject_id)


@registry.action(
    ActionKind.ADD_STUDY_CHAPTER,
    description="Add a chapter to a subject",
    category="study",
    params_model=AddChapterParams,
)
async def add_study_chapter(ctx: ActionContext, params: AddChapterParams) -> ActionOutcome:
    study = ctx.stores.study
    subject_name = params.subject or DEFAULT_SUBJECT
    subject = await _find_subject(ctx, subject_name)
    parts = PART_PRESETS.get((params.preset or "").lower(), [])

    async with Saga("add study chapter") as saga:
        if subject is None:
            subject_id = await saga.run(
                "create subject",
                lambda: study.add_subject(subject_name),
                compensate=study.delete_subject,
            )
        else:
            subject_id = subject.id
            subject_name = subject.name
        chapter_id = await saga.run(
            "create chapter",
            lambda: study.add_chapter(subject_id, params.chapter_name),
            compensate=study.delete_chapter,
        )
        if parts:
            await saga.run("create chapter parts", lambda: study.add_parts(chapter_id, parts))

    logger.info("Added chapter %s to %s (%s)", params.chapter_name, subject_name, chapter_id)
    detail = f"Added chapter '{params.chapter_name}' to {subject_name}"
    if parts:
        detail += f" with parts {', '.join(parts)}"
    return ActionOutcome.done(ActionKind.ADD_STUDY_CHAPTER, f"{detail}.", chapter_id)


@registry.action(
    ActionKind.UPDATE_STUDY_PROGRESS,
    description="Record progress on a chapter",
    category="study",
    params_model=UpdateProgressParams,
)
async def update_study_progress(ctx: ActionContext, params: UpdateProgressParams) -> ActionOutcome:
    match = await _find_chapter(ctx, params)
    if match is None:
        return _not_found(ActionKind.UPDATE_STUDY_PROGRESS, params)
    chapter: StudyChapter = match.entity
    study = ctx.stores.study
    note = ambiguity_note(match, lambda c: c.chapter_name)

    if params.part:
        parts = await study.list_parts(chapter.id)
        part_match = resolve(parts, params.part, key=lambda p: p.name)
        if part_match is None:
            return ActionOutcome.skipped(
                ActionKind.UPDATE_STUDY_PROGRESS,
                f"'{chapter.chapter_name}' has no part matching '{params.part}'.",
            )
        await study.set_part_status(part_match.entity.id, "done")
        done = sum(1 for p in parts if p.status == "done" or p.id == part_match.entity.id)
        pct = await study.update_progress(chapter.id, done / len(parts) * 100)
        return ActionOutcome.done(
            ActionKind.UPDATE_STUDY_PROGRESS,
            f"Marked {part_match.entity.name} done for '{chapter.chapter_name}' ({pct}%){note}.",
            chapter.id,
        )

    if params.progress is None:
        return ActionOutcome.skipped(
            ActionKind.UPDATE_STUDY_PROGRESS, f"How far along are you with '{chapter.chapter_name}'?"
        )
    pct = await study.update_progress(chapter.id, params.progress)
    return ActionOutcome.done(
        ActionKind.UPDATE_STUDY_PROGRESS, f"'{chapter.chapter_name}' is now at {pct}%{note}.", chapter.id
    )


@registry.action(
    ActionKind.DELETE_STUDY_CHAPTER,
    description="Delete a chapter and its parts",
    category="study",
    params_model=ChapterRefParams,
)
async def delete_study_chapter(ctx: ActionContext, params: ChapterRefParams) -> ActionOutcome:
    match = await _find_chapter(ctx, params)
    if match is None:
        return _not_found(ActionKind.DELETE_STUDY_CHAPTER, params)
    chapter: StudyChapter = match.entity
    await ctx.stores.study.delete_chapter(chapter.id)
    note = ambiguity_note(match, lambda c: c.chapter_name)
    return ActionOutcome.done(
        ActionKind.DELETE_STUDY_CHAPTER, f"Deleted chapter '{chapter.chapter_name}'{note}.", chapter.id
    )
