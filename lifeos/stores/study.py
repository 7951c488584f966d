"""StudyStore: subjects, their chapters, and per-chapter parts."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from lifeos.stores.base import RecordStore
from lifeos.stores.cache import QueryCache
from lifeos.stores.models import StudyChapter, StudyPart, StudySubject

if TYPE_CHECKING:
    from pathlib import Path

PART_PRESETS: dict[str, list[str]] = {
    "standard": ["Lecture", "Notes", "Practice", "Revision"],
    "reading": ["Read", "Summarize", "Review"],
    "exam": ["Theory", "Problems", "Past Papers", "Mock Test"],
}


class _SubjectTable(RecordStore):
    table = "study_subjects"
    columns = ("id", "user_id", "name", "created_at")
    entity = StudySubject
    create_sql = """
CREATE TABLE IF NOT EXISTS study_subjects (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    name       TEXT NOT NULL,
    created_at TEXT NOT NULL
)
"""
    order_by = "created_at ASC"


class _ChapterTable(RecordStore):
    table = "study_chapters"
    columns = (
        "id",
        "user_id",
        "subject_id",
        "chapter_name",
        "progress_percentage",
        "status",
        "last_studied_at",
        "created_at",
    )
    entity = StudyChapter
    create_sql = """
CREATE TABLE IF NOT EXISTS study_chapters (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL,
    subject_id          TEXT NOT NULL,
    chapter_name        TEXT NOT NULL,
    progress_percentage INTEGER NOT NULL DEFAULT 0,
    status              TEXT NOT NULL DEFAULT 'not-started',
    last_studied_at     TEXT,
    created_at          TEXT NOT NULL
)
"""
    order_by = "created_at ASC"


class _PartTable(RecordStore):
    table = "study_parts"
    columns = ("id", "user_id", "chapter_id", "name", "status", "created_at")
    entity = StudyPart
    create_sql = """
CREATE TABLE IF NOT EXISTS study_parts (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    chapter_id TEXT NOT NULL,
    name       TEXT NOT NULL,
    status     TEXT NOT NULL DEFAULT 'todo',
    created_at TEXT NOT NULL
)
"""
    order_by = "created_at ASC"


def status_for_progress(pct: int) -> str:
    if pct >= 100:
        return "completed"
    if pct > 0:
        return "in-progress"
    return "not-started"


class StudyStore:
    """Facade over the three study tables.

    ``list()`` returns chapters, the unit the assistant resolves against.
    """

    def __init__(
        self,
        user_id: str | None,
        db_path: Path | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        cache = cache if cache is not None else QueryCache()
        self.subjects = _SubjectTable(user_id, db_path=db_path, cache=cache)
        self.chapters = _ChapterTable(user_id, db_path=db_path, cache=cache)
        self.parts = _PartTable(user_id, db_path=db_path, cache=cache)

    async def list(self) -> list[StudyChapter]:
        return await self.chapters.list()

    async def list_subjects(self) -> list[StudySubject]:
        return await self.subjects.list()

    async def list_chapters(self, subject_id: str | None = None) -> list[StudyChapter]:
        chapters = await self.chapters.list()
        if subject_id is None:
            return chapters
        return [c for c in chapters if c.subject_id == subject_id]

    async def list_parts(self, chapter_id: str | None = None) -> list[StudyPart]:
        parts = await self.parts.list()
        if chapter_id is None:
            return parts
        return [p for p in parts if p.chapter_id == chapter_id]

    async def add_subject(self, name: str) -> str:
        return await self.subjects.create({"name": name})

    async def add_chapter(self, subject_id: str, chapter_name: str) -> str:
        return await self.chapters.create(
            {"subject_id": subject_id, "chapter_name": chapter_name}
        )

    async def add_parts(self, chapter_id: str, names: list[str]) -> list[str]:
        return [
            await self.parts.create({"chapter_id": chapter_id, "name": name}) for name in names
        ]

    async def update_progress(self, chapter_id: str, pct: float) -> int:
        """Set a chapter's progress, clamped to 0-100.  Returns the stored value."""
        clamped = max(0, min(100, round(pct)))
        await self.chapters.update(
            chapter_id,
            {
                "progress_percentage": clamped,
                "status": status_for_progress(clamped),
                "last_studied_at": datetime.now(UTC).isoformat(),
            },
        )
        return clamped

    async def set_part_status(self, part_id: str, status: str) -> None:
        await self.parts.update(part_id, {"status": status})

    async def delete_subject(self, subject_id: str) -> bool:
        return await self.subjects.delete(subject_id)

    async def delete_chapter(self, chapter_id: str) -> bool:
        """Delete a chapter along with its parts."""
        for part in await self.list_parts(chapter_id):
            await self.parts.delete(part.id)
        return await self.chapters.delete(chapter_id)
