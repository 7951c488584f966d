"""Compensating steps for actions that write to more than one store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SagaError(Exception):
    """A step failed; earlier steps were compensated where possible.

    Attributes:
        failed_step: Description of the step that raised.
        compensated: Steps that were successfully undone.
        unreconciled: Steps whose undo also failed and need manual repair.
    """

    def __init__(
        self,
        name: str,
        failed_step: str,
        compensated: list[str],
        unreconciled: list[str],
    ) -> None:
        self.name = name
        self.failed_step = failed_step
        self.compensated = compensated
        self.unreconciled = unreconciled
        super().__init__(f"{name}: step '{failed_step}' failed")


class Saga:
    """Runs steps in order and undoes the finished ones if a later step fails.

    Usage::

        async with Saga("complete task") as saga:
            await saga.run("mark done", lambda: tasks.mark_done(...),
                           compensate=lambda _: tasks.reopen(...))
            entry_id = await saga.run("record expense", lambda: finance.create(...),
                                      compensate=finance.delete)

    A failure inside the block is re-raised as ``SagaError`` after the
    compensations ran in reverse order.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.completed: list[str] = []
        self._compensations: list[tuple[str, Callable[[], Awaitable[Any]]]] = []
        self._current: str | None = None

    async def run(
        self,
        description: str,
        operation: Callable[[], Awaitable[T]],
        compensate: Callable[[T], Awaitable[Any]] | None = None,
    ) -> T:
        self._current = description
        result = await operation()
        if compensate is not None:
            self._compensations.append((description, lambda: compensate(result)))
        self.completed.append(description)
        self._current = None
        return result

    async def __aenter__(self) -> Saga:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        if exc is None or isinstance(exc, SagaError):
            return
        failed_step = self._current or "unknown step"
        logger.error("Saga '%s' failed at '%s', compensating", self.name, failed_step)

        compensated: list[str] = []
        unreconciled: list[str] = []
        for description, undo in reversed(self._compensations):
            try:
                await undo()
                compensated.append(description)
            except Exception:
                logger.exception("Compensation for '%s' failed", description)
                unreconciled.append(description)

        raise SagaError(self.name, failed_step, compensated, unreconciled) from exc
