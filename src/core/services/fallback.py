"""Fallback and isolation helpers shared by every aggregator.

Two shapes repeat across pages:
- *Isolated fan-out*: independent fetches issued together, where one failing
  branch must not cancel its siblings. `gather_settled` captures each branch as
  an `Outcome` and the aggregator decides which ones are required.
- *Ordered fallback chain*: "try stage, else the next stage, else empty".
  `first_non_empty` runs stages in order and stops at the first one that
  yields something.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from core.errors import GitFolioError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success-or-failure of one branch."""

    value: T | None = None
    error: GitFolioError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the captured error (required branches)."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def settle(awaitable: Awaitable[T]) -> Outcome[T]:
    try:
        return Outcome(value=await awaitable)
    except GitFolioError as exc:
        return Outcome(error=exc)


async def gather_settled(*awaitables: Awaitable[T]) -> list[Outcome[T]]:
    """Run branches concurrently; failures are captured, never propagated."""

    return list(await asyncio.gather(*(settle(a) for a in awaitables)))


@dataclass(frozen=True)
class Stage(Generic[T]):
    name: str
    run: Callable[[], Awaitable[Sequence[T]]]
    enabled: bool = True


@dataclass(frozen=True)
class StageResult(Generic[T]):
    stage: str | None
    items: list[T]

    @property
    def empty(self) -> bool:
        return not self.items


async def first_non_empty(stages: Sequence[Stage[T]], *, context: str) -> StageResult[T]:
    """Return the first stage that yields at least one item.

    Disabled stages are skipped without being run. A stage that raises a
    classified error counts as empty and the chain moves on.
    """

    for stage in stages:
        if not stage.enabled:
            logger.debug("%s: stage '%s' skipped", context, stage.name)
            continue
        try:
            items = list(await stage.run())
        except GitFolioError as exc:
            logger.info("%s: stage '%s' failed, falling back (%s)", context, stage.name, exc)
            continue
        if items:
            return StageResult(stage=stage.name, items=items)
        logger.debug("%s: stage '%s' yielded nothing", context, stage.name)
    return StageResult(stage=None, items=[])
