# core/fanout.py

"""
Best-effort concurrent fan-out over blocking store calls.

`gather_isolated()` runs one task per unit, waits for all of them (the join
barrier), and converts every unit failure into a `FetchFailure` entry instead of
raising. One unreachable unit never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from core.exceptions import FetchFailure

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class FanOutResult(Generic[K]):
    results: dict[K, Any] = field(default_factory=dict)
    failures: dict[K, FetchFailure] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.failures)

    def warnings(self) -> list[str]:
        return [str(failure) for failure in self.failures.values()]


async def _run_unit(
    label: str,
    fetch: Callable[[], Any],
    timeout: float | None,
) -> Any:
    try:
        return await asyncio.wait_for(asyncio.to_thread(fetch), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise FetchFailure(label, TimeoutError(f"timed out after {timeout}s")) from e
    except Exception as e:
        raise FetchFailure(label, e) from e


async def gather_isolated(
    units: Mapping[K, Callable[[], Any]],
    timeout: float | None = None,
    label: Callable[[K], str] = str,
) -> FanOutResult[K]:
    """
    Runs every unit's blocking `fetch()` in a worker thread and joins them all.

    Args:
        units (Mapping[K, Callable[[], Any]]): Unit key to zero-argument fetch function.
        timeout (float | None): Per-unit timeout in seconds, or None for no limit.
        label (Callable[[K], str]): Renders a unit key for logs and warnings.

    Returns:
        FanOutResult: Successful results and failures, both keyed by unit.

    Notes:
        - Never raises for unit failures; each is logged at WARNING and recorded.
        - Result dictionaries keep the iteration order of `units`.
    """
    keys = list(units)
    if not keys:
        return FanOutResult()

    logger.debug("Fanning out %d unit(s)", len(keys))

    outcomes = await asyncio.gather(
        *(_run_unit(label(key), units[key], timeout) for key in keys),
        return_exceptions=True,
    )

    results: dict[K, Any] = {}
    failures: dict[K, FetchFailure] = {}

    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, FetchFailure):
            logger.warning("%s", outcome)
            failures[key] = outcome
        elif isinstance(outcome, BaseException):
            # cancellation of the whole batch is the caller's business
            raise outcome
        else:
            results[key] = outcome

    return FanOutResult(results=results, failures=failures)
