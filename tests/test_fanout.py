# tests/test_fanout.py

import asyncio
import time

from core.exceptions import FetchFailure
from core.fanout import gather_isolated


def boom():
    raise ConnectionError("down")


def test_results_keep_unit_order():
    result = asyncio.run(gather_isolated({"b": lambda: 2, "a": lambda: 1}))

    assert list(result.results) == ["b", "a"]
    assert not result.partial
    assert result.warnings() == []


def test_failure_is_isolated():
    result = asyncio.run(
        gather_isolated({"ok": lambda: "fine", "bad": boom}, label=lambda k: f"unit {k}")
    )

    assert result.results == {"ok": "fine"}
    assert result.partial
    assert isinstance(result.failures["bad"], FetchFailure)
    assert isinstance(result.failures["bad"].cause, ConnectionError)
    assert result.warnings()[0].startswith("Failed to fetch unit bad")


def test_timeout_becomes_failure():
    result = asyncio.run(
        gather_isolated(
            {"slow": lambda: time.sleep(0.5), "fast": lambda: 1},
            timeout=0.05,
        )
    )

    assert result.results == {"fast": 1}
    assert isinstance(result.failures["slow"].cause, TimeoutError)


def test_empty_units():
    result = asyncio.run(gather_isolated({}))

    assert result.results == {}
    assert not result.partial
