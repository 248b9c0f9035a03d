"""Unit tests for ActivityLogger (activity_log/services/activity_logger.py).

Tests cover:
1. record — persistence with a healthy store, context defaulting, request context
2. record — failing store never raises; sink receives failure + event
3. Sink mirroring — level mapping, "[category] message" format, context extra
4. Level wrappers and domain helpers — fixed level / category
5. log_performance message formatting

Stores are in-memory fakes; no database is used.
"""

from __future__ import annotations

import asyncio
import logging

import pytest
from pydantic import ValidationError

from activity_log.schemas.system_log import LogLevel, RequestContext
from activity_log.services.activity_logger import ActivityLogger, format_metric_value
from tests.fixtures.stores import FailingLogStore


# ---------------------------------------------------------------------------
# Test group 1: healthy store
# ---------------------------------------------------------------------------


async def test_record_persists_exactly_one_entry(activity_logger, memory_store):
    """One call to record() appends exactly one entry to the store."""
    await activity_logger.record(LogLevel.WARNING, "translation", "Quota nearly exhausted")

    assert len(memory_store) == 1, f"Expected 1 entry, got {len(memory_store)}"
    entry = memory_store.entries[0]
    assert entry.level is LogLevel.WARNING
    assert entry.category == "translation"
    assert entry.message == "Quota nearly exhausted"


async def test_record_defaults_context_to_empty_mapping(activity_logger, memory_store):
    """Omitted context is stored as {} rather than None."""
    await activity_logger.record("info", "system", "Booted")

    assert memory_store.entries[0].context == {}


async def test_record_accepts_string_level(activity_logger, memory_store):
    """A plain string level is coerced to the LogLevel enum."""
    await activity_logger.record("error", "system", "Disk full")

    assert memory_store.entries[0].level is LogLevel.ERROR


async def test_record_copies_request_context(activity_logger, memory_store):
    """user_id, ip and user_agent are copied from the request context."""
    ctx = RequestContext(user_id=7, ip="203.0.113.9", user_agent="Mozilla/5.0")

    await activity_logger.record("info", "user", "Uploaded file", {"file_id": 3}, ctx)

    entry = memory_store.entries[0]
    assert entry.user_id == 7
    assert entry.ip_address == "203.0.113.9"
    assert entry.user_agent == "Mozilla/5.0"
    assert entry.context == {"file_id": 3}


async def test_record_without_request_context_stores_nulls(activity_logger, memory_store):
    """Events not triggered by a request have null actor fields, not ''."""
    await activity_logger.record("debug", "system", "Cache warmed")

    entry = memory_store.entries[0]
    assert entry.user_id is None
    assert entry.ip_address is None
    assert entry.user_agent is None


async def test_record_blank_request_fields_stored_as_none(activity_logger, memory_store):
    """Empty strings from a request (e.g. missing User-Agent) become None."""
    ctx = RequestContext(user_id=None, ip="", user_agent="   ")

    await activity_logger.record("info", "user", "Viewed page", request_context=ctx)

    entry = memory_store.entries[0]
    assert entry.ip_address is None
    assert entry.user_agent is None


async def test_record_does_not_share_caller_context_dict(activity_logger, memory_store):
    """Mutating the caller's dict afterwards does not change the stored entry."""
    context = {"step": 1}
    await activity_logger.record("info", "translation", "Chunk sent", context)
    context["step"] = 2

    assert memory_store.entries[0].context == {"step": 1}


async def test_success_writes_sink_exactly_once(activity_logger, sink_records):
    """When the store succeeds the sink receives only the original event."""
    await activity_logger.record("info", "user", "Signed in")

    records = sink_records()
    assert len(records) == 1, f"Expected 1 sink record, got {[r.getMessage() for r in records]}"
    assert records[0].getMessage() == "[user] Signed in"


# ---------------------------------------------------------------------------
# Test group 2: failing store
# ---------------------------------------------------------------------------


async def test_record_returns_normally_when_store_fails(failing_store, sink):
    """A store failure is swallowed; record() returns None."""
    activity = ActivityLogger(failing_store, sink=sink)

    result = await activity.record("error", "system", "Translation API unreachable")

    assert result is None
    assert len(failing_store.attempts) == 1, "The store must still be attempted once"


@pytest.mark.parametrize("level", list(LogLevel))
async def test_every_level_survives_store_failure(failing_store, sink, level):
    """No level makes record() propagate a store error."""
    activity = ActivityLogger(failing_store, sink=sink)

    await activity.record(level, "system", "Anything")


async def test_non_persistence_exceptions_are_also_swallowed(sink, sink_records):
    """Any Exception from the store (not only StorePersistenceError) is recovered."""
    activity = ActivityLogger(FailingLogStore(TypeError("not JSON serializable")), sink=sink)

    await activity.info("translation", "Chunk translated", {"chunk": 1})

    messages = [r.getMessage() for r in sink_records()]
    assert messages[0] == "Failed to log to database: not JSON serializable"


async def test_failure_writes_sink_twice_in_order(failing_store, sink, sink_records):
    """On failure the sink receives the failure record, then the event."""
    activity = ActivityLogger(failing_store, sink=sink)

    await activity.warning("translation", "Retrying chunk", {"attempt": 2})

    records = sink_records()
    assert len(records) == 2, f"Expected 2 sink records, got {[r.getMessage() for r in records]}"
    failure, event = records
    assert failure.levelno == logging.ERROR
    assert failure.getMessage() == "Failed to log to database: connection refused"
    assert event.levelno == logging.WARNING
    assert event.getMessage() == "[translation] Retrying chunk"
    assert event.context == {"attempt": 2}


async def test_cancellation_still_mirrors_event(sink, sink_records):
    """If the store write is cancelled the event still reaches the sink."""

    class HangingStore:
        async def insert(self, entry):
            await asyncio.sleep(3600)

    activity = ActivityLogger(HangingStore(), sink=sink)
    task = asyncio.create_task(activity.info("system", "Shutting down"))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert [r.getMessage() for r in sink_records()] == ["[system] Shutting down"]


# ---------------------------------------------------------------------------
# Test group 3: sink mirroring
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "level, expected",
    [
        (LogLevel.DEBUG, logging.DEBUG),
        (LogLevel.INFO, logging.INFO),
        (LogLevel.WARNING, logging.WARNING),
        (LogLevel.ERROR, logging.ERROR),
    ],
)
async def test_sink_level_matches_entry_level(activity_logger, sink_records, level, expected):
    await activity_logger.record(level, "system", "Level check")

    assert sink_records()[0].levelno == expected


async def test_sink_record_carries_context(activity_logger, sink_records):
    await activity_logger.record("info", "translation", "Done", {"chars": 1200})

    assert sink_records()[0].context == {"chars": 1200}


async def test_default_sink_is_named_activity_logger(memory_store, caplog):
    """Without an explicit sink, events go to the 'activity_log.activity' logger."""
    caplog.set_level(logging.INFO, logger="activity_log.activity")
    activity = ActivityLogger(memory_store)

    await activity.info("system", "Default sink")

    names = [r.name for r in caplog.records if r.getMessage() == "[system] Default sink"]
    assert names == ["activity_log.activity"]


# ---------------------------------------------------------------------------
# Test group 4: wrappers and helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "method, level",
    [
        ("debug", LogLevel.DEBUG),
        ("info", LogLevel.INFO),
        ("warning", LogLevel.WARNING),
        ("error", LogLevel.ERROR),
    ],
)
async def test_level_wrappers_fix_level(activity_logger, memory_store, method, level):
    await getattr(activity_logger, method)("system", "Wrapped")

    assert memory_store.entries[0].level is level
    assert memory_store.entries[0].category == "system"


async def test_log_user_activity_fixes_category_and_level(activity_logger, memory_store):
    ctx = RequestContext(user_id=12)

    await activity_logger.log_user_activity("Changed password", {"via": "settings"}, ctx)

    entry = memory_store.entries[0]
    assert (entry.level, entry.category, entry.message) == (
        LogLevel.INFO,
        "user",
        "Changed password",
    )
    assert entry.user_id == 12


async def test_log_translation_activity_fixes_category_and_level(activity_logger, memory_store):
    await activity_logger.log_translation_activity("Translated document", {"target": "si"})

    entry = memory_store.entries[0]
    assert entry.level is LogLevel.INFO
    assert entry.category == "translation"
    assert entry.context == {"target": "si"}


async def test_log_system_error_fixes_category_and_level(activity_logger, memory_store):
    await activity_logger.log_system_error("Queue worker crashed")

    entry = memory_store.entries[0]
    assert entry.level is LogLevel.ERROR
    assert entry.category == "system"


# ---------------------------------------------------------------------------
# Test group 5: performance messages
# ---------------------------------------------------------------------------


async def test_log_performance_formats_message(activity_logger, memory_store):
    """The canonical example produces the exact documented message."""
    await activity_logger.log_performance("latency_ms", 42.5, "ms")

    entry = memory_store.entries[0]
    assert entry.message == "Performance metric: latency_ms = 42.5 ms"
    assert entry.level is LogLevel.INFO
    assert entry.category == "performance"


async def test_log_performance_without_unit_keeps_trailing_space(activity_logger, memory_store):
    await activity_logger.log_performance("queue_depth", 3)

    assert memory_store.entries[0].message == "Performance metric: queue_depth = 3 "


@pytest.mark.parametrize(
    "value, expected",
    [
        (5.0, "5"),
        (42.5, "42.5"),
        (0.1, "0.1"),
        (7, "7"),
        (-2.0, "-2"),
        (0.1 + 0.2, "0.3"),
        (1.1 * 3, "3.3"),
        (2.0 / 3, "0.66666666666667"),
    ],
)
def test_format_metric_value(value, expected):
    assert format_metric_value(value) == expected


async def test_log_performance_hides_float_noise(activity_logger, memory_store):
    await activity_logger.log_performance("chunk_ratio", 0.1 + 0.2)

    assert memory_store.entries[0].message == "Performance metric: chunk_ratio = 0.3 "


# ---------------------------------------------------------------------------
# Invalid input is a programming error, raised before the store is touched
# ---------------------------------------------------------------------------


async def test_unknown_level_raises_before_store(activity_logger, memory_store, sink_records):
    with pytest.raises(ValidationError):
        await activity_logger.record("critical", "system", "Nope")

    assert len(memory_store) == 0
    assert sink_records() == []


async def test_empty_category_rejected(activity_logger, memory_store):
    with pytest.raises(ValidationError):
        await activity_logger.record("info", "", "No category")

    assert len(memory_store) == 0
