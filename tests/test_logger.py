"""Tests for the probe event logger."""

import json

from mcp_doctor.models import ProbeEventType
from mcp_doctor.probe import ProbeLogger


def test_log_and_filter():
    """Entries can be filtered by server and event type."""
    logger = ProbeLogger()
    logger.log(ProbeEventType.SPAWNED, "a", pid=1)
    logger.log(ProbeEventType.SPAWNED, "b", pid=2)
    logger.log(ProbeEventType.TIMED_OUT, "a", error="Timeout after 10ms")

    assert len(logger.get_entries(server_name="a")) == 2
    spawned = logger.get_entries(event_type=ProbeEventType.SPAWNED)
    assert [e.parameters["pid"] for e in spawned] == [1, 2]
    assert logger.get_entries(server_name="a", event_type=ProbeEventType.TIMED_OUT)[0].get_status() == "ERROR"


def test_max_entries():
    """Only the most recent entries are kept in memory."""
    logger = ProbeLogger(max_entries=3)
    for index in range(5):
        logger.log(ProbeEventType.REQUEST_SENT, f"s{index}")

    assert [e.server_name for e in logger.entries] == ["s2", "s3", "s4"]


def test_persists_jsonl(tmp_path):
    """Every entry is appended to the log file as one JSON line."""
    log_file = tmp_path / "logs" / "probe.jsonl"
    logger = ProbeLogger(log_file=log_file)
    logger.log(ProbeEventType.SPAWNED, "a", message="npx server", pid=42)
    logger.log(ProbeEventType.TERMINATED, "a", duration_ms=12.5)

    lines = log_file.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["event_type"] for r in records] == ["spawned", "terminated"]
    assert records[0]["parameters"] == {"pid": 42}
    assert records[1]["duration_ms"] == 12.5


def test_callbacks():
    """Callbacks see every entry and their errors are contained."""
    logger = ProbeLogger()
    seen = []

    def broken(entry):
        raise RuntimeError("callback failure")

    logger.add_update_callback(broken)
    logger.add_update_callback(seen.append)
    logger.log(ProbeEventType.SPAWNED, "a")
    logger.remove_update_callback(seen.append)
    logger.log(ProbeEventType.SPAWNED, "b")

    assert [e.server_name for e in seen] == ["a"]


def test_stats_and_clear():
    """Statistics count entries by server and type."""
    logger = ProbeLogger()
    logger.log(ProbeEventType.SPAWNED, "a")
    logger.log(ProbeEventType.SPAWN_FAILED, "b", error="no such file")

    stats = logger.get_stats()
    assert stats["total"] == 2
    assert stats["errors"] == 1
    assert stats["by_type"] == {"spawned": 1, "spawn_failed": 1}

    logger.clear()
    assert logger.get_stats()["total"] == 0
