"""Tests for the JSON-lines event journal."""

from staxchange.logging.event_logger import EventLogger


class TestEventLogger:
    """Tests for EventLogger."""

    def test_log_and_read_back(self, tmp_path):
        journal = EventLogger(tmp_path / "logs")

        journal.log_event("conversion.started", "started", {"files": 2}, run="abc")
        journal.log_error("boom", {"batch": 1})

        entries = journal.recent()
        assert [entry["category"] for entry in entries] == ["conversion.started", "error"]
        assert entries[0]["payload"] == {"files": 2}
        assert entries[0]["run"] == "abc"
        assert "run" not in entries[1]
        assert "timestamp" in entries[0]

    def test_recent_limit_skips_malformed_lines(self, tmp_path):
        journal = EventLogger(tmp_path)
        for index in range(5):
            journal.log_event("batch", f"event {index}")
        with journal.journal_path.open("a", encoding="utf-8") as handle:
            handle.write("not json\n")

        entries = journal.recent(limit=3)

        assert [entry["message"] for entry in entries] == ["event 2", "event 3", "event 4"]

    def test_recent_by_category(self, tmp_path):
        journal = EventLogger(tmp_path)
        journal.log_event("conversion.started", "a")
        journal.log_event("batch.fallback", "b")
        journal.log_event("conversion.completed", "c")

        assert [entry["message"] for entry in journal.recent(category="conversion.")] == ["a", "c"]

    def test_rotation(self, tmp_path):
        journal = EventLogger(tmp_path, max_bytes=200)
        for index in range(10):
            journal.log_event("batch", f"event {index}", {"padding": "x" * 50})

        assert journal.rotated_path.exists()
        assert journal.journal_path.stat().st_size < 400
        assert journal.recent()[-1]["message"] == "event 9"

    def test_recent_without_file(self, tmp_path):
        assert EventLogger(tmp_path / "empty").recent() == []
