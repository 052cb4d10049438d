"""Tests for the JSON interval log."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from worktrack.tracking import JsonIntervalLog, LogCorrupt, TrackerIOError

from conftest import make_record

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestLoad:
    """Tests for JsonIntervalLog.load()."""

    def test_missing_file_is_empty_log(self, db_path):
        assert JsonIntervalLog(db_path).load() == []
        assert not db_path.exists()

    @pytest.mark.parametrize("content", ["", "   \n"])
    def test_empty_file_is_empty_log(self, db_path, content):
        db_path.write_text(content)

        assert JsonIntervalLog(db_path).load() == []

    @pytest.mark.parametrize("content", [
        "not json",
        '{"records": []}',
        '[{"start": "2024-01-01T12:00:00Z"}]',
        '[{"start": "noon", "end": "2024-01-01T12:00:00Z"}]',
    ])
    def test_invalid_content_raises_log_corrupt(self, db_path, content):
        db_path.write_text(content)

        with pytest.raises(LogCorrupt) as exc_info:
            JsonIntervalLog(db_path).load()

        assert exc_info.value.suggestion

    def test_load_creates_no_files(self, db_path):
        db_path.write_text(json.dumps([
            {"start": "2024-01-01T12:00:00Z", "end": "2024-01-01T12:00:10Z"},
        ]))
        log = JsonIntervalLog(db_path)

        assert len(log.load()) == 1
        assert not log.lock_path.exists()
        assert sorted(p.name for p in db_path.parent.iterdir()) == ["db.json"]

    def test_loads_records_in_file_order(self, db_path):
        db_path.write_text(json.dumps([
            {"start": "2024-01-01T12:00:00Z", "end": "2024-01-01T12:00:10Z"},
            {"start": "2024-01-01T08:00:00Z", "end": "2024-01-01T08:00:05Z"},
        ]))

        records = JsonIntervalLog(db_path).load()

        assert [r.duration for r in records] == [timedelta(seconds=10), timedelta(seconds=5)]
        assert records[0].start > records[1].start


class TestSave:
    """Tests for JsonIntervalLog.save() and append()."""

    def test_file_format(self, db_path):
        JsonIntervalLog(db_path).save([make_record(T0, 10)])

        assert json.loads(db_path.read_text()) == [
            {"start": "2024-01-01T12:00:00Z", "end": "2024-01-01T12:00:10Z"},
        ]

    def test_save_load_round_trip(self, db_path):
        records = [make_record(T0, 10), make_record(T0 + timedelta(minutes=5), 0.25)]
        log = JsonIntervalLog(db_path)

        log.save(records)

        assert log.load() == records

    def test_save_of_load_preserves_content(self, db_path):
        content = [
            {"start": "2024-01-01T12:00:00Z", "end": "2024-01-01T12:00:10Z"},
            {"start": "2023-12-31T23:59:59Z", "end": "2024-01-01T00:00:01Z"},
        ]
        db_path.write_text(json.dumps(content))
        log = JsonIntervalLog(db_path)

        log.save(log.load())

        assert json.loads(db_path.read_text()) == content

    def test_save_creates_parent_directories(self, tmp_path):
        path = tmp_path / "data" / "track" / "records.json"

        JsonIntervalLog(path).save([])

        assert json.loads(path.read_text()) == []

    def test_append_keeps_insertion_order(self, db_path):
        log = JsonIntervalLog(db_path)
        later = make_record(T0 + timedelta(hours=1), 10)
        earlier = make_record(T0, 5)

        log.append(later)
        log.append(earlier)

        assert log.load() == [later, earlier]

    def test_append_to_corrupt_log_does_not_overwrite(self, db_path):
        db_path.write_text("garbage")

        with pytest.raises(LogCorrupt):
            JsonIntervalLog(db_path).append(make_record(T0, 1))

        assert db_path.read_text() == "garbage"

    def test_failed_replace_keeps_previous_content(self, db_path):
        log = JsonIntervalLog(db_path)
        log.save([make_record(T0, 10)])
        before = db_path.read_bytes()

        with patch("worktrack.tracking.records.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(TrackerIOError):
                log.save([make_record(T0, 10), make_record(T0, 20)])

        assert db_path.read_bytes() == before
        assert list(db_path.parent.glob(".db.json.*.tmp")) == []

    def test_failed_write_keeps_previous_content(self, db_path):
        log = JsonIntervalLog(db_path)
        log.save([make_record(T0, 10)])
        before = db_path.read_bytes()

        with patch("worktrack.tracking.records.os.fsync", side_effect=OSError("io error")):
            with pytest.raises(TrackerIOError):
                log.append(make_record(T0, 20))

        assert db_path.read_bytes() == before
        assert list(db_path.parent.glob(".db.json.*.tmp")) == []

    def test_file_lock_lives_beside_records(self, db_path):
        log = JsonIntervalLog(db_path)

        assert log.lock_path == db_path.parent / "db.json.lock"
