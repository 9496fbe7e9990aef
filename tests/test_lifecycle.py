"""Tests for TelemetrySession: init, logging, flushing, save/upload, shutdown."""

import json
import re
import threading
from unittest.mock import patch

import pytest

from veyu.config import VeyuConfig
from veyu.errors import (
    EntrySerializationError,
    FlushIOError,
    NotInitializedError,
    UploadUnavailableError,
)
from veyu.session.flush import read_session_file
from veyu.session.lifecycle import (
    SessionStatus,
    TelemetrySession,
    generate_session_id,
    session_file_name,
)
from veyu.upload import UploadOutcome


def _names(path):
    return [e.name for e in read_session_file(path)]


class TestInit:
    def test_init_derives_file_and_buffers_session_start(self, session, config):
        session.init("s1", 5)

        assert session.status is SessionStatus.ACTIVE
        assert session.session_file_path == config.log_dir / "veyu_session_s1.jsonl"
        assert session.flush_interval == 5
        assert session.pending_count == 1
        assert config.log_dir.is_dir()
        assert not session.session_file_path.exists()

    def test_session_start_metadata(self, session):
        session.init("s1")
        session.flush_now()

        start = read_session_file(session.session_file_path)[0]
        assert start.kind.value == "system"
        assert start.name == "session_start"
        assert start.meta["build_version"] == "1.2.3"
        assert {"platform", "python_version", "timestamp"} <= set(start.meta)

    def test_second_init_is_noop(self, session):
        session.init("s1", 5)
        session.log_event("jump")
        path = session.session_file_path

        session.init("s2", 30)

        assert session.session_id == "s1"
        assert session.session_file_path == path
        assert session.flush_interval == 5
        assert session.pending_count == 2

    def test_generated_session_id(self, session):
        session.init()
        assert re.fullmatch(r"veyu_[0-9a-f-]{36}_\d{8}_\d{6}", session.session_id)
        assert session.session_file_path.name == f"veyu_session_{session.session_id}.jsonl"

    def test_negative_interval_rejected(self, session):
        with pytest.raises(ValueError):
            session.init("s1", -1)
        assert session.status is SessionStatus.UNINITIALIZED

    def test_unwritable_log_dir_reported_but_session_active(self, tmp_path, errors):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        session = TelemetrySession(
            config=VeyuConfig(data_dir=blocker, upload_delay=0), on_error=errors.append
        )

        session.init("s1")

        assert session.status is SessionStatus.ACTIVE
        assert any(isinstance(e, FlushIOError) for e in errors)
        assert session.log_event("still_accepted")


class TestLogging:
    def test_log_before_init_is_dropped_and_reported(self, session, config, errors):
        assert session.log_event("early") is False

        assert session.pending_count == 0
        assert len(errors) == 1
        assert isinstance(errors[0], NotInitializedError)
        assert "early" in str(errors[0])
        assert not config.log_dir.exists()

    def test_log_kinds(self, session):
        session.init("s1")
        session.log_event("e")
        session.log_input("i")
        session.log_system("s", {"k": 1})
        session.flush_now()

        records = [
            json.loads(line)
            for line in session.session_file_path.read_text(encoding="utf-8").splitlines()
        ]
        assert [(r["type"], r["name"]) for r in records[1:]] == [
            ("event", "e"),
            ("input", "i"),
            ("system", "s"),
        ]
        assert records[1]["meta"] == {}
        assert records[3]["meta"] == {"k": 1}

    def test_invalid_kind_is_reported(self, session, errors):
        session.init("s1")
        assert session.log("bogus", "x") is False
        assert errors

    def test_on_error_callback_failure_is_contained(self, config):
        def explode(error):
            raise RuntimeError("host handler broke")

        session = TelemetrySession(config=config, on_error=explode)
        assert session.log_event("early") is False
        assert session.last_error


class TestFlush:
    def test_flush_uninitialized_has_no_side_effect(self, session, config):
        result = session.flush_now()
        assert result.success
        assert result.written == 0
        assert not config.log_dir.exists()

    def test_empty_flush_does_not_create_file(self, session):
        session.init("s1")
        session.flush_now()
        session.session_file_path.unlink()

        result = session.flush_now()

        assert result.success
        assert not session.session_file_path.exists()

    def test_io_failure_clears_buffer(self, session, errors):
        session.init("s1")
        session.session_file_path.mkdir()  # a directory where the file should be
        session.log_event("lost")

        result = session.flush_now()

        assert not result.success
        assert result.dropped == 2
        assert session.pending_count == 0
        assert any(isinstance(e, FlushIOError) for e in errors)

    @pytest.mark.asyncio
    async def test_async_flush(self, session):
        session.init("s1")
        session.log_event("jump")
        result = await session.flush()
        assert result.written == 2
        assert _names(session.session_file_path) == ["session_start", "jump"]


class TestMaybeFlush:
    def test_not_before_interval(self, session, clock):
        session.init("s1", 5)
        assert session.maybe_flush(clock.advance(5)) is None
        assert session.pending_count == 1

    def test_flushes_after_interval(self, session, clock):
        session.init("s1", 5)
        session.log_event("jump")

        future = session.maybe_flush(clock.advance(5.1))

        assert future is not None
        result = future.result(timeout=5)
        assert result.written == 2
        assert _names(session.session_file_path) == ["session_start", "jump"]

    def test_interval_restarts_from_last_flush(self, session, clock):
        session.init("s1", 5)
        session.maybe_flush(clock.advance(6)).result(timeout=5)
        session.log_event("jump")

        assert session.maybe_flush(clock.advance(3)) is None
        assert session.maybe_flush(clock.advance(3)) is not None

    def test_uses_session_clock_when_now_omitted(self, session, clock):
        session.init("s1", 5)
        clock.advance(10)
        future = session.maybe_flush()
        assert future is not None
        future.result(timeout=5)

    def test_empty_buffer_schedules_nothing(self, session, clock):
        session.init("s1", 5)
        session.flush_now()
        assert session.maybe_flush(clock.advance(10)) is None

    def test_uninitialized_schedules_nothing(self, session, clock):
        assert session.maybe_flush(clock.advance(100)) is None


class TestSaveAndUpload:
    @pytest.mark.asyncio
    async def test_save_scenario(self, session):
        session.init("s1", 5)
        session.log_event("jump")
        session.log_input("space_pressed")

        result = await session.save()

        assert result.success
        assert session.status is SessionStatus.SAVED
        assert session.session_file_path.name == "veyu_session_s1.jsonl"
        lines = session.session_file_path.read_text(encoding="utf-8").splitlines()
        records = [json.loads(line) for line in lines]
        assert [(r["type"], r["name"]) for r in records] == [
            ("system", "session_start"),
            ("event", "jump"),
            ("input", "space_pressed"),
            ("system", "session_end"),
        ]
        assert "timestamp" in records[-1]["meta"]

    @pytest.mark.asyncio
    async def test_save_before_init(self, session, config, errors):
        result = await session.save()
        assert not result.success
        assert isinstance(errors[0], NotInitializedError)
        assert not config.log_dir.exists()

    @pytest.mark.asyncio
    async def test_upload_is_placeholder(self, session, errors):
        session.init("s1")
        session.log_event("jump")

        outcome = await session.upload()

        assert outcome.success
        assert outcome.status == "not_implemented"
        assert outcome.transmitted is False
        assert outcome.path == str(session.session_file_path)
        assert session.status is SessionStatus.UPLOADED
        assert _names(session.session_file_path) == ["session_start", "jump", "session_end"]
        assert any(isinstance(e, UploadUnavailableError) for e in errors)

    @pytest.mark.asyncio
    async def test_upload_uses_custom_sink(self, config):
        class RecordingSink:
            def __init__(self):
                self.paths = []

            async def upload(self, path):
                self.paths.append(path)
                return UploadOutcome(success=True, status="uploaded", path=path, transmitted=True)

        sink = RecordingSink()
        session = TelemetrySession(config=config, uploader=sink).init("s1")

        outcome = await session.upload()

        assert outcome.status == "uploaded"
        assert sink.paths == [str(session.session_file_path)]

    @pytest.mark.asyncio
    async def test_failing_sink_is_contained(self, config, errors):
        class BrokenSink:
            async def upload(self, path):
                raise ConnectionError("offline")

        session = TelemetrySession(config=config, uploader=BrokenSink(), on_error=errors.append)
        session.init("s1")

        outcome = await session.upload()

        assert not outcome.success
        assert outcome.status == "failed"
        assert "offline" in outcome.detail
        assert session.session_file_path.exists()

    @pytest.mark.asyncio
    async def test_upload_before_init(self, session, errors):
        outcome = await session.upload()
        assert not outcome.success
        assert outcome.status == "skipped"
        assert isinstance(errors[0], NotInitializedError)


class TestShutdown:
    def test_shutdown_flushes_without_session_end(self, session, clock):
        session.init("s1", 5)
        session.log_event("jump")
        session.maybe_flush(clock.advance(6))
        session.log_event("late")

        result = session.shutdown()

        assert result.success
        assert _names(session.session_file_path) == ["session_start", "jump", "late"]

    def test_shutdown_twice_is_safe(self, session):
        session.init("s1")
        session.shutdown()
        result = session.shutdown()
        assert result.success
        assert result.written == 0

    def test_shutdown_uninitialized(self, session, config):
        assert session.shutdown().success
        assert not config.log_dir.exists()

    def test_install_exit_hook_once(self, session):
        with patch("veyu.session.lifecycle.atexit.register") as register:
            session.install_exit_hook()
            session.install_exit_hook()
        register.assert_called_once_with(session.shutdown)


class TestConcurrency:
    def test_logging_during_periodic_flushes(self, session, clock):
        session.init("s1", 0)
        per_thread = 300

        def writer(prefix):
            for i in range(per_thread):
                session.log_event(f"{prefix}-{i}")

        threads = [threading.Thread(target=writer, args=(p,)) for p in ("a", "b")]
        for t in threads:
            t.start()
        futures = []
        while any(t.is_alive() for t in threads):
            future = session.maybe_flush(clock.advance(1))
            if future:
                futures.append(future)
        for t in threads:
            t.join()
        for future in futures:
            future.result(timeout=5)
        session.shutdown()

        names = _names(session.session_file_path)
        assert names[0] == "session_start"
        assert len(names) == 1 + 2 * per_thread
        for prefix in ("a", "b"):
            own = [int(n.split("-")[1]) for n in names if n.startswith(f"{prefix}-")]
            assert own == list(range(per_thread))


def test_get_status(session):
    assert session.get_status()["status"] == "uninitialized"
    session.init("s1", 5)
    status = session.get_status()
    assert status["status"] == "active"
    assert status["session_id"] == "s1"
    assert status["pending"] == 1
    assert status["flush_interval"] == 5


def test_session_file_name_sanitizes_id():
    assert session_file_name("a/b c") == "veyu_session_a_b_c.jsonl"
    assert generate_session_id().startswith("veyu_")


class TestEntryIntegrity:
    @pytest.mark.asyncio
    async def test_save_survives_unencodable_string(self, session, errors):
        session.init("s1")
        session.log_event("bad", {"text": "\ud800"})
        session.log_event("good")

        result = await session.save()

        assert result.success
        assert result.serialization_errors == 1
        records = [
            json.loads(line)
            for line in session.session_file_path.read_text(encoding="utf-8").splitlines()
        ]
        assert [r["name"] for r in records] == ["session_start", "bad", "good", "session_end"]
        assert "serialization_error" in records[1]["meta"]
        assert any(isinstance(e, EntrySerializationError) for e in errors)

    def test_meta_mutation_after_logging_is_not_persisted(self, session):
        session.init("s1")
        meta = {"score": 1}
        session.log_event("hit", meta)
        meta["score"] = 999

        session.flush_now()

        hit = read_session_file(session.session_file_path)[1]
        assert hit.meta == {"score": 1}

    def test_session_start_precedes_concurrent_logging(self, session):
        def log_from_other_thread(*args, **kwargs):
            t = threading.Thread(target=session.log_event, args=("racer",))
            t.start()
            t.join()

        with patch("veyu.session.lifecycle.logger") as mock_logger:
            mock_logger.info.side_effect = log_from_other_thread
            session.init("s1")

        session.flush_now()

        assert _names(session.session_file_path) == ["session_start", "racer"]
