"""Tests for the decision audit log and the system log file.

Verifies behavior through actual log output to temp files.
"""

import json
import logging
from pathlib import Path

import pytest

from cedar_acp.pdp import Authorizer, Decision, Policy, PolicyError, Response
from cedar_acp.pdp.expr import GetAttr, Var, VarName
from cedar_acp.telemetry.audit.decision_logger import DecisionEventLogger
from cedar_acp.telemetry.models.decision import DecisionEvent
from cedar_acp.telemetry.system import system_logger
from cedar_acp.utils.logging.iso_formatter import ISO8601Formatter
from cedar_acp.utils.logging.logging_helpers import serialize_audit_event


def _read_jsonl(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


@pytest.fixture
def decisions_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "audit" / "decisions.jsonl"


@pytest.fixture
def system_log_file(tmp_path: Path, monkeypatch):
    """Attach a system.jsonl handler for one test and detach it afterwards."""
    path = tmp_path / "logs" / "system" / "system.jsonl"
    monkeypatch.setattr(system_logger, "_file_handler_path", None)

    system_logger.configure_system_logger_file(path)
    yield path

    logger = system_logger.get_system_logger()
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)


# ============================================================================
# ISO8601Formatter
# ============================================================================


class TestISO8601Formatter:
    """JSONL formatting with the timestamp first."""

    def _record(self, msg) -> logging.LogRecord:
        return logging.LogRecord("test", logging.INFO, __file__, 1, msg, None, None)

    def test_dict_message_written_as_is(self):
        line = ISO8601Formatter().format(self._record({"event": "x", "count": 2}))

        data = json.loads(line)
        assert list(data) == ["time", "event", "count"]
        assert data["count"] == 2

    def test_plain_message_is_wrapped(self):
        data = json.loads(ISO8601Formatter().format(self._record("hello")))

        assert data["message"] == "hello"

    def test_timestamp_is_utc_with_milliseconds(self):
        data = json.loads(ISO8601Formatter().format(self._record("x")))

        # YYYY-MM-DDTHH:MM:SS.sssZ
        assert len(data["time"]) == 24
        assert data["time"].endswith("Z")


# ============================================================================
# Decision log
# ============================================================================


class TestDecisionEventLogger:
    """One JSONL entry per authorization call."""

    def test_to_file_creates_directory(self, decisions_path: Path):
        DecisionEventLogger.to_file(decisions_path)

        assert decisions_path.parent.is_dir()

    def test_logs_allow(self, decisions_path: Path, make_request, photo_store):
        # Arrange
        authorizer = Authorizer(decision_logger=DecisionEventLogger.to_file(decisions_path))

        # Act
        authorizer.decide(make_request(), photo_store, [Policy.create("p1", "permit")])

        # Assert
        entries = _read_jsonl(decisions_path)
        assert len(entries) == 1
        entry = entries[0]
        assert list(entry)[0] == "time"
        assert entry["event"] == "decision"
        assert entry["decision"] == "allow"
        assert entry["principal"] == 'User::"alice"'
        assert entry["action"] == 'Action::"view"'
        assert entry["resource"] == 'Photo::"vacation.jpg"'
        assert entry["reasons"] == ["p1"]
        assert entry["policy_count"] == 1
        assert entry["matched_count"] == 1

    def test_logs_deny_with_forbids_and_errors(self, decisions_path: Path, make_request, photo_store):
        authorizer = Authorizer(decision_logger=DecisionEventLogger.to_file(decisions_path))
        policies = [
            Policy.create("f1", "forbid"),
            Policy.create("broken", "permit", when=[GetAttr(Var(VarName.PRINCIPAL), "missing")]),
        ]

        authorizer.decide(make_request(), photo_store, policies)

        entry = _read_jsonl(decisions_path)[0]
        assert entry["decision"] == "deny"
        assert entry["satisfied_forbids"] == ["f1"]
        assert entry["errors"][0]["policy_id"] == "broken"
        assert entry["errors"][0]["message"].startswith("AttributeNotFound:")

    def test_appends_one_line_per_call(self, decisions_path: Path, make_request, photo_store):
        authorizer = Authorizer(decision_logger=DecisionEventLogger.to_file(decisions_path))

        for _ in range(3):
            authorizer.decide(make_request(), photo_store, [])

        assert [e["decision"] for e in _read_jsonl(decisions_path)] == ["deny"] * 3

    def test_event_model_excludes_time_when_serialized(self):
        event = DecisionEvent(
            decision="allow",
            principal='User::"a"',
            action='Action::"b"',
            resource='R::"c"',
            policy_count=0,
            matched_count=0,
            policy_eval_ms=0.1,
        )

        assert "time" not in serialize_audit_event(event)

    def test_logger_accepts_response_directly(self, decisions_path: Path, make_request):
        decision_logger = DecisionEventLogger.to_file(decisions_path)
        response = Response(Decision.DENY, (), (PolicyError("p", "TypeMismatch: x"),))

        decision_logger.log(
            request=make_request(), response=response, policy_count=1, matched_count=1, policy_eval_ms=1.234
        )

        entry = _read_jsonl(decisions_path)[0]
        assert entry["policy_eval_ms"] == 1.23
        assert entry["errors"] == [{"policy_id": "p", "message": "TypeMismatch: x"}]


# ============================================================================
# System log
# ============================================================================


class TestSystemLogFile:
    """system.jsonl receives warnings and above only."""

    def test_warning_written_info_skipped(self, system_log_file: Path):
        logger = system_logger.get_system_logger()

        logger.info({"event": "quiet", "message": "not written"})
        logger.warning({"event": "loud", "message": "written"})

        entries = _read_jsonl(system_log_file)
        assert [e["event"] for e in entries] == ["loud"]

    def test_policy_errors_reach_system_log(self, system_log_file: Path, make_request, photo_store):
        policies = [Policy.create("broken", "permit", when=[GetAttr(Var(VarName.PRINCIPAL), "missing")])]

        Authorizer().decide(make_request(), photo_store, policies)

        entries = _read_jsonl(system_log_file)
        assert entries[-1]["event"] == "policy_evaluation_errors"
        assert entries[-1]["errors"][0]["policy_id"] == "broken"

    def test_reconfiguring_same_path_is_a_noop(self, system_log_file: Path):
        logger = system_logger.get_system_logger()
        before = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]

        system_logger.configure_system_logger_file(system_log_file)

        after = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert before == after
        assert len(after) == 1

    def test_console_formatter_uses_message(self):
        record = logging.LogRecord("t", logging.WARNING, __file__, 1, {"event": "e", "message": "m"}, None, None)

        assert system_logger.ConsoleFormatter().format(record) == "WARNING: m"
