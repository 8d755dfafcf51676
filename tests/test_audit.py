"""
Audit Log Formatter Tests

Run: pytest tests/test_audit.py
"""

import random
from datetime import datetime, timezone

import pytest

from schemas.trace import RequestStatus
from telemetry.audit import (
    AUTHN_METHOD,
    RELEASED_ATTRIBUTES,
    SAML2_REDIRECT_BINDING,
    SSO_BROWSER_PROFILE,
    AuditLogFormatter,
)
from telemetry.generator import TraceGenerator

STAMP = datetime(2026, 1, 27, 9, 30, 15, 123000, tzinfo=timezone.utc)


def test_success_line_fields():
    line = AuditLogFormatter().format("REQ-ABC12345", "IEEE Xplore", "js_lihua", failed=False, timestamp=STAMP)
    fields = line.split("|")

    assert len(fields) == 8
    assert fields[0] == "2026-01-27 09:30:15.123+00:00"
    assert "T" not in fields[0]
    assert fields[1] == SAML2_REDIRECT_BINDING
    assert fields[2] == "REQ-ABC12345"
    assert fields[3] == "IEEE Xplore"
    assert fields[4] == SSO_BROWSER_PROFILE
    assert fields[5] == "js_lihua"
    assert fields[6] == AUTHN_METHOD
    assert fields[7] == RELEASED_ATTRIBUTES


def test_failed_line_blanks_principal_and_attributes():
    line = AuditLogFormatter().format("REQ-ABC12345", "CNKI", "sys_admin", failed=True, timestamp=STAMP)
    fields = line.split("|")

    assert len(fields) == 8
    assert fields[5] == ""
    assert fields[7] == ""
    assert fields[6] == AUTHN_METHOD


def test_uses_injected_clock_when_no_timestamp():
    formatter = AuditLogFormatter(clock=lambda: STAMP)
    assert formatter.format("REQ-1", "CNKI", "u", failed=False).startswith("2026-01-27 09:30:15.123")


def test_parse_round_trip_and_to_dict():
    line = AuditLogFormatter().format("REQ-XYZ", "Zoom Video", "mz_zhang", failed=False, timestamp=STAMP)
    entry = AuditLogFormatter.parse(line)

    assert entry.request_id == "REQ-XYZ"
    assert entry.peer == "Zoom Video"
    assert not entry.failed
    assert entry.to_dict()["attributes"] == ["eduPersonScopedAffiliation", "mail", "cn"]


def test_parse_rejects_wrong_field_count():
    with pytest.raises(ValueError):
        AuditLogFormatter.parse("SYSTEM_EVENT|STOP|INITIATED_BY_ADMIN")


def test_generated_audit_lines_match_outcome():
    generator = TraceGenerator(rng=random.Random(5))
    for _ in range(1000):
        record = generator.generate()
        fields = record.audit_log.split("|")
        assert len(fields) == 8
        assert fields[2] == record.id
        failed = record.status == RequestStatus.FAILURE
        assert (fields[5] == "") == failed
        assert (fields[7] == "") == failed
