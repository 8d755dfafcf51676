"""
Record Sink Interface

Abstract sink for transaction records as they enter the monitor.
Storage-agnostic - implementations can write to the log, stdout, files, etc.

DESIGN RULES:
- Side-effect only
- Never throw exceptions
- Storage-agnostic interface
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from app.core.logging import AUDIT_LOGGER_NAME
from schemas.trace import RequestLog

logger = logging.getLogger(__name__)


class RecordSink(ABC):
    """
    Abstract base for record output destinations.

    Implementations:
    - LoggingRecordSink (default)
    - JsonRecordSink
    """

    @abstractmethod
    def emit(self, record: RequestLog) -> None:
        """
        Emit a record to the sink.

        Must not throw - failures should be logged and ignored.
        """
        pass


class LoggingRecordSink(RecordSink):
    """
    Writes the narrative lines to the process log and the audit line
    to the audit logger.
    """

    def __init__(self, narrative_logger: Optional[logging.Logger] = None, audit_logger: Optional[logging.Logger] = None):
        self._narrative = narrative_logger or logging.getLogger("idp.process")
        self._audit = audit_logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def emit(self, record: RequestLog) -> None:
        try:
            level = logging.WARNING if record.failed else logging.INFO
            for line in record.raw_logs:
                self._narrative.log(level, line)
            if record.audit_log:
                self._audit.info(record.audit_log)
        except Exception as e:
            logger.warning(f"Failed to emit record {record.id}: {e}")


class JsonRecordSink(RecordSink):
    """
    Sink that outputs records as JSON lines.

    Useful for log aggregation systems.
    """

    def emit(self, record: RequestLog) -> None:
        try:
            print(json.dumps(record.to_wire(), ensure_ascii=False))
        except Exception as e:
            logger.warning(f"Failed to emit JSON record {record.id}: {e}")


def build_sink(kind: str) -> Optional[RecordSink]:
    """Sink for a record_sink setting value; None disables emission."""
    if kind == "console":
        return LoggingRecordSink()
    if kind == "json":
        return JsonRecordSink()
    return None
