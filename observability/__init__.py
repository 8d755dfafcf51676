# Observability Package
from observability.sink import RecordSink, LoggingRecordSink, JsonRecordSink, build_sink

__all__ = ["RecordSink", "LoggingRecordSink", "JsonRecordSink", "build_sink"]
