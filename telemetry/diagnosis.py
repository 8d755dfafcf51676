"""
Diagnosis Desk

Keeps at most one diagnosis request in flight per record and remembers
the answer until the operator clears it.

Answers are keyed by (id, timestamp), not id alone: every restart
record is SYS-RESTART, and each one needs its own diagnosis.
"""

import asyncio
from datetime import datetime
from functools import partial
from typing import Dict, Optional, Tuple

from agents.base import BaseAgent
from schemas.trace import RequestLog

DEFAULT_CACHE_SIZE = 50

RecordKey = Tuple[str, datetime]


def record_key(record: RequestLog) -> RecordKey:
    return (record.id, record.timestamp)


class DiagnosisDesk:
    def __init__(self, agent: BaseAgent, cache_size: int = DEFAULT_CACHE_SIZE):
        self._agent = agent
        self._cache_size = cache_size
        self._inflight: Dict[RecordKey, asyncio.Task] = {}
        self._results: Dict[RecordKey, str] = {}

    def is_analyzing(self, record: RequestLog) -> bool:
        return record_key(record) in self._inflight

    def result(self, record: RequestLog) -> Optional[str]:
        return self._results.get(record_key(record))

    async def diagnose(self, record: RequestLog) -> str:
        """
        Return the cached diagnosis, join an in-flight one, or start one.

        A caller that is cancelled while waiting does not cancel the
        request; the answer is still cached when it arrives.
        """
        key = record_key(record)
        cached = self._results.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._agent.analyze(record))
            self._inflight[key] = task
            task.add_done_callback(partial(self._settle, key))
        return await asyncio.shield(task)

    def _settle(self, key: RecordKey, task: asyncio.Task) -> None:
        self._inflight.pop(key, None)
        if task.cancelled() or task.exception() is not None:
            return
        self._results[key] = task.result()
        # Oldest answers go first
        while len(self._results) > self._cache_size:
            del self._results[next(iter(self._results))]

    def clear(self, record_id: str) -> None:
        """Forget every cached answer for records with this id."""
        for key in [key for key in self._results if key[0] == record_id]:
            del self._results[key]
