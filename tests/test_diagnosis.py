"""
Diagnosis Agent / Desk Tests

The LLM is replaced by an injected async generator; nothing leaves the
process.

Run: pytest tests/test_diagnosis.py
"""

import asyncio
import random

import pytest

from agents.diagnosis_agent import DiagnosisAgent
from conftest import ScriptedRandom
from telemetry.diagnosis import DiagnosisDesk
from telemetry.generator import TraceGenerator


def failed_record():
    return TraceGenerator(rng=ScriptedRandom([0.05, 0.1, 0.1])).generate()


@pytest.mark.asyncio
async def test_prompt_contains_trace():
    prompts = []

    async def fake_generate(prompt, system_prompt=None):
        prompts.append((prompt, system_prompt))
        return "LDAP bind rejected; check the account lockout policy.", {"model": "test"}

    record = failed_record()
    answer = await DiagnosisAgent(generate=fake_generate).analyze(record)

    assert answer.startswith("LDAP bind rejected")
    prompt, system_prompt = prompts[0]
    assert record.id in prompt
    assert "[failure]" in prompt
    assert record.raw_logs[0] in prompt
    assert "Shibboleth" in system_prompt


@pytest.mark.asyncio
async def test_failure_becomes_fallback():
    async def broken(prompt, system_prompt=None):
        raise RuntimeError("401 Unauthorized")

    answer = await DiagnosisAgent(generate=broken).analyze(failed_record())
    assert answer == DiagnosisAgent.FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_empty_answer_becomes_placeholder():
    async def empty(prompt, system_prompt=None):
        return "", {}

    answer = await DiagnosisAgent(generate=empty).analyze(failed_record())
    assert answer == DiagnosisAgent.EMPTY_MESSAGE


@pytest.mark.asyncio
async def test_desk_runs_one_request_per_record():
    calls = []
    release = asyncio.Event()

    async def slow(prompt, system_prompt=None):
        calls.append(prompt)
        await release.wait()
        return "diagnosis", {}

    desk = DiagnosisDesk(DiagnosisAgent(generate=slow))
    record = TraceGenerator(rng=random.Random(1)).generate()

    first = asyncio.create_task(desk.diagnose(record))
    second = asyncio.create_task(desk.diagnose(record))
    await asyncio.sleep(0)
    assert desk.is_analyzing(record)

    release.set()
    assert await first == "diagnosis"
    assert await second == "diagnosis"
    assert len(calls) == 1
    assert not desk.is_analyzing(record)

    # Cached until cleared
    assert await desk.diagnose(record) == "diagnosis"
    assert len(calls) == 1
    desk.clear(record.id)
    assert desk.result(record) is None
    await desk.diagnose(record)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_each_restart_record_gets_its_own_diagnosis(make_scheduler, clock):
    calls = []

    async def numbered(prompt, system_prompt=None):
        calls.append(prompt)
        return f"answer {len(calls)}", {}

    async def no_wait(seconds):
        pass

    desk = DiagnosisDesk(DiagnosisAgent(generate=numbered))
    scheduler = make_scheduler(sleep=no_wait)

    await scheduler.restart(confirmed=True)
    first = scheduler.logs[0]
    assert await desk.diagnose(first) == "answer 1"

    for _ in range(60):
        clock.advance(2.5)
        await scheduler.tick()
    await scheduler.restart(confirmed=True)
    second = scheduler.logs[0]

    assert second.id == first.id
    assert await desk.diagnose(second) == "answer 2"
    assert len(calls) == 2

    desk.clear(first.id)
    assert desk.result(first) is None
    assert desk.result(second) is None


@pytest.mark.asyncio
async def test_cancelled_caller_still_caches_answer():
    release = asyncio.Event()

    async def slow(prompt, system_prompt=None):
        await release.wait()
        return "diagnosis", {}

    desk = DiagnosisDesk(DiagnosisAgent(generate=slow))
    record = failed_record()

    waiter = asyncio.create_task(desk.diagnose(record))
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert desk.is_analyzing(record)

    release.set()
    for _ in range(5):
        await asyncio.sleep(0)

    assert not desk.is_analyzing(record)
    assert desk.result(record) == "diagnosis"


@pytest.mark.asyncio
async def test_cache_is_bounded():
    async def echo(prompt, system_prompt=None):
        return "ok", {}

    desk = DiagnosisDesk(DiagnosisAgent(generate=echo), cache_size=3)
    generator = TraceGenerator(rng=random.Random(5))
    records = [generator.generate() for _ in range(5)]
    for record in records:
        await desk.diagnose(record)

    assert desk.result(records[0]) is None
    assert desk.result(records[1]) is None
    assert all(desk.result(record) == "ok" for record in records[2:])
