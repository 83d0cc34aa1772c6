from __future__ import annotations

import asyncio
import logging

import pytest

from core.services.background import BackgroundTaskRunner

pytestmark = pytest.mark.asyncio


async def test_failures_are_logged_not_raised(caplog):
    runner = BackgroundTaskRunner()

    async def boom() -> None:
        raise RuntimeError("audit sink unavailable")

    with caplog.at_level(logging.ERROR, logger="core.services.background"):
        runner.submit(boom(), name="lgpd:1")
        await runner.drain()

    assert runner.pending == 0
    assert "lgpd:1" in caplog.text


async def test_drain_waits_for_tasks_submitted_while_draining():
    runner = BackgroundTaskRunner()
    done: list[str] = []

    async def child() -> None:
        await asyncio.sleep(0)
        done.append("child")

    async def parent() -> None:
        runner.submit(child(), name="child")
        done.append("parent")

    runner.submit(parent(), name="parent")
    await runner.drain()

    assert done == ["parent", "child"]
    assert runner.pending == 0
