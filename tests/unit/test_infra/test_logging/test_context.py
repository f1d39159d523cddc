"""Tests for contextvars-based log context."""
from __future__ import annotations

import asyncio
import logging

import pytest

from identity_directory.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    set_log_context,
)


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
def test_set_and_get():
    set_log_context(tenant_id="acme")
    set_log_context(request_id="r1")

    assert get_log_context() == {"tenant_id": "acme", "request_id": "r1"}


@pytest.mark.unit
def test_get_returns_copy():
    set_log_context(tenant_id="acme")
    get_log_context()["tenant_id"] = "other"

    assert get_log_context()["tenant_id"] == "acme"


@pytest.mark.unit
def test_filter_injects_context():
    set_log_context(tenant_id="acme")
    record = _record()

    assert ContextInjectingFilter().filter(record) is True
    assert record.tenant_id == "acme"


@pytest.mark.unit
def test_record_attributes_win():
    set_log_context(tenant_id="acme")
    record = _record(tenant_id="explicit")

    ContextInjectingFilter().filter(record)

    assert record.tenant_id == "explicit"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tasks_have_isolated_context():
    async def worker(tenant: str) -> dict:
        set_log_context(tenant_id=tenant)
        await asyncio.sleep(0)
        return get_log_context()

    results = await asyncio.gather(worker("acme"), worker("globex"))

    assert [r["tenant_id"] for r in results] == ["acme", "globex"]
    assert get_log_context() == {}
