"""Unit tests for CorrelationContext and RequestContext."""

from __future__ import annotations

import asyncio
import re

import pytest

from mp_auditlog.observability.correlation import CorrelationContext, RequestContext


@pytest.fixture(autouse=True)
def _clear_ctx():
    CorrelationContext.clear()
    yield
    CorrelationContext.clear()


class TestCorrelationContext:
    def test_get_returns_none_when_unset(self) -> None:
        assert CorrelationContext.get() is None

    def test_set_and_get(self) -> None:
        ctx = RequestContext.new(client_ip="10.0.0.1", url="/articles", user_id=7)
        CorrelationContext.set(ctx)
        assert CorrelationContext.get() is ctx

    def test_clear(self) -> None:
        CorrelationContext.set(RequestContext.new())
        CorrelationContext.clear()
        assert CorrelationContext.get() is None

    def test_isolated_across_tasks(self) -> None:
        results: list[str | None] = []

        async def worker(url: str) -> None:
            CorrelationContext.set(RequestContext.new(url=url))
            await asyncio.sleep(0)
            stored = CorrelationContext.get()
            results.append(stored.url if stored else None)

        async def run() -> None:
            await asyncio.gather(worker("/a"), worker("/b"))

        asyncio.run(run())
        assert sorted(results) == ["/a", "/b"]


class TestRequestContext:
    def test_new_generates_unique_ids(self) -> None:
        assert RequestContext.new().correlation_id != RequestContext.new().correlation_id

    def test_is_frozen(self) -> None:
        with pytest.raises(AttributeError):
            RequestContext.new().url = "/x"  # type: ignore[misc]


class TestSetFromHeaders:
    def test_picks_x_correlation_id(self) -> None:
        ctx = CorrelationContext.set_from_headers({"X-Correlation-ID": "abc-123"})
        assert ctx.correlation_id == "abc-123"

    def test_falls_back_to_x_request_id(self) -> None:
        assert CorrelationContext.set_from_headers({"X-Request-ID": "req-9"}).correlation_id == "req-9"

    def test_generates_uuid(self) -> None:
        ctx = CorrelationContext.set_from_headers({})
        assert re.match(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", ctx.correlation_id)

    def test_case_insensitive(self) -> None:
        ctx = CorrelationContext.set_from_headers({"x-correlation-id": "corr", "X-REQUEST-ID": "req"})
        assert ctx.correlation_id == "corr"

    def test_client_ip_from_forwarded_for(self) -> None:
        ctx = CorrelationContext.set_from_headers({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert ctx.client_ip == "203.0.113.5"

    def test_explicit_client_ip_wins(self) -> None:
        ctx = CorrelationContext.set_from_headers({"X-Forwarded-For": "203.0.113.5"}, client_ip="::1")
        assert ctx.client_ip == "::1"

    def test_stores_context(self) -> None:
        ctx = CorrelationContext.set_from_headers({}, url="/articles/1", user_id="alice")
        assert CorrelationContext.get() is ctx
        assert (ctx.url, ctx.user_id) == ("/articles/1", "alice")
