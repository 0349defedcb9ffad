"""Tests for HttpProgressStore and the InMemoryProgressStore double."""

import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from tenacity import wait_none

from gridiron.core.exceptions import AuthError, TransportError, ValidationError
from gridiron.onboarding.store import (
    HttpProgressStore,
    InMemoryProgressStore,
    ProgressStore,
    StoredProgress,
)
from gridiron.onboarding.transport import ApiTransport

pytestmark = pytest.mark.unit

SAVED_AT = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


class FakeProgressApi:
    """Minimal in-process progress endpoint for MockTransport."""

    def __init__(self, fail_gets: int = 0):
        self.record = None
        self.requests: list[tuple[str, str]] = []
        self.fail_gets = fail_gets

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if request.method == "GET":
            if self.fail_gets > 0:
                self.fail_gets -= 1
                return httpx.Response(503, json={"detail": "unavailable"})
            if self.record is None:
                return httpx.Response(200, json={"step": 0, "data": {}, "timestamp": None, "exists": False})
            return httpx.Response(200, json={**self.record, "exists": True})
        if request.method == "POST":
            body = json.loads(request.content)
            self.record = {"step": body["step"], "data": body["data"], "timestamp": body["saved_at"]}
            return httpx.Response(200, json={"applied": True, "step": body["step"], "timestamp": body["saved_at"]})
        if request.method == "DELETE":
            applied = self.record is not None
            self.record = None
            return httpx.Response(200, json={"applied": applied})
        return httpx.Response(405)


@pytest.fixture
def api():
    return FakeProgressApi()


def make_store(api, load_attempts: int = 2) -> HttpProgressStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(api), base_url="http://api.test/api")
    return HttpProgressStore(ApiTransport(client=client), load_attempts=load_attempts, retry_wait=wait_none())


# ============================================================================
# HttpProgressStore
# ============================================================================


def test_implementations_satisfy_protocol(api):
    assert isinstance(make_store(api), ProgressStore)
    assert isinstance(InMemoryProgressStore(), ProgressStore)


async def test_save_then_load_round_trip(api):
    store = make_store(api)
    data = {"footballInfo": {"position": "QB"}}

    ack = await store.save(7, 2, data, saved_at=SAVED_AT)
    loaded = await store.load(7)

    assert ack.applied is True
    assert loaded == StoredProgress(step=2, data=data, timestamp=SAVED_AT.isoformat(), exists=True)


async def test_load_without_saved_progress(api):
    loaded = await make_store(api).load(7)

    assert loaded.exists is False
    assert loaded.step == 0
    assert loaded.data == {}


async def test_load_is_cached_until_save_invalidates(api):
    store = make_store(api)

    await store.load(7)
    await store.load(7)
    assert api.requests.count(("GET", "/api/athletes/7/onboarding/progress")) == 1

    await store.save(7, 1, {}, saved_at=SAVED_AT)
    await store.load(7)
    assert api.requests.count(("GET", "/api/athletes/7/onboarding/progress")) == 2


async def test_clear_then_load_reports_missing(api):
    store = make_store(api)
    await store.save(7, 3, {"nutrition": {"dietType": "vegan"}}, saved_at=SAVED_AT)
    await store.load(7)

    ack = await store.clear(7)
    loaded = await store.load(7)

    assert ack.applied is True
    assert loaded.exists is False


async def test_load_retries_once_on_transport_error():
    api = FakeProgressApi(fail_gets=1)

    loaded = await make_store(api, load_attempts=2).load(7)

    assert loaded.exists is False
    assert [m for m, _ in api.requests] == ["GET", "GET"]


async def test_load_gives_up_after_attempts():
    api = FakeProgressApi(fail_gets=5)

    with pytest.raises(TransportError):
        await make_store(api, load_attempts=2).load(7)

    assert len(api.requests) == 2


async def test_load_does_not_retry_auth_errors():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, json={"detail": "Access denied"})

    with pytest.raises(AuthError):
        await make_store(handler).load(7)

    assert len(calls) == 1


async def test_save_failure_propagates_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"detail": "boom"})

    with pytest.raises(TransportError):
        await make_store(handler).save(7, 1, {}, saved_at=SAVED_AT)

    assert len(calls) == 1


async def test_save_validation_error_propagates():
    handler = lambda request: httpx.Response(422, json={"detail": "step out of range"})  # noqa: E731

    with pytest.raises(ValidationError):
        await make_store(handler).save(7, 99, {}, saved_at=SAVED_AT)


async def test_malformed_progress_payload_raises_transport_error():
    handler = lambda request: httpx.Response(200, json={"exists": True, "step": "two", "data": {}})  # noqa: E731

    with pytest.raises(TransportError, match="invalid step"):
        await make_store(handler, load_attempts=1).load(7)


# ============================================================================
# InMemoryProgressStore
# ============================================================================


async def test_in_memory_round_trip_returns_copies(progress_store):
    data = {"footballInfo": {"position": "QB"}}
    await progress_store.save(1, 2, data, saved_at=SAVED_AT)
    data["footballInfo"]["position"] = "WR"

    loaded = await progress_store.load(1)

    assert loaded.step == 2
    assert loaded.data == {"footballInfo": {"position": "QB"}}
    assert loaded.exists is True


async def test_in_memory_stale_save_is_not_applied(progress_store):
    await progress_store.save(1, 3, {"a": {}}, saved_at=SAVED_AT)

    ack = await progress_store.save(1, 2, {"b": {}}, saved_at=SAVED_AT - timedelta(seconds=5))
    loaded = await progress_store.load(1)

    assert ack.applied is False
    assert loaded.step == 3


async def test_in_memory_clear(progress_store):
    progress_store.seed(1, 4, {})

    assert (await progress_store.clear(1)).applied is True
    assert (await progress_store.load(1)).exists is False
    assert (await progress_store.clear(1)).applied is False


@pytest.mark.parametrize(
    "scenario,operation",
    [("load_failure", "load"), ("save_failure", "save"), ("clear_failure", "clear")],
)
async def test_in_memory_failure_scenarios(scenario, operation):
    store = InMemoryProgressStore(scenario=scenario)
    calls = {
        "load": lambda: store.load(1),
        "save": lambda: store.save(1, 0, {}),
        "clear": lambda: store.clear(1),
    }

    with pytest.raises(TransportError):
        await calls[operation]()


async def test_in_memory_auth_failure():
    store = InMemoryProgressStore(scenario="auth_failure")

    with pytest.raises(AuthError):
        await store.load(1)


def test_in_memory_rejects_unknown_scenario():
    with pytest.raises(ValueError, match="Unknown scenario"):
        InMemoryProgressStore(scenario="flaky")
