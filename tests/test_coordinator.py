"""Tests for fetch coordination and the API client it drives."""
import asyncio

import httpx
import pytest

from client.api import GigsApiClient, GigsApiError
from client.coordinator import FetchCoordinator, FetchPhase
from client.renderer import ProgressiveRenderer


def page_body(gigs, total=None):
    total = len(gigs) if total is None else total
    return {
        "success": True,
        "data": {
            "gigs": gigs,
            "pagination": {"page": 1, "limit": 20, "total": total, "pages": 1, "hasMore": False},
        },
    }


class FakeBackend:
    """MockTransport handler that can hold requests until released."""

    def __init__(self):
        self.requests = []
        self.responses = []
        self.gate = None

    async def __call__(self, request):
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.pop(0) if self.responses else page_body([])
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def api(backend):
    client = GigsApiClient(base_url="http://test/api", transport=httpx.MockTransport(backend))
    yield client
    await client.aclose()


@pytest.fixture
def revealed():
    return []


@pytest.fixture
def coordinator(api, revealed):
    renderer = ProgressiveRenderer(lambda visible: revealed.append(list(visible)), batch_size=12, frame_interval=0)
    return FetchCoordinator(api, renderer)


async def test_second_fetch_while_in_flight_is_dropped(coordinator, backend, revealed):
    backend.gate = asyncio.Event()
    backend.responses = [page_body([{"id": "a"}]), page_body([{"id": "b"}])]

    first = coordinator.request_fetch()
    second = coordinator.request_fetch()
    assert first is not None
    assert second is None
    assert await coordinator.fetch() is False

    backend.gate.set()
    await first

    assert len(backend.requests) == 1
    assert coordinator.state.gigs == [{"id": "a"}]
    assert revealed[-1] == [{"id": "a"}]
    assert coordinator.state.phase is FetchPhase.IDLE


async def test_first_load_then_refresh_phases(coordinator, backend):
    backend.gate = asyncio.Event()
    task = coordinator.on_navigate()
    assert coordinator.state.phase is FetchPhase.LOADING
    backend.gate.set()
    await task
    assert coordinator.state.initial_load_done

    task = coordinator.on_navigate()
    assert coordinator.state.phase is FetchPhase.REFRESHING
    await task


async def test_initial_load_failure_is_shown_and_clears(coordinator, backend, revealed):
    backend.responses = [httpx.ConnectError("refused")]

    assert await coordinator.fetch() is True

    assert coordinator.state.error == "Failed to load gigs"
    assert coordinator.state.gigs == []
    assert revealed == [[]]
    assert coordinator.state.initial_load_done


async def test_refresh_failure_keeps_previous_results(coordinator, backend, revealed):
    backend.responses = [
        page_body([{"id": "a"}, {"id": "b"}]),
        httpx.Response(500, json={"success": False, "message": "Failed to fetch gigs"}),
    ]

    await coordinator.fetch()
    await coordinator.fetch()

    assert coordinator.state.error is None
    assert coordinator.state.gigs == [{"id": "a"}, {"id": "b"}]
    assert revealed == [[{"id": "a"}, {"id": "b"}]]
    assert len(backend.requests) == 2


async def test_filter_change_refetches_with_params(coordinator, backend):
    await coordinator.on_filters_changed({"category": "video-editing", "minPrice": 10, "q": ""})

    params = backend.requests[0].url.params
    assert params["category"] == "video-editing"
    assert params["minPrice"] == "10"
    assert "q" not in params


async def test_visibility_waits_for_initial_load(coordinator, backend):
    assert coordinator.on_visibility_changed(True) is None
    assert backend.requests == []

    await coordinator.fetch()
    assert coordinator.on_visibility_changed(False) is None
    task = coordinator.on_visibility_changed(True)
    assert task is not None
    await task
    assert len(backend.requests) == 2


async def test_visibility_ignored_while_in_flight(coordinator, backend):
    await coordinator.fetch()
    backend.gate = asyncio.Event()
    task = coordinator.on_navigate()
    assert coordinator.on_visibility_changed(True) is None
    backend.gate.set()
    await task
    assert len(backend.requests) == 2


async def test_pagination_is_stored(coordinator, backend):
    backend.responses = [page_body([{"id": "a"}], total=41)]
    await coordinator.fetch()
    assert coordinator.state.pagination.total == 41
    assert coordinator.state.pagination.has_more is False


async def test_close_cancels_in_flight_fetch(coordinator, backend, revealed):
    backend.gate = asyncio.Event()
    task = coordinator.on_navigate()
    await asyncio.sleep(0)

    await coordinator.close()

    assert task.cancelled()
    assert revealed == []
    assert coordinator.state.phase is FetchPhase.IDLE


async def test_api_raises_on_error_envelope(api, backend):
    backend.responses = [{"success": False, "message": "nope"}]
    with pytest.raises(GigsApiError, match="nope"):
        await api.list_gigs()


async def test_api_raises_on_missing_pagination(api, backend):
    backend.responses = [{"success": True, "data": {"gigs": []}}]
    with pytest.raises(GigsApiError):
        await api.list_gigs()


async def test_api_raises_on_non_object_data(api, backend):
    backend.responses = [{"success": True, "data": [{"id": "a"}]}]
    with pytest.raises(GigsApiError):
        await api.list_gigs()


async def test_non_object_data_is_a_handled_load_failure(coordinator, backend):
    backend.responses = [{"success": True, "data": ["unexpected"]}]

    await coordinator.fetch()

    assert coordinator.state.error == "Failed to load gigs"
    assert coordinator.state.phase is FetchPhase.IDLE
