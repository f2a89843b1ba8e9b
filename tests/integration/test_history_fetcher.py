import httpx
import pytest

from app.features.freeze_history.domain.models import FetchErrorKind, WorkItem
from app.features.freeze_history.services import HistoryFetcher, RunContext

ITEM = WorkItem(member_id=101, host_id="13752")
HISTORY = [{"type": "membership", "boughtMembershipId": 900, "activities": []}]


@pytest.mark.asyncio
async def test_success_returns_entries_and_sends_cookie(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    httpx_mock.add_response(method="GET", url=url, json=HISTORY)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert result.ok
    assert result.entries == HISTORY
    assert recording_sleep.delays == []
    request = httpx_mock.get_requests()[0]
    assert request.headers["Cookie"] == "session=abc"
    assert str(request.url) == "https://momence.test/host/13752/customers/101/history"


@pytest.mark.asyncio
async def test_rate_limit_retries_are_bounded(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    for _ in range(4):
        httpx_mock.add_response(method="GET", url=url, status_code=429)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert not result.ok
    assert result.error.kind is FetchErrorKind.RATE_LIMIT_EXHAUSTED
    assert result.error.status_code == 429
    assert result.error.attempts == 4
    assert len(httpx_mock.get_requests()) == 4
    assert recording_sleep.delays == [5.0, 10.0, 20.0]
    assert recording_sleep.delays == sorted(recording_sleep.delays)
    assert result.error.waited_seconds == 35.0


@pytest.mark.asyncio
async def test_server_errors_retry_then_succeed(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    httpx_mock.add_response(method="GET", url=url, status_code=503)
    httpx_mock.add_response(method="GET", url=url, status_code=502)
    httpx_mock.add_response(method="GET", url=url, json=HISTORY)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert result.ok
    assert result.entries == HISTORY
    assert recording_sleep.delays == [2.0, 3.0]


@pytest.mark.asyncio
async def test_server_errors_exhaust(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    for _ in range(4):
        httpx_mock.add_response(method="GET", url=url, status_code=500)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert result.error.kind is FetchErrorKind.SERVER_FAULT_EXHAUSTED
    assert recording_sleep.delays == [2.0, 3.0, 4.5]


@pytest.mark.asyncio
async def test_timeout_is_retried_like_a_server_fault(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    httpx_mock.add_exception(httpx.ReadTimeout("timed out"), method="GET", url=url)
    httpx_mock.add_response(method="GET", url=url, json=HISTORY)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert result.ok
    assert recording_sleep.delays == [2.0]


@pytest.mark.asyncio
async def test_client_error_is_permanent(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    httpx_mock.add_response(method="GET", url=url, status_code=404)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert result.error.kind is FetchErrorKind.PERMANENT
    assert result.error.status_code == 404
    assert result.error.attempts == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_connection_failure_is_permanent(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    httpx_mock.add_exception(httpx.ConnectError("refused"), method="GET", url=url)

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        result = await HistoryFetcher(context).fetch(ITEM)

    assert result.error.kind is FetchErrorKind.PERMANENT
    assert result.error.status_code is None
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_unexpected_payloads_are_permanent(httpx_mock, test_settings, recording_sleep):
    url = test_settings.history_url(ITEM.member_id, ITEM.host_id)
    httpx_mock.add_response(method="GET", url=url, text="<html>login</html>")
    httpx_mock.add_response(method="GET", url=url, json={"error": "unauthorized"})

    async with RunContext.open(test_settings, sleep=recording_sleep) as context:
        fetcher = HistoryFetcher(context)
        not_json = await fetcher.fetch(ITEM)
        not_list = await fetcher.fetch(ITEM)

    assert not_json.error.kind is FetchErrorKind.PERMANENT
    assert "Invalid JSON" in not_json.error.message
    assert not_list.error.kind is FetchErrorKind.PERMANENT
    assert "dict" in not_list.error.message
    assert recording_sleep.delays == []
