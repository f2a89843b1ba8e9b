import json

import pytest

from app.features.freeze_history.sinks import SheetsReportWriter
from app.services.google_sheets_client import GoogleSheetsClient, GoogleSheetsError, column_letter

TOKEN_URL = "https://oauth2.googleapis.com/token"
VALUES_URL = "https://sheets.googleapis.com/v4/spreadsheets/out-sheet/values"


def _add_token(httpx_mock):
    httpx_mock.add_response(method="POST", url=TOKEN_URL, json={"access_token": "tok"})


def _put_url(range_: str) -> str:
    return f"{VALUES_URL}/{range_}?valueInputOption=RAW"


def _rows(count: int) -> list[dict]:
    return [{"memberName": f"Member {i}", "memberId": i, "status": "Within Limits"} for i in range(count)]


def test_column_letters():
    assert column_letter(0) == "A"
    assert column_letter(22) == "W"
    assert column_letter(24) == "Y"
    assert column_letter(25) == "Z"
    assert column_letter(26) == "AA"
    assert column_letter(32) == "AG"
    with pytest.raises(ValueError):
        column_letter(-1)


@pytest.mark.asyncio
async def test_freezes_sheet_is_replaced_in_chunks(httpx_mock, test_settings):
    test_settings.SHEETS_WRITE_CHUNK_SIZE = 2
    _add_token(httpx_mock)
    httpx_mock.add_response(method="POST", url=f"{VALUES_URL}/Freezes!A:AG:clear", json={})
    httpx_mock.add_response(method="PUT", url=_put_url("Freezes!A1:AG1"), json={})
    httpx_mock.add_response(method="PUT", url=_put_url("Freezes!A2:AG3"), json={})
    httpx_mock.add_response(method="PUT", url=_put_url("Freezes!A4:AG4"), json={})

    sheets = GoogleSheetsClient(test_settings)
    written = await SheetsReportWriter(test_settings, sheets).write_freezes(_rows(3))
    await sheets.close()

    assert written == 3
    puts = httpx_mock.get_requests(method="PUT")
    header = json.loads(puts[0].content)["values"][0]
    assert header[0] == "Member Name"
    assert len(header) == 33
    first_chunk = json.loads(puts[1].content)["values"]
    assert [row[0] for row in first_chunk] == ["Member 0", "Member 1"]
    assert first_chunk[0][29] == "Within Limits"
    assert json.loads(puts[2].content)["range"] == "Freezes!A4:AG4"
    # One token exchange for the whole write
    assert len(httpx_mock.get_requests(method="POST", url=TOKEN_URL)) == 1


@pytest.mark.asyncio
async def test_cancellations_use_their_own_sheet(httpx_mock, test_settings):
    _add_token(httpx_mock)
    httpx_mock.add_response(method="POST", url=f"{VALUES_URL}/Cancellations!A:Y:clear", json={})
    httpx_mock.add_response(method="PUT", url=_put_url("Cancellations!A1:Y1"), json={})
    httpx_mock.add_response(method="PUT", url=_put_url("Cancellations!A2:Y2"), json={})

    sheets = GoogleSheetsClient(test_settings)
    written = await SheetsReportWriter(test_settings, sheets).write_cancellations(
        [{"memberId": 1, "cancellationType": "session-booking-cancelled-by-member"}]
    )
    await sheets.close()

    assert written == 1


@pytest.mark.asyncio
async def test_empty_rows_skip_the_api(httpx_mock, test_settings):
    sheets = GoogleSheetsClient(test_settings)
    written = await SheetsReportWriter(test_settings, sheets).write_freezes([])
    await sheets.close()

    assert written == 0
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_api_error_is_raised_with_status(httpx_mock, test_settings):
    _add_token(httpx_mock)
    httpx_mock.add_response(
        method="POST",
        url=f"{VALUES_URL}/Freezes!A:AG:clear",
        status_code=404,
        json={"error": {"code": 404, "message": "Requested entity was not found."}},
    )

    sheets = GoogleSheetsClient(test_settings)
    with pytest.raises(GoogleSheetsError) as exc:
        await SheetsReportWriter(test_settings, sheets).write_freezes(_rows(1))
    await sheets.close()

    assert exc.value.status_code == 404
    assert exc.value.operation == "values_clear"
    assert "Requested entity was not found." in str(exc.value)


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_any_request(httpx_mock, test_settings):
    test_settings.GOOGLE_REFRESH_TOKEN = None

    sheets = GoogleSheetsClient(test_settings)
    with pytest.raises(GoogleSheetsError) as exc:
        await sheets.get_values("out-sheet", "Freezes!A:AZ")
    await sheets.close()

    assert exc.value.operation == "token"
    assert httpx_mock.get_requests() == []
