from datetime import UTC, datetime

import pytest

from app.config import Settings

MOMENCE_BASE = "https://momence.test"
FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        MOMENCE_API_BASE_URL=MOMENCE_BASE,
        MOMENCE_ALL_COOKIES="session=abc",
        BATCH_SIZE=2,
        CONCURRENT_BATCHES=2,
        INTER_GROUP_DELAY_SECONDS=5.0,
        MAX_RETRY_ATTEMPTS=3,
        RATE_LIMIT_DELAY_SECONDS=5.0,
        RETRY_DELAY_SECONDS=2.0,
        SERVER_RETRY_BACKOFF=1.5,
        POLLING_INTERVAL_SECONDS=5.0,
        MAX_POLLING_ATTEMPTS=3,
        REPORT_HOST_IDS=["13752"],
        GOOGLE_CLIENT_ID="client-id",
        GOOGLE_CLIENT_SECRET="client-secret",
        GOOGLE_REFRESH_TOKEN="refresh-token",
        SPREADSHEET_ID="out-sheet",
        CHECKINS_SPREADSHEET_ID="in-sheet",
        SHEETS_WRITE_CHUNK_SIZE=1000,
        OUTPUT_JSON_PATH=tmp_path / "data.json",
        OUTPUT_CSV_PATH=tmp_path / "freezes.csv",
        DISPLAY_TIMEZONE="Asia/Kolkata",
        DATA_CACHE_TTL_SECONDS=300,
    )


class RecordingSleep:
    """Stands in for asyncio.sleep; records every requested delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
