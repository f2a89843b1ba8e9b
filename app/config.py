from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Momence upstream settings
    MOMENCE_API_BASE_URL: str = "https://api.momence.com"
    MOMENCE_ALL_COOKIES: str | None = None

    # =================================================================
    # FETCH PIPELINE SETTINGS - tuned for the upstream's rate limits
    # =================================================================
    BATCH_SIZE: int = 50
    CONCURRENT_BATCHES: int = 2
    INTER_GROUP_DELAY_SECONDS: float = 5.0
    MAX_RETRY_ATTEMPTS: int = 3
    RATE_LIMIT_DELAY_SECONDS: float = 5.0
    RETRY_DELAY_SECONDS: float = 2.0
    SERVER_RETRY_BACKOFF: float = 1.5
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    HTTP_MAX_CONNECTIONS: int = 100
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 10

    # Async report fallback
    POLLING_INTERVAL_SECONDS: float = 5.0
    MAX_POLLING_ATTEMPTS: int = 100
    REPORT_HOST_IDS: list[str] = ["13752", "33905"]
    REPORT_TIME_ZONE: str = "Asia/Kolkata"
    REPORT_START_DATE: str = "2025-07-01T18:30:00.000Z"
    REPORT_END_DATE: str = "2025-12-31T18:29:59.999Z"

    # Google Sheets settings
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REFRESH_TOKEN: str | None = None
    SPREADSHEET_ID: str | None = None
    CHECKINS_SPREADSHEET_ID: str | None = None
    FREEZES_SHEET_NAME: str = "Freezes"
    CANCELLATIONS_SHEET_NAME: str = "Cancellations"
    CHECKINS_SHEET_NAME: str = "Checkins"
    CHECKINS_MEMBER_ID_COLUMN: int = 0
    CHECKINS_HOST_ID_COLUMN: int = 22
    SHEETS_WRITE_CHUNK_SIZE: int = 1000

    # Output settings
    OUTPUT_JSON_PATH: Path = PROJECT_ROOT / "data.json"
    OUTPUT_CSV_PATH: Path = PROJECT_ROOT / "freezes.csv"
    DISPLAY_TIMEZONE: str = "Asia/Kolkata"

    # API settings
    DATA_CACHE_TTL_SECONDS: int = 300
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def history_url(self, member_id: int, host_id: str) -> str:
        base = self.MOMENCE_API_BASE_URL.rstrip("/")
        return f"{base}/host/{host_id}/customers/{member_id}/history"

    def missing_run_settings(self) -> list[str]:
        """
        List the credentials a pipeline run cannot start without.

        The API process only needs the Google values, so these are not
        enforced at import time.
        """
        required = {
            "MOMENCE_ALL_COOKIES": self.MOMENCE_ALL_COOKIES,
            "GOOGLE_CLIENT_ID": self.GOOGLE_CLIENT_ID,
            "GOOGLE_CLIENT_SECRET": self.GOOGLE_CLIENT_SECRET,
            "GOOGLE_REFRESH_TOKEN": self.GOOGLE_REFRESH_TOKEN,
            "SPREADSHEET_ID": self.SPREADSHEET_ID,
            "CHECKINS_SPREADSHEET_ID": self.CHECKINS_SPREADSHEET_ID,
        }
        return [name for name, value in required.items() if not value]

    def missing_api_settings(self) -> list[str]:
        required = {
            "GOOGLE_CLIENT_ID": self.GOOGLE_CLIENT_ID,
            "GOOGLE_CLIENT_SECRET": self.GOOGLE_CLIENT_SECRET,
            "GOOGLE_REFRESH_TOKEN": self.GOOGLE_REFRESH_TOKEN,
            "SPREADSHEET_ID": self.SPREADSHEET_ID,
        }
        return [name for name, value in required.items() if not value]

    def get_http_pool_config(self) -> dict:
        """
        Connection pool limits for the upstream client.

        The pool must hold every request a full group can have in flight.
        """
        in_flight = self.BATCH_SIZE * self.CONCURRENT_BATCHES
        return {
            "max_connections": max(self.HTTP_MAX_CONNECTIONS, in_flight),
            "max_keepalive_connections": self.HTTP_MAX_KEEPALIVE_CONNECTIONS,
            "timeout": self.REQUEST_TIMEOUT_SECONDS,
        }


settings = Settings()
