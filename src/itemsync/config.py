"""Service configuration loaded from environment variables."""
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug mode and API documentation.
        log_json: Emit JSON log lines instead of console output.
        cors_origins_raw: Raw comma-separated CORS origins string.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        key: API key for authenticating requests.
        database_path: SQLite file backing the primary store.
        index_backend: Search index engine implementation to use.
        elasticsearch_url: Elasticsearch node URL.
        index_name: Name of the search index.
        index_timeout: Seconds before an index call is abandoned.
        index_refresh: Refresh policy applied to index writes.
        reconcile_interval: Seconds between background reconciliation
            passes, 0 disables the loop.
        reconcile_concurrency: Items re-indexed in parallel per pass.
        reconcile_purge_orphans: Delete index documents with no
            primary-store counterpart during reconciliation.
    """

    model_config = SettingsConfigDict(
        env_prefix="ITEMSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_json: bool = True
    cors_origins_raw: str = "http://localhost:3000"
    shutdown_timeout: float = 30.0
    key: str = ""

    database_path: str = "itemsync.db"

    index_backend: Literal["elasticsearch", "memory"] = "elasticsearch"
    elasticsearch_url: str = "http://localhost:9200"
    index_name: str = "items"
    index_timeout: float = 5.0
    index_refresh: Literal["true", "false", "wait_for"] = "false"

    reconcile_interval: float = 0.0
    reconcile_concurrency: int = 8
    reconcile_purge_orphans: bool = True

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]
