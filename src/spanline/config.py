"""Client configuration and environment loading."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = [
    "CLOUD_BASE_URL",
    "DEFAULT_BATCH_COUNT",
    "DEFAULT_BATCH_SIZE_BYTES",
    "DEFAULT_FLUSH_INTERVAL_MS",
    "LOCAL_BASE_URL",
    "SpanlineConfig",
]

CLOUD_BASE_URL = "https://www.comet.com/opik/api/"
LOCAL_BASE_URL = "http://localhost:5173/api/"

DEFAULT_PROJECT_NAME = "Default Project"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_BATCH_SIZE_BYTES = 1 * 1024 * 1024
DEFAULT_FLUSH_INTERVAL_MS = 10_000
DEFAULT_BATCH_COUNT = 25

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})

# Environment variable -> config field.
_ENV_FIELDS: dict[str, str] = {
    "SPANLINE_API_KEY": "api_key",
    "SPANLINE_WORKSPACE": "workspace",
    "SPANLINE_PROJECT_NAME": "project_name",
    "SPANLINE_URL_OVERRIDE": "base_url",
    "SPANLINE_DEBUG": "debug",
    "SPANLINE_TIMEOUT_MS": "timeout_ms",
    "SPANLINE_BATCH_SIZE_BYTES": "batch_size_bytes",
    "SPANLINE_FLUSH_INTERVAL_MS": "flush_interval_ms",
    "SPANLINE_BATCH_COUNT": "batch_count",
}


class SpanlineConfig(BaseModel):
    """Connection settings and batching thresholds.

    The three batching thresholds are independent flush triggers for the
    ``BatchQueue``: crossing any one of them flushes the queue.

    Parameters:
        api_key: API key sent in the ``authorization`` header.
        workspace: Workspace sent in the ``Comet-Workspace`` header.
        project_name: Default project for new traces and spans.
        base_url: Root URL of the collection service.  Defaults to the
            cloud endpoint when an API key is set, the local one otherwise.
        debug: Enables verbose diagnostics in the CLI.
        timeout_ms: Per-request timeout for the HTTP transport.
        batch_size_bytes: Maximum accumulated payload size before a flush.
        flush_interval_ms: Maximum time between flushes, checked lazily on
            the next enqueue.
        batch_count: Maximum number of buffered messages before a flush.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str | None = None
    workspace: str | None = None
    project_name: str = DEFAULT_PROJECT_NAME
    base_url: str | None = None
    debug: bool = False
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    batch_size_bytes: int = Field(default=DEFAULT_BATCH_SIZE_BYTES, gt=0)
    flush_interval_ms: int = Field(default=DEFAULT_FLUSH_INTERVAL_MS, gt=0)
    batch_count: int = Field(default=DEFAULT_BATCH_COUNT, gt=0)

    @model_validator(mode="before")
    @classmethod
    def resolve_base_url(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        url = data.get("base_url")
        if not url:
            url = CLOUD_BASE_URL if data.get("api_key") is not None else LOCAL_BASE_URL
        return {**data, "base_url": str(url).rstrip("/") + "/"}

    @classmethod
    def from_env(cls, **overrides: Any) -> SpanlineConfig:
        """Build a config from ``SPANLINE_*`` environment variables.

        Explicit keyword arguments win over the environment; ``None``
        overrides are ignored so callers can forward optional parameters.

        Parameters:
            **overrides: Field values that take precedence over the
                environment.

        Returns:
            A validated ``SpanlineConfig``.
        """
        values: dict[str, Any] = {}
        for env_name, field in _ENV_FIELDS.items():
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            if field == "debug":
                values[field] = raw.strip().lower() in _TRUE_VALUES
            else:
                values[field] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def is_cloud(self) -> bool:
        """Whether the configured endpoint is the hosted service."""
        return "comet.com" in (self.base_url or "")

    @property
    def requires_authentication(self) -> bool:
        """Whether requests must carry an API key."""
        return self.is_cloud

    def masked(self) -> dict[str, Any]:
        """Return the settings as a dict with the API key obscured."""
        data = self.model_dump()
        if self.api_key:
            data["api_key"] = self.api_key[:4] + "****"
        return data
