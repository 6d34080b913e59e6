"""Synchronization configuration for humidorsync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from humidorsync.exceptions import SyncConfigError

#: Public Firestore REST endpoint.
DEFAULT_BASE_URL = "https://firestore.googleapis.com"


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Synchronization configuration.

    Parameters
    ----------
    project_id : str
        Hosted document database project (e.g. ``"humidor-hub"``).
    app_id : str
        Application id used as the second segment of every collection path
        (``artifacts/{app_id}/users/{uid}/...``).
    base_url : str
        REST endpoint. Ignored when ``emulator_host`` is set.
    emulator_host : str or None
        ``host:port`` of a local emulator.  When set, requests go over
        plain HTTP to the emulator.
    poll_interval : float
        Seconds between two reads of the same collection.
    page_size : int
        Documents requested per page when listing a collection.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    """

    project_id: str
    app_id: str
    base_url: str = DEFAULT_BASE_URL
    emulator_host: str | None = None
    poll_interval: float = 5.0
    page_size: int = 300
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.project_id.strip():
            raise SyncConfigError("project_id must be non-empty")
        if not self.app_id.strip():
            raise SyncConfigError("app_id must be non-empty")
        if self.poll_interval <= 0:
            raise SyncConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.page_size <= 0:
            raise SyncConfigError(f"page_size must be positive, got {self.page_size}")
        if self.request_timeout <= 0:
            raise SyncConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @property
    def uses_emulator(self) -> bool:
        return bool(self.emulator_host)

    @property
    def documents_url(self) -> str:
        """Root URL under which collection paths are appended."""
        if self.emulator_host:
            root = f"http://{self.emulator_host.strip().rstrip('/')}"
        else:
            root = self.base_url.rstrip("/")
        return f"{root}/v1/projects/{self.project_id}/databases/(default)/documents"

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads ``HUMIDOR_PROJECT_ID``, ``HUMIDOR_APP_ID`` and the optional
        ``HUMIDOR_*`` tuning variables.  ``FIRESTORE_EMULATOR_HOST`` follows
        the emulator suite's own convention.  Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "HUMIDOR_PROJECT_ID": "project_id",
            "HUMIDOR_APP_ID": "app_id",
            "HUMIDOR_BASE_URL": "base_url",
            "FIRESTORE_EMULATOR_HOST": "emulator_host",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "HUMIDOR_POLL_INTERVAL": ("poll_interval", float),
            "HUMIDOR_PAGE_SIZE": ("page_size", int),
            "HUMIDOR_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise SyncConfigError(f"{env_key} is not a valid {caster.__name__}: {val!r}") from exc

        config_kwargs.update(overrides)

        missing = [name for name in ("project_id", "app_id") if name not in config_kwargs]
        if missing:
            raise SyncConfigError(f"Missing configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
