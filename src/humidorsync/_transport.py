"""Remote collection transport.

The coordinator only depends on :class:`Transport`: register a live
listener on a collection path, receive full document sets, cancel.
:class:`FirestoreRestTransport` implements it by polling the Firestore
REST API and delivering a snapshot whenever the listed documents change.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from humidorsync._redact import redact_for_log
from humidorsync.config import SyncConfig
from humidorsync.exceptions import ConnectionSetupError, SyncTransportError
from humidorsync.ingestion.normalize import build_documents
from humidorsync.models.document import Document

_logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]
TokenProvider = Callable[[], Awaitable[str | None]]

# Used when the error body carries no ``error.status``.
_HTTP_STATUS_CODES: dict[int, str] = {
    400: "invalid-argument",
    401: "unauthenticated",
    403: "permission-denied",
    404: "not-found",
    409: "aborted",
    429: "resource-exhausted",
    500: "internal",
    501: "unimplemented",
    503: "unavailable",
    504: "deadline-exceeded",
}


class Transport(Protocol):
    """Structural transport interface used by the subscription layer.

    ``subscribe`` returns immediately; deliveries happen later on the event
    loop.  The returned callable stops delivery and must be idempotent.
    """

    def subscribe(self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        ...


def error_code_from_body(status: int, text: str) -> str:
    """Map a REST error response to a kebab-case code (``PERMISSION_DENIED`` -> ``permission-denied``)."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            status_name = error.get("status")
            if isinstance(status_name, str) and status_name.strip():
                return status_name.strip().lower().replace("_", "-")
    return _HTTP_STATUS_CODES.get(status, "unknown")


@dataclass
class _PollState:
    path: str
    cancelled: bool = False


class FirestoreRestTransport:
    """Polling transport over the Firestore REST API.

    Usage::

        async with FirestoreRestTransport(config, token_provider=get_id_token) as transport:
            coordinator = SyncCoordinator(transport, config=config)
            coordinator.set_identity(uid)
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http = session
        self._token_provider = token_provider
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FirestoreRestTransport:
        if self._http is None:
            self._http = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop every poller and release the HTTP session if we own it."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None

    @property
    def active_subscriptions(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self._config.uses_emulator:
            # The emulator accepts "owner" as an admin credential that bypasses rules.
            headers["authorization"] = "Bearer owner"
            return headers
        if self._token_provider is not None:
            token = await self._token_provider()
            if token:
                headers["authorization"] = f"Bearer {token}"
        return headers

    async def list_documents(self, path: str) -> list[dict[str, Any]]:
        """List every document of the collection at *path*, following pagination.

        Returns the raw REST ``Document`` resources in server order.
        """
        if self._http is None:
            raise SyncTransportError("Transport not started. Use 'async with FirestoreRestTransport(...)'", path=path)

        url = f"{self._config.documents_url}/{path}"
        try:
            headers = await self._headers()
        except SyncTransportError:
            raise
        except Exception as exc:
            raise SyncTransportError(f"Could not obtain a token for {path}: {exc}", code="unauthenticated", path=path) from exc
        documents: list[dict[str, Any]] = []
        page_token: str | None = None

        while True:
            params: dict[str, str] = {"pageSize": str(self._config.page_size)}
            if page_token:
                params["pageToken"] = page_token
            _logger.debug("GET %s params=%s headers=%s", url, params, redact_for_log(headers))

            try:
                async with self._http.get(url, params=params, headers=headers) as resp:
                    text = await resp.text()
                    if resp.status != 200:
                        raise SyncTransportError(
                            f"HTTP {resp.status} listing {path}: {text[:200]}",
                            status_code=resp.status,
                            code=error_code_from_body(resp.status, text),
                            path=path,
                        )
            except SyncTransportError:
                raise
            except TimeoutError as exc:
                raise SyncTransportError(f"Listing {path} timed out", code="deadline-exceeded", path=path) from exc
            except aiohttp.ClientError as exc:
                raise SyncTransportError(f"Listing {path} failed: {exc}", code="unavailable", path=path) from exc
            except UnicodeDecodeError as exc:
                raise SyncTransportError(f"Undecodable response listing {path}", code="data-loss", path=path) from exc

            try:
                body = json.loads(text) if text.strip() else {}
            except json.JSONDecodeError as exc:
                raise SyncTransportError(
                    f"Invalid JSON listing {path}: {text[:200]}",
                    status_code=200,
                    code="data-loss",
                    path=path,
                ) from exc
            if not isinstance(body, dict):
                raise SyncTransportError(f"Unexpected list response for {path}", code="data-loss", path=path)

            page = body.get("documents") or []
            documents.extend(doc for doc in page if isinstance(doc, dict))
            next_token = body.get("nextPageToken")
            if not isinstance(next_token, str) or not next_token:
                return documents
            page_token = next_token

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, path: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        if self._http is None:
            raise ConnectionSetupError(f"Transport not started, cannot subscribe to {path}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise ConnectionSetupError(f"No running event loop to subscribe to {path}") from exc

        state = _PollState(path=path)
        task = loop.create_task(self._poll(state, on_snapshot, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        _logger.debug("Polling %s every %.1fs", path, self._config.poll_interval)

        def _unsubscribe() -> None:
            if state.cancelled:
                return
            state.cancelled = True
            task.cancel()
            _logger.debug("Stopped polling %s", path)

        return _unsubscribe

    async def _poll(self, state: _PollState, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> None:
        last_raw: list[dict[str, Any]] | None = None
        while not state.cancelled:
            try:
                raw = await self.list_documents(state.path)
                # Raw comparison so NaN fields do not look like perpetual changes.
                documents = build_documents(raw) if raw != last_raw else None
            except Exception as exc:
                if state.cancelled:
                    return
                _logger.debug("Poll of %s failed: %s", state.path, exc)
                on_error(exc)
            else:
                if state.cancelled:
                    return
                if documents is not None:
                    last_raw = raw
                    on_snapshot(documents)
            await asyncio.sleep(self._config.poll_interval)
