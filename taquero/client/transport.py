"""HTTP transport between the client stores and a module sheet endpoint."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from taquero.core.config import settings

logger = logging.getLogger(__name__)

SHEET_URL_NOT_CONFIGURED = "Sheet URL not configured"


class SheetTransportError(Exception):
    """A read or write that failed on the network, with an HTTP error, or with an unreadable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, fields: Optional[List[str]] = None):
        self.message = message
        self.status_code = status_code
        self.fields = fields or []
        super().__init__(message)


class WriteStatus(str, Enum):
    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    NETWORK_ERROR = "network_error"
    NOT_CONFIGURED = "not_configured"


_STATUS_BY_HTTP_CODE = {
    400: WriteStatus.VALIDATION_ERROR,
    404: WriteStatus.NOT_FOUND,
    409: WriteStatus.CONFLICT,
    422: WriteStatus.VALIDATION_ERROR,
}


@dataclass
class WriteResult:
    """Outcome of one remote write."""

    status: WriteStatus
    message: str = ""
    fields: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == WriteStatus.OK

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "WriteResult":
        """Classify a response body; endpoints that always answer 200 signal failure with success=false."""
        if body.get("success") is False:
            error = str(body.get("error") or "Write rejected")
            if "not found" in error.lower():
                status = WriteStatus.NOT_FOUND
            elif "conflict" in error.lower():
                status = WriteStatus.CONFLICT
            else:
                status = WriteStatus.VALIDATION_ERROR
            return cls(status, error, list(body.get("fields") or []))
        return cls(WriteStatus.OK, str(body.get("message") or ""))

    @classmethod
    def from_error(cls, error: SheetTransportError) -> "WriteResult":
        status = _STATUS_BY_HTTP_CODE.get(error.status_code, WriteStatus.NETWORK_ERROR)
        return cls(status, error.message, list(error.fields))


class SheetTransport(ABC):
    """Base interface for reaching a module sheet endpoint."""

    @abstractmethod
    async def get(self, url: str) -> Dict[str, Any]:
        """Read the endpoint and return the decoded JSON envelope."""

    @abstractmethod
    async def post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send one record and return the decoded JSON envelope."""


class HttpxSheetTransport(SheetTransport):
    """httpx client for the record service or any endpoint answering the same envelope.

    An injected ``httpx.AsyncClient`` is reused and left open; otherwise a
    client is opened per call.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._client = client
        self._timeout = timeout if timeout is not None else settings.client_timeout_seconds

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, payload: Optional[Dict[str, Any]]) -> httpx.Response:
        if method == "GET":
            return await client.get(url)
        return await client.post(url, json=payload)

    async def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            if self._client is not None:
                resp = await self._send(self._client, method, url, payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    resp = await self._send(client, method, url, payload)
        except httpx.HTTPError as e:
            raise SheetTransportError(f"{method} {url} failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.is_error:
            error = body.get("error") if isinstance(body, dict) else None
            fields = body.get("fields") if isinstance(body, dict) else None
            raise SheetTransportError(
                error or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                fields=fields,
            )
        if not isinstance(body, dict):
            raise SheetTransportError(f"{method} {url} returned an unreadable body", status_code=resp.status_code)
        return body

    async def get(self, url: str) -> Dict[str, Any]:
        return await self._request("GET", url)

    async def post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", url, payload)
