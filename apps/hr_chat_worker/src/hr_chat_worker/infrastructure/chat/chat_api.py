"""Google Chat REST adapter for message and member lookups."""

from __future__ import annotations

import threading
from collections.abc import Callable, Generator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import google.auth
import httpx
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import Request as RefreshRequest
from google.auth.transport.requests import Request

from hr_chat_worker.core.settings import Settings

CHAT_BOT_SCOPE = "https://www.googleapis.com/auth/chat.bot"


class ChatApiError(RuntimeError):
    """Raised when the chat REST API returns an unusable response."""


class ChatApiClient(Protocol):
    """Lookups used to complete push payloads."""

    def get_message(self, message_name: str) -> dict[str, Any] | None: ...

    def get_member(self, member_name: str) -> dict[str, Any] | None: ...


class GoogleCredentialsAuth(httpx.Auth):
    """Bearer auth backed by refreshing Google credentials.

    Application default credentials are resolved on first use; the token is
    refreshed whenever it is missing or expired.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        scopes: Sequence[str] = (CHAT_BOT_SCOPE,),
        refresh_request: Callable[[], RefreshRequest] = Request,
    ) -> None:
        self._credentials = credentials
        self._scopes = list(scopes)
        self._refresh_request = refresh_request
        self._lock = threading.Lock()

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token()}"
        yield request

    def _token(self) -> str:
        with self._lock:
            if self._credentials is None:
                self._credentials, _ = google.auth.default(scopes=self._scopes)
            if not self._credentials.valid:
                self._credentials.refresh(self._refresh_request())
            return self._credentials.token


@dataclass(slots=True)
class HTTPChatApiClient:
    """Synchronous client for ``spaces.messages.get`` and ``spaces.members.get``.

    ``auth`` takes precedence over a static ``access_token``. A 404 is
    reported as ``None``; every other failure raises so the caller can
    decide how to degrade.
    """

    base_url: str
    access_token: str
    timeout_seconds: float
    transport: httpx.BaseTransport | None = None
    auth: httpx.Auth | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> HTTPChatApiClient:
        """Use ``CHAT_API_TOKEN`` when set, else application default credentials."""
        return cls(
            base_url=settings.chat_api_base_url,
            access_token=settings.chat_api_token,
            timeout_seconds=settings.chat_api_timeout_seconds,
            auth=None if settings.chat_api_token else GoogleCredentialsAuth(),
        )

    def get_message(self, message_name: str) -> dict[str, Any] | None:
        return self._get_resource(message_name)

    def get_member(self, member_name: str) -> dict[str, Any] | None:
        return self._get_resource(member_name)

    def _get_resource(self, resource_name: str) -> dict[str, Any] | None:
        headers = {"Accept": "application/json"}
        if self.auth is None and self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self.transport,
                auth=self.auth,
            ) as client:
                response = client.get(f"/v1/{resource_name}", headers=headers)
        except (httpx.HTTPError, GoogleAuthError) as exc:
            raise ChatApiError(f"Chat API request failed for {resource_name}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if not response.is_success:
            raise ChatApiError(
                f"Chat API returned status {response.status_code} for {resource_name}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ChatApiError(
                f"Chat API returned a non-JSON response for {resource_name}"
            ) from exc
        if not isinstance(payload, dict):
            raise ChatApiError(f"Chat API returned a non-object for {resource_name}")
        return payload
