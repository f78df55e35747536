"""
Momentos API client.

A client is bound to one bearer token for its whole life and never mutates
it, so a single instance can be shared by the download worker threads.
Every call is a single attempt; retry policy is left to the caller.
"""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import requests

from dlmomentos.config import DEFAULT_API_BASE_URL, DEFAULT_REQUEST_TIMEOUT
from dlmomentos.exceptions import AuthenticationError, DecodeError, NetworkError
from dlmomentos.models import Event, EventSummary, Group

logger = logging.getLogger(__name__)

EVENT_FIELDS = "title,recording,published,transcript"
RECORDING_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class LoginResult:
    token: str
    user_id: str
    privileges: str | None = None

    def __repr__(self) -> str:
        return f"LoginResult(user_id={self.user_id!r}, privileges={self.privileges!r})"


def _user_agent() -> str:
    from dlmomentos import __version__

    return f"dlmomentos/{__version__}"


def _quote(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


def _decode_json(response: requests.Response, what: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(f"Invalid JSON in {what} response", details=str(e)) from e


class MomentosClient:
    """Client for the Momentos media data service"""

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self._token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def __repr__(self) -> str:
        """String representation that excludes the bearer token"""
        return f"MomentosClient(base_url={self.base_url!r}, token_set={bool(self._token)})"

    @classmethod
    def login(
        cls,
        email: str,
        password: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> LoginResult:
        """Exchange email/password for a session token. Does not need a token itself."""
        url = f"{base_url.rstrip('/')}/login"
        try:
            resp = requests.post(
                url,
                json={"email": email, "password": password},
                headers={"Accept": "application/json", "User-Agent": _user_agent()},
                timeout=timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError("Login request failed", details=f"{type(e).__name__}: {e}") from e

        if resp.status_code in (400, 401, 403):
            raise AuthenticationError("Login rejected", details=_error_message(resp))
        if not resp.ok:
            raise NetworkError(
                f"Login failed (HTTP {resp.status_code})", details=_error_message(resp)
            )

        data = _decode_json(resp, "login")
        if not isinstance(data, dict) or not data.get("jwt") or not data.get("ID"):
            raise DecodeError("Login response did not contain 'jwt' and 'ID' fields")
        privileges = data.get("privileges")
        return LoginResult(
            token=str(data["jwt"]),
            user_id=str(data["ID"]),
            privileges=str(privileges) if privileges is not None else None,
        )

    def _auth_headers(self) -> dict[str, str]:
        if not self._token:
            raise AuthenticationError(
                "Not signed in", details="Run 'dlmomentos login <email>' first"
            )
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
            "User-Agent": _user_agent(),
        }

    def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make one authenticated API request and return the decoded JSON body"""
        headers = self._auth_headers()
        url = f"{self.base_url}/{endpoint}"
        logger.debug("Momentos API request: %s %s params=%s", method, url, params or {})

        try:
            resp = requests.request(
                method, url, headers=headers, params=params, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                f"Request to {endpoint} failed", details=f"{type(e).__name__}: {e}"
            ) from e

        logger.debug("Momentos API response: HTTP %s", resp.status_code)
        if resp.status_code in (401, 403):
            raise AuthenticationError(
                f"Credential rejected (HTTP {resp.status_code})",
                details=f"{_error_message(resp)}. Run 'dlmomentos login' again.",
            )
        if not resp.ok:
            raise NetworkError(
                f"Momentos API error (HTTP {resp.status_code}) for {endpoint}",
                details=_error_message(resp),
            )
        return _decode_json(resp, endpoint)

    def get_user_groups(self, user_id: str) -> list[Group]:
        data = self._request("GET", f"api/v1/users/{_quote(user_id)}/groups")
        if not isinstance(data, dict) or not isinstance(data.get("groups"), list):
            raise DecodeError("Groups response did not contain a 'groups' list")
        return [Group.from_dict(g) for g in data["groups"]]

    def get_grouped_events(self, group_id: str) -> list[EventSummary]:
        """List the events of a group (summaries, without recording or transcript)"""
        data = self._request("GET", f"api/v1/groups/{_quote(group_id)}/events")
        if not isinstance(data, dict) or not isinstance(data.get("events"), list):
            raise DecodeError("Events response did not contain an 'events' list")
        return [EventSummary.from_dict(e) for e in data["events"]]

    def get_event(self, group_id: str, event_id: str) -> Event:
        """Fetch full event detail with a directly downloadable recording URL"""
        endpoint = f"api/v1/groups/{_quote(group_id)}/events/{_quote(event_id)}"
        params = {"fields": EVENT_FIELDS, "presignedURL": "true"}
        return Event.from_dict(self._request("GET", endpoint, params=params))

    def iter_recording(self, url: str, chunk_size: int = RECORDING_CHUNK_SIZE) -> Iterator[bytes]:
        """
        Stream a recording from its presigned URL.

        The URL carries its own authorization, so no bearer header is sent.
        Chunks are yielded as they arrive; nothing is buffered beyond one chunk.

        Raises:
            NetworkError: On transport failure (including mid-stream) or HTTP error
        """
        try:
            resp = requests.get(
                url, stream=True, timeout=self.timeout, headers={"User-Agent": _user_agent()}
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                "Recording download failed", details=f"{type(e).__name__}: {e}"
            ) from e

        with resp:
            if resp.status_code in (401, 403):
                raise NetworkError(
                    f"Recording download refused (HTTP {resp.status_code})",
                    details="The presigned URL may have expired; re-run the download.",
                )
            if not resp.ok:
                raise NetworkError(f"Recording download failed (HTTP {resp.status_code})")

            try:
                for chunk in resp.iter_content(chunk_size=chunk_size):
                    if chunk:
                        yield chunk
            except requests.exceptions.RequestException as e:
                raise NetworkError(
                    "Recording stream interrupted", details=f"{type(e).__name__}: {e}"
                ) from e
