from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from ..config.loader import ApiConfig

"""HTTP client for the remote user directory and registration endpoints.

Two calls are used by the onboarding pipeline:

- GET  {base_url}{lookup_path}?username=<candidate>
    envelope: {"success": true, "data": {"exists": true}}  (or "data": true)
- POST {base_url}{register_path}
    body: {"username", "email", "phoneNumber", "password", "role"}

Every request carries the configured timeout so a hung call cannot stall a
phase indefinitely.
"""

__all__ = [
    "DirectoryClient",
    "DirectoryLookup",
    "RegistrationResponse",
    "RegistrationEndpoint",
]

logger = logging.getLogger(__name__)


class DirectoryLookup(Protocol):
    def username_exists(self, username: str) -> bool: ...


@dataclass(frozen=True)
class RegistrationResponse:
    ok: bool
    status_code: int | None  # None when no HTTP response was received
    text: str

    @property
    def diagnostic(self) -> str:
        """Failure text surfaced verbatim to the operator."""
        if self.status_code is None:
            return self.text
        return f"HTTP {self.status_code}: {self.text}"


class RegistrationEndpoint(Protocol):
    def register(self, payload: dict[str, Any]) -> RegistrationResponse: ...


def _payload_says_found(payload: Any) -> bool:
    if not isinstance(payload, dict) or payload.get("success") is not True:
        return False
    data = payload.get("data")
    if isinstance(data, bool):
        return data
    if isinstance(data, dict):
        return data.get("exists") is True
    return False


class DirectoryClient:
    """requests-based client implementing both DirectoryLookup and RegistrationEndpoint."""

    def __init__(self, api: ApiConfig, session: requests.Session | None = None) -> None:
        self.api = api
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api.token:
            self.session.headers["Authorization"] = f"Bearer {api.token}"

    def username_exists(self, username: str) -> bool:
        """Return True only when the directory positively reports the name as taken.

        FAIL-OPEN POLICY: a non-2xx status, network error, timeout or malformed
        payload all return False. A lookup outage must not block registrations;
        the worst case is a duplicate that the registration endpoint itself
        rejects. Changing this to fail-closed would stop every registration
        during a directory blip, so keep it unless that tradeoff is revisited.
        """
        try:
            resp = self.session.get(
                self.api.lookup_url,
                params={"username": username},
                timeout=self.api.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.debug(f"username lookup failed for {username!r} (treated as free): {e}")
            return False

        if not resp.ok:
            logger.debug(f"username lookup for {username!r} returned HTTP {resp.status_code} (treated as free)")
            return False
        try:
            payload = resp.json()
        except ValueError:
            logger.debug(f"username lookup for {username!r} returned non-JSON body (treated as free)")
            return False
        return _payload_says_found(payload)

    def register(self, payload: dict[str, Any]) -> RegistrationResponse:
        """POST one registration; transport failures come back as ok=False, never raised."""
        try:
            resp = self.session.post(
                self.api.register_url,
                json=payload,
                timeout=self.api.timeout_seconds,
            )
        except requests.exceptions.Timeout:
            return RegistrationResponse(
                ok=False, status_code=None, text=f"Request timeout ({self.api.timeout_seconds:g}s)"
            )
        except requests.exceptions.RequestException as e:
            return RegistrationResponse(ok=False, status_code=None, text=str(e) or "Network error")
        return RegistrationResponse(ok=resp.ok, status_code=resp.status_code, text=resp.text)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> DirectoryClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
