"""Shared pieces of the calendar provider adapters.

Each provider maps its own wire schema onto ``CalendarEvent``; tokens are
opaque strings that the caller persists.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import requests

from core.exceptions import DependencyUnavailable, IntegrationError

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


@dataclass
class TokenPair:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int = 3600


@dataclass
class CalendarProfile:
    id: str
    email: Optional[str]
    name: Optional[str] = None


@dataclass
class CalendarEvent:
    title: str
    start: datetime
    end: datetime
    id: Optional[str] = None
    description: str = ""
    location: str = ""
    attendees: List[str] = field(default_factory=list)
    link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_provider_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse RFC 3339 / Graph timestamps into naive UTC datetimes."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    return to_utc_naive(datetime.fromisoformat(text))


class CalendarClient:
    provider = ""
    auth_url = ""
    token_url = ""
    # Sent with token requests; Graph wants it, Google does not
    scope: Optional[str] = None
    auth_scope = ""
    auth_params: Dict[str, str] = {}

    def __init__(self, client_id: Optional[str], client_secret: Optional[str],
                 redirect_uri: Optional[str], timeout: float = 15.0,
                 session: Optional[requests.Session] = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_configured(self):
        if not self.configured:
            raise DependencyUnavailable(f"{self.provider.title()} calendar is not configured")

    def _token_request(self, data: Dict[str, str], fallback_refresh: Optional[str] = None) -> TokenPair:
        self._require_configured()
        payload = {"client_id": self.client_id, "client_secret": self.client_secret, **data}
        if self.scope:
            payload["scope"] = self.scope
        try:
            response = self.session.post(self.token_url, data=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("%s token request failed: %s", self.provider, exc)
            raise IntegrationError(f"Could not reach {self.provider} token endpoint") from exc

        if response.status_code >= 400:
            logger.warning("%s token request rejected: status=%s", self.provider, response.status_code)
            raise IntegrationError(f"Failed to obtain {self.provider} access token")

        return self.parse(self._json(response), lambda body: TokenPair(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token") or fallback_refresh,
            expires_in=int(body.get("expires_in") or 3600),
        ))

    def _api(self, method: str, url: str, access_token: str, **kwargs) -> Optional[Dict[str, Any]]:
        self._require_configured()
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s %s failed: %s", self.provider, method, url, exc)
            raise IntegrationError(f"Could not reach {self.provider} calendar") from exc

        if response.status_code >= 400:
            logger.warning("%s %s %s rejected: status=%s", self.provider, method, url, response.status_code)
            raise IntegrationError(f"{self.provider.title()} calendar request failed")

        if response.status_code == 204 or not response.content:
            return None
        return self._json(response)

    def _json(self, response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s returned a non-JSON body: status=%s", self.provider, response.status_code)
            raise IntegrationError(f"Unexpected response from {self.provider} calendar") from exc

    def parse(self, body: Any, mapper: Callable[[Any], Any]) -> Any:
        """Map a provider payload, turning shape errors into ``IntegrationError``."""
        try:
            return mapper(body)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("%s payload could not be read: %r", self.provider, exc)
            raise IntegrationError(f"Unexpected response from {self.provider} calendar") from exc

    def authorization_url(self, state: Optional[str] = None) -> str:
        self._require_configured()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri or "",
            "response_type": "code",
            "scope": self.auth_scope,
            **self.auth_params,
        }
        if state:
            params["state"] = state
        return requests.Request("GET", self.auth_url, params=params).prepare().url

    def exchange_code(self, code: str) -> TokenPair:
        return self._token_request({
            "code": code,
            "redirect_uri": self.redirect_uri or "",
            "grant_type": "authorization_code",
        })

    def refresh(self, refresh_token: str) -> TokenPair:
        return self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            fallback_refresh=refresh_token,
        )

    # Provider specific

    def get_profile(self, access_token: str) -> CalendarProfile:
        raise NotImplementedError

    def create_event(self, access_token: str, event: CalendarEvent) -> CalendarEvent:
        raise NotImplementedError

    def list_events(self, access_token: str, start: datetime, end: datetime) -> List[CalendarEvent]:
        raise NotImplementedError

    def get_event(self, access_token: str, event_id: str) -> CalendarEvent:
        raise NotImplementedError

    def update_event(self, access_token: str, event_id: str, changes: Dict[str, Any]) -> CalendarEvent:
        raise NotImplementedError

    def delete_event(self, access_token: str, event_id: str) -> None:
        raise NotImplementedError
