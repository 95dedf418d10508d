# src/appinv/core/token.py
from __future__ import annotations
import json, logging, time
from dataclasses import dataclass, field
from typing import Callable, Optional

from appinv.core.auth import AuthenticationError, Credentials, NetworkError
from appinv.core.auth_helpers import (
    GRAPH_RESOURCE, build_token_body, build_token_url, map_token_error,
)
from appinv.http.client import HttpClient
from appinv.http.errors import TransportError

log = logging.getLogger("appinv.token")

Clock = Callable[[], float]


@dataclass(frozen=True)
class Token:
    value: str = field(repr=False)
    expires_on: float

    def is_valid(self, now: float) -> bool:
        return self.expires_on > now


class TokenCache:
    """Holds at most one token. set() replaces it wholesale."""
    def __init__(self):
        self._token: Optional[Token] = None

    def get(self) -> Optional[Token]:
        return self._token

    def set(self, token: Token) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class TokenManager:
    def __init__(
        self,
        credentials: Credentials,
        *,
        http: HttpClient | None = None,
        cache: TokenCache | None = None,
        clock: Clock = time.time,
        resource: str = GRAPH_RESOURCE,
    ):
        self.credentials = credentials
        self.cache = cache if cache is not None else TokenCache()
        self._http = http or HttpClient()
        self._clock = clock
        self._resource = resource

    def get_valid_token(self) -> Token:
        cached = self.cache.get()
        if cached is not None and cached.is_valid(self._clock()):
            return cached
        if cached is not None:
            log.info("cached token expired, refreshing")
        token = self._exchange()
        self.cache.set(token)
        return token

    def bearer(self) -> str:
        """Token provider for GraphClient."""
        return self.get_valid_token().value

    def _exchange(self) -> Token:
        c = self.credentials
        log.info("requesting token: tenant=%s client=%s", c.tenant_id, c.client_hint)
        try:
            resp = self._http.post_form(
                build_token_url(c.tenant_id),
                build_token_body(c.client_id, c.client_secret, self._resource),
            )
        except TransportError as ex:
            raise NetworkError(str(ex))

        try:
            res = json.loads(resp.text or "{}")
        except ValueError:
            res = {}
        if not isinstance(res, dict):
            res = {}

        if not res.get("access_token"):
            desc = res.get("error_description") or f"HTTP {resp.status_code}, no access_token in response"
            raise map_token_error(desc)

        try:
            expires_on = float(res.get("expires_on"))
        except (TypeError, ValueError):
            raise AuthenticationError(f"Token response has unusable expires_on: {res.get('expires_on')!r}")

        log.info("token acquired, expires_on=%d", int(expires_on))
        return Token(value=res["access_token"], expires_on=expires_on)
