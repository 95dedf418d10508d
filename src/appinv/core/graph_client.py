# src/appinv/core/graph_client.py
from __future__ import annotations
from typing import Any, Callable, Dict
from appinv.http.client import HttpClient

GRAPH_BASE = "https://graph.microsoft.com"

class GraphClient:
    """
    Tiny Graph wrapper. Token is provided lazily via token_provider(), so an
    expired token is refreshed before each call rather than at construction.
    """
    def __init__(
        self,
        token_provider: Callable[[], str],
        timeout: float = 30.0,
        logger=None,
        session=None,
    ):
        self._token_provider = token_provider
        self._http = HttpClient(base_url=GRAPH_BASE, timeout=timeout, logger=logger, session=session)

    def _auth_headers(self, extra: Dict[str, str] | None = None) -> Dict[str, str]:
        h = {"Authorization": f"Bearer {self._token_provider()}"}
        if extra:
            h.update(extra)
        return h

    def get_json(self, path_or_url: str, *, params: Dict[str, Any] | None = None) -> dict:
        return self._http.get_json(path_or_url, headers=self._auth_headers(), params=params)

    def post_json(self, path_or_url: str, *, json: Any = None) -> dict:
        return self._http.post_json(path_or_url, headers=self._auth_headers(), json=json)
