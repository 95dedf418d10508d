from __future__ import annotations
import json as _json
import pathlib
from typing import Any, Dict, Optional
import requests

from appinv.http.errors import (
    RequestError, UnauthorizedError, ForbiddenError, NotFoundError,
    ThrottleError, ServerError, TransportError
)

CHUNK_SIZE = 1024 * 64


class HttpClient:
    """
    Single-attempt HTTP wrapper. Non-success responses become typed
    RequestError subclasses; nothing is retried.
    """
    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        logger=None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._log = logger  # optional, expects .debug()

    def _full_url(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        if self.base_url:
            return f"{self.base_url}/{url.lstrip('/')}"
        return url

    def _log_debug(self, msg: str) -> None:
        if self._log:
            self._log.debug(msg)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        data: Optional[Any] = None,
        stream: bool = False,
    ) -> requests.Response:
        full = self._full_url(url)
        # pre-signed download URLs carry a SAS token in the query string
        shown = full.split("?", 1)[0]
        self._log_debug(f"HTTP {method.upper()} {shown}")
        try:
            resp = self._session.request(
                method=method.upper(),
                url=full,
                headers=headers or {},
                params=params,
                json=json,
                data=data,
                timeout=self.timeout,
                stream=stream,
            )
        except requests.exceptions.RequestException as ex:
            raise TransportError(-1, shown, str(ex))

        self._log_debug(f"HTTP {resp.status_code} {shown}")
        if resp.status_code < 400:
            return resp

        # Map to typed errors
        body_snip = _safe_snip(resp)
        if resp.status_code == 401:
            raise UnauthorizedError(401, shown, "Unauthorized", body_snip)
        if resp.status_code == 403:
            raise ForbiddenError(403, shown, "Forbidden", body_snip)
        if resp.status_code == 404:
            raise NotFoundError(404, shown, "Not Found", body_snip)
        if resp.status_code == 429:
            raise ThrottleError(429, shown, "Too Many Requests", body_snip)
        if 500 <= resp.status_code <= 599:
            raise ServerError(resp.status_code, shown, "Server error", body_snip)
        raise RequestError(resp.status_code, shown, "HTTP error", body_snip)

    # ---------- Convenience helpers ----------
    def get_json(self, url: str, **kwargs) -> dict:
        r = self.request("GET", url, **kwargs)
        return _parse_json(r, self._full_url(url))

    def post_json(self, url: str, *, headers=None, json=None) -> dict:
        r = self.request("POST", url, headers=headers, json=json)
        return _parse_json(r, self._full_url(url))

    def post_form(self, url: str, body: str, *, headers=None) -> requests.Response:
        """POST an already-encoded form body. The response is returned as-is."""
        h = {"Content-Type": "application/x-www-form-urlencoded"}
        if headers:
            h.update(headers)
        full = self._full_url(url)
        self._log_debug(f"HTTP POST {full}")
        try:
            resp = self._session.request(
                method="POST", url=full, headers=h, data=body, timeout=self.timeout,
            )
        except requests.exceptions.RequestException as ex:
            raise TransportError(-1, full, str(ex))
        self._log_debug(f"HTTP {resp.status_code} {full}")
        return resp

    def download(self, url: str, dest: pathlib.Path) -> pathlib.Path:
        dest = pathlib.Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        r = self.request("GET", url, stream=True)
        try:
            with open(dest, "wb") as fh:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        finally:
            r.close()
        return dest


def _parse_json(resp: requests.Response, url: str) -> dict:
    try:
        data = _json.loads(resp.text or "{}")
    except ValueError:
        raise RequestError(resp.status_code, url.split("?", 1)[0], "invalid JSON", _safe_snip(resp))
    if not isinstance(data, dict):
        raise RequestError(resp.status_code, url.split("?", 1)[0], "expected a JSON object", _safe_snip(resp))
    return data


def _safe_snip(resp: requests.Response, max_len: int = 400) -> str:
    try:
        txt = resp.text or ""
        return txt[:max_len]
    except Exception:
        return ""
