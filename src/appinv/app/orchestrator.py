# src/appinv/app/orchestrator.py
from __future__ import annotations
import logging, time
from typing import Callable, Optional

from appinv.app.state import RunState
from appinv.config.loader import Settings
from appinv.core.artifact import fetch_and_extract
from appinv.core.auth import resolve_credentials
from appinv.core.graph_client import GraphClient
from appinv.core.poller import poll_until_complete
from appinv.core.publisher import StorageTarget, publish
from appinv.core.reports import request_report
from appinv.core.token import TokenManager
from appinv.core.workdir import work_dir
from appinv.http.client import HttpClient

log = logging.getLogger("appinv.run")
http_log = logging.getLogger("appinv.http")


class Orchestrator:
    """
    Runs the export once: credentials -> token -> export job -> poll ->
    download/extract -> upload. Collaborators are injectable for tests.
    """
    def __init__(
        self,
        settings: Settings,
        *,
        state: RunState | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        session=None,
        secret_client=None,
        platform_credential=None,
        env=None,
    ):
        self.settings = settings
        self.state = state or RunState()
        self._clock = clock
        self._sleep = sleep
        self._session = session
        self._secret_client = secret_client
        self._platform_credential = platform_credential
        self._env = env

    def _http(self) -> HttpClient:
        return HttpClient(timeout=self.settings.timeout_seconds, logger=http_log, session=self._session)

    def run(self, *, upload: bool = True) -> Optional[str]:
        s = self.settings
        st = self.state

        st.credentials = resolve_credentials(s, env=self._env, secret_client=self._secret_client)
        tokens = TokenManager(
            st.credentials, http=self._http(), cache=st.tokens, clock=self._clock,
        )
        # fail on bad credentials before touching Graph
        tokens.get_valid_token()

        graph = GraphClient(
            tokens.bearer, timeout=s.timeout_seconds, logger=http_log, session=self._session,
        )
        st.job = request_report(graph, s.report_name)
        st.job = poll_until_complete(graph, st.job, sleep=self._sleep, max_polls=s.max_polls)

        csv_path = fetch_and_extract(self._http(), st.job.url, work_dir(s.work_dir))
        st.csv_path = str(csv_path)
        st.job = None

        if not upload:
            log.info("upload skipped, report left at %s", csv_path)
            return None

        st.blob_url = publish(
            csv_path, StorageTarget.from_settings(s), credential=self._platform_credential,
        )
        return st.blob_url


def run(settings: Settings, *, upload: bool = True, **collaborators) -> Optional[str]:
    return Orchestrator(settings, **collaborators).run(upload=upload)
