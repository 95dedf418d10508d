# src/appinv/core/poller.py
from __future__ import annotations
import logging, time
from typing import Callable, Optional

from appinv.core.graph_client import GraphClient
from appinv.core.reports import ReportJob, get_job

log = logging.getLogger("appinv.poller")

POLL_INTERVAL_SECONDS = 5


class ReportJobFailed(Exception):
    def __init__(self, job: ReportJob, message: str = ""):
        super().__init__(message or f"Export job {job.id} failed (status={job.raw_status!r})")
        self.job = job

class PollTimeout(Exception):
    def __init__(self, job: ReportJob, polls: int):
        super().__init__(f"Export job {job.id} not completed after {polls} status checks")
        self.job = job
        self.polls = polls


def poll_until_complete(
    graph: GraphClient,
    job: ReportJob,
    *,
    interval: float = POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    max_polls: Optional[int] = None,
) -> ReportJob:
    """
    Re-fetch job status every `interval` seconds until it is completed.
    A failed job stops the loop immediately. max_polls=None never gives up.
    """
    polls = 0
    while not job.is_completed:
        if job.is_failed:
            raise ReportJobFailed(job)
        if max_polls is not None and polls >= max_polls:
            raise PollTimeout(job, polls)
        sleep(interval)
        job = get_job(graph, job.id)
        polls += 1
        log.info("export job %s status=%s (check %d)", job.id, job.raw_status, polls)

    if not job.url:
        raise ReportJobFailed(job, f"Export job {job.id} completed without a download url")
    return job
