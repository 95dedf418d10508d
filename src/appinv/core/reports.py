# src/appinv/core/reports.py
from __future__ import annotations
import json, logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from appinv.config.loader import ConfigError
from appinv.core.graph_client import GraphClient
from appinv.http.errors import RequestError

log = logging.getLogger("appinv.reports")

EXPORT_JOBS = "/beta/deviceManagement/reports/exportJobs"


class ReportError(RequestError):
    """Graph accepted the call but the answer cannot be used."""


# Columns requested per report; AppInvRawData is the Intune discovered-apps export
REPORT_COLUMNS: Dict[str, List[str]] = {
    "AppInvRawData": [
        "ApplicationKey",
        "ApplicationId",
        "ApplicationName",
        "ApplicationPublisher",
        "ApplicationShortVersion",
        "ApplicationVersion",
        "DeviceId",
        "DeviceName",
        "OSDescription",
        "OSVersion",
        "Platform",
        "UserId",
        "EmailAddress",
        "UserName",
    ],
}


class JobStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_remote(cls, text: Optional[str]) -> "JobStatus":
        t = (text or "").strip().lower()
        if t == "completed":
            return cls.COMPLETED
        if t == "failed":
            return cls.FAILED
        if t in ("queued", "notstarted"):
            return cls.QUEUED
        # inProgress, unknown, anything new Graph invents
        return cls.IN_PROGRESS


@dataclass(frozen=True)
class ReportJob:
    id: str
    status: JobStatus
    url: Optional[str] = None
    raw_status: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status is JobStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status is JobStatus.FAILED

    @classmethod
    def from_graph(cls, data: Dict[str, Any], job_id: str = "") -> "ReportJob":
        raw = data.get("status") or ""
        return cls(
            id=data.get("id") or job_id,
            status=JobStatus.from_remote(raw),
            url=data.get("url") or None,
            raw_status=raw,
        )


def build_export_payload(report_name: str) -> Dict[str, Any]:
    try:
        columns = REPORT_COLUMNS[report_name]
    except KeyError:
        raise ConfigError(
            f"Unknown report {report_name!r}; known: {', '.join(sorted(REPORT_COLUMNS))}"
        )
    return {
        "reportName": report_name,
        "filter": "",
        "select": list(columns),
        "localization": "true",
        "ColumnName": "ui",
    }


def request_report(graph: GraphClient, report_name: str = "AppInvRawData") -> ReportJob:
    """Enqueue an export job. RequestError from the Graph call propagates."""
    payload = build_export_payload(report_name)
    data = graph.post_json(EXPORT_JOBS, json=payload)
    job = ReportJob.from_graph(data)
    if not job.id:
        # 2xx but unusable; no status code to report
        raise ReportError(-1, EXPORT_JOBS, "exportJobs response carried no job id",
                          json.dumps(data)[:400])
    log.info("export job %s created for %s, status=%s", job.id, report_name, job.raw_status)
    return job


def get_job(graph: GraphClient, job_id: str) -> ReportJob:
    data = graph.get_json(f"{EXPORT_JOBS}('{job_id}')")
    return ReportJob.from_graph(data, job_id=job_id)
