from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from appinv.core.auth import Credentials
from appinv.core.reports import ReportJob
from appinv.core.token import TokenCache


@dataclass
class RunState:
    credentials: Optional[Credentials] = None
    tokens: TokenCache = field(default_factory=TokenCache)
    job: Optional[ReportJob] = None
    csv_path: Optional[str] = None
    blob_url: Optional[str] = None
