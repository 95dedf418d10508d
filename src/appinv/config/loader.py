from __future__ import annotations
import json, logging, os, pathlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

log = logging.getLogger("appinv.config")

DEFAULT_PATH = pathlib.Path("config/appsettings.json")
ENV_PREFIX = "APPINV_"


class ConfigError(Exception):
    """Required configuration value missing or unusable."""


def load_appsettings(path: pathlib.Path | str | None = None) -> dict:
    p = pathlib.Path(path) if path else DEFAULT_PATH
    if not p.exists():
        return {}
    try:
        text = p.read_text(encoding="utf-8").strip()
        if not text:
            return {}
        return json.loads(text)
    except (OSError, ValueError) as ex:
        # malformed JSON → fall back to defaults
        log.warning("could not read %s (%s), using defaults", p, ex)
        return {}


@dataclass(frozen=True)
class Settings:
    subscription_id: str
    tenant_id: str
    resource_group: str
    storage_account: str
    container: str
    client_id: str
    client_secret: Optional[str] = None
    keyvault_name: Optional[str] = None
    keyvault_secret_name: Optional[str] = None
    managed_identity_client_id: Optional[str] = None
    report_name: str = "AppInvRawData"
    work_dir: Optional[str] = None
    timeout_seconds: float = 30.0
    max_polls: Optional[int] = None


# settings field -> (appsettings section, key)
_LAYOUT = {
    "subscription_id": ("azure", "subscription_id"),
    "resource_group": ("azure", "resource_group"),
    "storage_account": ("azure", "storage_account"),
    "container": ("azure", "container"),
    "tenant_id": ("identity", "tenant_id"),
    "client_id": ("identity", "client_id"),
    "client_secret": ("identity", "client_secret"),
    "managed_identity_client_id": ("identity", "managed_identity_client_id"),
    "keyvault_name": ("keyvault", "name"),
    "keyvault_secret_name": ("keyvault", "secret_name"),
    "report_name": ("report", "name"),
    "work_dir": ("paths", "work_dir"),
    "max_polls": ("poll", "max_polls"),
    "timeout_seconds": ("http", "timeout_seconds"),
}

_REQUIRED = (
    "subscription_id", "tenant_id", "resource_group",
    "storage_account", "container", "client_id",
)


def load_settings(
    path: pathlib.Path | str | None = None,
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """
    Build Settings from appsettings.json, then APPINV_<FIELD> environment
    variables, then explicit keyword overrides (CLI flags). None overrides
    are ignored.
    """
    raw = load_appsettings(path)
    env = os.environ if env is None else env

    values: Dict[str, Any] = {}
    for field, (section, key) in _LAYOUT.items():
        v = (raw.get(section) or {}).get(key)
        ev = env.get(ENV_PREFIX + field.upper())
        if ev:
            v = ev
        if isinstance(v, str):
            v = v.strip() or None
        if v is not None:
            values[field] = v

    for k, v in overrides.items():
        if v is not None:
            values[k] = v

    missing = [f for f in _REQUIRED if not values.get(f)]
    if missing:
        raise ConfigError("Missing configuration: " + ", ".join(missing))

    if values.get("max_polls") is not None:
        try:
            values["max_polls"] = int(values["max_polls"])
        except (TypeError, ValueError):
            raise ConfigError(f"poll.max_polls must be an integer, got {values['max_polls']!r}")

    if values.get("timeout_seconds") is not None:
        try:
            values["timeout_seconds"] = float(values["timeout_seconds"])
        except (TypeError, ValueError):
            raise ConfigError(f"http.timeout_seconds must be a number, got {values['timeout_seconds']!r}")
        if values["timeout_seconds"] <= 0:
            raise ConfigError("http.timeout_seconds must be positive")

    # checked here so a typo fails before any token request
    from appinv.core.reports import REPORT_COLUMNS
    report = values.get("report_name", Settings.report_name)
    if report not in REPORT_COLUMNS:
        raise ConfigError(
            f"Unknown report {report!r}; known: {', '.join(sorted(REPORT_COLUMNS))}"
        )

    return Settings(**values)
