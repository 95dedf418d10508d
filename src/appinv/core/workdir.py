# src/appinv/core/workdir.py
from __future__ import annotations
import os, sys, pathlib, shutil

APP_NAME = "AppInvExport"

def _base_dir() -> pathlib.Path:
    if sys.platform.startswith("win"):
        root = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~\\AppData\\Local")
        return pathlib.Path(root) / APP_NAME
    elif sys.platform == "darwin":
        return pathlib.Path.home() / "Library" / "Caches" / APP_NAME
    else:
        root = os.environ.get("XDG_CACHE_HOME") or (pathlib.Path.home() / ".cache")
        return pathlib.Path(root) / APP_NAME

def work_dir(override: str | os.PathLike | None = None) -> pathlib.Path:
    p = pathlib.Path(override) if override else _base_dir() / "work"
    p.mkdir(parents=True, exist_ok=True); return p

def reset_dir(path: pathlib.Path) -> pathlib.Path:
    """Empty `path`, creating it if needed."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
