# src/appinv/core/artifact.py
from __future__ import annotations
import logging, os, pathlib, zipfile
from typing import List

from appinv.core.workdir import reset_dir
from appinv.http.client import HttpClient

log = logging.getLogger("appinv.artifact")

ARCHIVE_NAME = "report.zip"
EXTRACT_DIR = "extracted"
TARGET_NAME = "AppInvRawData.csv"


class ArtifactError(Exception):
    pass


def _csv_members(zf: zipfile.ZipFile) -> List[zipfile.ZipInfo]:
    return [i for i in zf.infolist() if not i.is_dir() and i.filename.lower().endswith(".csv")]


def extract_single_csv(archive: pathlib.Path, work: pathlib.Path, target_name: str = TARGET_NAME) -> pathlib.Path:
    """
    Extract the one CSV in `archive` and move it to work/target_name,
    replacing whatever is there. Zero or several CSVs is an error.
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            members = _csv_members(zf)
            if len(members) != 1:
                names = ", ".join(m.filename for m in members) or "none"
                raise ArtifactError(
                    f"Expected exactly one CSV in {archive.name}, found {len(members)}: {names}"
                )
            out_dir = reset_dir(work / EXTRACT_DIR)
            extracted = pathlib.Path(zf.extract(members[0], path=out_dir))
    except zipfile.BadZipFile as ex:
        raise ArtifactError(f"{archive.name} is not a valid zip archive: {ex}") from ex

    target = work / target_name
    os.replace(extracted, target)
    log.info("extracted %s -> %s", members[0].filename, target)
    return target


def fetch_and_extract(
    http: HttpClient,
    url: str,
    work: pathlib.Path,
    target_name: str = TARGET_NAME,
) -> pathlib.Path:
    work = pathlib.Path(work)
    # pre-signed URL; no bearer header
    archive = http.download(url, work / ARCHIVE_NAME)
    log.info("downloaded archive to %s (%d bytes)", archive, archive.stat().st_size)
    return extract_single_csv(archive, work, target_name)
