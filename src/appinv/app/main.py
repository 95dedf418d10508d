# src/appinv/app/main.py
from __future__ import annotations
import argparse, logging, sys
from typing import List, Optional

from azure.core.exceptions import AzureError, HttpResponseError

from appinv.app.orchestrator import run
from appinv.config.loader import ConfigError, load_settings
from appinv.core.artifact import ArtifactError
from appinv.core.auth import AuthenticationError
from appinv.core.poller import PollTimeout, ReportJobFailed
from appinv.core.publisher import PlatformLoginError, StorageTargetError
from appinv.http.errors import RequestError

log = logging.getLogger("appinv")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        stream=sys.stdout,
    )
    # azure SDK logs every HTTP exchange at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="appinv-export",
        description="Export the Intune app inventory report and upload it to blob storage.",
    )
    p.add_argument("--config", default=None, help="Path to appsettings.json (default: config/appsettings.json)")
    p.add_argument("--report-name", default=None, help="Intune report to export (default: AppInvRawData)")
    p.add_argument("--work-dir", default=None, help="Directory for the downloaded archive and extracted CSV")
    p.add_argument("--skip-upload", action="store_true", help="Stop after extracting the CSV")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging, including HTTP calls")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        settings = load_settings(args.config, report_name=args.report_name, work_dir=args.work_dir)
        url = run(settings, upload=not args.skip_upload)
    except ConfigError as ex:
        log.error("configuration error: %s", ex)
        return 1
    except AuthenticationError as ex:
        log.error("authentication failed [%s]: %s (%s)", ex.code, ex, ex.hint)
        return 1
    except RequestError as ex:
        log.error("request failed: %s", ex)
        log.error("response body: %s", ex.body_snippet)
        return 1
    except (ReportJobFailed, PollTimeout) as ex:
        log.error("export job did not complete: %s", ex)
        return 1
    except ArtifactError as ex:
        log.error("report archive unusable: %s", ex)
        return 1
    except PlatformLoginError as ex:
        log.error("platform login failed: %s", ex.__cause__ or ex)
        return 1
    except StorageTargetError as ex:
        log.error("storage target unusable: %s", ex)
        return 1
    except HttpResponseError as ex:
        # Key Vault, storage management or blob service rejected a call
        log.error("azure request failed: status=%s reason=%s", ex.status_code, ex.reason)
        log.error("azure error: %s", ex.message)
        return 1
    except AzureError as ex:
        log.error("azure call failed: %s", ex)
        return 1

    if url:
        log.info("done: %s", url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
