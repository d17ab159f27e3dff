#!/usr/bin/env -S uv run python
# /// script
# requires-python = ">=3.13"
# dependencies = ["cyclopts>=3.0", "plumbum"]
# ///
"""Join this Linux host to an Active Directory domain.

This script:
- installs realmd, SSSD, and related packages for the detected distribution;
- enables time sync and sets the requested hostname;
- discovers and joins the realm with the supplied admin account;
- writes ``sssd.conf`` with optional user and group allow-lists;
- enables SSH password logins and applies ``realm permit`` rules; and
- reboots servers automatically, or asks first on workstations.

Usage:
  sudo ./ad_join/join_domain.py example.com Administrator 'S3cret!' web01 "alice,bob" none

Host paths can be overridden with ``AD_JOIN_*`` environment variables; see
``ad_join/_host_config.py``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from ad_join._commands import CommandRunner
from ad_join._errors import DomainJoinError
from ad_join._host_config import HostPaths, load_host_paths
from ad_join._join_flow import JoinEnvironment, run_join
from ad_join._logging import PLAIN, configure_logging

app = App(help="Join this Linux host to an Active Directory domain.")
logger = logging.getLogger("ad_join.join_domain")

BANNER = (
    "",
    "==============================================================",
    "            LinuxADJoin - Linux Active Directory Join          ",
    "--------------------------------------------------------------",
    " Joins Linux machines to Active Directory.",
    " Log File: {log_file}",
    "==============================================================",
    "",
)


def print_banner(log_file: Path) -> None:
    """Write the start banner to the console and the run log."""

    for line in BANNER:
        logger.info(line.format(log_file=log_file), extra=PLAIN)


def execute(arguments: tuple[str, ...], environment: JoinEnvironment) -> int:
    """Run the join flow and map fatal errors to exit status 1."""

    try:
        run_join(arguments, environment)
    except DomainJoinError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


@app.default
def main(*arguments: Annotated[str, Parameter(allow_leading_hyphen=True)]) -> int:
    """Join the host to a domain.

    Parameters
    ----------
    arguments
        DOMAIN ADMIN_USER ADMIN_PASS HOSTNAME USERS GROUPS, where USERS and
        GROUPS are comma-separated lists or ``none``. Values are passed
        through verbatim, including ones that start with ``-``.
    """

    paths: HostPaths = load_host_paths()
    configure_logging(paths.log_file)
    print_banner(paths.log_file)
    environment = JoinEnvironment(runner=CommandRunner(), paths=paths)
    return execute(arguments, environment)


def run() -> None:
    """Console-script entry point."""

    raise SystemExit(app())


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    run()
