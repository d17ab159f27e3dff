"""Preflight checks and host fact collection.

Nothing in this module mutates the host. The checks run in a fixed order:
privilege, argument count, systemd, then os-release. The first failure
raises a :class:`~ad_join._errors.DomainJoinError` subclass.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable, Sequence
from pathlib import Path

from ._errors import ArgumentError, HostEnvironmentError, PrivilegeError
from ._join_models import ARGUMENT_COUNT, USAGE, DomainJoinRequest, HostFacts

logger = logging.getLogger(__name__)


def require_root(geteuid: Callable[[], int]) -> None:
    """Raise :class:`PrivilegeError` unless the effective UID is 0."""

    if geteuid() != 0:
        raise PrivilegeError("Please run as root (sudo).")


def require_arguments(arguments: Sequence[str]) -> DomainJoinRequest:
    """Validate the argument count and build the join request.

    Examples
    --------
    >>> require_arguments(["example.com", "admin", "pw", "host", "none", "none"]).domain
    'example.com'
    """

    if len(arguments) != ARGUMENT_COUNT:
        raise ArgumentError(USAGE)
    return DomainJoinRequest.from_arguments(tuple(arguments))


def require_systemd(systemd_dir: Path) -> None:
    """Raise :class:`HostEnvironmentError` when systemd is not running."""

    if not systemd_dir.is_dir():
        raise HostEnvironmentError("This tool requires systemd (systemctl).")


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_os_release(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines from an os-release document.

    Examples
    --------
    >>> parse_os_release('ID=ubuntu\\nID_LIKE="debian"\\n# comment\\n')
    {'ID': 'ubuntu', 'ID_LIKE': 'debian'}
    """

    data: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = _unquote(value)
    return data


def gather_host_facts(os_release: Path, *, has_systemd: bool = True) -> HostFacts:
    """Read *os_release* and capture the host facts used by later steps."""

    try:
        text = os_release.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot detect OS (no {os_release})"
        raise HostEnvironmentError(msg) from exc
    data = parse_os_release(text)
    facts = HostFacts(
        os_id=data.get("ID", "").lower(),
        os_version=data.get("VERSION_ID", ""),
        os_like=tuple(data.get("ID_LIKE", "").lower().split()),
        has_systemd=has_systemd,
        hostname=socket.gethostname(),
    )
    logger.info(
        "Detected OS: %s %s (like: %s)",
        facts.os_id,
        facts.os_version,
        " ".join(facts.os_like) or "n/a",
    )
    return facts


__all__ = [
    "gather_host_facts",
    "parse_os_release",
    "require_arguments",
    "require_root",
    "require_systemd",
]
