"""Resolve host paths and tuning from environment variables."""

from __future__ import annotations

import os
from collections import abc as cabc
from dataclasses import dataclass
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_LOG_FILE = PACKAGE_DIR / "linux_ad_join.log"
DEFAULT_SSSD_CACHE_DIRS = (Path("/var/lib/sss/db"), Path("/var/lib/sss/mc"))


@dataclass(frozen=True, slots=True)
class InputResolution:
    """Configuration for resolving a setting from the environment."""

    env_key: str
    default: str | Path | None = None
    as_path: bool = False


def resolve_input(
    resolution: InputResolution,
    env: cabc.Mapping[str, str] | None = None,
) -> str | Path | None:
    """Resolve a setting from an environment variable or its default.

    Examples
    --------
    >>> resolve_input(InputResolution("AD_JOIN_SSHD_CONFIG", as_path=True), {"AD_JOIN_SSHD_CONFIG": "/tmp/sshd"})
    PosixPath('/tmp/sshd')
    >>> resolve_input(InputResolution("AD_JOIN_REBOOT_DELAY", default="3"), {})
    '3'
    """

    env_value = (env if env is not None else os.environ).get(resolution.env_key)
    if env_value:
        return Path(env_value) if resolution.as_path else env_value
    return resolution.default


@dataclass(frozen=True, slots=True)
class HostPaths:
    """Filesystem locations and tuning used by the join workflow."""

    log_file: Path = DEFAULT_LOG_FILE
    sssd_conf: Path = Path("/etc/sssd/sssd.conf")
    sssd_cache_dirs: tuple[Path, ...] = DEFAULT_SSSD_CACHE_DIRS
    sshd_config: Path = Path("/etc/ssh/sshd_config")
    os_release: Path = Path("/etc/os-release")
    systemd_dir: Path = Path("/run/systemd/system")
    reboot_delay: float = 3.0


def _resolve_path(env_key: str, default: Path, env: cabc.Mapping[str, str] | None) -> Path:
    value = resolve_input(InputResolution(env_key, default=default, as_path=True), env)
    return value if isinstance(value, Path) else Path(str(value))


def _resolve_cache_dirs(env: cabc.Mapping[str, str] | None) -> tuple[Path, ...]:
    raw = resolve_input(InputResolution("AD_JOIN_SSSD_CACHE_DIRS"), env)
    if raw is None:
        return DEFAULT_SSSD_CACHE_DIRS
    return tuple(Path(part) for part in str(raw).split(os.pathsep) if part)


def _resolve_reboot_delay(env: cabc.Mapping[str, str] | None) -> float:
    raw = resolve_input(InputResolution("AD_JOIN_REBOOT_DELAY", default="3"), env)
    try:
        delay = float(str(raw))
    except ValueError as exc:
        msg = f"AD_JOIN_REBOOT_DELAY must be a number, got: {raw!r}"
        raise SystemExit(msg) from exc
    if delay < 0:
        msg = f"AD_JOIN_REBOOT_DELAY must not be negative, got: {raw!r}"
        raise SystemExit(msg)
    return delay


def load_host_paths(env: cabc.Mapping[str, str] | None = None) -> HostPaths:
    """Build :class:`HostPaths` from ``AD_JOIN_*`` environment variables.

    Examples
    --------
    >>> load_host_paths({"AD_JOIN_SSSD_CONF": "/tmp/sssd.conf"}).sssd_conf
    PosixPath('/tmp/sssd.conf')
    """

    defaults = HostPaths()
    return HostPaths(
        log_file=_resolve_path("AD_JOIN_LOG_FILE", defaults.log_file, env),
        sssd_conf=_resolve_path("AD_JOIN_SSSD_CONF", defaults.sssd_conf, env),
        sssd_cache_dirs=_resolve_cache_dirs(env),
        sshd_config=_resolve_path("AD_JOIN_SSHD_CONFIG", defaults.sshd_config, env),
        os_release=_resolve_path("AD_JOIN_OS_RELEASE", defaults.os_release, env),
        systemd_dir=_resolve_path("AD_JOIN_SYSTEMD_DIR", defaults.systemd_dir, env),
        reboot_delay=_resolve_reboot_delay(env),
    )


__all__ = [
    "DEFAULT_LOG_FILE",
    "HostPaths",
    "InputResolution",
    "load_host_paths",
    "resolve_input",
]
