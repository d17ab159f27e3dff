"""SSSD access policy: mkhomedir, allow-lists, and ``sssd.conf`` generation."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from ._commands import CommandRunner, JoinReport, StepOutcome
from ._join_models import DomainJoinRequest

logger = logging.getLogger(__name__)

# Probed in order; the first tool on PATH is used.
MKHOMEDIR_TOOLS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("authselect", ("select", "sssd", "with-mkhomedir", "--force")),
    ("pam-auth-update", ("--enable", "mkhomedir", "--force")),
    ("pam-config", ("-a", "--mkhomedir")),
)
SSSD_SERVICE = "sssd"


def normalise_allow_list(raw: str) -> tuple[str, ...]:
    """Turn a comma-separated field into lowercase, trimmed, unique entries.

    ``""`` and ``"none"`` (any case) mean an empty list.

    Examples
    --------
    >>> normalise_allow_list("Alice, Bob, Carol")
    ('alice', 'bob', 'carol')
    >>> normalise_allow_list("NONE")
    ()
    >>> normalise_allow_list("alice,,ALICE ")
    ('alice',)
    """

    lowered = raw.lower()
    if lowered.strip() in {"", "none"}:
        return ()
    tokens = (token.strip() for token in lowered.split(","))
    return tuple(dict.fromkeys(token for token in tokens if token))


@dataclass(frozen=True, slots=True)
class AllowList:
    """Users and groups permitted to log in."""

    users: tuple[str, ...] = ()
    groups: tuple[str, ...] = ()

    @classmethod
    def from_request(cls, request: DomainJoinRequest) -> AllowList:
        """Derive the allow-list from the raw request fields."""

        return cls(
            users=normalise_allow_list(request.raw_users),
            groups=normalise_allow_list(request.raw_groups),
        )

    def log_summary(self) -> None:
        """Log the final users and groups."""

        if self.users:
            logger.info("Final allowed users: %s", " ".join(self.users))
        else:
            logger.info("No allowed users specified.")
        if self.groups:
            logger.info("Final allowed groups: %s", " ".join(self.groups))
        else:
            logger.info("No allowed groups specified.")


def enable_mkhomedir(runner: CommandRunner, report: JoinReport) -> str | None:
    """Enable home directory creation with the first available PAM tool."""

    logger.info("Enabling automatic home directory creation...")
    for tool, args in MKHOMEDIR_TOOLS:
        if not runner.which(tool):
            continue
        report.tolerate("enable-mkhomedir", runner.run(tool, *args))
        return tool
    report.tolerate_error(
        "enable-mkhomedir", "no authselect, pam-auth-update, or pam-config found"
    )
    return None


def render_sssd_conf(domain: str, allow_list: AllowList) -> str:
    """Render ``sssd.conf`` for *domain*.

    Examples
    --------
    >>> text = render_sssd_conf("Example.com", AllowList(users=("alice",)))
    >>> "krb5_realm = EXAMPLE.COM" in text, "domains = Example.com" in text
    (True, True)
    >>> "simple_allow_groups" in text
    False
    """

    lines = [
        "[sssd]",
        "services = nss, pam, ssh",
        "config_file_version = 2",
        f"domains = {domain}",
        "",
        f"[domain/{domain}]",
        f"ad_domain = {domain}",
        f"krb5_realm = {domain.upper()}",
        "id_provider = ad",
        "access_provider = simple",
        "use_fully_qualified_names = False",
        "fallback_homedir = /home/%u",
        "default_shell = /bin/bash",
    ]
    if allow_list.users:
        lines.append(f"simple_allow_users = {','.join(allow_list.users)}")
    if allow_list.groups:
        lines.append(f"simple_allow_groups = {','.join(allow_list.groups)}")
    return "\n".join(lines) + "\n"


def backup_existing(path: Path, clock: Callable[[], float]) -> Path | None:
    """Copy *path* to ``<path>.bak.<epoch>`` when it exists.

    A numeric suffix is appended when a backup with the same timestamp is
    already present. Backups are never removed.
    """

    if not path.exists():
        return None
    stem = f"{path.name}.bak.{int(clock())}"
    backup = path.with_name(stem)
    counter = 0
    while backup.exists():
        counter += 1
        backup = path.with_name(f"{stem}.{counter}")
    shutil.copy2(path, backup)
    logger.info("Backed up %s to %s", path, backup)
    return backup


def write_sssd_conf(path: Path, content: str) -> None:
    """Write *content* to *path* with owner-only permissions."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(content)
    os.chmod(path, 0o600)


def clear_sssd_cache(cache_dirs: Iterable[Path]) -> list[Path]:
    """Remove the contents of each SSSD cache directory.

    The directories themselves are kept. Returns the removed entries.
    """

    removed: list[Path] = []
    for cache_dir in cache_dirs:
        if not cache_dir.is_dir():
            continue
        for entry in sorted(cache_dir.iterdir()):
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed.append(entry)
    return removed


def configure_sssd(
    request: DomainJoinRequest,
    allow_list: AllowList,
    sssd_conf: Path,
    cache_dirs: Iterable[Path],
    runner: CommandRunner,
    report: JoinReport,
    clock: Callable[[], float],
) -> Path | None:
    """Write ``sssd.conf`` and restart SSSD with an empty cache.

    SSSD is stopped before its cache is cleared and only started again
    afterwards. Returns the backup path, if one was created.
    """

    logger.info("Writing SSSD config...")
    backup: Path | None = None
    try:
        backup = backup_existing(sssd_conf, clock)
        write_sssd_conf(sssd_conf, render_sssd_conf(request.domain, allow_list))
    except OSError as exc:
        report.tolerate_error("sssd:write-config", str(exc))
    else:
        report.record("sssd:write-config", StepOutcome.SUCCESS, str(sssd_conf))

    report.tolerate("sssd:enable", runner.run("systemctl", "enable", SSSD_SERVICE))
    report.tolerate("sssd:stop", runner.run("systemctl", "stop", SSSD_SERVICE))
    try:
        removed = clear_sssd_cache(cache_dirs)
    except OSError as exc:
        report.tolerate_error("sssd:clear-cache", str(exc))
    else:
        report.record(
            "sssd:clear-cache", StepOutcome.SUCCESS, f"{len(removed)} entries removed"
        )
    report.tolerate("sssd:start", runner.run("systemctl", "start", SSSD_SERVICE))
    logger.info("SSSD configured.")
    return backup


__all__ = [
    "MKHOMEDIR_TOOLS",
    "AllowList",
    "backup_existing",
    "clear_sssd_cache",
    "configure_sssd",
    "enable_mkhomedir",
    "normalise_allow_list",
    "render_sssd_conf",
    "write_sssd_conf",
]
