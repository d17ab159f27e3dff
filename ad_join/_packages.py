"""Install the realmd/SSSD stack with the distribution package manager.

Install failures never stop the run: package names drift between
distribution releases and a partial install should not block the join.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import assert_never

from ._commands import CommandRunner, JoinReport
from ._join_models import HostFacts

logger = logging.getLogger(__name__)


class OsFamily(Enum):
    """Distribution families with a known package manager and package set."""

    RHEL = "rhel"
    DEBIAN = "debian"
    SUSE = "suse"
    ARCH = "arch"
    UNKNOWN = "unknown"


_FAMILY_IDS: dict[OsFamily, frozenset[str]] = {
    OsFamily.RHEL: frozenset(
        {"rhel", "centos", "rocky", "almalinux", "fedora", "ol", "amzn"}
    ),
    OsFamily.DEBIAN: frozenset(
        {
            "ubuntu",
            "debian",
            "pop",
            "linuxmint",
            "zorin",
            "elementary",
            "kali",
            "parrot",
        }
    ),
    OsFamily.SUSE: frozenset(
        {"sles", "suse", "opensuse-leap", "opensuse-tumbleweed", "leap", "tumbleweed"}
    ),
    OsFamily.ARCH: frozenset({"arch", "manjaro"}),
}

# ID_LIKE fallback, checked in priority order.
_LIKE_ALIASES: tuple[tuple[OsFamily, tuple[str, ...]], ...] = (
    (OsFamily.RHEL, ("rhel", "fedora", "centos")),
    (OsFamily.DEBIAN, ("debian", "ubuntu")),
    (OsFamily.SUSE, ("suse", "opensuse")),
    (OsFamily.ARCH, ("arch",)),
)

RHEL_PACKAGES = (
    "realmd",
    "sssd",
    "sssd-tools",
    "oddjob",
    "oddjob-mkhomedir",
    "adcli",
    "samba-common-tools",
    "krb5-workstation",
    "chrony",
)
DEBIAN_PACKAGES = (
    "realmd",
    "sssd",
    "sssd-tools",
    "adcli",
    "packagekit",
    "samba-common-bin",
    "libnss-sss",
    "libpam-sss",
    "chrony",
    "krb5-user",
    "oddjob",
    "oddjob-mkhomedir",
)
SUSE_PACKAGES = (
    "realmd",
    "sssd",
    "sssd-tools",
    "adcli",
    "samba-client",
    "krb5-client",
    "chrony",
    "oddjob",
    "oddjob-mkhomedir",
)
ARCH_PACKAGES = (
    "realmd",
    "sssd",
    "sssd-tools",
    "oddjob",
    "oddjob-mkhomedir",
    "adcli",
    "samba",
    "krb5",
    "chrony",
)


@dataclass(frozen=True, slots=True)
class PackageCommand:
    """A single package manager invocation."""

    command: str
    args: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)


def resolve_os_family(facts: HostFacts) -> OsFamily:
    """Map host facts onto an :class:`OsFamily`.

    Examples
    --------
    >>> from ad_join._join_models import HostFacts
    >>> resolve_os_family(HostFacts("rocky", "9.4", ("rhel", "centos", "fedora"), True, "h"))
    <OsFamily.RHEL: 'rhel'>
    >>> resolve_os_family(HostFacts("neon", "22.04", ("ubuntu", "debian"), True, "h"))
    <OsFamily.DEBIAN: 'debian'>
    """

    for family, ids in _FAMILY_IDS.items():
        if facts.os_id in ids:
            return family
    if facts.os_id.startswith("opensuse"):
        return OsFamily.SUSE
    for family, aliases in _LIKE_ALIASES:
        if any(alias in like for like in facts.os_like for alias in aliases):
            return family
    return OsFamily.UNKNOWN


def package_commands(family: OsFamily, *, has_dnf: bool = True) -> list[PackageCommand]:
    """Return the package manager invocations for *family*.

    Examples
    --------
    >>> [cmd.command for cmd in package_commands(OsFamily.SUSE)]
    ['zypper', 'zypper']
    >>> package_commands(OsFamily.UNKNOWN)
    []
    """

    match family:
        case OsFamily.RHEL:
            manager = "dnf" if has_dnf else "yum"
            return [PackageCommand(manager, ("-y", "install", *RHEL_PACKAGES))]
        case OsFamily.DEBIAN:
            noninteractive = {"DEBIAN_FRONTEND": "noninteractive"}
            return [
                PackageCommand("apt-get", ("update", "-y")),
                PackageCommand(
                    "apt-get", ("install", "-y", *DEBIAN_PACKAGES), noninteractive
                ),
            ]
        case OsFamily.SUSE:
            return [
                PackageCommand("zypper", ("--non-interactive", "refresh")),
                PackageCommand(
                    "zypper", ("--non-interactive", "install", *SUSE_PACKAGES)
                ),
            ]
        case OsFamily.ARCH:
            return [
                PackageCommand(
                    "pacman", ("-Sy", "--noconfirm", "--needed", *ARCH_PACKAGES)
                )
            ]
        case OsFamily.UNKNOWN:
            return []
        case _:
            assert_never(family)


def install_packages(
    facts: HostFacts, runner: CommandRunner, report: JoinReport
) -> OsFamily:
    """Install the required packages for the host's OS family."""

    logger.info("Installing required packages...")
    family = resolve_os_family(facts)
    if family is OsFamily.UNKNOWN:
        report.tolerate_error(
            "install-packages",
            f"Unknown OS: {facts.os_id}. Please install dependencies manually.",
        )
        return family

    has_dnf = family is OsFamily.RHEL and runner.which("dnf")
    for package_command in package_commands(family, has_dnf=has_dnf):
        result = runner.run(
            package_command.command,
            *package_command.args,
            env=package_command.env or None,
        )
        report.tolerate(f"install-packages:{package_command.command}", result)
    logger.info("Package install step completed (best-effort).")
    return family


__all__ = [
    "ARCH_PACKAGES",
    "DEBIAN_PACKAGES",
    "RHEL_PACKAGES",
    "SUSE_PACKAGES",
    "OsFamily",
    "PackageCommand",
    "install_packages",
    "package_commands",
    "resolve_os_family",
]
