"""Workstation/server classification and the final reboot decision.

The role is a heuristic: a host counts as a workstation when systemd boots
into ``graphical.target`` or when any known display manager is enabled or
active. Servers reboot automatically after a short delay; workstations ask
once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from ._commands import CommandRunner, JoinReport
from ._logging import PLAIN

logger = logging.getLogger(__name__)

GRAPHICAL_TARGET = "graphical.target"
DISPLAY_MANAGERS = ("gdm", "sddm", "lightdm", "lxdm")
REBOOT_PROMPT = "[?] Workstation detected. Reboot now? [y/N]: "
AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})


class HostRole(Enum):
    """Detected role of the host."""

    WORKSTATION = "workstation"
    SERVER = "server"


class RebootDecision(Enum):
    """What happened at the end of the run."""

    AUTO_REBOOT = "auto_reboot"
    PROMPTED_REBOOT = "prompted_reboot"
    SKIPPED = "skipped"


def classify_role(default_target: str, display_manager_present: bool) -> HostRole:
    """Classify a host from its default target and display managers.

    Examples
    --------
    >>> classify_role("graphical.target", False)
    <HostRole.WORKSTATION: 'workstation'>
    >>> classify_role("multi-user.target", False)
    <HostRole.SERVER: 'server'>
    """

    if default_target == GRAPHICAL_TARGET or display_manager_present:
        return HostRole.WORKSTATION
    return HostRole.SERVER


def read_default_target(runner: CommandRunner) -> str:
    """Return the systemd default target, or ``unknown`` when it cannot be read."""

    result = runner.run("systemctl", "get-default")
    if not result.success:
        return "unknown"
    return result.stdout.strip() or "unknown"


def find_display_manager(runner: CommandRunner) -> str | None:
    """Return the first display manager that is enabled or active."""

    for manager in DISPLAY_MANAGERS:
        unit = f"{manager}.service"
        if runner.run("systemctl", "is-enabled", unit).success:
            return manager
        if runner.run("systemctl", "is-active", unit).success:
            return manager
    return None


def detect_role(runner: CommandRunner) -> HostRole:
    """Probe systemd and classify the host."""

    default_target = read_default_target(runner)
    manager = find_display_manager(runner)
    role = classify_role(default_target, manager is not None)
    logger.info(
        "Default target: %s; display manager: %s; role: %s",
        default_target,
        manager or "none",
        role.value,
    )
    return role


def is_affirmative(answer: str) -> bool:
    """Return ``True`` for ``y``/``yes`` in any case.

    Examples
    --------
    >>> is_affirmative(" YES "), is_affirmative(""), is_affirmative("no")
    (True, False, False)
    """

    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def _ask(prompt: Callable[[str], str]) -> str:
    try:
        return prompt(REBOOT_PROMPT)
    except EOFError:
        logger.info("No answer available on stdin.")
        return ""


def print_summary(role: HostRole, log_file: Path) -> None:
    """Write the completion summary to the console and the run log."""

    for line in (
        "=============================================",
        " AD domain join completed successfully!",
        f" Detected role: {role.value}",
        f" Logs saved to: {log_file}",
        "=============================================",
    ):
        logger.info(line, extra=PLAIN)


def finalize_and_reboot(
    role: HostRole,
    runner: CommandRunner,
    report: JoinReport,
    *,
    prompt: Callable[[str], str],
    sleep: Callable[[float], None],
    delay: float,
) -> RebootDecision:
    """Reboot a server automatically or ask before rebooting a workstation."""

    if role is HostRole.SERVER:
        logger.info("Server detected: rebooting automatically...")
        sleep(delay)
        report.tolerate("reboot", runner.run("reboot"))
        return RebootDecision.AUTO_REBOOT

    if not is_affirmative(_ask(prompt)):
        logger.info("Skipping reboot. Please reboot later.")
        return RebootDecision.SKIPPED
    report.tolerate("reboot", runner.run("reboot"))
    return RebootDecision.PROMPTED_REBOOT


__all__ = [
    "DISPLAY_MANAGERS",
    "GRAPHICAL_TARGET",
    "REBOOT_PROMPT",
    "HostRole",
    "RebootDecision",
    "classify_role",
    "detect_role",
    "finalize_and_reboot",
    "find_display_manager",
    "is_affirmative",
    "print_summary",
    "read_default_target",
]
