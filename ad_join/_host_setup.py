"""Time synchronisation and hostname steps."""

from __future__ import annotations

import logging

from ._commands import CommandRunner, JoinReport, StepOutcome

logger = logging.getLogger(__name__)

TIME_SYNC_SERVICES = ("chronyd", "systemd-timesyncd")


def configure_time_sync(runner: CommandRunner, report: JoinReport) -> str | None:
    """Enable NTP and the first time-sync service that starts.

    Returns the enabled service name, or ``None`` when neither could be
    enabled.
    """

    logger.info("Configuring time sync...")
    report.tolerate("time-sync:set-ntp", runner.run("timedatectl", "set-ntp", "true"))

    failures: list[str] = []
    for service in TIME_SYNC_SERVICES:
        result = runner.run("systemctl", "enable", "--now", service)
        if result.success:
            report.record("time-sync:service", StepOutcome.SUCCESS, service)
            logger.info("Time sync configured (%s).", service)
            return service
        failures.append(service)
    report.tolerate_error(
        "time-sync:service", f"could not enable {' or '.join(failures)}"
    )
    return None


def set_hostname(hostname: str, runner: CommandRunner, report: JoinReport) -> bool:
    """Apply *hostname* with ``hostnamectl``."""

    logger.info("Setting hostname to: %s", hostname)
    result = runner.run("hostnamectl", "set-hostname", hostname)
    if not result.success:
        logger.warning(
            "Hostname could not be set to %s; the join will use the current name.",
            hostname,
        )
    return report.tolerate("set-hostname", result).outcome is StepOutcome.SUCCESS


__all__ = ["TIME_SYNC_SERVICES", "configure_time_sync", "set_hostname"]
