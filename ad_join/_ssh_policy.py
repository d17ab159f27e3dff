"""Enable SSH password logins for directory users."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ._commands import CommandRunner, JoinReport, StepOutcome

logger = logging.getLogger(__name__)

PASSWORD_AUTH_PATTERN = re.compile(
    r"^[# \t]*PasswordAuthentication[ \t]+.*$", re.MULTILINE
)
PASSWORD_AUTH_ENABLED = "PasswordAuthentication yes"
SSH_SERVICES = ("sshd", "ssh")


def enable_password_directive(text: str) -> str:
    """Rewrite every ``PasswordAuthentication`` line, commented or not.

    Examples
    --------
    >>> enable_password_directive("#PasswordAuthentication no\\nPort 22\\n")
    'PasswordAuthentication yes\\nPort 22\\n'
    """

    return PASSWORD_AUTH_PATTERN.sub(PASSWORD_AUTH_ENABLED, text)


def configure_sshd(sshd_config: Path, runner: CommandRunner, report: JoinReport) -> None:
    """Enable password authentication and reload the SSH daemon."""

    logger.info("Ensuring SSH password login enabled...")
    try:
        original = sshd_config.read_text(encoding="utf-8")
        sshd_config.write_text(enable_password_directive(original), encoding="utf-8")
    except OSError as exc:
        report.tolerate_error("sshd:config", str(exc))
    else:
        report.record("sshd:config", StepOutcome.SUCCESS, str(sshd_config))

    for service in SSH_SERVICES:
        result = runner.run("systemctl", "reload", service)
        if result.success:
            report.record("sshd:reload", StepOutcome.SUCCESS, service)
            break
    else:
        report.tolerate("sshd:reload", result)
    logger.info("SSHD config updated.")


__all__ = ["PASSWORD_AUTH_PATTERN", "configure_sshd", "enable_password_directive"]
