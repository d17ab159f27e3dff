"""Run the domain join steps in order.

The flow is strictly linear. Preflight, discovery, and join raise
:class:`~ad_join._errors.DomainJoinError` subclasses and abort the run;
every other step records its outcome on the :class:`JoinReport` and the
run continues. Nothing is rolled back after a fatal error.

Examples
--------
Join using the real host:

>>> import sys  # doctest: +SKIP
>>> from ad_join._host_config import load_host_paths  # doctest: +SKIP
>>> environment = JoinEnvironment(runner=CommandRunner(), paths=load_host_paths())  # doctest: +SKIP
>>> run_join(sys.argv[1:], environment)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ._access_control import AllowList, configure_sssd, enable_mkhomedir
from ._commands import CommandRunner, JoinReport
from ._host_config import HostPaths
from ._host_setup import configure_time_sync, set_hostname
from ._packages import install_packages
from ._preflight import (
    gather_host_facts,
    require_arguments,
    require_root,
    require_systemd,
)
from ._realm import RealmSession, apply_realm_permits
from ._role import HostRole, RebootDecision, detect_role, finalize_and_reboot, print_summary
from ._ssh_policy import configure_sshd

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JoinEnvironment:
    """Host collaborators used by a run; tests replace them with fakes."""

    runner: CommandRunner
    paths: HostPaths
    prompt: Callable[[str], str] = input
    sleep: Callable[[float], None] = time.sleep
    geteuid: Callable[[], int] = os.geteuid
    clock: Callable[[], float] = time.time


@dataclass(frozen=True, slots=True)
class JoinResult:
    """Final state of a completed run."""

    role: HostRole
    reboot: RebootDecision
    allow_list: AllowList
    report: JoinReport = field(repr=False)


def run_join(
    arguments: Sequence[str],
    environment: JoinEnvironment,
    report: JoinReport | None = None,
) -> JoinResult:
    """Enrol the host into the domain described by *arguments*.

    Parameters
    ----------
    arguments : Sequence[str]
        The six positional CLI arguments.
    environment : JoinEnvironment
        Command runner, paths, and injectable host hooks.
    report : JoinReport | None, optional
        Report to record step outcomes on; a new one is created when omitted.

    Returns
    -------
    JoinResult
        Detected role, reboot decision, allow-list, and step report.

    Raises
    ------
    DomainJoinError
        When a preflight check, discovery, or join fails.
    """

    report = report if report is not None else JoinReport()
    runner = environment.runner
    paths = environment.paths

    with report.fatal_step("preflight:root"):
        require_root(environment.geteuid)
    with report.fatal_step("preflight:arguments"):
        request = require_arguments(arguments)
    with report.fatal_step("preflight:systemd"):
        require_systemd(paths.systemd_dir)
    with report.fatal_step("preflight:os-release"):
        facts = gather_host_facts(paths.os_release)

    install_packages(facts, runner, report)
    configure_time_sync(runner, report)
    set_hostname(request.hostname, runner, report)

    session = RealmSession(request, runner)
    with report.fatal_step("discover-realm"):
        session.discover()
    with report.fatal_step("join-realm"):
        session.join()

    enable_mkhomedir(runner, report)
    allow_list = AllowList.from_request(request)
    allow_list.log_summary()
    configure_sssd(
        request,
        allow_list,
        paths.sssd_conf,
        paths.sssd_cache_dirs,
        runner,
        report,
        environment.clock,
    )
    apply_realm_permits(allow_list.users, allow_list.groups, runner, report)
    configure_sshd(paths.sshd_config, runner, report)

    role = detect_role(runner)
    print_summary(role, paths.log_file)
    tolerated = report.tolerated()
    if tolerated:
        logger.warning(
            "Completed with %d tolerated failure(s): %s",
            len(tolerated),
            ", ".join(entry.name for entry in tolerated),
        )
    decision = finalize_and_reboot(
        role,
        runner,
        report,
        prompt=environment.prompt,
        sleep=environment.sleep,
        delay=paths.reboot_delay,
    )
    return JoinResult(role=role, reboot=decision, allow_list=allow_list, report=report)


__all__ = ["JoinEnvironment", "JoinResult", "run_join"]
