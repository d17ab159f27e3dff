"""Realm discovery, join, and permit rules via ``realm`` (realmd).

Discovery and join are fatal steps. :class:`RealmSession` refuses to join
unless discovery succeeded on the same session, so a join is never attempted
against a realm that could not be found.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from ._commands import CommandRunner, JoinReport
from ._errors import DiscoveryError, JoinError
from ._join_models import DomainJoinRequest

logger = logging.getLogger(__name__)


class RealmState(Enum):
    """Progress of a realm session."""

    INIT = "init"
    DISCOVERED = "discovered"
    JOINED = "joined"


class RealmSession:
    """Drive ``realm discover`` and ``realm join`` for one request."""

    def __init__(self, request: DomainJoinRequest, runner: CommandRunner) -> None:
        self.request = request
        self.runner = runner
        self.state = RealmState.INIT

    def discover(self) -> None:
        """Discover the requested realm or raise :class:`DiscoveryError`."""

        logger.info("Discovering AD realm for %s...", self.request.domain)
        result = self.runner.run("realm", "discover", "-v", self.request.domain)
        if not result.success:
            logger.error("Realm discovery failed for %s.", self.request.domain)
            raise DiscoveryError("Realm discovery failed. Check DNS and network.")
        self.state = RealmState.DISCOVERED
        logger.info("Realm discovery successful.")

    def join(self) -> None:
        """Join the discovered realm or raise :class:`JoinError`.

        The admin password is written to ``realm join`` on stdin.
        """

        if self.state is not RealmState.DISCOVERED:
            raise JoinError("Refusing to join: realm discovery has not succeeded.")
        realm = self.request.realm
        logger.info(
            "Joining AD domain %s using account %s...", realm, self.request.admin_user
        )
        result = self.runner.run(
            "realm",
            "join",
            "--verbose",
            f"--user={self.request.admin_user}",
            realm,
            stdin=f"{self.request.admin_password}\n",
        )
        if not result.success:
            logger.error("Realm join failed for %s.", realm)
            raise JoinError("Realm join failed. Verify credentials and DNS/network.")
        self.state = RealmState.JOINED
        logger.info("Successfully joined AD domain %s.", realm)


def apply_realm_permits(
    users: Iterable[str],
    groups: Iterable[str],
    runner: CommandRunner,
    report: JoinReport,
) -> None:
    """Permit the whole realm, then each allowed user and group."""

    logger.info("Applying realm permit rules...")
    report.tolerate("permit-all", runner.run("realm", "permit", "--all"))
    for user in users:
        report.tolerate(f"permit-user:{user}", runner.run("realm", "permit", user))
    for group in groups:
        report.tolerate(
            f"permit-group:{group}", runner.run("realm", "permit", "-g", group)
        )
    logger.info("Realm permit rules applied (best-effort).")


__all__ = ["RealmSession", "RealmState", "apply_realm_permits"]
