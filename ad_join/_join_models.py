"""Immutable values threaded through the join workflow."""

from __future__ import annotations

from dataclasses import dataclass, field

USAGE = (
    "Usage: join-domain <domain> <admin_user> <admin_pass> <hostname> "
    "<users_csv_or_none> <groups_csv_or_none>"
)
ARGUMENT_COUNT = 6


@dataclass(frozen=True, slots=True)
class HostFacts:
    """Facts about the host captured once during preflight."""

    os_id: str
    os_version: str
    os_like: tuple[str, ...]
    has_systemd: bool
    hostname: str


@dataclass(frozen=True, slots=True)
class DomainJoinRequest:
    """The six positional inputs of a join run."""

    domain: str
    admin_user: str
    admin_password: str = field(repr=False)
    hostname: str
    raw_users: str
    raw_groups: str

    @property
    def realm(self) -> str:
        """Return the Kerberos realm for :attr:`domain`.

        Examples
        --------
        >>> DomainJoinRequest("example.com", "admin", "pw", "host", "none", "none").realm
        'EXAMPLE.COM'
        """

        return self.domain.upper()

    @classmethod
    def from_arguments(cls, arguments: tuple[str, ...]) -> DomainJoinRequest:
        """Build a request from exactly six positional arguments."""

        domain, admin_user, admin_password, hostname, raw_users, raw_groups = arguments
        return cls(
            domain=domain,
            admin_user=admin_user,
            admin_password=admin_password,
            hostname=hostname,
            raw_users=raw_users,
            raw_groups=raw_groups,
        )


__all__ = ["ARGUMENT_COUNT", "USAGE", "DomainJoinRequest", "HostFacts"]
