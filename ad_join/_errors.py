"""Exception hierarchy for the domain join workflow.

Every error defined here is fatal: it aborts the run with exit status 1.
Auxiliary steps never raise these; their failures are recorded as tolerated
outcomes on the :class:`~ad_join._commands.JoinReport` instead.

Examples
--------
>>> raise DiscoveryError("Realm discovery failed. Check DNS and network.")
"""

from __future__ import annotations


class DomainJoinError(RuntimeError):
    """Base error for fatal domain join failures.

    Parameters
    ----------
    message
        Human-readable error message describing the failure.

    Examples
    --------
    >>> raise DomainJoinError("unexpected join failure")
    """


class ArgumentError(DomainJoinError):
    """Raised when the positional argument count is wrong."""


class PrivilegeError(DomainJoinError):
    """Raised when the tool is not running as root."""


class HostEnvironmentError(DomainJoinError):
    """Raised when systemd or the os-release file is unavailable.

    Examples
    --------
    >>> raise HostEnvironmentError("Cannot detect OS (no /etc/os-release)")
    """


class DiscoveryError(DomainJoinError):
    """Raised when ``realm discover`` fails."""


class JoinError(DomainJoinError):
    """Raised when ``realm join`` fails or is attempted out of order."""


__all__ = [
    "ArgumentError",
    "DiscoveryError",
    "DomainJoinError",
    "HostEnvironmentError",
    "JoinError",
    "PrivilegeError",
]
