"""Recording stand-in for :class:`ad_join._commands.CommandRunner`."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from ad_join._commands import CommandResult


@dataclass(frozen=True, slots=True)
class Invocation:
    argv: tuple[str, ...]
    stdin: str | None = None
    env: dict[str, str] | None = None


class FakeRunner:
    """Record invocations and answer them from prefix-matched responses.

    Unmatched commands succeed with empty output. By default the host looks
    headless: ``systemctl get-default`` reports ``multi-user.target`` and no
    display manager unit is enabled or active.
    """

    def __init__(self, *, missing: Iterable[str] = ()) -> None:
        self.calls: list[Invocation] = []
        self.missing = set(missing)
        self.observers: list[Callable[[tuple[str, ...]], None]] = []
        self._responses: list[tuple[tuple[str, ...], int, str, str]] = []
        self.respond("systemctl", "get-default", stdout="multi-user.target\n")
        self.respond("systemctl", "is-enabled", return_code=1)
        self.respond("systemctl", "is-active", return_code=3)

    def respond(
        self,
        *prefix: str,
        return_code: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> FakeRunner:
        """Answer commands starting with *prefix*; newer responses win."""

        self._responses.insert(0, (prefix, return_code, stdout, stderr))
        return self

    def fail(self, *prefix: str, stderr: str = "boom") -> FakeRunner:
        return self.respond(*prefix, return_code=1, stderr=stderr)

    def run(
        self,
        command: str,
        *args: str,
        stdin: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv = (command, *args)
        self.calls.append(Invocation(argv, stdin, dict(env) if env else None))
        for observer in self.observers:
            observer(argv)
        for prefix, return_code, stdout, stderr in self._responses:
            if argv[: len(prefix)] == prefix:
                return CommandResult(argv, return_code, stdout, stderr)
        return CommandResult(argv, 0)

    def which(self, command: str) -> bool:
        return command not in self.missing

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [call.argv for call in self.calls]

    def matching(self, *prefix: str) -> list[tuple[str, ...]]:
        return [argv for argv in self.argvs if argv[: len(prefix)] == prefix]

    def index(self, *argv: str) -> int:
        return self.argvs.index(argv)
