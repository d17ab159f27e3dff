"""Command execution and per-step outcome tracking for the join workflow."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from plumbum import local
from plumbum.commands.processes import CommandNotFound

from ._errors import DomainJoinError

logger = logging.getLogger(__name__)

# Shell convention for "command not found".
MISSING_COMMAND_EXIT = 127


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of an external command execution."""

    argv: tuple[str, ...]
    return_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        """Return ``True`` when the command exited with status 0.

        Examples
        --------
        >>> CommandResult(("true",), 0).success
        True
        """

        return self.return_code == 0


class CommandRunner:
    """Run host commands through :data:`plumbum.local`.

    Non-zero exit statuses are returned rather than raised so each step can
    decide whether a failure is tolerated or fatal.
    """

    def run(
        self,
        command: str,
        *args: str,
        stdin: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Execute *command* with *args* and return its result.

        Examples
        --------
        >>> CommandRunner().run("printf", "hello").stdout
        'hello'
        """

        argv = (command, *args)
        try:
            bound = local[command][list(args)]
        except CommandNotFound:
            logger.debug("Command not found: %s", command)
            return CommandResult(
                argv, MISSING_COMMAND_EXIT, "", f"{command}: command not found"
            )
        if env:
            bound = bound.with_env(**env)
        if stdin is not None:
            bound = bound << stdin
        logger.debug("Running: %s", " ".join(argv))
        return_code, stdout, stderr = bound.run(retcode=None)
        return CommandResult(argv, return_code, stdout, stderr)

    def which(self, command: str) -> bool:
        """Return ``True`` when *command* is available on ``PATH``."""

        try:
            local.which(command)
        except CommandNotFound:
            return False
        return True


class StepOutcome(Enum):
    """Outcome of a single workflow step."""

    SUCCESS = "success"
    TOLERATED_FAILURE = "tolerated_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass(frozen=True, slots=True)
class StepRecord:
    """Recorded outcome of a named workflow step."""

    name: str
    outcome: StepOutcome
    detail: str = ""


@dataclass(slots=True)
class JoinReport:
    """Ordered record of every step attempted during a run."""

    steps: list[StepRecord] = field(default_factory=list)

    def record(
        self, name: str, outcome: StepOutcome, detail: str = ""
    ) -> StepRecord:
        """Append and return a :class:`StepRecord`.

        Examples
        --------
        >>> report = JoinReport(); report.record("set-hostname", StepOutcome.SUCCESS).name
        'set-hostname'
        """

        entry = StepRecord(name, outcome, detail)
        self.steps.append(entry)
        return entry

    def tolerate(self, name: str, result: CommandResult) -> StepRecord:
        """Record *result* as a success or a tolerated failure."""

        if result.success:
            return self.record(name, StepOutcome.SUCCESS)
        detail = result.stderr.strip() or f"exit status {result.return_code}"
        logger.warning("%s failed (continuing): %s", name, detail)
        return self.record(name, StepOutcome.TOLERATED_FAILURE, detail)

    def tolerate_error(self, name: str, detail: str) -> StepRecord:
        """Record a tolerated failure that did not come from a command."""

        logger.warning("%s failed (continuing): %s", name, detail)
        return self.record(name, StepOutcome.TOLERATED_FAILURE, detail)

    @contextmanager
    def fatal_step(self, name: str) -> Iterator[None]:
        """Record *name* as fatal when the wrapped block raises.

        Examples
        --------
        >>> report = JoinReport()
        >>> with report.fatal_step("discover-realm"):
        ...     pass
        >>> report.outcome_of("discover-realm")
        <StepOutcome.SUCCESS: 'success'>
        """

        try:
            yield
        except DomainJoinError as exc:
            self.record(name, StepOutcome.FATAL_FAILURE, str(exc))
            raise
        self.record(name, StepOutcome.SUCCESS)

    def outcome_of(self, name: str) -> StepOutcome | None:
        """Return the outcome of the last step called *name*, if any."""

        for entry in reversed(self.steps):
            if entry.name == name:
                return entry.outcome
        return None

    def names(self) -> list[str]:
        """Return step names in execution order."""

        return [entry.name for entry in self.steps]

    def tolerated(self) -> list[StepRecord]:
        """Return every step that failed without aborting the run."""

        return [
            entry
            for entry in self.steps
            if entry.outcome is StepOutcome.TOLERATED_FAILURE
        ]


__all__ = [
    "MISSING_COMMAND_EXIT",
    "CommandResult",
    "CommandRunner",
    "JoinReport",
    "StepOutcome",
    "StepRecord",
]
