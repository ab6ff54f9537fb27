"""
CommandResult — the structured outcome of an external command.

Collaborators that shell out (``op``, ``ubi``) return one of these
instead of raising on a non-zero exit.  Classification into the error
taxonomy happens at the collaborator boundary, from the exit status
first and the captured text second.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Result of one subprocess invocation.

    Never holds the environment it ran with: that is where tokens live.
    """

    argv: list[str] = Field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    timed_out: bool = False
    launch_error: str | None = None   # set when the process never started

    @property
    def ok(self) -> bool:
        """Whether the command ran and exited 0."""
        return self.returncode == 0 and not self.timed_out and self.launch_error is None

    @property
    def output(self) -> str:
        """Combined diagnostic text, stderr first."""
        parts = [p for p in (self.launch_error, self.stderr.strip(), self.stdout.strip()) if p]
        if self.timed_out and not parts:
            return "command timed out"
        return "\n".join(parts)

    @classmethod
    def success(cls, argv: list[str], stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a successful result."""
        return cls(argv=argv, returncode=0, stdout=stdout, **kwargs)

    @classmethod
    def failure(
        cls,
        argv: list[str],
        stderr: str = "",
        returncode: int = 1,
        **kwargs: Any,
    ) -> CommandResult:
        """Create a failed result."""
        return cls(argv=argv, returncode=returncode, stderr=stderr, **kwargs)
