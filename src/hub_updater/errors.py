"""Exception types raised by the update pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hub_updater.runner import CommandResult


class HubUpdaterError(Exception):
    """Base class for all hub-updater errors."""


class ConfigurationError(HubUpdaterError):
    """Raised when command-line flags are missing or invalid."""


class PreconditionError(HubUpdaterError):
    """Raised when the environment is not fit for an update (nothing is mutated)."""


class CommandFailedError(HubUpdaterError):
    """Raised when an external command in a fail-fast step does not succeed."""

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        super().__init__(f"command failed ({result.describe_failure()}): {result.command_line}")
