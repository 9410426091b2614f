"""Exceptions raised while bundling an instance."""

from __future__ import annotations


class BundleError(RuntimeError):
    """Raised when a bundle run cannot complete."""


class ToolchainMissing(BundleError):
    """Raised when the remote host has no bundling toolchain installed."""


class ConfigError(BundleError, ValueError):
    """Raised for missing or unreadable configuration."""


class RemoteCommandError(BundleError):
    """Raised when a remote command exits with a non-zero status.

    ``command`` is the command as run. The message is built from ``display``
    when given, so commands carrying credentials can be reported masked.
    """

    def __init__(self, command: str, exit_status: int, stderr: str = "", display: str | None = None) -> None:
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        super().__init__(f"Remote command failed ({exit_status}): {display or command}")
