"""SSH client for the instance being bundled."""

from __future__ import annotations

import logging
import os
import posixpath
import shlex
import time
from typing import Callable

import paramiko

from .errors import RemoteCommandError

logger = logging.getLogger(__name__)

RECV_SIZE = 32768
POLL_INTERVAL = 0.1


class _LineBuffer:
    """Collects a byte stream and logs it one complete line at a time."""

    def __init__(self, log: Callable[[str], None]) -> None:
        self._log = log
        self._lines: list[str] = []
        self._partial = b""

    def feed(self, data: bytes) -> None:
        *complete, self._partial = (self._partial + data).split(b"\n")
        for raw in complete:
            self._emit(raw + b"\n")

    def _emit(self, raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace")
        self._lines.append(line)
        self._log(line.rstrip())

    def text(self) -> str:
        if self._partial:
            self._emit(self._partial)
            self._partial = b""
        return "".join(self._lines)


class SSHClient:
    """SSH client with SFTP upload support."""

    def __init__(
        self,
        host: str,
        user: str,
        log_callback: Callable[[str], None] | None = None,
        ssh_key_path: str = "",
        sudo_password: str = "",
        port: int = 22,
    ) -> None:
        self.host = host
        self.user = user
        self.sudo_password = sudo_password
        self._log = log_callback or logger.debug
        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        key_filename = os.path.expanduser(ssh_key_path) if ssh_key_path else None
        logger.info("Connecting to %s@%s:%s...", user, host, port)
        self.client.connect(
            hostname=host,
            port=port,
            username=user,
            key_filename=key_filename,
            allow_agent=True,
            look_for_keys=True,
            timeout=20,
        )
        self.sftp = self.client.open_sftp()

    def close(self) -> None:
        self.sftp.close()
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _exec(self, command: str) -> tuple[int, str, str]:
        stdin, stdout, _ = self.client.exec_command(command)
        if command.startswith("sudo -S"):
            stdin.write(self.sudo_password + "\n")
            stdin.flush()

        # Interleave both streams; a full stderr window blocks stdout.
        channel = stdout.channel
        out = _LineBuffer(self._log)
        err = _LineBuffer(self._log)
        while True:
            # Output sent before the exit status is already buffered once it is ready.
            finished = channel.exit_status_ready()
            received = False
            if channel.recv_ready():
                out.feed(channel.recv(RECV_SIZE))
                received = True
            if channel.recv_stderr_ready():
                err.feed(channel.recv_stderr(RECV_SIZE))
                received = True
            if received:
                continue
            if finished:
                break
            time.sleep(POLL_INTERVAL)

        exit_status = channel.recv_exit_status()
        return exit_status, out.text(), err.text()

    def _wrap(self, command: str, sudo: bool) -> str:
        wrapped = f"bash -lc {shlex.quote(command)}"
        if sudo:
            wrapped = f"sudo -S -p '' {wrapped}"
        return wrapped

    def run(self, command: str, sudo: bool = False, check: bool = True, display: str | None = None) -> str:
        """Run a command to completion and return its stdout.

        ``display`` replaces the command in the failure message.
        """
        exit_status, out, err = self._exec(self._wrap(command, sudo))
        if check and exit_status != 0:
            raise RemoteCommandError(command, exit_status, err, display=display)
        return out

    def run_status(self, command: str, sudo: bool = False) -> tuple[int, str]:
        exit_status, out, _ = self._exec(self._wrap(command, sudo))
        return exit_status, out

    def upload(self, local_path: str, remote_dir: str) -> str:
        """Copy a local file into remote_dir, keeping only its base name."""
        remote_path = posixpath.join(remote_dir, os.path.basename(local_path))
        self._log(f"Uploading {local_path} -> {remote_path}")
        self.sftp.put(os.path.expanduser(local_path), remote_path)
        return remote_path
