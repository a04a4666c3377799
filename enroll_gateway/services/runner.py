"""
Bounded execution of external commands.
"""

import asyncio
import os
import shlex
import signal
from dataclasses import dataclass, field
from pathlib import Path

from enroll_gateway.core.exceptions import (
    ToolExecutionError,
    ToolOutputLimitError,
    ToolTimeoutError,
)
from enroll_gateway.core.logging import get_logger

logger = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024

# Seconds to keep reading output after the command itself has exited
_EXIT_GRACE = 1.0

# Seconds to wait for the process to be reaped after SIGKILL
_KILL_GRACE = 2.0

_POLL_INTERVAL = 0.05


@dataclass
class ToolOutput:
    """Captured output of a successful command."""

    stdout: str
    stderr: str
    exit_code: int = 0


@dataclass
class _OutputBuffer:
    """Collects both streams of a process under one combined byte limit."""

    limit: int
    total: int = 0
    stdout: list[bytes] = field(default_factory=list)
    stderr: list[bytes] = field(default_factory=list)

    async def drain(self, stream: asyncio.StreamReader, sink: list[bytes]) -> None:
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                return
            self.total += len(chunk)
            if self.total > self.limit:
                raise ToolOutputLimitError(
                    f"Command output exceeded {self.limit} bytes",
                    limit=self.limit,
                    stdout=self.decode(self.stdout),
                    stderr=self.decode(self.stderr),
                )
            sink.append(chunk)

    @staticmethod
    def decode(chunks: list[bytes]) -> str:
        return b"".join(chunks).decode("utf-8", errors="replace")


class SubprocessRunner:
    """
    Run external commands from a fixed working directory.

    The build CLI resolves its project configuration relative to the
    directory it is started from, so every command runs in working_dir.
    Each command gets its own process group so that helpers it spawns
    (npx starts node) are killed together with it.
    """

    def __init__(self, working_dir: Path):
        self._working_dir = Path(working_dir)

    @property
    def working_dir(self) -> Path:
        return self._working_dir

    async def run(
        self,
        args: list[str],
        timeout: float,
        max_output_bytes: int,
    ) -> ToolOutput:
        """
        Execute a command and capture its output.

        Args:
            args: Command and arguments (no shell involved)
            timeout: Wall-clock limit in seconds
            max_output_bytes: Limit on stdout and stderr combined

        Returns:
            Captured stdout and stderr

        Raises:
            ToolTimeoutError: If the command runs longer than timeout
            ToolOutputLimitError: If the command writes too much output
            ToolExecutionError: If the command cannot start or exits non-zero
        """
        command = shlex.join(args)
        logger.info(f"Executing: {command} (cwd={self._working_dir})")

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=self._working_dir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise ToolExecutionError(f"Failed to start {args[0]}: {e}")

        buffer = _OutputBuffer(limit=max_output_bytes)
        readers = [
            asyncio.create_task(buffer.drain(proc.stdout, buffer.stdout)),
            asyncio.create_task(buffer.drain(proc.stderr, buffer.stderr)),
        ]
        try:
            exit_code = await asyncio.wait_for(self._wait(proc, readers), timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.error(f"Command timed out after {timeout:g}s: {command}")
            raise ToolTimeoutError(
                f"Command timed out after {timeout:g}s: {command}",
                timeout=timeout,
                stdout=buffer.decode(buffer.stdout),
                stderr=buffer.decode(buffer.stderr),
            )
        except BaseException:
            await self._kill(proc)
            raise
        finally:
            for reader in readers:
                reader.cancel()

        stdout = buffer.decode(buffer.stdout)
        stderr = buffer.decode(buffer.stderr)

        if exit_code != 0:
            logger.error(f"Command failed (exit {exit_code}): {command}")
            message = f"Command failed (exit {exit_code}): {command}"
            if stderr.strip():
                message = f"{message}\n{stderr.strip()}"
            raise ToolExecutionError(message, exit_code=exit_code, stdout=stdout, stderr=stderr)

        return ToolOutput(stdout=stdout, stderr=stderr, exit_code=exit_code)

    async def _wait(self, proc: asyncio.subprocess.Process, readers: list[asyncio.Task]) -> int:
        """Wait for the command to exit, then briefly for the rest of its output."""
        exit_task = asyncio.create_task(self._wait_exit(proc))
        try:
            pending = {exit_task, *readers}
            while not exit_task.done():
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task is not exit_task:
                        task.result()

            unfinished = [reader for reader in readers if not reader.done()]
            if unfinished:
                done, still_open = await asyncio.wait(unfinished, timeout=_EXIT_GRACE)
                for task in done:
                    task.result()
                if still_open:
                    logger.warning(
                        f"Process {proc.pid} exited but its children still hold the output pipes"
                    )
                    self._kill_group(proc)

            return exit_task.result()
        finally:
            exit_task.cancel()

    @staticmethod
    async def _wait_exit(proc: asyncio.subprocess.Process) -> int:
        # returncode is set once the child is reaped, even while pipes stay open
        while proc.returncode is None:
            await asyncio.sleep(_POLL_INTERVAL)
        return proc.returncode

    @staticmethod
    def _kill_group(proc: asyncio.subprocess.Process) -> None:
        try:
            if hasattr(os, "killpg"):
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            pass

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        self._kill_group(proc)
        try:
            await asyncio.wait_for(self._wait_exit(proc), _KILL_GRACE)
        except asyncio.TimeoutError:
            logger.warning(f"Process {proc.pid} not reaped {_KILL_GRACE:g}s after SIGKILL")
