"""
Safe execution of agent-browser commands.

The executable is always started with an argument vector, never through a
shell, so URLs and queries embedded in arguments cannot be interpreted as
shell syntax. Each call has its own timeout and a cap on captured output.
"""

import asyncio
import logging
import os
import shlex
from typing import Protocol, Sequence

from ..errors import ExecutionError

logger = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 64 * 1024
_KILL_GRACE_SECONDS = 5.0


class Runner(Protocol):
    async def run(self, args: Sequence[str], timeout: float | None = None) -> str: ...


class _OutputLimitExceeded(Exception):
    pass


class CommandRunner:
    """
    Runs the browser executable and returns its stdout.

    Args:
        executable: Program name or path (resolved through PATH)
        default_timeout: Seconds allowed when a call does not pass its own
        max_output_bytes: Cap applied separately to stdout and stderr
    """

    def __init__(
        self,
        executable: str = "agent-browser",
        default_timeout: float = 30.0,
        max_output_bytes: int = 10 * 1024 * 1024,
    ):
        self.executable = executable
        self.default_timeout = default_timeout
        self.max_output_bytes = max_output_bytes

    async def run(self, args: Sequence[str], timeout: float | None = None) -> str:
        """
        Run ``executable *args`` and return decoded stdout.

        Args:
            args: Arguments, each passed to the process as one literal token
            timeout: Seconds before the process is killed

        Returns:
            Standard output decoded as UTF-8

        Raises:
            ExecutionError: On non-zero exit, timeout, oversized output, or if
                the executable cannot be started
        """
        args = [str(a) for a in args]
        if timeout is None:
            timeout = self.default_timeout
        logger.info("Executing: %s", shlex.join([self.executable, *args]))

        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=dict(os.environ),
            )
        except OSError as e:
            logger.error("Could not start %s: %s", self.executable, e)
            raise ExecutionError(args, f"could not start {self.executable}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(self._collect(process), timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.error("Command timed out after %ss: %s", timeout, args)
            raise ExecutionError(args, f"timed out after {timeout}s") from None
        except _OutputLimitExceeded:
            await self._kill(process)
            logger.error(
                "Command output exceeded %d bytes: %s", self.max_output_bytes, args
            )
            raise ExecutionError(
                args, f"output exceeded {self.max_output_bytes} bytes"
            ) from None

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")
        if process.returncode != 0:
            logger.error(
                "Command failed: args=%s code=%s stderr=%s",
                args,
                process.returncode,
                stderr_text.strip(),
            )
            raise ExecutionError(
                args,
                f"exit status {process.returncode}",
                returncode=process.returncode,
                stderr=stderr_text,
            )
        if stderr_text.strip():
            logger.warning("stderr: %s", stderr_text.strip())
        return stdout_text

    async def _collect(self, process: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
        readers = [
            asyncio.ensure_future(self._read_capped(process.stdout)),
            asyncio.ensure_future(self._read_capped(process.stderr)),
        ]
        try:
            stdout, stderr = await asyncio.gather(*readers)
        finally:
            for reader in readers:
                reader.cancel()
        await process.wait()
        return stdout, stderr

    async def _read_capped(self, stream: asyncio.StreamReader) -> bytes:
        chunks = []
        size = 0
        while chunk := await stream.read(_READ_CHUNK_SIZE):
            size += len(chunk)
            if size > self.max_output_bytes:
                raise _OutputLimitExceeded()
            chunks.append(chunk)
        return b"".join(chunks)

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        try:
            await asyncio.wait_for(self._drain(process), _KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Process %s did not exit after kill", process.pid)

    @staticmethod
    async def _drain(process: asyncio.subprocess.Process) -> None:
        # Unread pipe data keeps the transport paused; discard it until EOF.
        for stream in (process.stdout, process.stderr):
            while await stream.read(_READ_CHUNK_SIZE):
                pass
        await process.wait()
