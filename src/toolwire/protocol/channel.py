"""Channels: line-delimited message streams between client and server.

Each channel satisfies the :class:`Channel` protocol, providing ``connect``,
``send``, ``receive`` and ``close``. A channel moves whole lines; framing
and JSON handling live in :mod:`toolwire.protocol.messages`.
"""

from __future__ import annotations

import asyncio
import shlex
import sys
from typing import Protocol, TextIO, runtime_checkable

from toolwire.protocol.errors import ChannelClosedError, ChannelError
from toolwire.protocol.messages import MAX_MESSAGE_SIZE


@runtime_checkable
class Channel(Protocol):
    """Abstract bidirectional line channel."""

    @property
    def closed(self) -> bool: ...
    async def connect(self) -> None: ...
    async def send(self, line: str) -> None: ...
    async def receive(self) -> str: ...
    async def close(self) -> None: ...


class StdioChannel:
    """Talks to a subprocess over its stdin/stdout.

    Sends and receives newline-delimited lines. The child's stderr is
    discarded unless ``stderr`` is given (any value accepted by
    :func:`asyncio.create_subprocess_exec`).
    """

    def __init__(
        self,
        command: str,
        env: dict[str, str] | None = None,
        *,
        stderr: int | None = asyncio.subprocess.DEVNULL,
    ) -> None:
        self._command = command
        self._env = env
        self._stderr = stderr
        self._process: asyncio.subprocess.Process | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        """Launch the subprocess."""
        parts = shlex.split(self._command)
        if not parts:
            msg = "StdioChannel requires a non-empty command"
            raise ValueError(msg)
        try:
            self._process = await asyncio.create_subprocess_exec(
                *parts,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=self._stderr,
                env=self._env,
                limit=MAX_MESSAGE_SIZE + 1,
            )
        except OSError as exc:
            raise ChannelError(f"Cannot start {self._command!r}: {exc}") from exc

    async def send(self, line: str) -> None:
        """Write one line to the child's stdin."""
        if self._closed:
            raise ChannelClosedError()
        if self._process is None or self._process.stdin is None:
            msg = "Channel not connected"
            raise ChannelError(msg)
        try:
            self._process.stdin.write((line + "\n").encode())
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise ChannelClosedError(f"Peer closed: {exc}") from exc

    async def receive(self) -> str:
        """Read the next non-empty line from the child's stdout."""
        if self._process is None or self._process.stdout is None:
            msg = "Channel not connected"
            raise ChannelError(msg)
        while True:
            if self._closed:
                raise ChannelClosedError()
            try:
                raw = await self._process.stdout.readline()
            except (ValueError, asyncio.LimitOverrunError) as exc:
                raise ChannelError(f"Line too long: {exc}") from exc
            if not raw:
                raise ChannelClosedError("End of stream")
            line = raw.decode("utf-8", errors="replace").strip()
            if line:
                return line

    async def close(self, timeout: float = 5.0) -> None:
        """Close stdin, then wait for the child and terminate it if needed."""
        if self._closed:
            return
        self._closed = True
        process = self._process
        if process is None:
            return
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        try:
            await asyncio.wait_for(process.wait(), timeout)
        except TimeoutError:
            process.terminate()
            await process.wait()
        self._process = None


class TextStreamChannel:
    """Wraps a pair of text streams, by default this process's stdin/stdout.

    Used on the server side. Reads block, so they run in a worker thread.
    Nothing but protocol lines may be written to ``stdout``.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        self._closed = False

    async def send(self, line: str) -> None:
        if self._closed:
            raise ChannelClosedError()
        try:
            self._stdout.write(line + "\n")
            self._stdout.flush()
        except (BrokenPipeError, ValueError) as exc:
            raise ChannelClosedError(f"Output closed: {exc}") from exc

    async def receive(self) -> str:
        while True:
            if self._closed:
                raise ChannelClosedError()
            try:
                raw = await asyncio.to_thread(self._readline)
            except (OSError, ValueError) as exc:
                raise ChannelError(f"Read failed: {exc}") from exc
            if not raw:
                raise ChannelClosedError("End of stream")
            line = raw.strip()
            if line:
                return line

    def _readline(self) -> str:
        # Invalid UTF-8 decodes to U+FFFD; the line is then a parse error.
        buffer = getattr(self._stdin, "buffer", None)
        if buffer is None:
            return self._stdin.readline()
        return buffer.readline().decode("utf-8", errors="replace")

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stdout.flush()
        except (BrokenPipeError, ValueError):
            pass


_EOF = None


class MemoryChannel:
    """One end of an in-process channel pair.

    Usage::

        server_end, client_end = MemoryChannel.pair()
    """

    def __init__(self, inbox: asyncio.Queue[str | None], outbox: asyncio.Queue[str | None]) -> None:
        self._inbox = inbox
        self._outbox = outbox
        self._closed = False
        self._eof = False

    @classmethod
    def pair(cls) -> tuple[MemoryChannel, MemoryChannel]:
        """Return two connected endpoints."""
        a_to_b: asyncio.Queue[str | None] = asyncio.Queue()
        b_to_a: asyncio.Queue[str | None] = asyncio.Queue()
        return cls(inbox=b_to_a, outbox=a_to_b), cls(inbox=a_to_b, outbox=b_to_a)

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        if self._closed:
            raise ChannelClosedError()

    async def send(self, line: str) -> None:
        if self._closed or self._eof:
            raise ChannelClosedError()
        await self._outbox.put(line)

    async def receive(self) -> str:
        while True:
            if self._closed:
                raise ChannelClosedError()
            if self._eof:
                raise ChannelClosedError("End of stream")
            line = await self._inbox.get()
            if line is _EOF:
                self._eof = True
                continue
            if line.strip():
                return line.strip()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Wake the peer's reader and our own pending receive().
        await self._outbox.put(_EOF)
        await self._inbox.put(_EOF)
