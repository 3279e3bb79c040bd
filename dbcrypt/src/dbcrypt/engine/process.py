"""Subprocess execution of one command script against the engine.

What:
  Spawn the engine with the database path as its only argument, write the
  command script to its stdin, drain merged stdout/stderr, and wait for exit.

Why:
  The engine is an external program speaking a text protocol. Writing and
  reading on the same thread can deadlock once either pipe buffer fills, and a
  hung engine must not hang the caller when a timeout or cancellation is
  requested.

How:
  A writer thread feeds the script and closes stdin; a reader thread collects
  output until EOF; the calling thread waits for the process, polling the
  optional deadline and cancellation event. Whatever happens, the process is
  killed on abnormal exit and both threads are joined before returning.

Interfaces:
  :class:`RawOutput`, :class:`EngineRunner`, :class:`ProcessExecutor`.

Invariants & Safety:
  - Exactly one engine process per :meth:`ProcessExecutor.run` call, fully
    joined before the call returns or raises.
  - No partial output is returned on timeout or cancellation.
  - Errors from the writer or reader thread are raised, never dropped.
"""
from __future__ import annotations

import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol

from ..errors import (
    InterruptedWaitError,
    ProcessSpawnError,
    ProcessTimedOutError,
    StatementError,
)
from .protocol import CommandScript

_READ_CHUNK = 65536


@dataclass(frozen=True)
class RawOutput:
    """Merged engine output and exit status for one invocation."""

    text: str
    exit_code: int

    @property
    def lines(self) -> List[str]:
        if not self.text:
            return []
        lines = [line[:-1] if line.endswith("\r") else line for line in self.text.split("\n")]
        if lines and lines[-1] == "" and self.text.endswith("\n"):
            lines.pop()
        return lines


class EngineRunner(Protocol):
    """Request/response boundary to the engine."""

    def run(
        self,
        script: CommandScript,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RawOutput:
        ...


class ProcessExecutor:
    """Run command scripts through a real engine subprocess."""

    def __init__(
        self,
        binary: Path,
        database_path: Path,
        *,
        working_directory: Path,
        env: Optional[Mapping[str, str]] = None,
        default_timeout: Optional[float] = None,
        poll_interval: float = 0.05,
    ) -> None:
        self.binary = binary
        self.database_path = database_path
        self.working_directory = working_directory
        self.env = dict(env) if env is not None else None
        self.default_timeout = default_timeout
        self.poll_interval = poll_interval

    def run(
        self,
        script: CommandScript,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RawOutput:
        """Execute ``script`` and return the merged output.

        Raises:
          ProcessSpawnError: The binary could not be started.
          ProcessTimedOutError: ``timeout`` elapsed; the process was killed.
          InterruptedWaitError: ``cancel_event`` was set; the process was killed.
          StatementError: Writing the script or reading output failed.
        """

        effective_timeout = timeout if timeout is not None else self.default_timeout
        argv = [str(self.binary), str(self.database_path)]
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(self.working_directory),
                env=self.env,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as exc:
            raise ProcessSpawnError(f"Unable to start engine {self.binary}: {exc}") from exc

        chunks: List[bytes] = []
        failures: Dict[str, OSError] = {}

        def _feed() -> None:
            try:
                process.stdin.write(script.render())
                process.stdin.flush()
            except OSError as exc:
                failures["write"] = exc
            finally:
                try:
                    process.stdin.close()
                except OSError as exc:
                    failures.setdefault("write", exc)

        def _drain() -> None:
            try:
                for chunk in iter(lambda: process.stdout.read(_READ_CHUNK), b""):
                    chunks.append(chunk)
            except OSError as exc:
                failures["read"] = exc

        writer = threading.Thread(target=_feed, name="dbcrypt-engine-writer", daemon=True)
        reader = threading.Thread(target=_drain, name="dbcrypt-engine-reader", daemon=True)
        writer.start()
        reader.start()
        try:
            exit_code = self._wait(process, effective_timeout, cancel_event)
        except BaseException:
            self._kill(process)
            raise
        finally:
            writer.join()
            reader.join()
            process.stdout.close()

        text = b"".join(chunks).decode("utf-8", errors="replace")
        output = RawOutput(text=text, exit_code=exit_code)
        if "read" in failures:
            raise StatementError(
                f"Failed reading engine output: {failures['read']}",
                exit_code=exit_code,
                diagnostic_lines=output.lines,
            )
        if "write" in failures:
            raise StatementError(
                f"Failed writing command script to engine: {failures['write']}",
                exit_code=exit_code,
                diagnostic_lines=output.lines,
            )
        return output

    def _wait(
        self,
        process: subprocess.Popen,
        timeout: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> int:
        if timeout is None and cancel_event is None:
            return process.wait()
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return process.wait(timeout=self.poll_interval)
            except subprocess.TimeoutExpired:
                pass
            if cancel_event is not None and cancel_event.is_set():
                raise InterruptedWaitError("Engine wait cancelled by caller")
            if deadline is not None and time.monotonic() >= deadline:
                raise ProcessTimedOutError(f"Engine did not finish within {timeout} seconds")

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        if process.poll() is None:
            try:
                process.kill()
            except ProcessLookupError:  # exited between poll and kill
                pass
        process.wait()
