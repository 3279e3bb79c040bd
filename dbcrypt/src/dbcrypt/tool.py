"""Facade running SQL against an encrypted database through the engine.

What:
  :class:`EncryptedSqlTool` owns one session at a time and exposes ``init``,
  ``create_encrypted_database``, the ``execute_*`` family and ``close``.

Why:
  Callers want "run this SQL, give me rows or a typed error" without knowing
  about binary staging, the shell protocol, CSV quirks or NULL sentinels.
  Wiring every stage here keeps each stage independently testable.

How:
  ``init`` selects the platform profile, resolves (or stages) the engine and
  builds the session plus its :class:`~dbcrypt.engine.process.EngineRunner`.
  Each execute call renders a command script, runs it, classifies the output,
  and, depending on the method, returns raw lines, a parsed table, or JSON.

Interfaces:
  :class:`EncryptedSqlTool`.

Invariants & Safety:
  - Execute calls outside an initialised session raise
    :class:`~dbcrypt.errors.NotInitializedError`.
  - Failures are raised to the caller as typed errors and never retried.
  - ``close`` is idempotent and never raises.
  - The passkey is never logged.
  - One instance is meant for single-threaded use.
"""
from __future__ import annotations

import os
import shutil
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from .config.loader import get_config
from .config.schema import ToolConfig
from .engine.platform import PlatformProfile, select_profile
from .engine.process import EngineRunner, ProcessExecutor, RawOutput
from .engine.protocol import CommandProtocolBuilder
from .engine.resolver import BinaryResolver, WhichFn
from .engine.staging import (
    PackageResourceProvider,
    ResourceProvider,
    ResourceStaging,
    default_working_directory,
)
from .errors import DbCryptError, NotInitializedError, ResourceExtractionError
from .output.classifier import Classification, OutcomeKind, OutputClassifier
from .output.parser import ResultTable, TabularResultParser
from .output.projector import JsonProjector
from .session import Session, SessionStatus, release_staged_files
from .utils.logging import JsonLogger, get_logger

RunnerFactory = Callable[[Session, PlatformProfile], EngineRunner]


class EncryptedSqlTool:
    """Run SQL statements against one encrypted database file."""

    def __init__(
        self,
        config: Optional[ToolConfig] = None,
        *,
        logger: Optional[JsonLogger] = None,
        platform_id: Optional[str] = None,
        resource_provider: Optional[ResourceProvider] = None,
        runner_factory: Optional[RunnerFactory] = None,
        which: WhichFn = shutil.which,
    ) -> None:
        self.config = config if config is not None else get_config()
        self.logger = logger if logger is not None else get_logger(self.config.logging.component)
        self.platform_id = platform_id
        engine = self.config.engine
        self.resolver = BinaryResolver(
            ResourceStaging(resource_provider or PackageResourceProvider()),
            binary_override=engine.binary_path,
            which=which,
        )
        self.builder = CommandProtocolBuilder(
            cipher_compatibility=engine.cipher_compatibility,
            null_sentinel=engine.null_sentinel,
        )
        self.classifier = OutputClassifier(
            wrong_key_phrases=self.config.classifier.wrong_key_phrases,
            error_prefixes=self.config.classifier.error_prefixes,
            null_sentinel=engine.null_sentinel,
        )
        self.parser = TabularResultParser(null_sentinel=engine.null_sentinel)
        self.projector = JsonProjector()
        self._runner_factory = runner_factory or self._process_runner
        self._session: Optional[Session] = None
        self._runner: Optional[EngineRunner] = None
        self._status = SessionStatus.UNINITIALIZED
        self._logging_enabled = self.config.logging.enabled

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def __enter__(self) -> "EncryptedSqlTool":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def init(self, database_path: Union[str, Path], passkey: str, enable_logging: bool = False) -> None:
        """Start a session for ``database_path`` unlocked with ``passkey``.

        Re-initialising replaces the live session after releasing its staged
        files. The passkey is not validated; an empty key reaches the engine,
        which reports it like any other wrong key.

        Raises:
          UnsupportedPlatformError: The host matches no platform profile.
          BinaryNotFoundError: No engine executable could be located.
          ResourceExtractionError: Staging the bundled engine failed.
        """

        if self._session is not None:
            self.close()
        self._logging_enabled = enable_logging or self.config.logging.enabled
        # The engine cwd is the working directory; pin relative paths to the
        # caller's cwd.
        path = Path(database_path).expanduser().absolute()
        self._log("info", "Initializing encrypted SQL tool", database_path=str(path), logging_enabled=enable_logging)

        try:
            profile = select_profile(self.platform_id)
            working_directory = default_working_directory(self.config.engine.work_dir_name)
            try:
                working_directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ResourceExtractionError(
                    f"Unable to create working directory {working_directory}: {exc}"
                ) from exc
            resolved = self.resolver.resolve(profile, working_directory)
        except DbCryptError as exc:
            self._log("error", "Engine resolution failed", kind=exc.kind.value, error=str(exc))
            raise

        session = Session(
            database_path=path,
            key=passkey,
            working_directory=working_directory,
            resolved_binary=resolved.binary,
            auxiliary_library=resolved.library,
            logging_enabled=self._logging_enabled,
            staged_files=resolved.staged_files,
        )
        self._runner = self._runner_factory(session, profile)
        self._session = session
        self._status = SessionStatus.INITIALIZED
        self._log(
            "info",
            "Engine resolved",
            platform=profile.name,
            binary=str(resolved.binary),
            staged=[str(item) for item in resolved.staged_files],
        )

    def create_encrypted_database(
        self,
        database_path: Union[str, Path],
        passkey: str,
        enable_logging: bool = False,
    ) -> None:
        """Initialise, ensure the file exists, and run the bootstrap statement.

        Raises:
          ResourceExtractionError: The database file could not be created.
          Any error of :meth:`init` or :meth:`execute_sql`.
        """

        self.init(database_path, passkey, enable_logging or self._logging_enabled)
        path = self._session.database_path
        if not path.exists():
            try:
                path.touch()
            except OSError as exc:
                self._log("error", "Database file creation failed", database_path=str(path), error=str(exc))
                raise ResourceExtractionError(f"Unable to create database file {path}: {exc}") from exc
            self._log("debug", "Database file created", database_path=str(path))
        self.execute_sql(self.config.bootstrap.statement)
        self._log("info", "Encrypted database initialized", database_path=str(path))

    def execute_sql(
        self,
        statement: str,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[str]:
        """Run ``statement`` and return the engine's raw output lines.

        Raises:
          NotInitializedError: No live session.
          WrongKeyError: The passkey does not open the database.
          StatementError: The engine reported any other failure.
          ProcessSpawnError, ProcessTimedOutError, InterruptedWaitError:
            Subprocess failures.
        """

        raw = self._run(statement, timeout, cancel_event)
        self._classify(raw)
        return raw.lines

    def execute_sql_as_string(self, statement: str, **kwargs: Any) -> str:
        return "\n".join(self.execute_sql(statement, **kwargs))

    def query(
        self,
        statement: str,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Union[ResultTable, str]:
        """Run ``statement`` and return a :class:`ResultTable`, or the engine's
        message text when the output is not tabular."""

        raw = self._run(statement, timeout, cancel_event)
        outcome = self._classify(raw)
        if outcome.kind is OutcomeKind.MESSAGE:
            self._log("debug", "Non-tabular output returned as message")
            return outcome.message
        table = self.parser.parse(outcome.body)
        self._log("debug", "Parsed result table", columns=len(table.headers), rows=len(table.rows))
        return table

    def execute_sql_as_json(self, statement: str, **kwargs: Any) -> str:
        """Run ``statement`` and return the result as a JSON document."""

        result = self.query(statement, **kwargs)
        if isinstance(result, str):
            return self.projector.project_message(result)
        return self.projector.project_table(result)

    def close(self) -> None:
        """Release staged files and discard the session. Never raises."""

        session = self._session
        if session is not None:
            self._log("info", "Closing encrypted SQL tool", database_path=str(session.database_path))
            for removed in release_staged_files(session.staged_files):
                self._log("debug", "Deleted staged file", path=str(removed))
            self._status = SessionStatus.CLOSED
        self._session = None
        self._runner = None

    def _run(
        self,
        statement: str,
        timeout: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> RawOutput:
        session = self._session
        runner = self._runner
        if session is None or runner is None:
            self._log("error", "Execute called without an initialized session")
            raise NotInitializedError("Call init() before executing SQL.")

        self._log("info", "Executing SQL statement", statement=statement)
        script = self.builder.build(session.key, statement)
        try:
            raw = runner.run(script, timeout=timeout, cancel_event=cancel_event)
        except DbCryptError as exc:
            self._log("error", "Engine run failed", kind=exc.kind.value, error=str(exc))
            raise
        self._log("info", "Engine run completed", exit_code=raw.exit_code, lines=len(raw.lines))
        return raw

    def _classify(self, raw: RawOutput) -> Classification:
        try:
            return self.classifier.classify(raw)
        except DbCryptError as exc:
            self._log("error", "Engine reported failure", kind=exc.kind.value, exit_code=exc.exit_code)
            raise

    def _process_runner(self, session: Session, profile: PlatformProfile) -> EngineRunner:
        return ProcessExecutor(
            session.resolved_binary,
            session.database_path,
            working_directory=session.working_directory,
            env=profile.augment_environment(os.environ, session.working_directory),
            default_timeout=self.config.engine.timeout_seconds,
        )

    def _log(self, level: str, message: str, **fields: Any) -> None:
        if self._logging_enabled:
            self.logger.log(level, message, extra=fields)
