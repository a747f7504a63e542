"""Schema service manager for joinpath-mcp.

Provides a singleton `SchemaService` with background initialization during
FastMCP lifespan. Ensures exactly-once startup per process and fast-fails
tool calls while initialization is still running.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
import hashlib
import threading
import time
from typing import ClassVar

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from joinpath_mcp.schema_tools.exceptions import SchemaExplorerError
from joinpath_mcp.services.config_service import ConfigService
from joinpath_mcp.services.schema_service import SchemaService
from joinpath_mcp.services.state import (
    INIT_NOT_READY_PHASES,
    SchemaInitPhase,
    SchemaInitState,
)


class SchemaServiceManager:
    """Singleton manager for the process-wide SchemaService.

    The service is created once, in a background thread started from the
    FastMCP lifespan, and shared by every tool call afterwards. The service
    itself keeps no schema cache; each join request reflects a fresh
    snapshot.
    """

    _instance: ClassVar[SchemaServiceManager | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        """Initialize the schema service manager."""
        self._schema_service: SchemaService | None = None
        self._logger = get_logger(__name__)

        self._thread_lock = threading.Lock()
        self._init_thread: threading.Thread | None = None
        self._thread_ready = threading.Event()
        self._state = SchemaInitState(phase=SchemaInitPhase.IDLE)

    @classmethod
    def get_instance(cls) -> SchemaServiceManager:
        """Get the singleton instance of SchemaServiceManager.

        Returns:
            SchemaServiceManager: The singleton instance
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        with cls._lock:
            cls._instance = None

    def start_background_initialization(self) -> None:
        """Start background initialization exactly once without blocking."""
        with self._thread_lock:
            if self._state.phase in {
                SchemaInitPhase.STARTING,
                SchemaInitPhase.RUNNING,
                SchemaInitPhase.READY,
            }:
                self._logger.debug("Initialization already %s; skipping start", self._state.phase)
                return
            if self._state.phase in {SchemaInitPhase.FAILED, SchemaInitPhase.STOPPED}:
                self._logger.warning(
                    "Initialization in phase %s; not restarting", self._state.phase
                )
                return

            self._state = replace(
                self._state, phase=SchemaInitPhase.STARTING, started_at=time.time()
            )
            self._thread_ready.clear()

            self._init_thread = threading.Thread(
                target=self._run_initialization, name="schema-init", daemon=True
            )
            self._init_thread.start()

    async def ensure_ready(self, wait_timeout: float | None = None) -> bool:
        """Wait for initialization completion.

        Returns True when READY. Returns False on timeout or FAILED.
        """
        phase = self._state.phase
        if phase is SchemaInitPhase.READY:
            return True
        if phase is SchemaInitPhase.FAILED:
            return False
        await asyncio.to_thread(self._thread_ready.wait, wait_timeout)
        return self._state.phase is SchemaInitPhase.READY

    async def get_schema_service(self) -> SchemaService:
        """Get the initialized SchemaService instance.

        Raises:
            RuntimeError: If the service is not initialized or initialization failed
        """
        phase = self._state.phase
        if phase in INIT_NOT_READY_PHASES:
            self._logger.info("SchemaService requested while initializing (phase=%s)", phase)
            msg = "SchemaService initialization in progress"
            raise RuntimeError(msg)
        if phase is SchemaInitPhase.FAILED:
            self._logger.error(
                "SchemaService initialization previously failed: %s", self._state.error_message
            )
            msg = "SchemaService is not available due to initialization failure"
            raise RuntimeError(msg)
        if phase is SchemaInitPhase.STOPPED:
            msg = "SchemaService has been stopped"
            raise RuntimeError(msg)

        if self._schema_service is None:
            error_msg = "SchemaService instance is unexpectedly None"
            raise RuntimeError(error_msg)
        return self._schema_service

    async def shutdown(self) -> None:
        """Shutdown the SchemaService and dispose of its engine."""
        with self._thread_lock:
            service = self._schema_service
            self._schema_service = None
            self._state = replace(self._state, phase=SchemaInitPhase.STOPPED)
        if service is not None:
            self._logger.info("Shutting down SchemaService…")
            service.engine.dispose()
            self._logger.info("SchemaService shutdown completed")

    def status(self) -> SchemaInitState:
        """Return a snapshot of the initialization state."""
        return self._state

    # ---- internal ------------------------------------------------------------
    def _run_initialization(self) -> None:
        self._state = replace(self._state, phase=SchemaInitPhase.RUNNING)
        try:
            self._initialize_sync()
        except (ValueError, OSError, SQLAlchemyError, SchemaExplorerError) as exc:
            self._state = replace(
                self._state,
                phase=SchemaInitPhase.FAILED,
                error_message=str(exc),
                completed_at=time.time(),
                attempts=self._state.attempts + 1,
            )
            self._logger.exception("SchemaService initialization failed")
        else:
            self._state = replace(
                self._state,
                phase=SchemaInitPhase.READY,
                completed_at=time.time(),
                attempts=self._state.attempts + 1,
            )
        finally:
            self._thread_ready.set()

    def _initialize_sync(self) -> None:
        """Perform synchronous initialization work. Runs in background thread."""
        self._logger.info("Starting SchemaService initialization…")

        database_url = ConfigService.get_database_url()
        fp = hashlib.sha256(database_url.encode("utf-8")).hexdigest()[:10]
        self._logger.debug("Using database fingerprint: %s", fp)

        engine = ConfigService.create_database_engine(database_url)

        self._logger.debug("Testing database connectivity…")
        with engine.connect() as conn:
            conn.execute(sa.text("SELECT 1"))

        service = SchemaService(
            engine,
            ConfigService.get_resolver_config(),
            sample_rows=ConfigService.sample_rows(),
        )
        # Resolve dialect and default schema up front
        self._logger.info(
            "Connected to %s (default schema '%s')",
            service.dialect.name,
            service.dialect.default_schema,
        )
        self._schema_service = service
