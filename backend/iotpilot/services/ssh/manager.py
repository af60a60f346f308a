"""Async SSH connection management built on top of asyncssh."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Optional

import asyncssh

from iotpilot.core.metrics import SSH_SESSIONS_OPEN


class SSHSessionError(Exception):
    """Raised when establishing or using an SSH connection fails."""


class SSHTimeoutError(SSHSessionError):
    """Connect or command deadline exceeded."""


@dataclass(slots=True)
class SSHSessionConfig:
    connect_timeout: float = 15.0
    command_timeout: float = 60.0
    keepalive_interval: float = 30.0
    max_sessions: int = 32


@dataclass(slots=True)
class SSHCommandResult:
    command: str
    stdout: str
    stderr: str
    exit_status: int


class SSHConnection:
    """Wraps an asyncssh connection; commands on one connection run one at a time."""

    def __init__(
        self,
        session_id: str,
        connection: asyncssh.SSHClientConnection,
        manager: "SSHSessionManager",
        config: SSHSessionConfig,
    ) -> None:
        self.id = session_id
        self._conn = connection
        self._manager = manager
        self._config = config
        self._closed = asyncio.Event()
        self._command_lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def run_command(self, command: str, timeout: Optional[float] = None) -> SSHCommandResult:
        if self.closed:
            raise SSHSessionError("SSH session is closed")
        async with self._command_lock:
            try:
                result = await asyncio.wait_for(
                    self._conn.run(command, check=False),
                    timeout=timeout or self._config.command_timeout,
                )
            except asyncio.TimeoutError as exc:
                raise SSHTimeoutError("SSH command timed out") from exc
            except asyncssh.Error as exc:
                raise SSHSessionError(str(exc)) from exc

            exit_status = getattr(result, "exit_status", 0)
            return SSHCommandResult(
                command=command,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
                exit_status=exit_status if exit_status is not None else -1,
            )

    async def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._conn.close()
            await self._conn.wait_closed()
        finally:
            await self._manager.release(self.id)


class SSHSessionManager:
    """Caps concurrent connections and centralises connection creation."""

    def __init__(self, config: SSHSessionConfig) -> None:
        self._config = config
        self._lock = asyncio.Lock()
        self._sessions: dict[str, SSHConnection] = {}
        self._pending = 0

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[SSHConnection]:
        return self._sessions.get(session_id)

    async def open_session(
        self,
        *,
        host: str,
        username: str,
        password: Optional[str] = None,
        private_key: Optional[str] = None,
        port: int = 22,
        session_id: Optional[str] = None,
    ) -> SSHConnection:
        """Connect with password or private key auth, within the session cap."""
        session_id = session_id or str(uuid.uuid4())
        async with self._lock:
            if len(self._sessions) + self._pending >= self._config.max_sessions:
                raise SSHSessionError("Maximum number of SSH sessions reached")
            self._pending += 1

        options = {
            "host": host,
            "port": port,
            "username": username,
            "known_hosts": None,
            "keepalive_interval": self._config.keepalive_interval,
        }
        try:
            if private_key:
                try:
                    options["client_keys"] = [asyncssh.import_private_key(private_key)]
                except asyncssh.KeyImportError as exc:
                    raise SSHSessionError(f"Invalid SSH private key: {exc}") from exc
            else:
                options["password"] = password
                options["client_keys"] = None
            connection = await asyncio.wait_for(
                asyncssh.connect(**options),
                timeout=self._config.connect_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise SSHTimeoutError("SSH connection timed out") from exc
        except (asyncssh.Error, OSError) as exc:
            raise SSHSessionError(str(exc)) from exc
        finally:
            async with self._lock:
                self._pending -= 1

        session = SSHConnection(session_id, connection, self, self._config)
        async with self._lock:
            self._sessions[session_id] = session
            SSH_SESSIONS_OPEN.set(len(self._sessions))
        return session

    async def release(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)
            SSH_SESSIONS_OPEN.set(len(self._sessions))

    async def close_session(self, session_id: str) -> bool:
        session = self.get(session_id)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        """Best-effort close for shutdown and tests."""
        async with self._lock:
            sessions = list(self._sessions.values())
        await asyncio.gather(*(session.close() for session in sessions), return_exceptions=True)
