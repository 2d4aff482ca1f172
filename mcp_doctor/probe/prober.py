"""Stdio handshake prober for MCP servers."""

import asyncio
import json
import os
import shutil
import signal
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from ..models import DoctorSettings, ProbeEventType, ProbeResult, ServerSpec, Verdict
from .framer import LineFramer
from .logger import ProbeLogger

INITIALIZE_REQUEST_ID = 1
READ_CHUNK_SIZE = 4096
STDERR_TAIL_BYTES = 4096

# Seconds stdout may keep draining after a non-zero exit
EXIT_DRAIN_GRACE = 0.5
# Seconds between terminate() and kill()
TERMINATE_GRACE = 2.0
# Seconds between checks of a running process's exit status
EXIT_POLL_INTERVAL = 0.05

# Servers get their own process group so wrapper children are cleaned up with them
NEW_SESSION = os.name == "posix"

HTTP_NOT_TESTED = "HTTP servers not tested (active testing not yet implemented)"


@dataclass
class _Outcome:
    """Terminal state of one handshake, stamped when it was reached."""

    verdict: Verdict
    reason: Optional[str] = None
    resolved_at: float = field(default_factory=time.monotonic)


def _matches_request(message_id: Any) -> bool:
    return message_id == INITIALIZE_REQUEST_ID and not isinstance(message_id, bool)


def _describe_error(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message") or "unknown error"
        code = error.get("code")
        if code is not None:
            return f"Server returned an error: {message} (code {code})"
        return f"Server returned an error: {message}"
    return f"Server returned an error: {error}"


def _describe_exit(returncode: int, stderr_tail: bytes) -> str:
    if returncode < 0:
        reason = f"Process terminated by signal {-returncode} before responding"
    else:
        reason = f"Process exited with code {returncode} before responding"

    lines = stderr_tail.decode("utf-8", errors="replace").strip().splitlines()
    if lines:
        reason += f": {lines[-1].strip()[:200]}"
    return reason


async def _wait_for_exit(process: asyncio.subprocess.Process) -> int:
    """Wait until the process itself exits.

    ``Process.wait()`` also waits for stdout and stderr to close, which a child
    the server left running can hold open long after the server died.
    """
    while process.returncode is None:
        await asyncio.sleep(EXIT_POLL_INTERVAL)
    return process.returncode


def _signal_process(process: asyncio.subprocess.Process, force: bool) -> None:
    """Signal the server and, on POSIX, every process in its group."""
    if NEW_SESSION:
        os.killpg(process.pid, signal.SIGKILL if force else signal.SIGTERM)
    elif process.returncode is None:
        if force:
            process.kill()
        else:
            process.terminate()


class HandshakeProber:
    """Checks that a stdio MCP server answers an ``initialize`` request.

    Each probe spawns the server, writes one JSON-RPC ``initialize`` request and
    waits for the first response carrying the request id. The first of
    {matching response, non-zero exit, timeout} decides the verdict, and the
    process is terminated before :meth:`probe` returns on every path.
    """

    def __init__(
        self,
        timeout_ms: int = 10_000,
        protocol_version: str = "2024-11-05",
        client_name: str = "mcp-doctor",
        client_version: str = "0.1.0",
        environ: Optional[Mapping[str, str]] = None,
        logger: Optional[ProbeLogger] = None,
    ) -> None:
        """Initialize the prober.

        Args:
            timeout_ms: How long to wait for a response before giving up
            protocol_version: Protocol version declared in the handshake
            client_name: Client name declared in the handshake
            client_version: Client version declared in the handshake
            environ: Base environment the server's ``env`` is overlaid on
            logger: Probe event logger
        """
        self.timeout_ms = timeout_ms
        self.protocol_version = protocol_version
        self.client_name = client_name
        self.client_version = client_version
        self.environ: Dict[str, str] = dict(environ if environ is not None else os.environ)
        self.logger = logger or ProbeLogger()

    @classmethod
    def from_settings(
        cls,
        settings: DoctorSettings,
        environ: Optional[Mapping[str, str]] = None,
        logger: Optional[ProbeLogger] = None,
    ) -> "HandshakeProber":
        return cls(
            timeout_ms=settings.timeout_ms,
            protocol_version=settings.protocol_version,
            client_name=settings.client_name,
            client_version=settings.client_version,
            environ=environ,
            logger=logger,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def build_initialize_request(self) -> Dict[str, Any]:
        """Build the single JSON-RPC request sent to each server."""
        return {
            "jsonrpc": "2.0",
            "id": INITIALIZE_REQUEST_ID,
            "method": "initialize",
            "params": {
                "protocolVersion": self.protocol_version,
                "capabilities": {},
                "clientInfo": {"name": self.client_name, "version": self.client_version},
            },
        }

    def build_environment(self, overlay: Mapping[str, str]) -> Dict[str, str]:
        """Overlay a server's declared environment on the base environment."""
        return {**self.environ, **overlay}

    async def probe(self, server: ServerSpec) -> ProbeResult:
        """Probe one server and return its health.

        Args:
            server: Server to probe

        Returns:
            A healthy result with the elapsed time, or an unhealthy one with a reason
        """
        if server.is_remote:
            self.logger.log(ProbeEventType.HTTP_SKIPPED, server.name, url=server.url)
            return ProbeResult(
                name=server.name,
                healthy=True,
                probed=False,
                note=HTTP_NOT_TESTED,
                source_file=server.source_file,
            )

        if not server.command:
            reason = "No command specified"
            if server.transport.value != "stdio":
                reason = f"No URL specified for {server.transport.value} server"
            return ProbeResult.failure(server.name, reason, source_file=server.source_file)

        return await self._probe_stdio(server)

    def _resolve_cwd(self, server: ServerSpec) -> Optional[str]:
        if not server.cwd:
            return None
        cwd = Path(server.cwd).expanduser()
        if not cwd.is_absolute() and server.source_file:
            cwd = Path(server.source_file).parent / cwd
        return str(cwd)

    async def _probe_stdio(self, server: ServerSpec) -> ProbeResult:
        name = server.name
        env = self.build_environment(server.env)
        command = shutil.which(server.command, path=env.get("PATH")) or server.command

        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *server.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=self._resolve_cwd(server),
                start_new_session=NEW_SESSION,
            )
        except (OSError, ValueError) as e:
            reason = f"Failed to start server: {e}"
            self.logger.log(ProbeEventType.SPAWN_FAILED, name, error=reason, command=command)
            return ProbeResult.failure(
                name, reason, Verdict.SPAWN_FAILED, source_file=server.source_file
            )

        self.logger.log(
            ProbeEventType.SPAWNED,
            name,
            message=server.get_command_line(),
            pid=process.pid,
        )

        try:
            outcome = await self._handshake(name, process, started)
        finally:
            await self._terminate(name, process, started)

        if outcome.verdict == Verdict.SUCCESS:
            return ProbeResult.success(
                name,
                elapsed_ms=round((outcome.resolved_at - started) * 1000, 1),
                source_file=server.source_file,
            )
        return ProbeResult.failure(
            name,
            outcome.reason or outcome.verdict.value,
            outcome.verdict,
            source_file=server.source_file,
        )

    async def _handshake(
        self, name: str, process: asyncio.subprocess.Process, started: float
    ) -> _Outcome:
        """Run the handshake state machine until the first terminal outcome."""
        verdict: asyncio.Future = asyncio.get_running_loop().create_future()

        def resolve(outcome: _Outcome) -> None:
            # Only the first outcome counts; later ones are dropped
            if not verdict.done():
                verdict.set_result(outcome)

        stderr_tail = bytearray()
        stderr_task = asyncio.create_task(self._collect_stderr(process, stderr_tail))
        reader = asyncio.create_task(self._read_responses(name, process, resolve, started))
        watcher = asyncio.create_task(
            self._watch_exit(name, process, resolve, stderr_tail, (reader, stderr_task), started)
        )
        tasks = (stderr_task, reader, watcher)

        try:
            write_error = await self._send_initialize(process)
            if write_error:
                # A broken pipe usually means the process already died; prefer its exit status
                await asyncio.wait({watcher}, timeout=EXIT_DRAIN_GRACE * 2)
                resolve(
                    _Outcome(
                        Verdict.PROCESS_EXITED,
                        f"Failed to send initialize request: {write_error}",
                    )
                )
            else:
                self.logger.log(
                    ProbeEventType.REQUEST_SENT, name, duration_ms=self._since(started)
                )

            try:
                return await asyncio.wait_for(verdict, timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                reason = f"Timeout after {self.timeout_ms}ms"
                self.logger.log(
                    ProbeEventType.TIMED_OUT, name, error=reason, duration_ms=self._since(started)
                )
                return _Outcome(Verdict.TIMEOUT, reason)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _send_initialize(self, process: asyncio.subprocess.Process) -> Optional[str]:
        payload = json.dumps(self.build_initialize_request()) + "\n"
        try:
            process.stdin.write(payload.encode("utf-8"))
            await process.stdin.drain()
        except OSError as e:
            return str(e) or type(e).__name__
        return None

    async def _read_responses(
        self,
        name: str,
        process: asyncio.subprocess.Process,
        resolve: Callable[[_Outcome], None],
        started: float,
    ) -> None:
        framer = LineFramer()
        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            for line in framer.feed(chunk):
                outcome = self._interpret(name, line, started)
                if outcome:
                    resolve(outcome)
                    return

    def _interpret(self, name: str, line: str, started: float) -> Optional[_Outcome]:
        """Map one stdout line to an outcome, or None to keep waiting."""
        try:
            message = json.loads(line)
        except ValueError:
            # Servers often log to stdout; non-JSON lines are noise
            self.logger.log(ProbeEventType.LINE_DISCARDED, name, line=line[:200])
            return None

        if not isinstance(message, dict) or not _matches_request(message.get("id")):
            return None

        if "result" in message:
            self.logger.log(
                ProbeEventType.RESPONSE_RECEIVED,
                name,
                message="initialize result",
                duration_ms=self._since(started),
            )
            return _Outcome(Verdict.SUCCESS)

        if "error" in message:
            reason = _describe_error(message["error"])
            self.logger.log(
                ProbeEventType.RESPONSE_RECEIVED,
                name,
                error=reason,
                duration_ms=self._since(started),
            )
            return _Outcome(Verdict.ERROR_RESPONSE, reason)

        return None

    async def _watch_exit(
        self,
        name: str,
        process: asyncio.subprocess.Process,
        resolve: Callable[[_Outcome], None],
        stderr_tail: bytearray,
        drain: tuple,
        started: float,
    ) -> None:
        returncode = await _wait_for_exit(process)
        self.logger.log(
            ProbeEventType.PROCESS_EXITED,
            name,
            duration_ms=self._since(started),
            returncode=returncode,
        )
        if returncode == 0:
            # A clean exit without a response is inconclusive; the timeout decides
            return

        # Let stdout drain so a response written just before the exit still wins
        await asyncio.wait(set(drain), timeout=EXIT_DRAIN_GRACE)
        resolve(_Outcome(Verdict.PROCESS_EXITED, _describe_exit(returncode, bytes(stderr_tail))))

    async def _collect_stderr(
        self, process: asyncio.subprocess.Process, tail: bytearray
    ) -> None:
        while True:
            chunk = await process.stderr.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            tail.extend(chunk)
            del tail[:-STDERR_TAIL_BYTES]

    async def _terminate(
        self, name: str, process: asyncio.subprocess.Process, started: float
    ) -> None:
        """Make sure the process and its group are gone; terminate first, then kill.

        The group is signalled even when the server already exited, since
        children it started may still be running and holding its pipes.
        """
        if process.stdin and not process.stdin.is_closing():
            process.stdin.close()

        if not NEW_SESSION and process.returncode is not None:
            return

        try:
            _signal_process(process, force=False)
            try:
                await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE)
            except asyncio.TimeoutError:
                _signal_process(process, force=True)
                await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE)
        except ProcessLookupError:
            pass
        except asyncio.TimeoutError:
            self.logger.log(
                ProbeEventType.TERMINATED,
                name,
                error="Process did not exit after kill",
                pid=process.pid,
            )
            return

        self.logger.log(
            ProbeEventType.TERMINATED,
            name,
            duration_ms=self._since(started),
            pid=process.pid,
            returncode=process.returncode,
        )

    @staticmethod
    def _since(started: float) -> float:
        return round((time.monotonic() - started) * 1000, 1)
