"""Logging system for server probes."""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..models import ProbeEventType, ProbeLogEntry


class ProbeLogger:
    """Logger for server probe events."""

    def __init__(self, max_entries: int = 1000, log_file: Optional[Path] = None) -> None:
        """Initialize the probe logger.

        Args:
            max_entries: Maximum number of log entries to keep in memory
            log_file: Optional JSONL file every entry is appended to
        """
        self.max_entries = max_entries
        self.entries: List[ProbeLogEntry] = []
        self._log_file: Optional[Path] = None
        self._update_callbacks: List[Callable[[ProbeLogEntry], None]] = []
        if log_file:
            self.set_log_file(log_file)

    def set_log_file(self, log_file: Path) -> None:
        """Set the file to persist logs to.

        Args:
            log_file: Path to log file
        """
        self._log_file = log_file
        log_file.parent.mkdir(parents=True, exist_ok=True)

    def log(
        self,
        event_type: ProbeEventType,
        server_name: str,
        message: Optional[str] = None,
        error: Optional[str] = None,
        duration_ms: Optional[float] = None,
        **parameters: Any,
    ) -> ProbeLogEntry:
        """Log one probe event.

        Args:
            event_type: Kind of event
            server_name: Name of the probed server
            message: Human-readable description
            error: Error message (if the event is a failure)
            duration_ms: Time since the probe started, in milliseconds
            **parameters: Event details (pid, exit code, discarded line...)

        Returns:
            The created log entry
        """
        entry = ProbeLogEntry(
            event_type=event_type,
            server_name=server_name,
            parameters=parameters,
            message=message,
            error=error,
            duration_ms=duration_ms,
        )
        self._add_entry(entry)
        return entry

    def _add_entry(self, entry: ProbeLogEntry) -> None:
        """Add an entry to the log.

        Args:
            entry: Log entry to add
        """
        self.entries.append(entry)

        # Trim to max entries
        if len(self.entries) > self.max_entries:
            self.entries = self.entries[-self.max_entries :]

        if self._log_file:
            self._persist_entry(entry)

        for callback in self._update_callbacks:
            try:
                callback(entry)
            except Exception:
                # Ignore callback errors
                pass

    def add_update_callback(self, callback: Callable[[ProbeLogEntry], None]) -> None:
        """Add a callback to be notified of new log entries."""
        self._update_callbacks.append(callback)

    def remove_update_callback(self, callback: Callable[[ProbeLogEntry], None]) -> None:
        """Remove a previously registered callback."""
        if callback in self._update_callbacks:
            self._update_callbacks.remove(callback)

    def _persist_entry(self, entry: ProbeLogEntry) -> None:
        if not self._log_file:
            return

        try:
            with open(self._log_file, "a", encoding="utf-8") as f:
                f.write(entry.model_dump_json() + "\n")
        except OSError:
            # Ignore persistence errors
            pass

    def get_entries(
        self,
        server_name: Optional[str] = None,
        event_type: Optional[ProbeEventType] = None,
    ) -> List[ProbeLogEntry]:
        """Get log entries with optional filtering.

        Args:
            server_name: Filter by server name
            event_type: Filter by event type

        Returns:
            Filtered list of log entries
        """
        entries = self.entries

        if server_name:
            entries = [e for e in entries if e.server_name == server_name]

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        return entries

    def clear(self) -> None:
        """Clear all log entries."""
        self.entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about logged probe events.

        Returns:
            Dictionary with statistics
        """
        by_server: Dict[str, int] = {}
        by_type: Dict[str, int] = {}

        for entry in self.entries:
            by_server[entry.server_name] = by_server.get(entry.server_name, 0) + 1
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1

        return {
            "total": len(self.entries),
            "errors": sum(1 for e in self.entries if e.error is not None),
            "by_server": by_server,
            "by_type": by_type,
        }
