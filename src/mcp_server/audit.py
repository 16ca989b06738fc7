"""Audit logging for the MCP Server.

Records every ``tools/call`` execution for debugging and compliance.
Captures: client, tool, arguments, timestamp, outcome.
"""

import asyncio
import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import aiofiles

from shared.logging import get_logger
from shared.models import AuditEntry, OutcomeKind, ToolCallRequest, ToolOutcome

logger = get_logger(__name__)


class AuditLogger:
    """
    Audit logger for tool executions.

    Entries are buffered and appended to a JSON-lines file once the buffer
    fills or on ``flush()``. Sensitive argument values are redacted.
    """

    # Arguments that should be redacted in audit logs
    SENSITIVE_PARAMS = {"password", "token", "secret", "api_key", "apikey", "credential"}

    def __init__(
        self,
        log_path: str = "logs/audit.log",
        enabled: bool = True,
        buffer_size: int = 100
    ) -> None:
        self.log_path = Path(log_path)
        self.enabled = enabled
        self.buffer_size = buffer_size
        self._buffer: list[AuditEntry] = []
        self._lock = asyncio.Lock()

        if self.enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _redact_sensitive(self, params: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive arguments from audit logs."""
        redacted = {}
        for key, value in params.items():
            if key.lower() in self.SENSITIVE_PARAMS:
                redacted[key] = "[REDACTED]"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive(value)
            else:
                redacted[key] = value
        return redacted

    def create_entry(
        self,
        request_id: int,
        client_info: str,
        call: ToolCallRequest,
        outcome: ToolOutcome,
        execution_time_ms: float = 0
    ) -> AuditEntry:
        """
        Create an audit entry from tool execution data.

        Args:
            request_id: JSON-RPC request id
            client_info: Caller description from the auth gate
            call: Tool call request
            outcome: Tool outcome
            execution_time_ms: Wall-clock duration of the call

        Returns:
            Audit entry
        """
        return AuditEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.utcnow(),
            request_id=request_id,
            client_info=client_info,
            tool_name=call.name,
            arguments=self._redact_sensitive(call.arguments),
            outcome=outcome.kind,
            execution_time_ms=execution_time_ms,
        )

    async def log(
        self,
        request_id: int,
        client_info: str,
        call: ToolCallRequest,
        outcome: ToolOutcome,
        execution_time_ms: float = 0
    ) -> None:
        """Record a tool execution."""
        if not self.enabled:
            return

        entry = self.create_entry(request_id, client_info, call, outcome, execution_time_ms)

        logger.info(
            "Tool call audited",
            audit_id=entry.id,
            client=entry.client_info,
            tool=entry.tool_name,
            outcome=entry.outcome.value,
            execution_time_ms=entry.execution_time_ms
        )

        async with self._lock:
            self._buffer.append(entry)

            if len(self._buffer) >= self.buffer_size:
                await self._flush()

    async def _flush(self) -> None:
        """Flush buffered entries to file."""
        if not self._buffer:
            return

        entries_to_write = self._buffer.copy()
        self._buffer.clear()

        try:
            async with aiofiles.open(self.log_path, "a") as f:
                for entry in entries_to_write:
                    await f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error("Failed to write audit log", error=str(e))
            # Keep entries for the next flush
            self._buffer.extend(entries_to_write)

    async def flush(self) -> None:
        """Public method to flush audit buffer."""
        async with self._lock:
            await self._flush()

    async def query(
        self,
        tool_name: Optional[str] = None,
        client_info: Optional[str] = None,
        outcome: Optional[OutcomeKind] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: int = 100
    ) -> list[AuditEntry]:
        """
        Query flushed audit entries.

        Args:
            tool_name: Filter by tool name
            client_info: Filter by client description
            outcome: Filter by outcome kind
            start_time: Filter by start time
            end_time: Filter by end time
            limit: Maximum entries to return

        Returns:
            List of matching audit entries, oldest first
        """
        results: list[AuditEntry] = []

        if not self.log_path.exists():
            return results

        async with aiofiles.open(self.log_path, "r") as f:
            async for line in f:
                if len(results) >= limit:
                    break

                try:
                    entry = AuditEntry(**json.loads(line.strip()))
                except (json.JSONDecodeError, ValueError):
                    continue

                if tool_name and entry.tool_name != tool_name:
                    continue
                if client_info and entry.client_info != client_info:
                    continue
                if outcome and entry.outcome != outcome:
                    continue
                if start_time and entry.timestamp < start_time:
                    continue
                if end_time and entry.timestamp > end_time:
                    continue

                results.append(entry)

        return results
