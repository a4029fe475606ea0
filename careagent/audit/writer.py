"""
Audit Log Writer

Append-only, hash-chained JSONL writer. Each line is one audit entry whose
``prev_hash`` is the SHA-256 of the preceding line, so any edit to an
earlier line breaks every link after it.

The chain cursor (hash of the last line) lives in memory and is recovered
from the tail of the file on construction, so the chain survives restarts
without a separate checkpoint. One writer instance per log file: several
writers pointed at the same path will fork the chain.
"""

import dataclasses
import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from .models import AuditEntry, ChainVerification

logger = logging.getLogger(__name__)


def hash_line(line: str) -> str:
    """SHA-256 hex digest of one serialized log line (without newline)."""
    return hashlib.sha256(line.encode("utf-8")).hexdigest()


def serialize_entry(entry: AuditEntry) -> str:
    """Serialize an entry to a single compact JSON line."""
    return json.dumps(entry.to_dict(), separators=(",", ":"), ensure_ascii=False, default=str)


class AuditWriter:
    """Hash-chained, append-only audit log."""

    def __init__(self, log_path: Union[str, Path]):
        """
        Initialize the writer.

        Args:
            log_path: Path to the JSONL log file (created on first append)
        """
        self.log_path = Path(log_path)
        # Serializes append and verify within this process
        self._lock = threading.Lock()
        self._last_hash: Optional[str] = self._recover_last_hash()

    def append(self, entry: AuditEntry) -> AuditEntry:
        """
        Append an entry, stamping it with the current chain cursor.

        Any ``prev_hash`` already set on ``entry`` is replaced.

        Returns:
            The entry as written
        """
        with self._lock:
            chained = dataclasses.replace(entry, prev_hash=self._last_hash)
            line = serialize_entry(chained)

            prefix = "" if self._ends_with_newline() else "\n"
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(prefix + line + "\n")

            self._last_hash = hash_line(line)
            return chained

    def verify_chain(self) -> ChainVerification:
        """
        Replay the log and check every link.

        A missing or empty file is a valid, empty chain. The first malformed
        line or mismatched ``prev_hash`` stops the replay and is reported
        by its line index.
        """
        with self._lock:
            if not self.log_path.exists():
                return ChainVerification(valid=True, entries=0)

            try:
                content = self.log_path.read_text(encoding="utf-8").rstrip()
            except (OSError, UnicodeDecodeError) as e:
                return ChainVerification(
                    valid=False, entries=0, error=f"Chain verification error: {e}"
                )

        if not content:
            return ChainVerification(valid=True, entries=0)

        lines = content.split("\n")
        expected_prev_hash: Optional[str] = None
        count = 0

        for i, line in enumerate(lines):
            if not line.strip():
                continue

            try:
                parsed = json.loads(line)
            except json.JSONDecodeError:
                return ChainVerification(
                    valid=False,
                    entries=i,
                    broken_at=i,
                    error=f"Malformed JSON at line {i + 1}",
                )

            prev_hash = parsed.get("prev_hash") if isinstance(parsed, dict) else None
            if not isinstance(parsed, dict) or prev_hash != expected_prev_hash:
                return ChainVerification(
                    valid=False,
                    entries=i,
                    broken_at=i,
                    error=(
                        f"Chain broken at entry {i}: expected prev_hash "
                        f"{expected_prev_hash}, got {prev_hash}"
                    ),
                )

            expected_prev_hash = hash_line(line)
            count += 1

        return ChainVerification(valid=True, entries=count)

    @property
    def last_hash(self) -> Optional[str]:
        """Hash of the last written line, or None for an empty chain."""
        return self._last_hash

    def _recover_last_hash(self) -> Optional[str]:
        """Hash the last non-empty line of an existing log."""
        if not self.log_path.exists():
            return None

        try:
            content = self.log_path.read_text(encoding="utf-8").rstrip()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read audit log {self.log_path}: {e}")
            return None

        lines = [line for line in content.split("\n") if line.strip()]
        if not lines:
            return None

        logger.debug(f"Resuming audit chain after {len(lines)} entries")
        return hash_line(lines[-1])

    def _ends_with_newline(self) -> bool:
        """False when the log's last line was left unterminated."""
        try:
            with open(self.log_path, "rb") as f:
                f.seek(0, 2)
                if f.tell() == 0:
                    return True
                f.seek(-1, 2)
                return f.read(1) == b"\n"
        except FileNotFoundError:
            return True
