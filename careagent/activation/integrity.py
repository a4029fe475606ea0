"""
CANS.md Integrity (trust on first use)

The first time a workspace activates, the SHA-256 of CANS.md is stored as
the known-good hash. Every later activation must match it. A mismatch is
never healed automatically: the operator re-trusts a changed document with
``update_known_good_hash``.
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ..config import INTEGRITY_FILENAME, get_state_dir

logger = logging.getLogger(__name__)


@dataclass
class IntegrityResult:
    valid: bool
    reason: Optional[str] = None
    is_first_load: bool = False


def compute_hash(content: Union[str, bytes]) -> str:
    """SHA-256 hex digest of document content (str is UTF-8 encoded)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def get_integrity_store_path(workspace_path: Union[str, Path]) -> Path:
    return get_state_dir(workspace_path) / INTEGRITY_FILENAME


def _write_store(store_path: Path, content_hash: str) -> None:
    store_path.parent.mkdir(parents=True, exist_ok=True)
    store_path.write_text(
        json.dumps({
            "hash": content_hash,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }),
        encoding="utf-8",
    )


def verify_integrity(workspace_path: Union[str, Path], content: Union[str, bytes]) -> IntegrityResult:
    """
    Check content against the stored known-good hash.

    Args:
        workspace_path: Workspace directory
        content: Current CANS.md content

    Returns:
        IntegrityResult; on first use the hash is stored and
        ``is_first_load`` is set
    """
    store_path = get_integrity_store_path(workspace_path)
    current_hash = compute_hash(content)

    if not store_path.exists():
        try:
            _write_store(store_path, current_hash)
        except OSError as e:
            logger.error(f"Failed to store initial CANS.md hash: {e}")
            return IntegrityResult(valid=False, reason=f"Integrity store not writable: {e}")
        logger.info(f"Stored initial CANS.md hash {current_hash[:12]}...")
        return IntegrityResult(valid=True, is_first_load=True)

    try:
        stored = json.loads(store_path.read_text(encoding="utf-8"))
        stored_hash = stored["hash"]
        if not isinstance(stored_hash, str):
            raise ValueError("stored hash is not a string")
    except (OSError, ValueError, KeyError, TypeError) as e:
        return IntegrityResult(valid=False, reason=f"Integrity store corrupted: {e}")

    if stored_hash == current_hash:
        return IntegrityResult(valid=True)

    return IntegrityResult(
        valid=False,
        reason=(
            "SHA-256 hash mismatch - CANS.md may have been tampered with. "
            f"Expected {stored_hash[:12]}..., got {current_hash[:12]}..."
        ),
    )


def update_known_good_hash(workspace_path: Union[str, Path], content: Union[str, bytes]) -> str:
    """
    Re-trust the given content as the workspace's known-good CANS.md.

    Returns:
        The newly stored hash
    """
    content_hash = compute_hash(content)
    _write_store(get_integrity_store_path(workspace_path), content_hash)
    logger.info(f"Updated known-good CANS.md hash to {content_hash[:12]}...")
    return content_hash
