"""
Credential storage for the Momentos session obtained by `dlmomentos login`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

VERSION = 1

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    token: str
    user_id: str
    email: str | None = None
    privileges: str | None = None
    issued_at: int = 0

    def __repr__(self) -> str:
        return (
            f"Credentials(user_id={self.user_id!r}, email={self.email!r}, "
            f"token_set={bool(self.token)})"
        )


def _ensure_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load(path: Path) -> Credentials | None:
    """Load credentials from file. Returns None if file doesn't exist or is invalid."""
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load credentials from {path}: {e}")
        return None

    if not isinstance(data, dict) or not all(k in data for k in ("token", "user_id")):
        logger.warning(f"Credentials file missing required fields: {path}")
        return None

    try:
        return Credentials(
            token=str(data["token"]),
            user_id=str(data["user_id"]),
            email=data.get("email"),
            privileges=data.get("privileges"),
            issued_at=int(data.get("issued_at", 0)),
        )
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid credential data in {path}: {e}")
        return None


def save(path: Path, credentials: Credentials) -> None:
    _ensure_dir(path)
    payload: dict[str, Any] = {
        "version": VERSION,
        "token": credentials.token,
        "user_id": credentials.user_id,
        "email": credentials.email,
        "privileges": credentials.privileges,
        "issued_at": int(credentials.issued_at or time.time()),
    }

    # Atomic write
    tmp_fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, text=True)
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as tmp:
            json.dump(payload, tmp, indent=2)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)

    # Permissions: 0600 best effort
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


def clear(path: Path) -> bool:
    """Remove stored credentials. Returns False when there was nothing to remove."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
