"""Credential file management for carelinkbridge."""

from __future__ import annotations

import logging
import stat
from pathlib import Path

import msgspec

from carelinkbridge.auth.session import Session

logger = logging.getLogger(__name__)


def write_credential(path: Path, content: bytes) -> None:
    """Securely write credential to file with 0o600 permissions."""
    path.parent.mkdir(parents=True, exist_ok=True)

    # Write to temp file first, then rename for atomicity
    temp_path = path.with_suffix(".tmp")
    temp_path.write_bytes(content)
    temp_path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0o600
    temp_path.replace(path)


def read_credential(path: Path) -> bytes | None:
    """Read credential file if it exists."""
    if not path.exists():
        return None
    return path.read_bytes()


def delete_credential(path: Path) -> bool:
    """Delete credential file.

    Returns:
        True if deleted, False if didn't exist
    """
    if not path.exists():
        return False

    path.unlink()
    return True


def check_credential_permissions(path: Path) -> bool:
    """Verify credential file has secure permissions (0o600 or stricter)."""
    if not path.exists():
        return True  # No file is secure

    mode = path.stat().st_mode
    return not (mode & (stat.S_IRGRP | stat.S_IWGRP | stat.S_IROTH | stat.S_IWOTH))


class SessionStore:
    """Persists the CareLink session as ``logindata.json``.

    The file is produced by an external login tool; this store only reads it,
    rewrites it after a token refresh and deletes it when the refresh token
    is rejected.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Session | None:
        content = read_credential(self.path)
        if content is None:
            return None
        try:
            return msgspec.json.decode(content, type=Session)
        except (msgspec.DecodeError, msgspec.ValidationError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

    def save(self, session: Session) -> None:
        write_credential(self.path, msgspec.json.encode(session))

    def delete(self) -> None:
        if delete_credential(self.path):
            logger.warning("Deleted %s", self.path)
