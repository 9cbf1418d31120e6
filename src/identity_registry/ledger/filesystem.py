"""Filesystem ledger backend.

Each key is stored as one file under a base directory. File names are the
percent-encoded key, so any username maps to exactly one file and no two
usernames collide. Writes go to a temporary file first and are moved into
place with :func:`os.replace`, so a reader never sees a half-written value.
"""
from __future__ import annotations

import os
import tempfile
import urllib.parse
from pathlib import Path
from typing import Optional

from identity_registry.errors import LedgerError
from identity_registry.ledger.base import Ledger, check_key, check_value

_SUFFIX = ".record"


class FilesystemLedger(Ledger):
    """Directory-backed ledger.

    Parameters
    ----------
    base_dir:
        Root directory holding one file per key. Created if missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LedgerError(str(exc)) from exc

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(check_key(key))
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise LedgerError(str(exc)) from exc

    def put(self, key: str, value: bytes) -> None:
        path = self._path_for(check_key(key))
        value = check_value(value)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._base_dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise LedgerError(str(exc)) from exc

    def keys(self) -> list[str]:
        """Return the sorted list of stored keys."""
        return sorted(
            urllib.parse.unquote(p.name[: -len(_SUFFIX)])
            for p in self._base_dir.iterdir()
            if p.is_file() and p.name.endswith(_SUFFIX)
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _path_for(self, key: str) -> Path:
        return self._base_dir / (urllib.parse.quote(key, safe="") + _SUFFIX)
