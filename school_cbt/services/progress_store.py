"""
services/progress_store.py

진행 중인 응시의 로컬 자동 저장소 (파일 기반).

One JSON file per test, named after the key `test_{testId}_progress`.
Last writer wins, no versioning: each attempt is the only writer of its key.
Read errors are treated as "no snapshot".
"""

import json
import logging
import os
import re
import threading
from typing import Optional

from pydantic import ValidationError

import config
from school_cbt.models.session_state import ProgressSnapshot

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def progress_key(test_id: str) -> str:
    return f"test_{test_id}_progress"


class ProgressStore:
    def __init__(self, directory: str = config.PROGRESS_DIR):
        self.directory = directory
        self._lock = threading.Lock()

    def _path(self, test_id: str) -> str:
        name = _UNSAFE_CHARS.sub("_", progress_key(test_id))
        return os.path.join(self.directory, f"{name}.json")

    def load(self, test_id: str) -> Optional[ProgressSnapshot]:
        """Saved snapshot for the test, or None if absent or unreadable."""
        path = self._path(test_id)
        with self._lock:
            if not os.path.exists(path):
                return None
            try:
                with open(path, "r", encoding="utf-8") as f:
                    raw = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"progress snapshot for {test_id} unreadable: {e}")
                return None
        try:
            return ProgressSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"progress snapshot for {test_id} invalid: {e}")
            return None

    def save(self, test_id: str, snapshot: ProgressSnapshot) -> None:
        """Write the snapshot atomically. OSError propagates to the caller."""
        path = self._path(test_id)
        data = snapshot.model_dump_json(by_alias=True)
        with self._lock:
            os.makedirs(self.directory, exist_ok=True)
            tmp_path = f"{path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp_path, path)

    def clear(self, test_id: str) -> None:
        path = self._path(test_id)
        with self._lock:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
