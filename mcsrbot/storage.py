from __future__ import annotations

import contextlib
import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from .config import logger
from .state import PersistedState


class StateStore:
    """JSON file holding PersistedState.

    Both poll loops share one file. Mutations go through ``transaction()``,
    which reloads before the change and saves right after; the block must not
    await, so the other loop cannot interleave inside it.

    When a save fails the state is kept in memory and ``load()`` serves it
    until a later save reaches the disk, so a read-only or full disk never
    rolls watermarks and PBs back to the stale file.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._unsaved: Optional[PersistedState] = None

    @property
    def dirty(self) -> bool:
        """True while the newest state exists only in memory."""
        return self._unsaved is not None

    def load(self) -> PersistedState:
        if self._unsaved is not None:
            return copy.deepcopy(self._unsaved)
        try:
            if not self.path.exists():
                logger.info(f"No existing state file at {self.path}; starting fresh")
                return PersistedState()
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not load state from {self.path}: {e}")
            return PersistedState()
        return PersistedState.from_dict(data)

    def save(self, state: PersistedState) -> bool:
        """Write the state atomically. Failures are logged and reported as False."""
        if self._write(state):
            if self._unsaved is not None:
                logger.info(f"State written to {self.path} again after earlier failures")
            self._unsaved = None
            return True
        self._unsaved = copy.deepcopy(state)
        logger.warning("Keeping state in memory until the state file can be written")
        return False

    def _write(self, state: PersistedState) -> bool:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(directory), prefix=".state_", suffix=".tmp")
        except OSError as e:
            logger.error(f"Could not save state to {self.path}: {e}")
            return False
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Could not save state to {self.path}: {e}")
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            return False
        logger.debug("State saved")
        return True

    @contextlib.contextmanager
    def transaction(self) -> Iterator[PersistedState]:
        state = self.load()
        yield state
        self.save(state)
