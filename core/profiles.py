# ============================================================
# DBTerm - Terminal Database Client
# core/profiles.py - Connection Profile Persistence
# ============================================================

import os
from pathlib import Path
from typing import List, Sequence

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from core.errors import ProfileStoreError
from core.models import ConnectionProfile

_PROFILES = TypeAdapter(List[ConnectionProfile])


class ProfileStore:
    """
    Saved connection profiles as a JSON list on disk.

    A missing file is an empty list. Anything else that goes wrong is
    raised as ProfileStoreError; callers decide whether that is fatal.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_profiles(self) -> List[ConnectionProfile]:
        if not self.path.exists():
            logger.info(f"No saved connections at {self.path}")
            return []
        try:
            profiles = _PROFILES.validate_json(self.path.read_bytes())
        except OSError as e:
            raise ProfileStoreError(f"Failed to read {self.path}: {e}") from e
        except ValidationError as e:
            raise ProfileStoreError(f"Invalid connections file {self.path}: {e}") from e
        logger.info(f"Loaded {len(profiles)} connections from {self.path}")
        return profiles

    def save_profiles(self, profiles: Sequence[ConnectionProfile]) -> None:
        """Write all profiles, replacing the file atomically."""
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(_PROFILES.dump_json(list(profiles), indent=2, exclude_none=True))
            os.replace(tmp, self.path)
        except OSError as e:
            raise ProfileStoreError(f"Failed to save connections: {e}") from e
        logger.info(f"Saved {len(profiles)} connections to {self.path}")
