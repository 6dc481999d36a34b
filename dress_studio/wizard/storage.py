"""Client-side persistence for the wizard.

``LocalStorage`` is a small string key-value store kept in one JSON file
with a size quota, the way browser local storage behaves. ``StateRepository``
owns the single studio key inside it.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..config import StudioConfig
from ..errors import QuotaExceededError
from .state import STATE_SCHEMA_VERSION, Wizard, WizardSnapshot


logger = logging.getLogger(__name__)

STATE_KEY = "dressStudio_wizard"


class LocalStorage:
    """String key-value store persisted as a JSON object.

    Usage is measured as the total characters of keys and values; a write
    that would push usage past ``quota`` raises :class:`QuotaExceededError`
    and leaves the file untouched.
    """

    def __init__(self, path: Path, quota: int = 5 * 1024 * 1024):
        self.path = Path(path)
        self.quota = quota

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            items = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        if not isinstance(items, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            return {}
        return {str(key): value for key, value in items.items() if isinstance(value, str)}

    def _write(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle)
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise

    @staticmethod
    def _usage(items: dict[str, str]) -> int:
        return sum(len(key) + len(value) for key, value in items.items())

    def usage(self) -> int:
        return self._usage(self._read())

    def keys(self) -> list[str]:
        return list(self._read())

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        used = self._usage(items)
        if used > self.quota:
            raise QuotaExceededError(
                f"Storing {key!r} needs {used} characters, quota is {self.quota}"
            )
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)


class StateRepository:
    """Loads and saves the wizard under one versioned key."""

    def __init__(self, storage: LocalStorage, key: str = STATE_KEY):
        self.storage = storage
        self.key = key

    @classmethod
    def from_config(cls, config: StudioConfig) -> "StateRepository":
        return cls(LocalStorage(config.state_file, config.storage_quota_bytes))

    def load(self) -> Wizard:
        """Restore the saved wizard, or a fresh one if nothing usable is stored."""
        raw = self.storage.get_item(self.key)
        if raw is None:
            return Wizard()

        try:
            snapshot = WizardSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding corrupt wizard state: %s", e.error_count())
            return Wizard()

        if snapshot.schema_version != STATE_SCHEMA_VERSION:
            logger.warning(
                "Discarding wizard state with schema version %s (expected %s)",
                snapshot.schema_version, STATE_SCHEMA_VERSION,
            )
            return Wizard()

        try:
            return Wizard.restore(snapshot)
        except ValueError as e:
            logger.warning("Discarding wizard state with unreadable images: %s", e)
            return Wizard()

    def save(self, wizard: Wizard) -> bool:
        """Persist the wizard.

        Images are dropped from the snapshot if the full one does not fit.

        Returns:
            True if some snapshot was written, False if even the light one
            exceeded the quota
        """
        try:
            self.storage.set_item(self.key, wizard.snapshot().model_dump_json(by_alias=True))
            return True
        except QuotaExceededError as e:
            logger.warning("Full wizard state does not fit (%s); saving without images", e)

        try:
            light = wizard.snapshot(include_images=False)
            self.storage.set_item(self.key, light.model_dump_json(by_alias=True))
            return True
        except QuotaExceededError as e:
            logger.error("Could not save wizard state: %s", e)
            return False

    def clear(self) -> None:
        self.storage.remove_item(self.key)
