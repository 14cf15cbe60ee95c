"""Local key-value persistence for body measurements."""

import json
from pathlib import Path

from ..logging import get_logger
from ..models import BodyData


log = get_logger(__name__)

BODY_DATA_KEY = "styles-body-data"


class BodyDataStore:
    """Stores BodyData in a small JSON file under a fixed key.

    Neither ``load`` nor ``save`` raises; failures are logged.
    """

    def __init__(self, path: Path):
        self.path = path

    def _read_all(self) -> dict:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def load(self) -> BodyData | None:
        """Return the saved body data, or None if absent or unparseable."""
        if not self.path.exists():
            return None
        try:
            saved = self._read_all().get(BODY_DATA_KEY)
            if saved is None:
                return None
            return BodyData.model_validate(saved)
        except (OSError, ValueError) as e:  # decode, JSON and validation errors
            log.warning("body_data.load_failed", path=str(self.path), error=str(e))
            return None

    def save(self, data: BodyData) -> bool:
        """Persist body data, keeping any other keys in the file."""
        try:
            try:
                existing = self._read_all() if self.path.exists() else {}
            except ValueError:
                existing = {}
            existing[BODY_DATA_KEY] = data.model_dump(by_alias=True, exclude_none=True)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(existing, indent=2), encoding="utf-8")
            return True
        except OSError as e:
            log.error("body_data.save_failed", path=str(self.path), error=str(e))
            return False
