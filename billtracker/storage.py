import json
import logging
from pathlib import Path
from typing import Optional

from .config import SAVES_DIR, get_save_path
from .exceptions import PersistenceError
from .models import Bill

logger = logging.getLogger(__name__)


def list_save_files(saves_dir: Optional[Path] = None):
    return sorted(f.stem for f in (saves_dir or SAVES_DIR).glob("*.json"))


def encode_bills(bills) -> list[dict]:
    return [bill.to_dict() for bill in bills]


def decode_bills(records) -> list[Bill]:
    """Turn persisted records back into bills, skipping any that are malformed."""
    if not isinstance(records, list):
        raise PersistenceError("Bill snapshot is not a list")

    bills = []
    seen_ids = set()
    for record in records:
        try:
            bill = Bill.from_dict(record)
        except Exception as e:
            logger.warning("Skipping invalid bill %r: %s", record, e)
            continue
        if bill.id in seen_ids:
            logger.warning("Skipping duplicate bill id %s", bill.id)
            continue
        seen_ids.add(bill.id)
        bills.append(bill)
    return bills


class JsonFileStorage:
    """Keeps the whole bill collection as a single JSON array on disk."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_save_path()

    def save(self, bills) -> None:
        records = encode_bills(bills)
        tmp_path = self.path.with_suffix(".tmp")
        try:
            json_str = json.dumps(records, indent=2)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json_str, encoding="utf-8")
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove %s", tmp_path)
            raise PersistenceError(f"Could not save bills to {self.path}: {e}") from e
        logger.debug("Saved %d bills to %s", len(records), self.path)

    def load(self) -> Optional[list[Bill]]:
        """Return the last saved bills, or None if nothing was saved yet."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read bills from {self.path}: {e}") from e
        return decode_bills(data)


class MemoryStorage:
    """Holds the serialized snapshot in memory; same contract as the file storage."""

    def __init__(self, blob: Optional[str] = None):
        self.blob = blob
        self.save_count = 0

    def save(self, bills) -> None:
        try:
            self.blob = json.dumps(encode_bills(bills))
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Could not serialize bills: {e}") from e
        self.save_count += 1

    def load(self) -> Optional[list[Bill]]:
        if self.blob is None:
            return None
        try:
            data = json.loads(self.blob)
        except ValueError as e:
            raise PersistenceError(f"Could not parse saved bills: {e}") from e
        return decode_bills(data)
