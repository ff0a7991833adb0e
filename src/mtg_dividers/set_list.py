"""The user's list of sets and its JSON persistence."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .errors import DuplicateSetError, StateFileError
from .models import CardRecord

logger = logging.getLogger(__name__)


SORT_OPTIONS = ("added", "name", "date-desc", "date-asc")


def default_state_file() -> Path:
    """`~/.mtg-divider-cards/sets.json`"""
    return Path.home() / ".mtg-divider-cards" / "sets.json"


class SetList:
    """Insertion-ordered set records, unique by code."""

    def __init__(self, records: Iterable[CardRecord] = (), sort: str = "added") -> None:
        self._records: List[CardRecord] = []
        self.sort = sort
        for record in records:
            self.add(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CardRecord]:
        return iter(self._records)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and any(r.code == code.upper() for r in self._records)

    @property
    def sort(self) -> str:
        return self._sort

    @sort.setter
    def sort(self, option: str) -> None:
        if option not in SORT_OPTIONS:
            raise ValueError(f"Unknown sort option {option!r}, expected one of {', '.join(SORT_OPTIONS)}")
        self._sort = option

    def add(self, record: CardRecord) -> None:
        """
        Raises:
            DuplicateSetError: If a set with the same code is present
        """
        if record.code in self:
            raise DuplicateSetError(f'Set "{record.code}" has already been added.')
        self._records.append(record)

    def add_many(self, records: Iterable[CardRecord]) -> Tuple[List[CardRecord], List[CardRecord]]:
        """Add all new records; returns (added, skipped duplicates)."""
        added: List[CardRecord] = []
        skipped: List[CardRecord] = []
        for record in records:
            if record.code in self:
                skipped.append(record)
            else:
                self._records.append(record)
                added.append(record)
        return added, skipped

    def remove(self, code: str) -> CardRecord:
        """
        Raises:
            KeyError: If no set has this code
        """
        code = code.upper()
        for record in self._records:
            if record.code == code:
                self._records.remove(record)
                return record
        raise KeyError(code)

    def sorted(self, option: Optional[str] = None) -> List[CardRecord]:
        """Records in display order for `option` (default: the list's own)."""
        option = option or self.sort
        records = list(self._records)
        if option == "name":
            return sorted(records, key=lambda r: r.name.lower())
        if option == "date-desc":
            return sorted(records, key=lambda r: r.released_at, reverse=True)
        if option == "date-asc":
            return sorted(records, key=lambda r: r.released_at)
        return records

    def to_dict(self) -> dict:
        return {"sort": self.sort, "sets": [r.to_dict() for r in self._records]}


def load_set_list(path: Path) -> SetList:
    """
    Load a saved list; a missing file is an empty list.

    Repeated codes in the file keep their first occurrence.

    Raises:
        StateFileError: If the file cannot be read or is not a saved set list
    """
    if not path.is_file():
        logger.debug("No saved set list at %s", path)
        return SetList()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("top level is not an object")
        set_list = SetList(sort=data.get("sort", "added"))
        _, skipped = set_list.add_many(CardRecord.from_dict(item) for item in data.get("sets", []))
    except (OSError, KeyError, TypeError, ValueError) as e:
        raise StateFileError(f"Could not read the saved set list {path}: {e}") from e

    if skipped:
        logger.warning("Ignored %d repeated set(s) in %s", len(skipped), path)
    return set_list


def save_set_list(set_list: SetList, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(set_list.to_dict(), indent=2), encoding="utf-8")
