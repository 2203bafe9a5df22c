"""Session-scoped log of human-readable demo outputs."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..utils.time_utils import as_utc, iso_timestamp, utc_now


@dataclass(frozen=True)
class ResultEntry:
    """One titled block of demo output."""

    title: str
    content: str
    timestamp: datetime

    def render(self) -> str:
        return f"=== {self.title} ===\n{self.content}\n\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "timestamp": iso_timestamp(self.timestamp),
        }


class ResultLog:
    """Ordered, unbounded list of result entries.

    Insertion order is display order. Entries are never removed individually;
    ``clear`` drops them all.
    """

    def __init__(self) -> None:
        self._entries: List[ResultEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[ResultEntry, ...]:
        return tuple(self._entries)

    def append(
        self,
        title: str,
        content: str,
        timestamp: Optional[datetime] = None,
    ) -> ResultEntry:
        """Append an entry stamped with the current time (naive values are UTC)."""
        if timestamp is None:
            timestamp = utc_now()
        entry = ResultEntry(title=title, content=content, timestamp=as_utc(timestamp))
        self._entries.append(entry)
        return entry

    def format_all(self) -> str:
        """Render every entry as one text block, in insertion order."""
        return "".join(entry.render() for entry in self._entries)

    def to_records(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

    def clear(self) -> None:
        self._entries.clear()
