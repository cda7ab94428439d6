"""Append-only conversation history."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from memory_composer.domain.generation import ConversationEntry, EntryType


@dataclass
class ConversationLedger:
    """Ordered log of generation and edit events."""

    _entries: list[ConversationEntry] = field(default_factory=list)

    def append(self, entry: ConversationEntry) -> None:
        """Add an entry at the end of the log."""
        self._entries.append(entry)

    def record(self, entry_type: EntryType, content: str) -> ConversationEntry:
        """Create a timestamped entry and append it."""
        entry = ConversationEntry(
            type=entry_type, content=content, timestamp=datetime.now(tz=UTC)
        )
        self.append(entry)
        return entry

    def recent(
        self, n: int, type_filter: EntryType | None = None
    ) -> list[ConversationEntry]:
        """Return the last ``n`` entries, optionally of one type, oldest first."""
        if n <= 0:
            return []
        matching = [
            entry
            for entry in self._entries
            if type_filter is None or entry.type == type_filter
        ]
        return matching[-n:]

    def entries(self) -> list[ConversationEntry]:
        """Return a copy of all entries in insertion order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
