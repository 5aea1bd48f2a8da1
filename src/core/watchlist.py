"""User-curated list of followed series."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

CATEGORIES = ("anime", "manga")


class Watchlist:
    """Followed series per category, in the order they were added."""

    def __init__(self, entries: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        self._entries: Dict[str, List[str]] = {category: [] for category in CATEGORIES}
        for category, names in (entries or {}).items():
            for name in names:
                self.add(category, name)

    def add(self, category: str, name: str) -> bool:
        """Add a series; return False when the exact name is already listed."""

        if category not in self._entries:
            raise ValueError(f"Unknown watchlist category: {category}")
        name = name.strip()
        if not name:
            raise ValueError("Series name is required")
        # Exact, case-sensitive comparison.
        if name in self._entries[category]:
            return False
        self._entries[category].append(name)
        return True

    def replace(self, entries: Mapping[str, Iterable[str]]) -> None:
        for names in self._entries.values():
            names.clear()
        for category, names in entries.items():
            for name in names:
                self.add(category, name)

    def series(self, category: str) -> List[str]:
        return list(self._entries.get(category, []))

    def counts(self) -> Dict[str, int]:
        return {category: len(names) for category, names in self._entries.items()}

    def find_mentioned(self, title: str) -> List[str]:
        """Return followed series whose name appears in the title."""

        lowered = title.lower()
        found: List[str] = []
        for names in self._entries.values():
            for name in names:
                if name.lower() in lowered and name not in found:
                    found.append(name)
        return found
