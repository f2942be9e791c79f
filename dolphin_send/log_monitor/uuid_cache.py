"""Player name to UUID cache built from authentication log lines."""

from typing import Dict, Optional


class UuidCache:
    """Maps player names (case-sensitive) to the UUID they logged in with.

    A name is only present between its authentication line and the moment
    the player leaves. The cache is owned by a single LogParser and is not
    safe to share between threads.
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._uuids: Dict[str, str] = dict(entries or {})

    def remember(self, name: str, uuid: str) -> None:
        self._uuids[name] = uuid

    def get(self, name: str) -> str:
        """Return the cached UUID, or an empty string if unknown."""
        return self._uuids.get(name, "")

    def lookup(self, name: str) -> Optional[str]:
        return self._uuids.get(name)

    def forget(self, name: str) -> None:
        """Drop a player. Unknown names are ignored."""
        self._uuids.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._uuids

    def __len__(self) -> int:
        return len(self._uuids)

    def __repr__(self) -> str:
        return f"UuidCache({self._uuids!r})"
