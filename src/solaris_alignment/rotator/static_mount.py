from __future__ import annotations

"""
static_mount.py
===============
In-process stand-ins for the mount collaborators of ``RotatorSession``.

``StaticMount`` keeps a pier side set by its owner (a status poller, a CLI
flag, a test) and pushes every change to its subscribers.
``StaticMountResolver`` maps configuration ids to such mounts.
"""

from typing import Dict, List, Optional

from solaris_alignment.align_core.model import PierSide, PierSideListener


class StaticMount:
    def __init__(self, pier_side: PierSide = PierSide.UNKNOWN) -> None:
        self._pier_side = PierSide.parse(pier_side)
        self._subscribers: List[PierSideListener] = []

    @property
    def pier_side(self) -> PierSide:
        return self._pier_side

    def set_pier_side(self, side: PierSide) -> None:
        """Update the pier side and notify subscribers if it changed."""
        side = PierSide.parse(side)
        if side == self._pier_side:
            return
        self._pier_side = side
        for callback in list(self._subscribers):
            callback(side)

    def subscribe_pier_side(self, callback: PierSideListener) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe_pier_side(self, callback: PierSideListener) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class StaticMountResolver:
    def __init__(self, mounts: Optional[Dict[str, StaticMount]] = None) -> None:
        self.mounts: Dict[str, StaticMount] = dict(mounts or {})

    def get_mount(self, configuration_id: str) -> Optional[StaticMount]:
        return self.mounts.get(configuration_id)


__all__ = ["StaticMount", "StaticMountResolver"]
