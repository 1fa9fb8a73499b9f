"""
Curve registry: an arena of `CurveState` records keyed by mint.

Each record lives in its own slot guarded by its own lock, so operations on
different curves never contend, while operations on one curve are serialized.
The registry-wide lock is held only to insert or look up a slot, never for the
duration of a trade.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from ..core.curve.types import CurveState
from ..core.errors import DuplicateCurve, UnknownCurve

logger = logging.getLogger(__name__)


class CurveSlot:
    """Mutable holder for one curve's current state and its lock."""

    __slots__ = ("mint", "state", "lock")

    def __init__(self, state: CurveState) -> None:
        self.mint = state.mint
        self.state = state
        self.lock = threading.Lock()

    def commit(self, new_state: CurveState) -> None:
        if new_state.mint != self.mint:
            raise ValueError(f"cannot commit state of {new_state.mint} into slot {self.mint}")
        self.state = new_state

    def __repr__(self) -> str:
        return f"CurveSlot({self.mint!r}, phase={self.state.phase.value})"


class CurveRegistry:
    def __init__(self) -> None:
        self._slots: Dict[str, CurveSlot] = {}
        self._lock = threading.Lock()

    def register(self, state: CurveState) -> CurveSlot:
        with self._lock:
            if state.mint in self._slots:
                raise DuplicateCurve(f"curve already exists for mint {state.mint}")
            slot = CurveSlot(state)
            self._slots[state.mint] = slot
        logger.debug("registered curve %s", state.mint)
        return slot

    def _slot(self, mint: str) -> CurveSlot:
        with self._lock:
            slot = self._slots.get(mint)
        if slot is None:
            raise UnknownCurve(f"no curve for mint {mint}")
        return slot

    def get(self, mint: str) -> CurveState:
        """Current committed state (a frozen value, safe to read without the lock)."""
        return self._slot(mint).state

    @contextmanager
    def locked(self, mint: str) -> Iterator[CurveSlot]:
        """Hold exclusive access to one curve for the duration of the block."""
        slot = self._slot(mint)
        with slot.lock:
            yield slot

    def __contains__(self, mint: object) -> bool:
        with self._lock:
            return mint in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def mints(self) -> List[str]:
        with self._lock:
            return sorted(self._slots)

    def __repr__(self) -> str:
        return f"CurveRegistry({len(self)} curves)"
