from collections import deque
from typing import Optional

from .entities import GameState

MAX_HISTORY = 20


class CheckpointStack:
    """Bounded undo history of full GameState snapshots.

    Pushing past ``capacity`` silently drops the oldest snapshot.
    """

    def __init__(self, capacity: int = MAX_HISTORY):
        if capacity < 1:
            raise ValueError('capacity must be at least 1')
        self.capacity = capacity
        self._snapshots = deque(maxlen=capacity)

    def push(self, state: GameState) -> None:
        self._snapshots.append(state.copy())

    def pop(self) -> Optional[GameState]:
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def clear(self) -> None:
        self._snapshots.clear()

    def __len__(self) -> int:
        return len(self._snapshots)
