"""Game domain services: drafting, scoring, undo history and sync.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""

from .draft_order import next_drafter_index
from .engine import GameEngine
from .entities import DRAFTED, ELIMINATED, IN_RING, POOL, Entrant, GameState, LogEvent, Participant
from .errors import ImportParseError, PreconditionViolation, RumbleError, ValidationError
from .history import CheckpointStack
from .sync import LocalChannel, SocketIOChannel, SQLStateStore
