"""
Records that make up a game: entrants, participants, log events and the
GameState that bundles them for checkpointing and sync.

Every record serializes to the camelCase JSON shape used by the browser
windows, so a state dumped here can be loaded there and vice versa.
"""

import copy
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

POOL = 'POOL'
DRAFTED = 'DRAFTED'
IN_RING = 'IN_RING'
ELIMINATED = 'ELIMINATED'
STATUSES = (POOL, DRAFTED, IN_RING, ELIMINATED)


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


def read_count(value: Any, what: str) -> int:
    """Check a counter or index read from a record: a non-negative int."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TypeError(f"{what} must be a non-negative integer, got {value!r}")
    return value


def read_flag(value: Any, what: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{what} must be true or false, got {value!r}")
    return value


def read_status(value: Any) -> str:
    if value not in STATUSES:
        raise ValueError(f"Unknown entrant status {value!r}")
    return value


@dataclass
class Entrant:
    id: str
    name: str
    status: str = POOL
    drafted_by: Optional[str] = None
    eliminated_by: List[str] = field(default_factory=list)
    entry_order: Optional[int] = None
    elimination_time: Optional[int] = None
    affiliation: Optional[str] = None
    odds: Optional[Union[str, float, int]] = None
    confirmed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'draftedBy': self.drafted_by,
            'eliminatedBy': list(self.eliminated_by),
            'entryOrder': self.entry_order,
            'eliminationTime': self.elimination_time,
            'affiliation': self.affiliation,
            'odds': self.odds,
            'confirmed': self.confirmed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entrant':
        return cls(
            id=data['id'],
            name=data['name'],
            status=read_status(data.get('status') or POOL),
            drafted_by=data.get('draftedBy'),
            eliminated_by=list(data.get('eliminatedBy') or []),
            entry_order=data.get('entryOrder'),
            elimination_time=data.get('eliminationTime'),
            affiliation=data.get('affiliation'),
            odds=data.get('odds'),
            confirmed=bool(data.get('confirmed', False)),
        )


@dataclass
class Participant:
    id: str
    name: str
    roster: List[str] = field(default_factory=list)  # entrant ids, in draft order
    total_score: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'roster': list(self.roster),
            'totalScore': self.total_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Participant':
        return cls(
            id=data['id'],
            name=data['name'],
            roster=list(data.get('roster') or []),
            total_score=data.get('totalScore') or 0,
        )


@dataclass
class LogEvent:
    message: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message, 'timestamp': self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogEvent':
        return cls(message=data['message'], timestamp=data['timestamp'])


@dataclass
class GameState:
    """The whole game. This is what gets checkpointed, stored and broadcast."""

    entrants: List[Entrant] = field(default_factory=list)
    participants: List[Participant] = field(default_factory=list)
    current_drafter_index: int = 0
    is_drafting: bool = True
    total_picks: int = 0
    logs: List[LogEvent] = field(default_factory=list)

    def copy(self) -> 'GameState':
        return copy.deepcopy(self)

    def find_entrant(self, entrant_id: str) -> Optional[Entrant]:
        return next((e for e in self.entrants if e.id == entrant_id), None)

    def find_participant(self, participant_id: Optional[str]) -> Optional[Participant]:
        if participant_id is None:
            return None
        return next((p for p in self.participants if p.id == participant_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entrants': [e.to_dict() for e in self.entrants],
            'participants': [p.to_dict() for p in self.participants],
            'currentDrafterIndex': self.current_drafter_index,
            'isDrafting': self.is_drafting,
            'totalPicks': self.total_picks,
            'logs': [log.to_dict() for log in self.logs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        """Build a state from a stored or broadcast record.

        Missing fields fall back to the values of a fresh game, the same way
        a window hydrates from storage.
        """
        is_drafting = data.get('isDrafting')
        drafter_index = data.get('currentDrafterIndex')
        total_picks = data.get('totalPicks')
        return cls(
            entrants=[Entrant.from_dict(e) for e in data.get('entrants') or []],
            participants=[Participant.from_dict(p) for p in data.get('participants') or []],
            current_drafter_index=0 if drafter_index is None else read_count(drafter_index, 'currentDrafterIndex'),
            is_drafting=True if is_drafting is None else read_flag(is_drafting, 'isDrafting'),
            total_picks=0 if total_picks is None else read_count(total_picks, 'totalPicks'),
            logs=[LogEvent.from_dict(log) for log in data.get('logs') or []],
        )
