"""State transitions for registration, drafting, ring entry and eliminations.

Every function here takes the current GameState and returns a new one,
leaving its input untouched. A return of None means the operation had
nothing to do. Invalid calls raise before anything is copied, so callers
can checkpoint only after a transition succeeds.
"""

from numbers import Number
from typing import Any, Dict, Iterable, List, Optional

from .draft_order import next_drafter_index
from .entities import (
    DRAFTED, ELIMINATED, IN_RING, POOL,
    Entrant, GameState, LogEvent, Participant, new_id, read_count, read_flag,
)
from .errors import PreconditionViolation, ValidationError
from .scoring import award_elimination_points, award_survival_points

MAX_LOGS = 50


def append_log(state: GameState, message: str, now: int, max_logs: int = MAX_LOGS) -> GameState:
    """Prepend a log entry in place, dropping the oldest past ``max_logs``."""
    state.logs = [LogEvent(message=message, timestamp=now)] + state.logs
    del state.logs[max_logs:]
    return state


def _require_name(name: Optional[str], what: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f'{what} name is required')
    return name


def _require_entrant(state: GameState, entrant_id: str, status: Optional[str] = None) -> Entrant:
    entrant = state.find_entrant(entrant_id)
    if entrant is None:
        raise PreconditionViolation(f'Unknown entrant {entrant_id!r}')
    if status is not None and entrant.status != status:
        raise PreconditionViolation(f'{entrant.name} is {entrant.status}, expected {status}')
    return entrant


def _require_participant(state: GameState, participant_id: str) -> Participant:
    participant = state.find_participant(participant_id)
    if participant is None:
        raise PreconditionViolation(f'Unknown participant {participant_id!r}')
    return participant


def register_participant(state: GameState, name: str, now: int, max_logs: int = MAX_LOGS) -> GameState:
    name = _require_name(name, 'Participant')
    new_state = state.copy()
    new_state.participants.append(Participant(id=new_id(), name=name))
    return append_log(new_state, f'{name} joined the Rumble!', now, max_logs)


def _build_entrant(data: Dict[str, Any]) -> Entrant:
    if not isinstance(data, dict):
        raise ValidationError('Entrant must be an object')
    return Entrant(
        id=new_id(),
        name=_require_name(data.get('name'), 'Entrant'),
        affiliation=data.get('affiliation'),
        odds=data.get('odds'),
        confirmed=bool(data.get('confirmed') or False),
    )


def add_entrants(state: GameState, batch: Iterable[Dict[str, Any]]) -> Optional[GameState]:
    """Add entrants to the pool. Nothing is added unless every item is valid."""
    entrants = [_build_entrant(data) for data in batch]
    if not entrants:
        return None
    new_state = state.copy()
    new_state.entrants.extend(entrants)
    return new_state


def add_entrant(state: GameState, data: Dict[str, Any]) -> GameState:
    return add_entrants(state, [data])


def remove_entrant(state: GameState, entrant_id: str) -> GameState:
    _require_entrant(state, entrant_id)
    new_state = state.copy()
    new_state.entrants = [e for e in new_state.entrants if e.id != entrant_id]
    return new_state


def draft_pick(state: GameState, entrant_id: str, now: int, max_logs: int = MAX_LOGS) -> Optional[GameState]:
    """Give an entrant from the pool to the participant on the clock."""
    if not state.participants:
        return None
    _require_entrant(state, entrant_id, POOL)
    if not 0 <= state.current_drafter_index < len(state.participants):
        raise PreconditionViolation(f'No participant at drafter index {state.current_drafter_index}')

    new_state = state.copy()
    drafter = new_state.participants[new_state.current_drafter_index]
    entrant = new_state.find_entrant(entrant_id)
    entrant.status = DRAFTED
    entrant.drafted_by = drafter.id
    drafter.roster.append(entrant.id)
    append_log(new_state, f'{drafter.name} drafted {entrant.name}.', now, max_logs)

    new_state.current_drafter_index = next_drafter_index(state.total_picks, len(state.participants))
    new_state.total_picks = state.total_picks + 1
    return new_state


def enter_ring(state: GameState, entrant_id: str, now: int, max_logs: int = MAX_LOGS) -> GameState:
    _require_entrant(state, entrant_id, DRAFTED)
    new_state = state.copy()
    entrant = new_state.find_entrant(entrant_id)
    entrant.status = IN_RING
    entrant.entry_order = now
    return append_log(new_state, f'{entrant.name} has entered the ring!', now, max_logs)


def eliminate(state: GameState, entrant_id: str, eliminator_ids: List[str], now: int,
              max_logs: int = MAX_LOGS) -> GameState:
    """Knock an entrant out and pay elimination and survival points.

    Scoring reads ``state`` as it was before this elimination.
    """
    _require_entrant(state, entrant_id, IN_RING)
    eliminator_ids = list(eliminator_ids or [])

    new_state = state.copy()
    entrant = new_state.find_entrant(entrant_id)
    entrant.status = ELIMINATED
    entrant.elimination_time = now
    entrant.eliminated_by = list(eliminator_ids)

    names = [e.name for e in (state.find_entrant(i) for i in eliminator_ids) if e and e.name]
    append_log(new_state, f"{entrant.name} eliminated by {', '.join(names) or 'Unknown'}!", now, max_logs)

    award_elimination_points(state, new_state, entrant_id, eliminator_ids)
    award_survival_points(state, new_state, entrant_id)
    return new_state


def set_participant_score(state: GameState, participant_id: str, new_score) -> GameState:
    if isinstance(new_score, bool) or not isinstance(new_score, Number):
        raise ValidationError('Score must be a number')
    _require_participant(state, participant_id)
    new_state = state.copy()
    new_state.find_participant(participant_id).total_score = new_score
    return new_state


def move_participant(state: GameState, participant_id: str, direction: str) -> Optional[GameState]:
    """Swap a participant with its neighbour in the draft order."""
    if direction not in ('up', 'down'):
        raise ValidationError("direction must be 'up' or 'down'")
    if state.total_picks > 0:
        raise PreconditionViolation('Draft order is locked once picks have been made')
    participant = _require_participant(state, participant_id)
    index = state.participants.index(participant)
    swap_index = index - 1 if direction == 'up' else index + 1
    if not 0 <= swap_index < len(state.participants):
        return None
    new_state = state.copy()
    order = new_state.participants
    order[index], order[swap_index] = order[swap_index], order[index]
    return new_state


def set_drafting(state: GameState, is_drafting: bool) -> GameState:
    new_state = state.copy()
    new_state.is_drafting = bool(is_drafting)
    return new_state


def set_current_drafter(state: GameState, index: int) -> GameState:
    if isinstance(index, bool) or not isinstance(index, int):
        raise ValidationError('Drafter index must be an integer')
    if not 0 <= index < len(state.participants):
        raise PreconditionViolation(f'No participant at drafter index {index}')
    new_state = state.copy()
    new_state.current_drafter_index = index
    return new_state


def apply_import(state: GameState, parsed: Dict[str, Any]) -> GameState:
    """Overlay the fields present in an imported document onto ``state``."""
    new_state = state.copy()
    if parsed.get('entrants') is not None:
        new_state.entrants = [Entrant.from_dict(e) for e in parsed['entrants']]
    if parsed.get('participants') is not None:
        new_state.participants = [Participant.from_dict(p) for p in parsed['participants']]
    if 'currentDrafterIndex' in parsed:
        new_state.current_drafter_index = read_count(parsed['currentDrafterIndex'], 'currentDrafterIndex')
    if 'isDrafting' in parsed:
        new_state.is_drafting = read_flag(parsed['isDrafting'], 'isDrafting')
    if 'totalPicks' in parsed:
        new_state.total_picks = read_count(parsed['totalPicks'], 'totalPicks')
    if parsed.get('logs') is not None:
        new_state.logs = [LogEvent.from_dict(log) for log in parsed['logs']]
    return new_state
