import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from . import lifecycle
from .entities import DRAFTED, IN_RING, POOL, Entrant, GameState, LogEvent, Participant, now_ms
from .errors import ImportParseError
from .history import CheckpointStack, MAX_HISTORY

UNDO_MESSAGE = 'Undid last action.'


class GameEngine:
    """One window's view of the game.

    Owns the live GameState and its undo history, and pushes every locally
    made change to the durable store and the broadcast channel. Changes that
    arrive over the channel are adopted as-is and go no further.
    """

    def __init__(self, store=None, channel=None, max_history: int = MAX_HISTORY,
                 max_logs: int = lifecycle.MAX_LOGS, clock: Callable[[], int] = now_ms,
                 logger: Optional[logging.Logger] = None):
        self.store = store
        self.channel = channel
        self.history = CheckpointStack(max_history)
        self.max_logs = max_logs
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._state = GameState()
        self._remote_update = False
        if channel is not None:
            channel.subscribe(self.receive_remote)

    @property
    def state(self) -> GameState:
        return self._state

    # ---- change cycle ----

    def _commit(self, new_state: Optional[GameState], checkpoint: bool = True) -> bool:
        if new_state is None:
            return False
        if checkpoint:
            self.history.push(self._state)
        self._state = new_state
        self._state_changed()
        return True

    def _state_changed(self) -> None:
        if self._remote_update:
            self._remote_update = False
            return
        payload = self._state.to_dict()
        if self.store is not None:
            self.store.save(payload)
        if self.channel is not None:
            self.channel.publish(payload)

    def receive_remote(self, payload: Dict[str, Any]) -> None:
        """Adopt a state broadcast by another window, replacing ours in full."""
        if not payload:
            return
        new_state = GameState.from_dict(payload)
        self._remote_update = True
        self._state = new_state
        self._state_changed()
        self.logger.info(
            f"[sync-recv] entrants={len(new_state.entrants)} participants={len(new_state.participants)} picks={new_state.total_picks}"
        )

    def hydrate(self) -> GameState:
        """Load the stored game, or start empty if there is none."""
        payload = None
        if self.store is not None:
            try:
                payload = self.store.load()
            except (ValueError, KeyError, TypeError) as exc:
                self.logger.error(f"[hydrate] failed to load game state: {exc}")
        if payload:
            try:
                self._state = GameState.from_dict(payload)
            except (KeyError, TypeError, ValueError) as exc:
                self.logger.error(f"[hydrate] failed to load game state: {exc}")
                self._state = GameState()
        else:
            self._state = GameState()
        return self._state

    # ---- operations ----

    def add_log(self, message: str) -> None:
        new_state = lifecycle.append_log(self._state.copy(), message, self.clock(), self.max_logs)
        self._commit(new_state, checkpoint=False)

    def register_participant(self, name: str) -> Participant:
        self._commit(lifecycle.register_participant(self._state, name, self.clock(), self.max_logs))
        participant = self._state.participants[-1]
        self.logger.info(f"[register] participant={participant.id} name={participant.name}")
        return participant

    def add_entrant(self, name: str, affiliation: Optional[str] = None, odds=None,
                    confirmed: bool = False) -> Entrant:
        data = {'name': name, 'affiliation': affiliation, 'odds': odds, 'confirmed': confirmed}
        self._commit(lifecycle.add_entrant(self._state, data))
        return self._state.entrants[-1]

    def add_entrants(self, batch: Iterable[Dict[str, Any]]) -> List[Entrant]:
        """Add many entrants under a single checkpoint."""
        before = len(self._state.entrants)
        if not self._commit(lifecycle.add_entrants(self._state, list(batch))):
            return []
        added = self._state.entrants[before:]
        self.logger.info(f"[pool] added {len(added)} entrants")
        return added

    def remove_entrant(self, entrant_id: str) -> None:
        self._commit(lifecycle.remove_entrant(self._state, entrant_id))

    def draft_pick(self, entrant_id: str) -> bool:
        """Draft for whoever is on the clock. False when nobody can draft."""
        drafter = self.current_drafter()
        if not self._commit(lifecycle.draft_pick(self._state, entrant_id, self.clock(), self.max_logs)):
            return False
        self.logger.info(
            f"[draft] pick={self._state.total_picks} participant={drafter.id} entrant={entrant_id} next={self._state.current_drafter_index}"
        )
        return True

    def enter_ring(self, entrant_id: str) -> None:
        self._commit(lifecycle.enter_ring(self._state, entrant_id, self.clock(), self.max_logs))
        self.logger.info(f"[ring] entrant={entrant_id} entered")

    def eliminate(self, entrant_id: str, eliminator_ids: Optional[List[str]] = None) -> None:
        self._commit(lifecycle.eliminate(self._state, entrant_id, eliminator_ids or [], self.clock(), self.max_logs))
        self.logger.info(f"[eliminate] entrant={entrant_id} by={eliminator_ids or []}")

    def set_participant_score(self, participant_id: str, new_score) -> None:
        self._commit(lifecycle.set_participant_score(self._state, participant_id, new_score))
        self.logger.info(f"[score-override] participant={participant_id} score={new_score}")

    def move_participant(self, participant_id: str, direction: str) -> bool:
        return self._commit(lifecycle.move_participant(self._state, participant_id, direction))

    def set_drafting(self, is_drafting: bool) -> None:
        self._commit(lifecycle.set_drafting(self._state, is_drafting))

    def set_current_drafter(self, index: int) -> None:
        self._commit(lifecycle.set_current_drafter(self._state, index))

    def reset_game(self) -> None:
        self.history.push(self._state)
        if self.store is not None:
            self.store.clear()
        self._state = GameState()
        self._state_changed()
        self.logger.info("[reset] game cleared")

    def undo(self) -> bool:
        """Roll back the last checkpointed change. The rollback itself is not undoable."""
        previous = self.history.pop()
        if previous is None:
            return False
        self._state = lifecycle.append_log(previous, UNDO_MESSAGE, self.clock(), self.max_logs)
        self._state_changed()
        self.logger.info(f"[undo] remaining={len(self.history)}")
        return True

    # ---- import / export ----

    def export_state(self) -> Tuple[str, str]:
        """Return ``(filename, json_text)`` for a downloadable save file."""
        stamp = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'
        return f"royal-rumble-state-{stamp}.json", json.dumps(self._state.to_dict(), indent=2)

    def import_state(self, text: str) -> None:
        """Overwrite the fields present in ``text``.

        Nothing changes, and no checkpoint is taken, if the text can't be read.
        """
        try:
            parsed = json.loads(text)
        except (TypeError, ValueError) as exc:
            self.logger.error(f"[import] invalid JSON: {exc}")
            raise ImportParseError('Invalid JSON file') from exc
        if not isinstance(parsed, dict):
            raise ImportParseError('Imported state must be a JSON object')
        try:
            new_state = lifecycle.apply_import(self._state, parsed)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            self.logger.error(f"[import] unreadable records: {exc!r}")
            raise ImportParseError('Imported state has unreadable records') from exc
        self._commit(new_state)
        self.logger.info("[import] game state imported")

    # ---- derived views ----

    def current_drafter(self) -> Optional[Participant]:
        participants = self._state.participants
        if 0 <= self._state.current_drafter_index < len(participants):
            return participants[self._state.current_drafter_index]
        return None

    def pool(self, search: str = '') -> List[Entrant]:
        term = (search or '').lower()
        return [e for e in self._state.entrants if e.status == POOL and term in e.name.lower()]

    def in_ring(self) -> List[Entrant]:
        return [e for e in self._state.entrants if e.status == IN_RING]

    def winner(self) -> Optional[Tuple[Entrant, Optional[Participant]]]:
        """The last entrant standing and their manager, once the match is over.

        The match is over when every entrant has entered and exactly one is
        still in the ring.
        """
        entrants = self._state.entrants
        if not entrants or any(e.status in (POOL, DRAFTED) for e in entrants):
            return None
        standing = self.in_ring()
        if len(standing) != 1:
            return None
        return standing[0], self._state.find_participant(standing[0].drafted_by)

    def leaderboard(self) -> List[Participant]:
        return sorted(self._state.participants, key=lambda p: p.total_score, reverse=True)

    def ticker(self, limit: int = 10) -> List[LogEvent]:
        return self._state.logs[:limit]
