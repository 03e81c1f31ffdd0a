import json

import pytest

from rumble.services.game import (
    IN_RING, GameEngine, GameState, ImportParseError, PreconditionViolation, ValidationError,
)


@pytest.fixture()
def engine(store, clock):
    return GameEngine(store=store, clock=clock)


def _stocked(engine, participants=('Alice', 'Bob'), entrants=('Rhea', 'Cody', 'Bianca', 'Roman')):
    for name in participants:
        engine.register_participant(name)
    engine.add_entrants([{'name': n} for n in entrants])
    return {e.name: e.id for e in engine.state.entrants}


def _without_logs(state):
    data = state.to_dict()
    data.pop('logs')
    return data


def test_operations_persist_full_state(engine, store):
    engine.register_participant('Alice')
    assert store.payload == engine.state.to_dict()
    assert store.payload['participants'][0]['name'] == 'Alice'


def test_each_operation_pushes_one_checkpoint(engine):
    ids = _stocked(engine)
    # 2 registrations + 1 batch
    assert len(engine.history) == 3
    engine.draft_pick(ids['Rhea'])
    engine.enter_ring(ids['Rhea'])
    assert len(engine.history) == 5


def test_failed_operation_leaves_state_and_history(engine):
    ids = _stocked(engine)
    before = engine.state.copy()
    depth = len(engine.history)
    with pytest.raises(PreconditionViolation):
        engine.eliminate(ids['Rhea'], [])
    with pytest.raises(ValidationError):
        engine.register_participant('  ')
    assert engine.state == before
    assert len(engine.history) == depth


def test_draft_without_participants_is_noop(engine, store):
    engine.add_entrant('Rhea')
    saves = len(store.saves)
    assert engine.draft_pick(engine.state.entrants[0].id) is False
    assert len(engine.history) == 1
    assert len(store.saves) == saves


@pytest.mark.parametrize('operation', [
    lambda eng, ids: eng.register_participant('Carmen'),
    lambda eng, ids: eng.add_entrant('Seth', affiliation='Raw', odds=12),
    lambda eng, ids: eng.add_entrants([{'name': 'Seth'}, {'name': 'Becky'}]),
    lambda eng, ids: eng.remove_entrant(ids['Roman']),
    lambda eng, ids: eng.draft_pick(ids['Roman']),
    lambda eng, ids: eng.enter_ring(ids['Cody']),
    lambda eng, ids: eng.eliminate(ids['Rhea'], [ids['Bianca']]),
    lambda eng, ids: eng.set_participant_score(eng.state.participants[0].id, 99),
    lambda eng, ids: eng.set_drafting(False),
    lambda eng, ids: eng.set_current_drafter(0),
    lambda eng, ids: eng.reset_game(),
    lambda eng, ids: eng.import_state(json.dumps({'totalPicks': 42})),
])
def test_undo_is_inverse_of_operation(engine, operation):
    ids = _stocked(engine)
    engine.draft_pick(ids['Rhea'])
    engine.draft_pick(ids['Cody'])
    engine.draft_pick(ids['Bianca'])
    engine.enter_ring(ids['Rhea'])
    engine.enter_ring(ids['Bianca'])
    before = engine.state.copy()

    operation(engine, ids)
    assert engine.undo() is True

    assert _without_logs(engine.state) == _without_logs(before)
    assert engine.state.logs[0].message == 'Undid last action.'
    assert engine.state.logs[1:] == before.logs


def test_undo_is_not_undoable(engine):
    engine.register_participant('Alice')
    engine.register_participant('Bob')
    engine.undo()
    engine.undo()
    assert engine.state.participants == []
    assert engine.undo() is False
    assert engine.state.participants == []


def test_undo_on_empty_history_is_noop(engine, store):
    assert engine.undo() is False
    assert store.saves == []


def test_history_keeps_last_twenty(store, clock):
    engine = GameEngine(store=store, clock=clock)
    for i in range(25):
        engine.add_entrant(f'E{i}')
    assert len(engine.history) == 20
    while engine.undo():
        pass
    # the five oldest checkpoints were evicted
    assert [e.name for e in engine.state.entrants] == [f'E{i}' for i in range(5)]


def test_checkpoints_are_isolated_from_live_state(engine):
    engine.register_participant('Alice')
    alice_id = engine.state.participants[0].id
    engine.set_participant_score(alice_id, 5)
    engine.state.participants[0].total_score = 1000
    engine.undo()
    assert engine.state.participants[0].total_score == 0


def test_logs_capped_at_fifty(engine):
    for i in range(55):
        engine.add_log(f'note {i}')
    assert len(engine.state.logs) == 50
    assert engine.state.logs[0].message == 'note 54'
    assert all(log.message != 'note 0' for log in engine.state.logs)
    # add_log is not checkpointed
    assert len(engine.history) == 0


def test_reset_clears_store_and_state(engine, store):
    _stocked(engine)
    engine.reset_game()
    assert store.clears == 1
    assert engine.state == GameState()
    assert store.payload == GameState().to_dict()
    engine.undo()
    assert len(engine.state.participants) == 2


def test_export_import_round_trip(engine, clock, store):
    ids = _stocked(engine)
    engine.draft_pick(ids['Rhea'])
    engine.enter_ring(ids['Rhea'])
    engine.set_participant_score(engine.state.participants[1].id, 1.5)
    filename, text = engine.export_state()
    assert filename.startswith('royal-rumble-state-')
    assert filename.endswith('Z.json')

    exported = engine.state.copy()
    other = GameEngine(store=store, clock=clock)
    other.import_state(text)
    assert other.state == exported


def test_import_keeps_missing_fields(engine):
    ids = _stocked(engine)
    engine.draft_pick(ids['Rhea'])
    entrants = engine.state.copy().entrants
    engine.import_state(json.dumps({'isDrafting': False, 'participants': []}))
    assert engine.state.is_drafting is False
    assert engine.state.participants == []
    assert engine.state.entrants == entrants
    assert engine.state.total_picks == 1


@pytest.mark.parametrize('text', [
    '{not json',
    '[1, 2]',
    '{"entrants": [{"name": "no id"}]}',
    '{"entrants": 5}',
    '{"currentDrafterIndex": null}',
    '{"currentDrafterIndex": -1}',
    '{"currentDrafterIndex": true}',
    '{"totalPicks": null}',
    '{"totalPicks": "3"}',
    '{"isDrafting": "yes"}',
    '{"entrants": [{"id": "x", "name": "X", "status": "BANANA"}]}',
])
def test_failed_import_changes_nothing(engine, text):
    _stocked(engine)
    before = engine.state.copy()
    depth = len(engine.history)
    with pytest.raises(ImportParseError):
        engine.import_state(text)
    assert engine.state == before
    assert len(engine.history) == depth


def test_hydrate_from_store(store, clock):
    first = GameEngine(store=store, clock=clock)
    ids = _stocked(first)
    first.draft_pick(ids['Rhea'])

    second = GameEngine(store=store, clock=clock)
    second.hydrate()
    assert second.state == first.state
    assert len(second.history) == 0


def test_hydrate_without_record_starts_empty(engine):
    assert engine.hydrate() == GameState()


def test_hydrate_with_unreadable_record_starts_empty(store, clock):
    store.payload = {'entrants': [{'name': 'missing id'}]}
    engine = GameEngine(store=store, clock=clock)
    assert engine.hydrate() == GameState()


def test_hydrate_defaults_missing_fields(store, clock):
    store.payload = {'participants': [{'id': 'p1', 'name': 'Alice'}]}
    engine = GameEngine(store=store, clock=clock)
    state = engine.hydrate()
    assert state.is_drafting is True
    assert state.current_drafter_index == 0
    assert state.participants[0].total_score == 0


def test_derived_views(engine):
    ids = _stocked(engine)
    assert engine.current_drafter().name == 'Alice'
    assert [e.name for e in engine.pool('r')] == ['Rhea', 'Roman']
    engine.draft_pick(ids['Rhea'])
    engine.draft_pick(ids['Cody'])
    engine.enter_ring(ids['Rhea'])
    engine.enter_ring(ids['Cody'])
    assert {e.status for e in engine.state.entrants if e.name in ('Rhea', 'Cody')} == {IN_RING}
    assert engine.current_drafter().name == 'Bob'
    engine.eliminate(ids['Rhea'], [ids['Cody']])
    assert [e.name for e in engine.in_ring()] == ['Cody']
    assert [p.name for p in engine.leaderboard()] == ['Bob', 'Alice']
    assert engine.ticker(1)[0].message == 'Rhea eliminated by Cody!'


def test_hydrate_with_ill_typed_counters_starts_empty(store, clock):
    store.payload = {'participants': [], 'currentDrafterIndex': 'x'}
    engine = GameEngine(store=store, clock=clock)
    assert engine.hydrate() == GameState()


def test_winner_needs_one_entrant_left_standing(engine):
    assert engine.winner() is None
    ids = _stocked(engine, entrants=('Rhea', 'Cody'))
    engine.draft_pick(ids['Rhea'])
    assert engine.winner() is None
    engine.draft_pick(ids['Cody'])
    engine.enter_ring(ids['Rhea'])
    assert engine.winner() is None
    engine.enter_ring(ids['Cody'])
    assert engine.winner() is None

    engine.eliminate(ids['Rhea'], [ids['Cody']])
    entrant, manager = engine.winner()
    assert entrant.name == 'Cody'
    assert manager.name == 'Bob'


def test_winner_waits_for_undrafted_entrants(engine):
    ids = _stocked(engine, entrants=('Rhea', 'Cody', 'Bianca'))
    engine.draft_pick(ids['Rhea'])
    engine.draft_pick(ids['Cody'])
    engine.enter_ring(ids['Rhea'])
    engine.enter_ring(ids['Cody'])
    engine.eliminate(ids['Rhea'], [ids['Cody']])
    assert engine.winner() is None
