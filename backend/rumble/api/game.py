from flask import Blueprint, Response, current_app, jsonify, request
from rumble import get_engine
from rumble.services.game import ImportParseError, PreconditionViolation, ValidationError


game = Blueprint('game', __name__)


def _state_payload(engine):
    payload = engine.state.to_dict()
    drafter = engine.current_drafter()
    payload['current_drafter'] = drafter.to_dict() if drafter else None
    payload['undo_depth'] = len(engine.history)
    winner = engine.winner()
    payload['winner'] = None
    if winner:
        entrant, manager = winner
        payload['winner'] = {'entrant': entrant.to_dict(), 'manager': manager.to_dict() if manager else None}
    return payload


@game.errorhandler(ValidationError)
def handle_validation_error(exc):
    return jsonify({'error': str(exc)}), 400


@game.errorhandler(PreconditionViolation)
def handle_precondition_violation(exc):
    current_app.logger.info(f"[precondition] {exc}")
    return jsonify({'error': str(exc)}), 409


@game.errorhandler(ImportParseError)
def handle_import_error(exc):
    return jsonify({'error': str(exc)}), 400


@game.route('/state', methods=['GET'])
def get_state():
    return jsonify(_state_payload(get_engine()))


@game.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    engine = get_engine()
    return jsonify({
        'leaderboard': [p.to_dict() for p in engine.leaderboard()],
        'in_ring': [e.to_dict() for e in engine.in_ring()],
        'ticker': [log.to_dict() for log in engine.ticker()],
    })


@game.route('/participants', methods=['POST'])
def register_participant():
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    participant = engine.register_participant(data.get('name'))
    return jsonify({'participant': participant.to_dict(), 'state': _state_payload(engine)}), 201


@game.route('/participants/<string:participant_id>/move', methods=['POST'])
def move_participant(participant_id):
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    engine.move_participant(participant_id, data.get('direction'))
    return jsonify(_state_payload(engine))


@game.route('/participants/<string:participant_id>/score', methods=['PUT'])
def set_participant_score(participant_id):
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    engine.set_participant_score(participant_id, data.get('score'))
    return jsonify(_state_payload(engine))


@game.route('/entrants', methods=['POST'])
def add_entrant():
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    entrant = engine.add_entrant(
        data.get('name'),
        affiliation=data.get('affiliation'),
        odds=data.get('odds'),
        confirmed=bool(data.get('confirmed', False)),
    )
    return jsonify({'entrant': entrant.to_dict(), 'state': _state_payload(engine)}), 201


@game.route('/entrants/batch', methods=['POST'])
def add_entrants():
    data = request.get_json(silent=True) or {}
    batch = data.get('entrants')
    if not isinstance(batch, list):
        return jsonify({'error': 'entrants must be a list'}), 400
    engine = get_engine()
    added = engine.add_entrants(batch)
    return jsonify({'added': [e.to_dict() for e in added], 'state': _state_payload(engine)}), 201


@game.route('/entrants/<string:entrant_id>', methods=['DELETE'])
def remove_entrant(entrant_id):
    engine = get_engine()
    engine.remove_entrant(entrant_id)
    return jsonify(_state_payload(engine))


@game.route('/draft', methods=['POST'])
def draft_pick():
    data = request.get_json(silent=True) or {}
    entrant_id = data.get('entrant_id')
    if not entrant_id:
        return jsonify({'error': 'entrant_id is required'}), 400
    engine = get_engine()
    drafted = engine.draft_pick(entrant_id)
    payload = _state_payload(engine)
    payload['drafted'] = drafted
    return jsonify(payload)


@game.route('/entrants/<string:entrant_id>/enter', methods=['POST'])
def enter_ring(entrant_id):
    engine = get_engine()
    engine.enter_ring(entrant_id)
    return jsonify(_state_payload(engine))


@game.route('/entrants/<string:entrant_id>/eliminate', methods=['POST'])
def eliminate(entrant_id):
    data = request.get_json(silent=True) or {}
    eliminator_ids = data.get('eliminator_ids') or []
    if not isinstance(eliminator_ids, list):
        return jsonify({'error': 'eliminator_ids must be a list'}), 400
    engine = get_engine()
    engine.eliminate(entrant_id, eliminator_ids)
    return jsonify(_state_payload(engine))


@game.route('/drafting', methods=['POST'])
def set_drafting():
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get('is_drafting'), bool):
        return jsonify({'error': 'is_drafting must be true or false'}), 400
    engine = get_engine()
    engine.set_drafting(data['is_drafting'])
    return jsonify(_state_payload(engine))


@game.route('/drafter', methods=['POST'])
def set_current_drafter():
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    engine.set_current_drafter(data.get('index'))
    return jsonify(_state_payload(engine))


@game.route('/logs', methods=['POST'])
def add_log():
    data = request.get_json(silent=True) or {}
    message = data.get('message')
    if not isinstance(message, str) or not message.strip():
        return jsonify({'error': 'message is required'}), 400
    engine = get_engine()
    engine.add_log(message)
    return jsonify(_state_payload(engine)), 201


@game.route('/undo', methods=['POST'])
def undo():
    engine = get_engine()
    undone = engine.undo()
    payload = _state_payload(engine)
    payload['undone'] = undone
    return jsonify(payload)


@game.route('/reset', methods=['POST'])
def reset_game():
    engine = get_engine()
    engine.reset_game()
    return jsonify(_state_payload(engine))


@game.route('/export', methods=['GET'])
def export_state():
    filename, text = get_engine().export_state()
    return Response(
        text,
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@game.route('/import', methods=['POST'])
def import_state():
    engine = get_engine()
    engine.import_state(request.get_data(as_text=True))
    return jsonify(_state_payload(engine))
