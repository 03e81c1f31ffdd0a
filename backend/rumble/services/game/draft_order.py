def next_drafter_index(total_picks: int, num_participants: int) -> int:
    """Return the index of the participant who drafts after pick ``total_picks``.

    Snake order: the first round runs forward, the next one in reverse, and
    so on. With 3 participants the drafters go 0, 1, 2, 2, 1, 0, 0, 1, ...
    ``total_picks`` is the number of picks made before the one just taken.
    """
    if num_participants < 1:
        raise ValueError('num_participants must be at least 1')
    if total_picks < 0:
        raise ValueError('total_picks cannot be negative')

    next_pick_number = total_picks + 1
    round_number = next_pick_number // num_participants
    position_in_round = next_pick_number % num_participants

    if round_number % 2 == 0:
        return position_in_round
    return num_participants - 1 - position_in_round
