from typing import List

from .entities import GameState, IN_RING

ELIMINATION_POINTS = 3
SURVIVAL_POINTS = 1


def award_elimination_points(before: GameState, after: GameState, eliminated_id: str, eliminator_ids: List[str]) -> None:
    """Split ELIMINATION_POINTS evenly across the eliminators' owners.

    Owners are resolved against ``before``; points land on ``after``. An
    eliminator that is unknown, undrafted, or the eliminated entrant itself
    forfeits its share. Two eliminators with the same owner pay that owner
    twice.
    """
    if not eliminator_ids:
        return
    share = ELIMINATION_POINTS / len(eliminator_ids)
    for eliminator_id in eliminator_ids:
        if eliminator_id == eliminated_id:
            continue
        eliminator = before.find_entrant(eliminator_id)
        if not eliminator or not eliminator.drafted_by:
            continue
        owner = after.find_participant(eliminator.drafted_by)
        if owner:
            owner.total_score += share


def award_survival_points(before: GameState, after: GameState, eliminated_id: str) -> int:
    """+SURVIVAL_POINTS to the owner of every entrant still in the ring.

    Ring membership is read from ``before`` so the entrant being eliminated
    is neither skipped nor double counted by accident. Returns the number of
    survivors seen.
    """
    survivors = [e for e in before.entrants if e.status == IN_RING and e.id != eliminated_id]
    for survivor in survivors:
        owner = after.find_participant(survivor.drafted_by)
        if owner:
            owner.total_score += SURVIVAL_POINTS
    return len(survivors)
