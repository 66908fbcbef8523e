"""Play order and question-set assignment for a new match."""

import logging
import random

logger = logging.getLogger(__name__)


def shuffled(items, rng=None):
    rng = rng or random
    result = list(items)
    rng.shuffle(result)
    return result


def assign_question_sets(team_ids, set_ids, rng=None):
    """Map each team to a question set.

    Sets are handed out without repetition while they last; with fewer sets
    than teams the shuffled sets are reused in order.
    """
    if not team_ids or not set_ids:
        return {}
    pool = shuffled(set_ids, rng)
    return {team_id: pool[index % len(pool)] for index, team_id in enumerate(team_ids)}


def generate_play_queue(team_ids, set_ids, rng=None):
    play_queue = shuffled(team_ids, rng)
    assignments = assign_question_sets(play_queue, set_ids, rng)
    logger.info(f"[play-queue] teams={len(play_queue)} sets={len(set_ids)} reused={len(set_ids) < len(play_queue)}")
    return play_queue, assignments


def validate_play_queue_data(play_queue, assignments):
    errors = []
    if not isinstance(play_queue, list):
        errors.append('Play queue must be a list')
    elif not play_queue:
        errors.append('Play queue cannot be empty')
    if not isinstance(assignments, dict):
        errors.append('Question set assignments must be a mapping')
    elif not assignments:
        errors.append('Question set assignments cannot be empty')
    if isinstance(play_queue, list) and isinstance(assignments, dict):
        missing = [team_id for team_id in play_queue if not assignments.get(team_id)]
        if missing:
            errors.append(f'{len(missing)} team(s) missing question set assignments')
    return {'isValid': not errors, 'errors': errors or None}


def play_queue_preview(play_queue, assignments, teams, question_sets):
    """Rows describing upcoming turns, for the host panel."""
    sets_by_id = {s.get('setId'): s for s in question_sets or []}
    preview = []
    for position, team_id in enumerate(play_queue or [], start=1):
        team = (teams or {}).get(team_id) or {}
        set_id = (assignments or {}).get(team_id)
        preview.append({
            'position': position,
            'teamId': team_id,
            'teamName': team.get('name') or 'Unknown Team',
            'teamParticipants': team.get('participants') or '',
            'questionSetId': set_id,
            'questionSetName': (sets_by_id.get(set_id) or {}).get('setName') or 'Unknown Set',
        })
    return preview
