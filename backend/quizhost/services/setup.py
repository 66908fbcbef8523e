"""Pre-match readiness checks.

``validate_complete_setup`` evaluates every check independently so the host
sees all problems at once. Checks report ``pass``, ``fail``, ``warning`` or
``info``; only ``fail`` blocks the match from starting.
"""

import re

from quizhost.constants import (
    DEFAULT_MILESTONES,
    MAX_TEAM_NAME_LENGTH,
    MIN_PARTICIPANTS_LENGTH,
    MIN_PHONE_DIGITS,
    MIN_TEAM_NAME_LENGTH,
    REQUIRED_TEAM_FIELDS,
)

PHONE_NUMBER_PATTERN = re.compile(r'^\+?[\d\s\-()]+$')

PASS = 'pass'
FAIL = 'fail'
WARNING = 'warning'
INFO = 'info'


def _is_filled(value):
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def is_valid_phone_number(contact):
    if not isinstance(contact, str) or not PHONE_NUMBER_PATTERN.match(contact.strip()):
        return False
    return len(re.sub(r'\D', '', contact)) >= MIN_PHONE_DIGITS


def validate_team(team):
    if not isinstance(team, dict):
        return {'isValid': False, 'errors': ['Team object is missing']}
    errors = []
    for field in REQUIRED_TEAM_FIELDS:
        if not _is_filled(team.get(field)):
            errors.append(f'{field.capitalize()} is required')

    name = team.get('name')
    if isinstance(name, str) and name.strip():
        length = len(name.strip())
        if length < MIN_TEAM_NAME_LENGTH:
            errors.append(f'Team name must be at least {MIN_TEAM_NAME_LENGTH} characters')
        elif length > MAX_TEAM_NAME_LENGTH:
            errors.append(f'Team name cannot exceed {MAX_TEAM_NAME_LENGTH} characters')

    participants = team.get('participants')
    if isinstance(participants, str) and participants.strip() and len(participants.strip()) < MIN_PARTICIPANTS_LENGTH:
        errors.append(f'Participants must be at least {MIN_PARTICIPANTS_LENGTH} characters')

    contact = team.get('contact')
    if _is_filled(contact) and not is_valid_phone_number(contact):
        errors.append('Contact number is invalid')

    return {'isValid': not errors, 'errors': errors or None}


def validate_teams(teams, min_teams=1, ideal_min_teams=7, max_teams=10):
    teams = teams if isinstance(teams, dict) else {}
    count = len(teams)
    invalid = []
    for team_id, team in teams.items():
        result = validate_team(team)
        if not result['isValid']:
            name = team.get('name') if isinstance(team, dict) else None
            invalid.append({'teamId': team_id, 'teamName': name or 'Unknown', 'errors': result['errors']})

    has_minimum = count >= min_teams
    within_limit = count <= max_teams
    errors = []
    if not has_minimum:
        errors.append(f'At least {min_teams} team required')
    if not within_limit:
        errors.append(f'Maximum {max_teams} teams allowed')
    if invalid:
        errors.append(f'{len(invalid)} team(s) have invalid data')
    return {
        'isValid': not errors,
        'count': count,
        'hasMinimum': has_minimum,
        'hasIdeal': count >= ideal_min_teams,
        'withinLimit': within_limit,
        'invalidTeams': invalid,
        'errors': errors or None,
    }


def question_set_list(question_sets):
    """Accept ``{'sets': [...]}``, a partition keyed by set id, or a plain list."""
    if isinstance(question_sets, dict):
        if isinstance(question_sets.get('sets'), list):
            return list(question_sets['sets'])
        return [dict(meta, setId=meta.get('setId', set_id))
                for set_id, meta in question_sets.items() if isinstance(meta, dict)]
    if isinstance(question_sets, list):
        return [meta for meta in question_sets if isinstance(meta, dict)]
    return []


def question_count(meta):
    count = meta.get('totalQuestions')
    if count is None and isinstance(meta.get('questions'), list):
        count = len(meta['questions'])
    try:
        return int(count or 0)
    except (TypeError, ValueError):
        return 0


def validate_question_set_meta(meta, questions_per_team=20):
    if not isinstance(meta, dict):
        return {'isValid': False, 'errors': ['Question set is missing']}
    errors = []
    if not _is_filled(meta.get('setId')):
        errors.append('Set ID is required')
    if not _is_filled(meta.get('setName')):
        errors.append('Set name is required')
    found = question_count(meta)
    if found != questions_per_team:
        errors.append(f'Must have exactly {questions_per_team} questions (found {found})')
    return {'isValid': not errors, 'errors': errors or None}


def validate_question_sets(question_sets, questions_per_team=20):
    sets = question_set_list(question_sets)
    invalid = []
    for meta in sets:
        result = validate_question_set_meta(meta, questions_per_team)
        if not result['isValid']:
            invalid.append({
                'setId': meta.get('setId'),
                'setName': meta.get('setName') or 'Unknown',
                'errors': result['errors'],
            })
    usable = [m for m in sets if question_count(m) >= questions_per_team]
    errors = []
    if not usable:
        errors.append(f'At least 1 question set with {questions_per_team} questions required')
    if invalid:
        errors.append(f'{len(invalid)} question set(s) have invalid data')
    return {
        'isValid': not errors,
        'count': len(sets),
        'usableCount': len(usable),
        'hasMinimum': bool(usable),
        'invalidSets': invalid,
        'errors': errors or None,
    }


def validate_prize_structure(prize_structure, questions_per_team=20):
    if isinstance(prize_structure, dict):
        # Ladders written through index paths come back keyed by position
        prize_structure = [prize_structure[k] for k in sorted(prize_structure, key=lambda k: int(k))]
    if not isinstance(prize_structure, list) or not prize_structure:
        return {
            'isValid': False,
            'count': 0,
            'hasRequiredLength': False,
            'allValid': False,
            'isNonDecreasing': False,
            'invalidPrizes': [],
            'minPrize': 0,
            'maxPrize': 0,
            'errors': ['Prize structure not configured'],
        }

    count = len(prize_structure)
    invalid = []
    for level, prize in enumerate(prize_structure, start=1):
        if isinstance(prize, bool) or not isinstance(prize, (int, float)) or prize != prize:
            invalid.append({'level': level, 'value': prize, 'error': 'Must be a number'})
        elif prize < 0:
            invalid.append({'level': level, 'value': prize, 'error': 'Cannot be negative'})

    numeric = [p for p in prize_structure if isinstance(p, (int, float)) and not isinstance(p, bool) and p == p]
    non_decreasing = not invalid and all(a <= b for a, b in zip(prize_structure, prize_structure[1:]))
    has_length = count == questions_per_team

    errors = []
    if not has_length:
        errors.append(f'Prize structure must have exactly {questions_per_team} levels (found {count})')
    if invalid:
        errors.append(f'{len(invalid)} prize level(s) have invalid values')
    elif not non_decreasing:
        errors.append('Prize values must not decrease from one level to the next')
    return {
        'isValid': not errors,
        'count': count,
        'hasRequiredLength': has_length,
        'allValid': not invalid,
        'isNonDecreasing': non_decreasing,
        'invalidPrizes': invalid,
        'minPrize': min(numeric) if numeric else 0,
        'maxPrize': max(numeric) if numeric else 0,
        'errors': errors or None,
    }


def check_sufficient_question_sets(team_count, question_set_count):
    sufficient = question_set_count >= team_count
    return {
        'isSufficient': sufficient,
        'teamCount': team_count,
        'questionSetCount': question_set_count,
        'deficit': 0 if sufficient else team_count - question_set_count,
        'message': (
            f'{question_set_count} sets available for {team_count} team(s)'
            if sufficient else
            f'{question_set_count} set(s) for {team_count} teams; sets will be reused'
        ),
    }


def _check(check_id, label, status, message, details=None):
    return {'id': check_id, 'label': label, 'status': status, 'message': message, 'details': details}


def validate_complete_setup(teams, question_sets, prize_structure, questions_per_team=20,
                            min_teams=1, ideal_min_teams=7, max_teams=10, milestones=DEFAULT_MILESTONES):
    teams_result = validate_teams(teams, min_teams, ideal_min_teams, max_teams)
    sets_result = validate_question_sets(question_sets, questions_per_team)
    prize_result = validate_prize_structure(prize_structure, questions_per_team)
    sufficiency = check_sufficient_question_sets(teams_result['count'], sets_result['usableCount'])

    teams_ok = teams_result['hasMinimum'] and teams_result['withinLimit']
    checks = [
        _check(
            'teams-configured', 'Teams Configured', PASS if teams_ok else FAIL,
            f"{teams_result['count']} team(s) ready" if teams_ok
            else (teams_result['errors'] or ['No teams configured'])[0],
            {'count': teams_result['count']},
        ),
        _check(
            'teams-valid', 'Team Data Valid', FAIL if teams_result['invalidTeams'] else PASS,
            f"{len(teams_result['invalidTeams'])} team(s) have issues" if teams_result['invalidTeams']
            else 'All teams have valid data',
            teams_result['invalidTeams'],
        ),
        _check(
            'teams-ideal', 'Ideal Team Count', PASS if teams_result['hasIdeal'] else INFO,
            f"{teams_result['count']} teams (ideal: {ideal_min_teams}+)" if teams_result['hasIdeal']
            else f"{teams_result['count']} teams (recommended: {ideal_min_teams}-{max_teams})",
        ),
        _check(
            'question-sets-uploaded', 'Question Sets Uploaded', PASS if sets_result['hasMinimum'] else FAIL,
            f"{sets_result['usableCount']} usable set(s) uploaded" if sets_result['hasMinimum']
            else sets_result['errors'][0],
            {'count': sets_result['count'], 'usableCount': sets_result['usableCount']},
        ),
        _check(
            'question-sets-valid', 'Question Sets Valid', WARNING if sets_result['invalidSets'] else PASS,
            f"{len(sets_result['invalidSets'])} set(s) have issues" if sets_result['invalidSets']
            else f'All sets have {questions_per_team} questions',
            sets_result['invalidSets'],
        ),
        _check(
            'sufficient-sets', 'Sufficient Question Sets',
            PASS if sufficiency['isSufficient'] or not sets_result['hasMinimum'] else WARNING,
            sufficiency['message'], sufficiency,
        ),
        _check(
            'prize-structure-configured', 'Prize Structure Configured',
            PASS if prize_result['hasRequiredLength'] else FAIL,
            f"{prize_result['count']} prize level(s) configured" if prize_result['hasRequiredLength']
            else (prize_result['errors'] or ['Prize structure not configured'])[0],
            {'count': prize_result['count']},
        ),
        _check(
            'prize-structure-valid', 'Prize Values Valid',
            PASS if prize_result['allValid'] and prize_result['isNonDecreasing'] else FAIL,
            f"All prizes are valid (max prize per team: {prize_result['maxPrize']:,})"
            if prize_result['allValid'] and prize_result['isNonDecreasing']
            else (prize_result['errors'] or ['Prize values are invalid'])[-1],
            prize_result['invalidPrizes'],
        ),
    ]

    failures = [c for c in checks if c['status'] == FAIL]
    warnings = [c for c in checks if c['status'] == WARNING]
    return {
        'isReady': not failures,
        'hasWarnings': bool(warnings),
        'checks': checks,
        'summary': {
            'teams': teams_result['count'],
            'questionSets': sets_result['count'],
            'prizeLevels': prize_result['count'],
            'milestones': [m for m in milestones if m <= prize_result['count']],
            'totalPrizePool': prize_result['maxPrize'] * teams_result['count'],
            'criticalIssues': len(failures),
            'warnings': len(warnings),
        },
    }


def validate_required_question_sets(assignments, available_sets):
    """Report which assigned question sets cannot be resolved locally.

    ``available_sets`` is any iterable of set ids, or metadata dicts with a
    ``setId`` key.
    """
    available = set()
    for entry in available_sets or []:
        available.add(entry.get('setId') if isinstance(entry, dict) else entry)
    required = []
    for set_id in (assignments or {}).values():
        if set_id and set_id not in required:
            required.append(set_id)
    found = [s for s in required if s in available]
    missing = [s for s in required if s not in available]
    return {
        'allFound': not missing,
        'requiredSetIds': required,
        'missingSetIds': missing,
        'foundSetIds': found,
        'missingCount': len(missing),
        'foundCount': len(found),
    }


def setup_limits(app_config):
    """Keyword arguments for ``validate_complete_setup`` from a Flask config."""
    return {
        'questions_per_team': int(app_config.get('QUESTIONS_PER_SET', 20)),
        'min_teams': int(app_config.get('MIN_TEAMS', 1)),
        'ideal_min_teams': int(app_config.get('IDEAL_MIN_TEAMS', 7)),
        'max_teams': int(app_config.get('MAX_TEAMS', 10)),
        'milestones': tuple(app_config.get('MILESTONE_QUESTIONS') or DEFAULT_MILESTONES),
    }
