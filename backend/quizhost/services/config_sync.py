"""Keep the ``config`` partition mirroring the application configuration.

The Flask config is authoritative; the stored copy only exists so displays
can read match settings. Reconciliation never copies remote values back.
"""

import logging

from quizhost.constants import CONFIG
from quizhost.errors import PermissionDenied, StoreUnavailable

logger = logging.getLogger(__name__)

SCALAR_KEYS = ('maxTeams', 'questionsPerTeam', 'timerEnabled', 'timerDuration')
STRUCTURED_KEYS = ('lifelinesEnabled', 'displaySettings')


def get_current_app_config(app_config):
    return {
        'maxTeams': int(app_config.get('MAX_TEAMS', 10)),
        'questionsPerTeam': int(app_config.get('QUESTIONS_PER_SET', 20)),
        'lifelinesEnabled': {
            'phoneAFriend': bool(app_config.get('LIFELINE_PHONE_A_FRIEND_ENABLED', True)),
            'fiftyFifty': bool(app_config.get('LIFELINE_FIFTY_FIFTY_ENABLED', True)),
        },
        'displaySettings': {
            'showPrizeLadder': bool(app_config.get('DISPLAY_SHOW_PRIZE_LADDER', True)),
            'showTeamInfo': bool(app_config.get('DISPLAY_SHOW_TEAM_INFO', True)),
            'animationDuration': int(app_config.get('DISPLAY_ANIMATION_DURATION_MS', 500)),
        },
        'timerEnabled': bool(app_config.get('TIMER_ENABLED', False)),
        'timerDuration': int(app_config.get('TIMER_DURATION_SEC', 30)),
    }


def compare_configs(remote, app):
    remote = remote or {}
    app = app or {}
    differences = {}
    for key in SCALAR_KEYS + STRUCTURED_KEYS:
        # dict equality is a deep comparison for the structured keys
        if remote.get(key) != app.get(key):
            differences[key] = {'remote': remote.get(key), 'app': app.get(key)}
    return {'isDifferent': bool(differences), 'differences': differences}


def sync_config_with_store(store, app_config, identity):
    """Bring the stored config in line with ``app_config``.

    ``identity`` is the authenticated host (or None). Returns a result dict
    whose ``action`` is one of skipped, initialized, updated, no-change or
    error.
    """
    if identity is None:
        logger.info('[config-sync] action=skipped reason=not-authenticated')
        return {'success': True, 'action': 'skipped', 'reason': 'not-authenticated'}

    current = get_current_app_config(app_config)
    try:
        remote = store.read(CONFIG)
        if remote is None:
            store.write(CONFIG, current)
            logger.info('[config-sync] action=initialized')
            return {'success': True, 'action': 'initialized', 'config': current}

        comparison = compare_configs(remote, current)
        if not comparison['isDifferent']:
            logger.debug('[config-sync] action=no-change')
            return {'success': True, 'action': 'no-change', 'config': remote}

        logger.info(f"[config-sync] action=updated keys={sorted(comparison['differences'])}")
        store.write(CONFIG, current)
        return {
            'success': True,
            'action': 'updated',
            'differences': comparison['differences'],
            'config': current,
        }
    except PermissionDenied:
        logger.info('[config-sync] action=skipped reason=permission-denied')
        return {'success': True, 'action': 'skipped', 'reason': 'permission-denied'}
    except StoreUnavailable as exc:
        logger.error(f'[config-sync] action=error error={exc.message}')
        return {'success': False, 'action': 'error', 'error': exc.message}
