"""Shared constants: store partitions, status values, lifelines and defaults."""

GAME_STATE = 'game-state'
TEAMS = 'teams'
QUESTION_SETS = 'question-sets'
PRIZE_STRUCTURE = 'prize-structure'
CONFIG = 'config'
ALLOWED_HOSTS = 'allowed-hosts'

PARTITIONS = (GAME_STATE, TEAMS, QUESTION_SETS, PRIZE_STRUCTURE, CONFIG, ALLOWED_HOSTS)


class GameStatus:
    NOT_STARTED = 'not-started'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'

    ALL = (NOT_STARTED, IN_PROGRESS, COMPLETED)


class TeamStatus:
    WAITING = 'waiting'
    ACTIVE = 'active'
    ELIMINATED = 'eliminated'
    COMPLETED = 'completed'


class LifelineKind:
    PHONE_A_FRIEND = 'phoneAFriend'
    FIFTY_FIFTY = 'fiftyFifty'

    ALL = (PHONE_A_FRIEND, FIFTY_FIFTY)


_LIFELINE_ALIASES = {
    'phone': LifelineKind.PHONE_A_FRIEND,
    'phoneafriend': LifelineKind.PHONE_A_FRIEND,
    'phone-a-friend': LifelineKind.PHONE_A_FRIEND,
    'fiftyfifty': LifelineKind.FIFTY_FIFTY,
    'fifty-fifty': LifelineKind.FIFTY_FIFTY,
    '50-50': LifelineKind.FIFTY_FIFTY,
    '50/50': LifelineKind.FIFTY_FIFTY,
}


def parse_lifeline(kind):
    """Map a host-supplied lifeline name onto a LifelineKind value, or None."""
    if not isinstance(kind, str):
        return None
    return _LIFELINE_ALIASES.get(kind.strip().lower())


ANSWER_OPTIONS = ('A', 'B', 'C', 'D')
FIFTY_FIFTY_REMOVE_COUNT = 2

REQUIRED_TEAM_FIELDS = ('name', 'participants', 'contact')
MIN_TEAM_NAME_LENGTH = 2
MAX_TEAM_NAME_LENGTH = 100
MIN_PARTICIPANTS_LENGTH = 2
MIN_PHONE_DIGITS = 7

DEFAULT_PRIZE_STRUCTURE = [500 * level for level in range(1, 21)]
DEFAULT_MILESTONES = (5, 10, 15, 20)
