"""Contents of a freshly reset store."""

from quizhost.constants import (
    ALLOWED_HOSTS,
    CONFIG,
    DEFAULT_PRIZE_STRUCTURE,
    GAME_STATE,
    PRIZE_STRUCTURE,
    QUESTION_SETS,
    TEAMS,
)
from .config_sync import get_current_app_config
from .game.state import default_game_state


def default_prize_structure(questions_per_team):
    if questions_per_team == len(DEFAULT_PRIZE_STRUCTURE):
        return list(DEFAULT_PRIZE_STRUCTURE)
    return [500 * level for level in range(1, questions_per_team + 1)]


def default_database(app_config, hosts=()):
    """Map of partition -> default value. ``hosts`` are usernames allowed to host."""
    return {
        GAME_STATE: default_game_state(),
        TEAMS: None,
        QUESTION_SETS: None,
        PRIZE_STRUCTURE: default_prize_structure(int(app_config.get('QUESTIONS_PER_SET', 20))),
        CONFIG: get_current_app_config(app_config),
        ALLOWED_HOSTS: {username: True for username in hosts} or None,
    }


def seed_store(store, app_config, hosts=()):
    store.update(default_database(app_config, hosts))
