import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_positive_int(name, default):
    try:
        parsed = int(os.environ.get(name, ''))
    except ValueError:
        return default
    return parsed if parsed > 0 else default


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///quizhost.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # 'sql' persists partitions through SQLAlchemy, 'memory' keeps them in-process
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'sql')

    # Match shape
    QUESTIONS_PER_SET = _env_positive_int('QUESTIONS_PER_SET', 20)
    MIN_TEAMS = _env_positive_int('MIN_TEAMS', 1)
    IDEAL_MIN_TEAMS = _env_positive_int('IDEAL_MIN_TEAMS', 7)
    MAX_TEAMS = _env_positive_int('MAX_TEAMS', 10)
    MILESTONE_QUESTIONS = [
        int(q) for q in os.environ.get('MILESTONE_QUESTIONS', '5,10,15,20').split(',') if q.strip().isdigit()
    ]
    CURRENCY_SYMBOL = os.environ.get('CURRENCY_SYMBOL', 'Rs.')

    # Lifelines (seconds)
    LIFELINE_PHONE_A_FRIEND_ENABLED = _env_bool('LIFELINE_PHONE_A_FRIEND_ENABLED', True)
    LIFELINE_FIFTY_FIFTY_ENABLED = _env_bool('LIFELINE_FIFTY_FIFTY_ENABLED', True)
    PHONE_A_FRIEND_DURATION_SEC = _env_positive_int('PHONE_A_FRIEND_DURATION_SEC', 180)
    FIFTY_FIFTY_CLEAR_SEC = _env_positive_int('FIFTY_FIFTY_CLEAR_SEC', 1)
    TIMER_TICK_SEC = _env_positive_int('TIMER_TICK_SEC', 1)

    # Question timer mirrored to displays
    TIMER_ENABLED = _env_bool('TIMER_ENABLED', False)
    TIMER_DURATION_SEC = _env_positive_int('TIMER_DURATION_SEC', 30)

    # Display settings mirrored to displays
    DISPLAY_SHOW_PRIZE_LADDER = _env_bool('DISPLAY_SHOW_PRIZE_LADDER', True)
    DISPLAY_SHOW_TEAM_INFO = _env_bool('DISPLAY_SHOW_TEAM_INFO', True)
    DISPLAY_ANIMATION_DURATION_MS = _env_positive_int('DISPLAY_ANIMATION_DURATION_MS', 500)

    # Optional: debounce host actions (ms). 0 disables.
    CONTROLLER_DEBOUNCE_MS = int(os.environ.get('CONTROLLER_DEBOUNCE_MS', '0'))

    # Host account seeded by `flask factory-reset`
    SEED_HOST_USERNAME = os.environ.get('SEED_HOST_USERNAME', 'host')
    SEED_HOST_PASSWORD = os.environ.get('SEED_HOST_PASSWORD', 'password')
