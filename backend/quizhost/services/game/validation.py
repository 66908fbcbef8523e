"""Answer option normalization and answer checking."""

import logging

from quizhost.constants import ANSWER_OPTIONS
from quizhost.errors import InvalidAnswerOption

logger = logging.getLogger(__name__)


def normalize_option(option):
    """Trim and upper-case ``option``; anything outside A-D becomes None."""
    if not isinstance(option, str):
        return None
    candidate = option.strip().upper()
    return candidate if candidate in ANSWER_OPTIONS else None


def is_valid_answer_option(option):
    return normalize_option(option) is not None


def valid_options():
    return list(ANSWER_OPTIONS)


def validate_answer(selected, correct):
    """Compare a selected option against the correct one.

    Both sides are normalized the same way. Raises ``InvalidAnswerOption``
    when either side does not normalize to A-D; callers must let it surface
    rather than treat it as a wrong answer.
    """
    normalized_selected = normalize_option(selected)
    normalized_correct = normalize_option(correct)
    if normalized_selected is None:
        raise InvalidAnswerOption(
            f'Selected option {selected!r} is not one of {", ".join(ANSWER_OPTIONS)}',
            field='selected',
        )
    if normalized_correct is None:
        logger.error(f"[answer-data-invalid] correct={correct!r}")
        raise InvalidAnswerOption(
            f'Correct option {correct!r} stored for this question is not one of {", ".join(ANSWER_OPTIONS)}',
            field='correct',
        )
    is_correct = normalized_selected == normalized_correct
    logger.debug(f"[answer-validated] selected={normalized_selected} correct={normalized_correct} is_correct={is_correct}")
    return {
        'isCorrect': is_correct,
        'normalizedSelected': normalized_selected,
        'normalizedCorrect': normalized_correct,
    }
