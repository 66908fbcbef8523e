import pytest

from quizhost.errors import InvalidAnswerOption
from quizhost.services.game.validation import (
    is_valid_answer_option,
    normalize_option,
    valid_options,
    validate_answer,
)


@pytest.mark.parametrize('raw, expected', [
    ('a', 'A'),
    (' b ', 'B'),
    ('C', 'C'),
    ('\td\n', 'D'),
    ('e', None),
    ('AB', None),
    ('a.', None),
    ('', None),
    (None, None),
    (1, None),
])
def test_normalize_option(raw, expected):
    assert normalize_option(raw) == expected


def test_validate_is_case_and_whitespace_insensitive():
    result = validate_answer('b', 'B')
    assert result == {'isCorrect': True, 'normalizedSelected': 'B', 'normalizedCorrect': 'B'}
    assert validate_answer(' c', 'c ')['isCorrect'] is True


def test_validate_reports_wrong_answer():
    result = validate_answer('A', 'd')
    assert result['isCorrect'] is False
    assert result['normalizedCorrect'] == 'D'


def test_unknown_selected_option_raises():
    with pytest.raises(InvalidAnswerOption) as excinfo:
        validate_answer('e', 'A')
    assert excinfo.value.details['field'] == 'selected'


def test_malformed_correct_option_raises():
    with pytest.raises(InvalidAnswerOption) as excinfo:
        validate_answer('A', None)
    assert excinfo.value.details['field'] == 'correct'


def test_option_helpers():
    assert valid_options() == ['A', 'B', 'C', 'D']
    assert is_valid_answer_option(' d')
    assert not is_valid_answer_option('x')
