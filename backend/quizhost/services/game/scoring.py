"""Prize ladder lookups.

A ladder is a list of prize values where index ``n - 1`` holds the prize for
question ``n``. Milestones are 1-based question numbers whose prize is kept
even if the team is eliminated later.
"""

from quizhost.constants import DEFAULT_MILESTONES


def prize_for_question(ladder, question_number):
    if not ladder or question_number < 1 or question_number > len(ladder):
        return 0
    return ladder[question_number - 1]


def next_prize(ladder, questions_answered):
    return prize_for_question(ladder, questions_answered + 1)


def last_milestone_reached(questions_answered, milestones=DEFAULT_MILESTONES):
    reached = [m for m in milestones if m <= questions_answered]
    return max(reached) if reached else 0


def guaranteed_prize(ladder, questions_answered, milestones=DEFAULT_MILESTONES):
    """Prize a team keeps when eliminated after ``questions_answered`` correct answers."""
    return prize_for_question(ladder, last_milestone_reached(questions_answered, milestones))


def is_milestone(question_number, milestones=DEFAULT_MILESTONES):
    return question_number in milestones


def format_prize(amount, currency='Rs.'):
    return f"{currency} {int(amount or 0):,}"
