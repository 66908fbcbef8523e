"""Host-local question content.

Full questions, answers included, never leave the host process. Only set
metadata is published to the ``question-sets`` partition so the readiness
gate and displays can see which sets exist.
"""

import hashlib
import json
import logging
import threading
import time

from quizhost.constants import ANSWER_OPTIONS, QUESTION_SETS

logger = logging.getLogger(__name__)

REQUIRED_QUESTION_FIELDS = ('text', 'options', 'correctAnswer')


def validate_question(question):
    errors = []
    if not isinstance(question, dict):
        return ['Question must be an object']
    for field in REQUIRED_QUESTION_FIELDS:
        if field not in question:
            errors.append(f'Missing field: {field}')
    options = question.get('options')
    if not isinstance(options, dict) or not all(opt in options for opt in ANSWER_OPTIONS):
        errors.append(f'Options must include {", ".join(ANSWER_OPTIONS)}')
    if question.get('correctAnswer') not in ANSWER_OPTIONS:
        errors.append(f'Correct answer must be one of {", ".join(ANSWER_OPTIONS)}')
    return errors


def checksum(questions):
    encoded = json.dumps(questions, sort_keys=True, separators=(',', ':')).encode('utf-8')
    return hashlib.sha256(encoded).hexdigest()[:16]


class QuestionBank:

    def __init__(self, store=None, clock=None, max_questions=None):
        self.store = store
        self.max_questions = max_questions
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._sets = {}
        self._lock = threading.Lock()

    def add_set(self, set_id, set_name, questions, publish=True):
        """Register a question set; returns its metadata.

        Questions are numbered 1..n in list order. Sets longer than ``max_questions``
        are trimmed to it. Raises ValueError listing every malformed question.
        """
        if not isinstance(questions, list) or not questions:
            raise ValueError('A question set needs at least one question')
        if self.max_questions and len(questions) > self.max_questions:
            logger.info(f"[question-set-trimmed] set={set_id} from={len(questions)} to={self.max_questions}")
            questions = questions[:self.max_questions]
        problems = []
        numbered = []
        for number, question in enumerate(questions, start=1):
            errors = validate_question(question)
            if errors:
                problems.append(f'Question {number}: {"; ".join(errors)}')
                continue
            entry = dict(question)
            entry['number'] = number
            entry.setdefault('id', f'{set_id}-q{number}')
            numbered.append(entry)
        if problems:
            raise ValueError(' | '.join(problems))

        meta = {
            'setId': set_id,
            'setName': set_name,
            'totalQuestions': len(numbered),
            'checksum': checksum(numbered),
            'uploadedAt': self._clock(),
        }
        with self._lock:
            self._sets[set_id] = {'meta': meta, 'questions': numbered}
        logger.info(f"[question-set-added] set={set_id} questions={len(numbered)}")
        if publish and self.store is not None:
            self.store.write(f'{QUESTION_SETS}/{set_id}', meta)
        return meta

    def remove_set(self, set_id):
        with self._lock:
            removed = self._sets.pop(set_id, None)
        if removed and self.store is not None:
            self.store.write(f'{QUESTION_SETS}/{set_id}', None)
        return removed is not None

    def get_question(self, set_id, number):
        with self._lock:
            entry = self._sets.get(set_id)
            if not entry or number < 1 or number > len(entry['questions']):
                return None
            return dict(entry['questions'][number - 1])

    def get_question_sets_metadata(self):
        with self._lock:
            return {'sets': [dict(entry['meta']) for entry in self._sets.values()]}

    def local_set_ids(self):
        with self._lock:
            return list(self._sets.keys())

    def clear(self):
        with self._lock:
            self._sets.clear()
