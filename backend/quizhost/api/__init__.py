from flask import jsonify

from quizhost.errors import QuizHostError


def register_error_handlers(flask_app):
    @flask_app.errorhandler(QuizHostError)
    def handle_quizhost_error(exc):
        if exc.status_code >= 500:
            flask_app.logger.error(f"[error] type={type(exc).__name__} message={exc.message}")
        else:
            flask_app.logger.info(f"[rejected] type={type(exc).__name__} message={exc.message}")
        payload = exc.to_dict()
        payload['type'] = type(exc).__name__
        return jsonify(payload), exc.status_code
