from datetime import datetime, timezone

from flask_login import UserMixin

from quizhost import db, bcrypt


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


def _utcnow():
    return datetime.now(timezone.utc)


class StoreNode(db.Model):
    """One root partition of the shared store, held as a JSON document."""
    __tablename__ = 'store_node'
    id = db.Column(db.Integer, primary_key=True)
    path = db.Column(db.String(64), unique=True, nullable=False, index=True)
    value = db.Column(db.JSON, nullable=True)
    version = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            'path': self.path,
            'value': self.value,
            'version': self.version,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
