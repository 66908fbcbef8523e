"""SQLAlchemy-backed partition store.

Each root partition lives in one ``store_node`` row as a JSON document, so a
multi-path update is a single transaction over the touched rows.
"""

import logging
from typing import Any, Dict, Iterable

from sqlalchemy.exc import SQLAlchemyError

from quizhost import db
from quizhost.errors import StoreUnavailable
from quizhost.models import StoreNode
from .base import PartitionedStore

logger = logging.getLogger(__name__)


class SqlStore(PartitionedStore):

    def __init__(self, app, authorizer=None):
        super().__init__(authorizer)
        self.app = app

    def _load(self, partitions: Iterable[str]) -> Dict[str, Any]:
        names = list(partitions)
        with self.app.app_context():
            try:
                rows = StoreNode.query.filter(StoreNode.path.in_(names)).all()
            except SQLAlchemyError as exc:
                db.session.rollback()
                logger.error(f"[store-read-failed] partitions={names} error={exc}")
                raise StoreUnavailable('Store read failed', partitions=names) from exc
            found = {row.path: row.value for row in rows}
            return {name: found.get(name) for name in names}

    def _save(self, changes: Dict[str, Any]) -> None:
        names = sorted(changes)
        with self.app.app_context():
            try:
                rows = {
                    row.path: row
                    for row in StoreNode.query.filter(StoreNode.path.in_(names)).with_for_update().all()
                }
                for name in names:
                    row = rows.get(name)
                    if row is None:
                        row = StoreNode(path=name, version=0)
                    row.value = changes[name]
                    row.version = (row.version or 0) + 1
                    db.session.add(row)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                logger.error(f"[store-write-failed] partitions={names} error={exc}")
                raise StoreUnavailable('Store write failed', partitions=names) from exc

    def versions(self) -> Dict[str, int]:
        with self.app.app_context():
            return {row.path: row.version for row in StoreNode.query.all()}
