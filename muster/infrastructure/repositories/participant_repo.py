# muster/infrastructure/repositories/participant_repo.py
"""
SQL-backed record store.

Every call opens its own short-lived session from the factory, so one repo
can be shared by the request threads of an alliance.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from muster.domain.errors import StoreUnavailable
from muster.domain.models import ParticipantRecord, RecordPatch
from muster.infrastructure.db.session import SessionLocal
from muster.infrastructure.models import Participant, TimeSlot
from muster.infrastructure.store import RecordStore, Snapshot

logger = logging.getLogger(__name__)

RECORD_FIELDS = ParticipantRecord.model_fields


def _to_record(row: Participant) -> ParticipantRecord:
    return ParticipantRecord(**{field: getattr(row, field) for field in RECORD_FIELDS})


def _resolve(patches: RecordPatch) -> Dict[str, Dict[str, Any]]:
    """Check every field of every patch up front; None becomes the field default."""
    resolved = {}
    for name, changes in patches.items():
        values = {}
        for field, value in changes.items():
            if field not in RECORD_FIELDS:
                raise KeyError(f"Unknown record field: {field}")
            if value is None:
                if RECORD_FIELDS[field].is_required():
                    raise ValueError(f"Cannot delete required field: {field}")
                value = RECORD_FIELDS[field].default
            values[field] = value
        resolved[name] = values
    return resolved


class ParticipantRepo(RecordStore):
    """Record store scoped to one alliance."""

    def __init__(self, alliance: str, session_factory=SessionLocal):
        super().__init__()
        self.alliance = alliance
        self.session_factory = session_factory

    def _participants(self, db):
        return db.query(Participant).filter(Participant.alliance == self.alliance)

    def _run(self, action: str, work):
        """Run work(db) in a fresh session and commit; DB errors become StoreUnavailable."""
        try:
            with self.session_factory() as db:
                result = work(db)
                db.commit()
                return result
        except SQLAlchemyError as e:
            logger.exception("%s failed for alliance %s", action, self.alliance)
            raise StoreUnavailable(f"{action} failed: {e}") from e

    def snapshot(self) -> Snapshot:
        def work(db):
            rows = self._participants(db).order_by(Participant.id).all()
            return {row.name: _to_record(row) for row in rows}
        return self._run("snapshot", work)

    def set(self, name: str, record: ParticipantRecord) -> None:
        def work(db):
            row = self._participants(db).filter(Participant.name == name).first()
            if row is None:
                row = Participant(alliance=self.alliance, name=name)
                db.add(row)
            for field, value in record.model_dump().items():
                setattr(row, field, value)
        self._run("set", work)
        self._publish()

    def update(self, patches: RecordPatch) -> None:
        if not patches:
            return
        resolved = _resolve(patches)

        def work(db):
            rows = {
                row.name: row
                for row in self._participants(db).filter(Participant.name.in_(list(resolved)))
            }
            for name, values in resolved.items():
                row = rows.get(name)
                if row is None:
                    logger.warning("Patch for unknown participant %r skipped", name)
                    continue
                for field, value in values.items():
                    setattr(row, field, value)
        self._run("update", work)
        self._publish()

    def remove(self, name: str) -> None:
        def work(db):
            self._participants(db).filter(Participant.name == name).delete()
        self._run("remove", work)
        self._publish()

    def clear(self) -> None:
        self._run("clear", lambda db: self._participants(db).delete())
        self._publish()

    def time_slots(self) -> Optional[List[str]]:
        def work(db):
            rows = (
                db.query(TimeSlot)
                .filter(TimeSlot.alliance == self.alliance)
                .order_by(TimeSlot.position)
                .all()
            )
            return [row.label for row in rows] if rows else None
        return self._run("time_slots", work)

    def set_time_slots(self, labels: Iterable[str]) -> None:
        labels = list(labels)

        def work(db):
            db.query(TimeSlot).filter(TimeSlot.alliance == self.alliance).delete()
            db.flush()
            for position, label in enumerate(labels):
                db.add(TimeSlot(alliance=self.alliance, position=position, label=label))
        self._run("set_time_slots", work)
