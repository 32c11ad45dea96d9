# muster/infrastructure/models.py
"""
SQLAlchemy ORM models backing the record store.
"""
from sqlalchemy import BigInteger, Boolean, Column, Integer, String, UniqueConstraint

from muster.infrastructure.db.session import Base


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    alliance = Column(String(50), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    capacity_tag = Column(String(100), nullable=False)
    time_tag = Column(String(200), nullable=True)
    timestamp = Column(BigInteger, nullable=False, default=0)
    override_group_id = Column(String(100), nullable=True)
    custom_group_label = Column(String(200), nullable=True)
    is_manual_split = Column(Boolean, nullable=False, default=False)

    deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(BigInteger, nullable=True)
    deleted_by = Column(String(50), nullable=True)
    restored_at = Column(BigInteger, nullable=True)
    restored_by = Column(String(50), nullable=True)

    __table_args__ = (
        UniqueConstraint("alliance", "name", name="uq_participant_alliance_name"),
    )


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True)
    alliance = Column(String(50), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    label = Column(String(200), nullable=False)

    __table_args__ = (
        UniqueConstraint("alliance", "label", name="uq_time_slot_alliance_label"),
    )
