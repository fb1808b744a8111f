"""Database models."""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Call(Base):
    """Call log entry."""

    __tablename__ = "calls"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, unique=True, index=True, nullable=False)
    from_number = Column(String, nullable=False)
    to_number = Column(String, nullable=True)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    status = Column(String, default="in_progress", nullable=False)  # in_progress, completed, forwarded


class CallScriptRecord(Base):
    """Call script stored for an inbound caller ID."""

    __tablename__ = "call_scripts"

    id = Column(Integer, primary_key=True, index=True)
    caller_id = Column(String, unique=True, index=True, nullable=False)
    payload = Column(JSON, nullable=False)  # [[command, params], ...]
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
