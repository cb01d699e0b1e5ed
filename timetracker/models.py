from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

CURRENT_TIME_ENTRY_TABLE = "current-time-entry"
TIME_ENTRY_TABLE = "time-entry"
CLOCKIFY_TIME_ENTRY_TABLE = "clockify_time_entries"
CLOCKIFY_CONFIG_TABLE = "clockify_config"


def new_id() -> str:
    return str(uuid.uuid4())


class CurrentTimeEntry(Base):
    __tablename__ = CURRENT_TIME_ENTRY_TABLE

    id = Column(String(36), primary_key=True, default=new_id)
    project = Column(String(200), nullable=False)
    task = Column(String(200), nullable=False)
    start = Column(DateTime(timezone=True), nullable=False)


class TimeEntry(Base):
    __tablename__ = TIME_ENTRY_TABLE
    __table_args__ = (Index("ix_time_entry_project", "project"),)

    id = Column(String(36), primary_key=True)
    project = Column(String(200), nullable=False)
    task = Column(String(200), nullable=False)
    start = Column(DateTime(timezone=True), nullable=False, index=True)
    end = Column(DateTime(timezone=True), nullable=False)


class ClockifyTimeEntry(Base):
    __tablename__ = CLOCKIFY_TIME_ENTRY_TABLE

    id = Column(String(36), primary_key=True, default=new_id)
    # Logical reference only, the local entry may already be gone.
    time_entry_id = Column(String(36), nullable=False, index=True)
    clockify_id = Column(String(64), nullable=False)
    deleted = Column(Boolean, nullable=False, default=False, index=True)


class ClockifyConfig(Base):
    __tablename__ = CLOCKIFY_CONFIG_TABLE

    id = Column(String(36), primary_key=True, default=new_id)
    workspace_id = Column(String(64), nullable=False)
    api_key = Column(String(128), nullable=False)
