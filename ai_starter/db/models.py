"""
Database table definitions and it stores:
- Task runs (which task ran, whether the model or the fallback answered)
Main purpose:
Define persistent data structure.
"""



from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from ai_starter.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskRun(Base):
    __tablename__ = "task_runs"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    task_name: Mapped[str] = mapped_column(String, index=True)
    source: Mapped[str] = mapped_column(String)  # model|fallback
    input: Mapped[str] = mapped_column(Text)  # JSON
    output: Mapped[str] = mapped_column(Text)  # JSON
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

Index("ix_task_runs_task_created", TaskRun.task_name, TaskRun.created_at)
