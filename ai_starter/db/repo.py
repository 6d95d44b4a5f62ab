# ai_starter/db/repo.py

import json
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ai_starter.db.models import TaskRun


def _to_json(value: Any) -> str:
    """
    TEXT columns only; dict/list payloads are stored as JSON strings.
    """
    return json.dumps(value, ensure_ascii=False, default=str)


def new_run_id() -> str:
    return f"run_{uuid.uuid4().hex[:16]}"


async def add_run(db: AsyncSession, *, task_name: str, source: str, input: Any, output: Any) -> TaskRun:
    run = TaskRun(
        id=new_run_id(),
        task_name=task_name,
        source=source,
        input=_to_json(input),
        output=_to_json(output),
    )
    db.add(run)
    await db.commit()
    await db.refresh(run)
    return run


async def list_runs(db: AsyncSession, task_name: str, limit: int = 20) -> list[TaskRun]:
    res = await db.execute(
        select(TaskRun)
        .where(TaskRun.task_name == task_name)
        .order_by(TaskRun.created_at.desc())
        .limit(limit)
    )
    return list(res.scalars().all())
