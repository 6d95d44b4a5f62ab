from typing import Dict, List

from ai_starter.tasks.base import Task

TASKS: Dict[str, Task] = {}

def register(task: Task) -> Task:
    if task.name in TASKS and TASKS[task.name] is not task:
        raise ValueError(f"Task already registered: {task.name}")
    TASKS[task.name] = task
    return task

def get_task(name: str) -> Task:
    if name not in TASKS:
        raise KeyError(f"Unknown task: {name}. Known: {list(TASKS.keys())}")
    return TASKS[name]

def list_tasks() -> List[Task]:
    return [TASKS[k] for k in sorted(TASKS)]
