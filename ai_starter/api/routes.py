import json
from fastapi import APIRouter, Depends, Query
from ai_starter.api.responses import api_not_found, api_success, with_error_handling
from ai_starter.api.types import GenerateTextRequest, TaskRunOut
from ai_starter.db.repo import add_run, list_runs
from ai_starter.db.session import SessionLocal, ping
from ai_starter.llm.provider import GenerationConfig, LLMClient
from ai_starter.tasks.registry import get_task, list_tasks


"""
FastAPI routes for the AI task layer.
What it provides:
- Health check (database ping)
- Task listing with input/output schemas
- Run a task (model first, fallback when the task allows it)
- Recent runs of a task
- Free-form text generation

And, the main purpose:
Expose tasks over HTTP with uniform envelopes.
"""

router = APIRouter()


def get_llm_client() -> LLMClient:
    return LLMClient(GenerationConfig.from_settings())


@router.get("/health")
@with_error_handling
async def api_health():
    await ping()
    return api_success({"status": "ok"})

@router.get("/tasks")
@with_error_handling
async def api_list_tasks():
    return api_success([t.describe() for t in list_tasks()])

@router.post("/tasks/{name}")
@with_error_handling
async def api_run_task(name: str, body: dict, client: LLMClient = Depends(get_llm_client)):
    try:
        task = get_task(name)
    except KeyError:
        return api_not_found(f"Task '{name}'")

    data = task.validate_input(body)
    result = await task.execute(data, client)
    output = result.output.model_dump()

    async with SessionLocal() as db:
        run = await add_run(db, task_name=task.name, source=result.source, input=data.model_dump(), output=output)

    return api_success({"task": task.name, "run_id": run.id, "source": result.source, "output": output})

@router.get("/tasks/{name}/runs")
@with_error_handling
async def api_task_runs(name: str, limit: int = Query(20, ge=1, le=100)):
    try:
        task = get_task(name)
    except KeyError:
        return api_not_found(f"Task '{name}'")

    async with SessionLocal() as db:
        runs = await list_runs(db, task.name, limit=limit)

    return api_success(
        [
            TaskRunOut(
                id=r.id,
                task=r.task_name,
                source=r.source,
                input=json.loads(r.input),
                output=json.loads(r.output),
                at=r.created_at.isoformat(),
            ).model_dump()
            for r in runs
        ]
    )


@router.post("/generate")
@with_error_handling
async def api_generate(req: GenerateTextRequest, client: LLMClient = Depends(get_llm_client)):
    text = await client.generate_text(req.prompt, req.system)
    return api_success({"text": text})
