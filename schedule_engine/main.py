from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .config import ALLOWED_UPLOAD_EXTENSIONS, HOST, PORT
from .date_logic import (
    auto_schedule,
    dangling_predecessor_ids,
    earliest_legal_start,
    validate_schedule,
)
from .exceptions import CUSTOM_ERRORS, ScheduleEngineError, TaskNotFoundError
from .importer import load_tasks_from_csv, load_tasks_from_excel
from .logger import logger
from .models import (
    CascadeResponse,
    EarliestStartResponse,
    ScheduleResponse,
    TaskListRequest,
    TaskSetRequest,
    ValidateAllResponse,
    ValidationResponse,
)
from .services import cascade_schedule, validate_all

app = FastAPI(title="Schedule Engine")


@app.exception_handler(ScheduleEngineError)
async def schedule_engine_error_handler(request: Request, exc: ScheduleEngineError):
    status_code = CUSTOM_ERRORS.get(type(exc), 400)
    logger.warning(f"{request.url.path} failed ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def _get_task(request: TaskSetRequest):
    task = next((t for t in request.tasks if t.id == request.task_id), None)
    if task is None:
        raise TaskNotFoundError(request.task_id)

    dangling = dangling_predecessor_ids(task, request.tasks)
    if dangling:
        logger.warning(f"Task {task.id} references unknown predecessors: {dangling}")
    return task, dangling


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/earliest-start", response_model=EarliestStartResponse)
def get_earliest_start(request: TaskSetRequest):
    task, dangling = _get_task(request)
    return EarliestStartResponse(
        task_id=task.id,
        earliest_start=earliest_legal_start(task, request.tasks),
        dangling_predecessors=dangling,
    )


@app.post("/auto-schedule", response_model=ScheduleResponse)
def auto_schedule_task(request: TaskSetRequest):
    task, _ = _get_task(request)
    update = auto_schedule(task, request.tasks)
    return ScheduleResponse(task_id=task.id, start_date=update.start_date, end_date=update.end_date)


@app.post("/validate", response_model=ValidationResponse)
def validate_task(request: TaskSetRequest):
    task, dangling = _get_task(request)
    result = validate_schedule(task, request.tasks)
    return ValidationResponse(
        task_id=task.id,
        is_valid=result.is_valid,
        violations=result.violations,
        dangling_predecessors=dangling,
    )


@app.post("/validate-all", response_model=ValidateAllResponse)
def validate_task_set(request: TaskListRequest):
    results = validate_all(request.tasks)
    return ValidateAllResponse(violations={task_id: r.violations for task_id, r in results.items()})


@app.post("/cascade", response_model=CascadeResponse)
def cascade(request: TaskSetRequest):
    _get_task(request)
    updated = cascade_schedule(request.task_id, request.tasks)
    logger.info(f"Cascade from {request.task_id} moved {len(updated)} tasks")
    return CascadeResponse(changed_task_id=request.task_id, updated_tasks=updated)


@app.post("/parse-excel")
async def parse_excel(file: UploadFile = File(...)):
    filename = (file.filename or "").lower()
    if not filename.endswith(ALLOWED_UPLOAD_EXTENSIONS):
        raise HTTPException(status_code=400, detail="Invalid file format")

    contents = await file.read()
    if filename.endswith(".csv"):
        tasks = await run_in_threadpool(load_tasks_from_csv, contents)
    else:
        tasks = await run_in_threadpool(load_tasks_from_excel, contents)

    logger.info(f"Parsed {len(tasks)} tasks from {file.filename}")
    return {"tasks": tasks}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
