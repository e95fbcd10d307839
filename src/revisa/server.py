import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from revisa.consts import VERSION

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("revisa.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"revisa server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("revisa server shutting down...")


app = FastAPI(
    title="revisa server",
    description="Scheduling and progress aggregation for study items.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# Both endpoints are pure: the caller sends current item state and owns persistence.
class StatusRequest(BaseModel):
    reference: str
    questions: list[dict[str, Any]] = Field(default_factory=list)
    flashcards: list[dict[str, Any]] = Field(default_factory=list)
    settings: dict[str, Any] | None = None
    now: datetime | None = None


class GradeRequest(BaseModel):
    item: dict[str, Any]
    rating: int
    time_taken_sec: float
    was_correct: bool | None = None
    settings: dict[str, Any] | None = None
    now: datetime | None = None


class GradeResponse(BaseModel):
    patch: dict[str, Any]
    attempt: dict[str, Any]


def _resolve_settings(overrides: dict[str, Any] | None):
    from revisa.application.config import resolve_config

    try:
        return resolve_config(overrides)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/status")
async def reference_status(req: StatusRequest):
    """
    Aggregate the items linked to a reference.
    """
    from revisa.application.ingest import load_collection
    from revisa.application.stats.aggregator import aggregate_by_reference
    from revisa.interface._common import status_to_dict

    settings = _resolve_settings(req.settings)
    questions = load_collection(req.questions, "questions")
    flashcards = load_collection(req.flashcards, "flashcards")

    result = aggregate_by_reference(req.reference, questions, flashcards, settings, req.now)
    return status_to_dict(result)


@app.post("/grade", response_model=GradeResponse)
async def grade_item(req: GradeRequest):
    """
    Compute the SRS patch and attempt record for one graded item.
    """
    from revisa.application.ingest import attempt_to_record, item_from_record
    from revisa.application.memory_model import build_attempt_record, compute_srs_update
    from revisa.domain.exceptions import InvalidRecordError

    settings = _resolve_settings(req.settings)
    try:
        item = item_from_record(req.item)
    except InvalidRecordError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    was_correct = req.was_correct if req.was_correct is not None else req.rating != 0
    try:
        patch = compute_srs_update(item, was_correct, req.rating, req.time_taken_sec, settings, req.now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    attempt = build_attempt_record(patch, req.time_taken_sec, req.rating)
    logger.info(f"Graded {item.id} via API: {patch.grade}")
    return GradeResponse(patch=patch.to_record(), attempt=attempt_to_record(attempt))
