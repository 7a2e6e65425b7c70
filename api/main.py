import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import (
    CreateJobRequest,
    PatchJobRequest,
    JobEnvelope,
    JobListResponse,
    StatsEnvelope,
    OkResponse,
)

from core.config import Config
from core.errors import NotFoundError, StorageError, ValidationError
from core.job import JobPatch
from core.lifecycle import new_job
from core.stats import summarize
from infra.job_store import JobStore
from infra.sqlite_job_store import SQLiteJobStore

logger = logging.getLogger(__name__)


def flatten_request_errors(exc: RequestValidationError) -> dict:
    """
    Fold FastAPI's error list into {formErrors, fieldErrors}.

    Errors located on a named body field go under that field; anything
    about the body as a whole (bad JSON, wrong type) is a form error.
    """
    form_errors = []
    field_errors = {}

    for err in exc.errors():
        loc = err.get("loc", ())
        msg = err.get("msg", "Invalid value")

        if (
            len(loc) >= 2
            and loc[0] == "body"
            and isinstance(loc[1], str)
            and err.get("type") != "json_invalid"
        ):
            field_errors.setdefault(loc[1], []).append(msg)
        else:
            form_errors.append(msg)

    return {"formErrors": form_errors, "fieldErrors": field_errors}


def create_app(*, store: Optional[JobStore] = None) -> FastAPI:
    # ----------------------------------
    # Infra
    # ----------------------------------

    if store is None:
        store = SQLiteJobStore(str(Config.DB_PATH))

    # ----------------------------------
    # Lifespan (store ownership)
    # ----------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Closing job store")
        store.close()

    app = FastAPI(
        title="JobBoard API",
        lifespan=lifespan,
    )

    # ----------------------------------
    # Middleware
    # ----------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----------------------------------
    # Errors
    # ----------------------------------

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": flatten_request_errors(exc)}, status_code=400)

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse({"error": exc.to_dict()}, status_code=400)

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError):
        return JSONResponse({"error": "not_found"}, status_code=404)

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.exception(
            f"Storage failure on {request.method} {request.url.path}",
            exc_info=exc,
        )
        return JSONResponse({"error": "storage_error"}, status_code=500)

    # ----------------------------------
    # Routes
    # ----------------------------------

    jobs = APIRouter(prefix="/jobs", tags=["jobs"])

    @jobs.get("", response_model=JobListResponse)
    def list_jobs():
        return {"jobs": [job.to_dict() for job in store.list()]}

    @jobs.post("", response_model=JobEnvelope, status_code=201)
    def create_job(req: CreateJobRequest):
        job = new_job(
            url=req.url,
            title=req.title,
            company=req.company,
            source=req.source,
            notes=req.notes,
        )
        store.create(job)

        logger.info(f"Created job {job.id} ({job.source})")
        return {"job": job.to_dict()}

    @jobs.get("/stats", response_model=StatsEnvelope)
    def job_stats():
        return {"stats": summarize(store.list()).to_dict()}

    @jobs.patch("/{job_id}", response_model=JobEnvelope)
    def patch_job(job_id: str, req: PatchJobRequest):
        patch = JobPatch.from_dict(req.model_dump(exclude_unset=True))
        job = store.patch(job_id, patch)

        logger.info(f"Patched job {job.id} (status={job.status.value})")
        return {"job": job.to_dict()}

    @jobs.delete("/{job_id}", response_model=OkResponse)
    def delete_job(job_id: str):
        store.delete(job_id)

        logger.info(f"Deleted job {job_id}")
        return {"ok": True}

    app.include_router(jobs)

    @app.get("/health", response_model=OkResponse, include_in_schema=False)
    def health():
        return {"ok": True}

    return app
