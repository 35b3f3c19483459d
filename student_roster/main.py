"""
Student Roster - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Loads the persisted roster at startup and wires the record controller
5. Registers the student routes and a health check endpoint

The application follows a modular architecture:
- routes/: API endpoint handlers (the view layer's intents)
- models/: the student record and the key-value table
- services/: record store, validation, controller, persistence backends
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from student_roster.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from student_roster.routes import students
from student_roster.database import SessionLocal, create_tables
from student_roster.services.controller import RecordController
from student_roster.services.persistence import SqlKeyValueBackend
from student_roster.services.record_store import RecordStore

# Import models so they are registered with Base.metadata
from student_roster.models.kv_entry import KeyValueEntry  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")


def build_controller(backend=None) -> RecordController:
    """
    Create a controller around a freshly loaded store.

    The roster is read from the backend exactly once, here.
    """
    store = RecordStore(backend or SqlKeyValueBackend(SessionLocal))
    store.load()
    return RecordController(store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the kv_store table and load the roster once, at startup."""
    create_tables()
    app.state.controller = build_controller()
    yield


# ──────────────────────────────────────────────────────────────
# Create FastAPI application
# ──────────────────────────────────────────────────────────────
app = FastAPI(
    title="Student Roster",
    description=(
        "Keeps a roster of student records entered through a form, "
        "persisted as a single local document, with search and in-place editing."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Tag every request with a UUID and log its start and completion.

    The ID is stored in a context variable so every log entry written
    while handling the request carries it, and is returned to the client
    in the X-Request-ID header.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


app.include_router(students.router, tags=["Students"])


@app.get("/health", tags=["Health"])
def health_check():
    """Simple status response to verify the application is running."""
    return {"status": "healthy", "service": "student-roster", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Student Roster",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "list": "GET /api/students?search=",
            "table": "GET /api/students/table?search=",
            "detail": "GET /api/students/{id}",
            "submit": "POST /api/students",
            "edit": "POST /api/students/{id}/edit",
            "cancel": "POST /api/students/cancel",
            "state": "GET /api/students/state",
            "delete": "DELETE /api/students/{id}"
        }
    }
