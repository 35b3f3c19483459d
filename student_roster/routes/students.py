"""
Students API routes - the view layer's intents against the roster.

Provides endpoints for:
- Listing and searching records (searchChanged)
- Submitting the form (submitForm), creating or updating
- Starting and cancelling an edit (editRequest)
- Deleting a record (deleteRequest)
- Table rows and editor state for rendering

Intents are handled one at a time: every handler runs its controller
calls under a single lock, since sync handlers execute on a thread pool.
"""

import threading
import time
from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from student_roster.services.controller import RecordController
from student_roster.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")

intent_lock = threading.Lock()

EMPTY_TABLE_MESSAGE = "No student records found"


def get_controller(request: Request) -> RecordController:
    """FastAPI dependency returning the controller owned by the application."""
    return request.app.state.controller


def serialize_view(controller: RecordController, search: Optional[str]) -> list:
    """Current filtered roster in wire form."""
    return [r.to_document() for r in controller.search(search or "")]


def serialize_state(controller: RecordController) -> dict:
    return {
        "mode": controller.mode,
        "editing_id": controller.editing_id,
        "submit_label": controller.submit_label,
    }


@router.get("/api/students")
def list_students(
    search: Optional[str] = Query(None, description="Filter by name, grade or parent details"),
    controller: RecordController = Depends(get_controller)
):
    """List the roster in insertion order, optionally filtered by a search term."""
    start_time = time.time()

    with intent_lock:
        data = serialize_view(controller, search)
        editing_id = controller.editing_id

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Listed {} students".format(len(data)),
        extra_data={"search": search or "", "duration_ms": round(duration_ms, 2)})

    return {"data": data, "total": len(data), "editing_id": editing_id}


@router.get("/api/students/table")
def student_table(
    search: Optional[str] = Query(None, description="Filter by name, grade or parent details"),
    controller: RecordController = Depends(get_controller)
):
    """Rows for the roster table, with a placeholder message when empty."""
    with intent_lock:
        rows = [r.table_row() for r in controller.search(search or "")]

    return {"rows": rows, "message": None if rows else EMPTY_TABLE_MESSAGE}


@router.get("/api/students/state")
def editor_state(controller: RecordController = Depends(get_controller)):
    """Whether the form is creating or editing, and the submit button label."""
    with intent_lock:
        return serialize_state(controller)


@router.post("/api/students/cancel")
def cancel_edit(controller: RecordController = Depends(get_controller)):
    """Clear the form: leave Editing without touching the roster."""
    with intent_lock:
        controller.cancel_edit()
        return serialize_state(controller)


@router.get("/api/students/{student_id}")
def get_student(student_id: str, controller: RecordController = Depends(get_controller)):
    """Get a single student record."""
    with intent_lock:
        record = controller.store.find_by_id(student_id)

    if not record:
        raise HTTPException(status_code=404, detail="Student not found")

    return record.to_document()


@router.post("/api/students")
def submit_student(
    fields: dict = Body(..., description="Form values keyed by field name (firstName, dob, ...)"),
    search: Optional[str] = Query(None, description="Search term of the refreshed view"),
    controller: RecordController = Depends(get_controller)
):
    """
    Submit the student form.

    Creates a record when no edit is in progress, otherwise replaces the
    record being edited. Validation failures come back as 422 with one
    entry per offending field.
    """
    with intent_lock:
        result = controller.submit(fields)
        if not result.ok:
            return JSONResponse(
                status_code=422,
                content={"errors": [e.model_dump() for e in result.errors]}
            )
        data = serialize_view(controller, search)

    log_with_context(logger, "INFO",
        "Student {} saved".format(result.record.id),
        context={"student_id": result.record.id})

    return {"record": result.record.to_document(), "data": data}


@router.post("/api/students/{student_id}/edit")
def edit_student(student_id: str, controller: RecordController = Depends(get_controller)):
    """Start editing a record and return its values to prefill the form."""
    with intent_lock:
        record = controller.request_edit(student_id)
        if not record:
            raise HTTPException(status_code=404, detail="Student not found")
        editing_id = controller.editing_id

    return {"fields": record.to_document(), "editing_id": editing_id}


@router.delete("/api/students/{student_id}")
def delete_student(
    student_id: str,
    search: Optional[str] = Query(None, description="Search term of the refreshed view"),
    controller: RecordController = Depends(get_controller)
):
    """
    Delete a record.

    Confirmation is up to the client; the delete itself is unconditional
    and succeeds for unknown ids too.
    """
    with intent_lock:
        controller.request_delete(student_id)
        data = serialize_view(controller, search)
        editing_id = controller.editing_id

    log_with_context(logger, "INFO",
        "Student {} deleted".format(student_id),
        context={"student_id": student_id})

    return {"deleted": student_id, "data": data, "editing_id": editing_id}
