"""
Generate Router
Upload an image, follow the generation session, cancel it
"""

import uuid
import logging
from datetime import datetime
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Path, Request, UploadFile

from gen3d.config import settings
from gen3d.dependencies import get_http_client, get_replicate_proxy
from gen3d.middleware.rate_limit import limiter
from gen3d.models.enums import Backend, ClientState, JobStatus
from gen3d.models.responses import ErrorResponse, SessionResponse, SessionStatusResponse
from gen3d.services.generation_client import NO_FILE_MESSAGE
from gen3d.services.proxy import ReplicateProxy
from gen3d.services.session_store import SessionStore, get_session_store
from gen3d.services.sessions import SessionManager, get_session_manager, run_generation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate", tags=["Image to 3D"])


@router.post(
    "",
    response_model=SessionResponse,
    status_code=202,
    summary="Generate a 3D model from an image",
    description="Upload an image and start a generation session. Poll /api/v1/generate/{session_id} for status.",
    responses={400: {"model": ErrorResponse, "description": "No file selected or unknown backend"}},
)
@limiter.limit(settings.rate_limit_default)
async def generate(
    request: Request,
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = File(default=None, description="Image file"),
    backend: str = Form(default=settings.default_backend, description="Backend: gradio, replicate or meshy"),
    session_id: Optional[str] = Form(default=None, description="Existing session to supersede"),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    store: SessionStore = Depends(get_session_store),
    proxy: ReplicateProxy = Depends(get_replicate_proxy),
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    """
    Start (or restart) a generation session.

    Re-posting with an existing ``session_id`` supersedes that session's
    job: its model is cleared and late results of the old job are dropped.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail=NO_FILE_MESSAGE)

    try:
        selected = Backend(backend)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid backend: {backend}. Use one of: {', '.join(b.value for b in Backend)}"
        )

    session_id = session_id or str(uuid.uuid4())
    if store.get_session(session_id) is None:
        store.create_session(session_id, selected, filename=file.filename)
    else:
        # Drop the superseded job's results until the new one reports
        store.update_session(
            session_id,
            backend=selected.value,
            filename=file.filename,
            state=ClientState.IDLE.value,
            message="Queued for generation",
            job_id=None,
            job_status=None,
            result_url=None,
            error=None,
            load_progress=None,
            model=None,
            completed_at=None,
        )

    data = await file.read()
    client = manager.acquire(session_id, http_client, store, proxy=proxy)
    background_tasks.add_task(run_generation, manager, session_id, client, data, file.filename, selected)

    logger.info(f"Queued {file.filename} for session {session_id} ({selected.value})")

    return SessionResponse(
        session_id=session_id,
        backend=selected,
        state=client.state,
        message="Queued for generation",
    )


@router.get(
    "/{session_id}",
    response_model=SessionStatusResponse,
    summary="Get session status",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
@limiter.limit(settings.rate_limit_default)
async def get_session_status(
    request: Request,
    session_id: str = Path(..., description="Session ID"),
    store: SessionStore = Depends(get_session_store),
) -> SessionStatusResponse:
    """Latest snapshot of a generation session"""
    session = store.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    return SessionStatusResponse(
        session_id=session["session_id"],
        backend=Backend(session["backend"]),
        state=ClientState(session["state"]),
        message=session.get("message"),
        job_id=session.get("job_id"),
        job_status=JobStatus(session["job_status"]) if session.get("job_status") else None,
        result_url=session.get("result_url"),
        error=session.get("error"),
        load_progress=session.get("load_progress"),
        model=session.get("model"),
        created_at=datetime.fromisoformat(session["created_at"]),
        updated_at=datetime.fromisoformat(session["updated_at"]) if session.get("updated_at") else None,
        completed_at=datetime.fromisoformat(session["completed_at"]) if session.get("completed_at") else None,
    )


@router.delete(
    "/{session_id}",
    summary="Cancel session",
    description="Cancel the active job of a session and forget the session.",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
@limiter.limit(settings.rate_limit_default)
async def cancel_session(
    request: Request,
    session_id: str = Path(..., description="Session ID"),
    store: SessionStore = Depends(get_session_store),
    manager: SessionManager = Depends(get_session_manager),
) -> Dict[str, str]:
    """Cancel a session's job locally and delete its record"""
    if not store.get_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    manager.remove(session_id)
    store.delete_session(session_id)

    logger.info(f"Canceled session {session_id}")
    return {"message": f"Session {session_id} canceled"}
