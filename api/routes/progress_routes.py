"""
Progress endpoints: snapshot, transitions, sync/refresh and platform verification.
Transitions answer from the in-memory session; persistence happens in the
background and its state is reported under `sync`.
"""

import logging
from typing import Iterable

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.progress_schemas import (
    EventModel,
    ProgressResponse,
    SyncRequest,
    SyncResponse,
    TransitionResponse,
    VerifyResponse,
)
from api.schemas.user_schemas import User
from api.services.progress_service import ProblemNotFound, ProgressService, get_progress_service
from api.utils.auth import get_user_from_websocket, require_student
from api.ws import subscribe_progress, unsubscribe_progress
from progress_engine.events import ProgressEvent, event_to_dict
from progress_engine.models import UserProgress
from progress_engine.sync import ProgressSession

logger = logging.getLogger(__name__)

progress_routes = APIRouter()


def _events(events: Iterable[ProgressEvent]) -> list[EventModel]:
    out: list[EventModel] = []
    for e in events:
        data = event_to_dict(e)
        kind = data.pop("kind")
        out.append(EventModel(kind=kind, data=data))
    return out


def _transition(session: ProgressSession, events: Iterable[ProgressEvent]) -> TransitionResponse:
    return TransitionResponse(
        progress=session.progress.to_dict(),
        events=_events(events),
        sync=session.status_dict(),
    )


@progress_routes.get("/progress", response_model=ProgressResponse)
async def get_progress(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> ProgressResponse:
    session = await service.session_for(current_user.id, db)
    return ProgressResponse(**service.describe(session))


@progress_routes.post("/progress/problems/{problem_id}/solve", response_model=TransitionResponse)
async def solve_problem(
    problem_id: str,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> TransitionResponse:
    try:
        session, result = await service.solve_problem(current_user, db, problem_id)
    except ProblemNotFound:
        raise HTTPException(status_code=404, detail="Problem not found")
    return _transition(session, result.events)


@progress_routes.post("/progress/problems/{problem_id}/attempt", response_model=TransitionResponse)
async def attempt_problem(
    problem_id: str,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> TransitionResponse:
    try:
        session, result = await service.attempt_problem(current_user, db, problem_id)
    except ProblemNotFound:
        raise HTTPException(status_code=404, detail="Problem not found")
    return _transition(session, result.events)


@progress_routes.post(
    "/progress/modules/{module_id}/blocks/{block_id}/complete", response_model=TransitionResponse
)
async def complete_block(
    module_id: str,
    block_id: str,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> TransitionResponse:
    """Unknown or locked targets are a no-op: same snapshot, no events."""
    session, result = await service.complete_block(current_user, db, module_id, block_id)
    return _transition(session, result.events)


@progress_routes.post("/progress/sync", response_model=SyncResponse)
async def sync_progress(
    body: SyncRequest,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> SyncResponse:
    """Merge a snapshot held by the client (e.g. made offline) into the live state."""
    snapshot = UserProgress.from_dict({**body.progress.model_dump(), "user_id": str(current_user.id)})
    session, merged = await service.absorb(current_user, db, snapshot)
    if merged.conflict:
        logger.info("sync conflict resolved user=%s", current_user.id)
    return SyncResponse(progress=session.progress.to_dict(), conflict=merged.conflict, sync=session.status_dict())


@progress_routes.post("/progress/refresh", response_model=SyncResponse)
async def refresh_progress(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> SyncResponse:
    session, merged = await service.refresh(current_user, db)
    return SyncResponse(progress=session.progress.to_dict(), conflict=merged.conflict, sync=session.status_dict())


@progress_routes.post("/progress/verify", response_model=VerifyResponse)
async def verify_progress(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> VerifyResponse:
    session, discovered, events = await service.verify(current_user, db)
    return VerifyResponse(discovered=discovered, progress=session.progress.to_dict(), events=_events(events))


@progress_routes.websocket("/ws/progress")
async def progress_websocket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
):
    """
    Per-user event sink. Server pushes {type: progress_events, events, toasts}
    after each transition and {type: toast_dismissed, toast} when a toast expires.
    Auth: cookie access_token or query ?token=.
    """
    user = get_user_from_websocket(websocket, db)
    if user is None:
        await websocket.close(code=1008)
        return
    uid = str(user.id)
    await websocket.accept()
    subscribe_progress(uid, websocket)
    try:
        await websocket.send_json({"type": "connected", "user_id": uid})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe_progress(uid, websocket)
