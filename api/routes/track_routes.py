"""
Curriculum read endpoints. Lock and completion flags are computed for the
calling student; admins see the curriculum without progress.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.catalog_schemas import (
    ContentBlockResponse,
    ModuleResponse,
    NextItemResponse,
    ProblemResponse,
    TrackDetailResponse,
    TrackListResponse,
    TrackSummary,
)
from api.schemas.user_schemas import User
from api.services.catalog_service import load_catalog
from api.services.progress_service import ProgressService, get_progress_service, problem_dict
from api.utils.auth import get_current_user
from progress_engine.models import Catalog, Track, UserProgress
from progress_engine.unlock import (
    first_available_module,
    is_module_locked,
    is_track_completed,
    module_states,
    next_item,
    unlock_chain,
)

track_routes = APIRouter()


async def _progress_for(user: User, db: Session, service: ProgressService) -> UserProgress:
    if user.role != "STUDENT":
        return UserProgress.empty(str(user.id))
    session = await service.session_for(user.id, db)
    return session.progress


def _visible_track(catalog: Catalog, track_id: str) -> Track:
    track = catalog.get_track(track_id)
    if track is None or not track.is_visible:
        raise HTTPException(status_code=404, detail="Track not found")
    return track


@track_routes.get("/tracks", response_model=TrackListResponse)
async def list_tracks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> TrackListResponse:
    progress = await _progress_for(current_user, db, service)
    tracks = load_catalog(db).get_tracks()
    return TrackListResponse(
        tracks=[
            TrackSummary(
                id=t.id,
                title=t.title,
                description=t.description,
                icon=t.icon,
                module_count=len(unlock_chain(t)),
                completed=is_track_completed(t, progress),
            )
            for t in tracks
        ]
    )


@track_routes.get("/tracks/{track_id}", response_model=TrackDetailResponse)
async def get_track(
    track_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> TrackDetailResponse:
    progress = await _progress_for(current_user, db, service)
    track = _visible_track(load_catalog(db), track_id)
    states = {s.module_id: s for s in module_states(track, progress)}
    solved = progress.completed_daily_problem_ids
    modules: list[ModuleResponse] = []
    for module in unlock_chain(track):
        state = states[module.id]
        unit = progress.unit_progress.get(module.id)
        done = unit.completed_block_ids if unit else frozenset()
        modules.append(
            ModuleResponse(
                id=module.id,
                title=module.title,
                description=module.description,
                locked=state.locked,
                completed=state.completed,
                completed_blocks=state.completed_blocks,
                total_blocks=state.total_blocks,
                # Locked modules only expose their outline.
                blocks=[] if state.locked else [
                    ContentBlockResponse(
                        id=b.id,
                        type=b.type.value,
                        title=b.title,
                        url=b.url,
                        problem=ProblemResponse(**problem_dict(b.problem), solved=b.problem.id in solved)
                        if b.problem is not None
                        else None,
                        completed=b.id in done,
                    )
                    for b in module.visible_blocks()
                ],
            )
        )
    current = first_available_module(track, progress)
    return TrackDetailResponse(
        id=track.id,
        title=track.title,
        description=track.description,
        icon=track.icon,
        completed=is_track_completed(track, progress),
        modules=modules,
        current_module_id=current.id if current is not None else None,
    )


@track_routes.get("/tracks/{track_id}/next", response_model=NextItemResponse)
async def get_next_item(
    track_id: str,
    module_id: str,
    block_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> NextItemResponse:
    """Where "continue" leads after `block_id` (or the module's first block when omitted)."""
    progress = await _progress_for(current_user, db, service)
    track = _visible_track(load_catalog(db), track_id)
    if block_id is None:
        found = None
        module = track.find_module(module_id)
        if module in unlock_chain(track) and not is_module_locked(track, module_id, progress):
            found = (module_id, module.visible_blocks()[0].id)
    else:
        found = next_item(track, progress, module_id, block_id)
    if found is None:
        return NextItemResponse()
    return NextItemResponse(module_id=found[0], block_id=found[1])
