"""
Folio Portfolio API — Profile, project, and public portfolio routes.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.config import settings
from portfolio_api.database import get_db
from portfolio_api.models.profile import Profile, Project
from portfolio_api.routes import get_event_store
from portfolio_api.routes.analytics import visitor_storage_for
from portfolio_api.schemas import (
    EventType,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
    PublicPortfolioResponse,
)
from portfolio_api.services.event_store import EventStore
from portfolio_api.services.recorder import record_event_quietly
from portfolio_api.services.visitor import get_or_create_visitor_id

logger = logging.getLogger(__name__)
router = APIRouter(tags=["portfolio"])


async def _get_profile_or_404(db: AsyncSession, profile_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(404, f"Profile {profile_id} not found")
    return profile


async def _get_project_or_404(db: AsyncSession, project_id: str) -> Project:
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        raise HTTPException(404, f"Project {project_id} not found")
    return project


async def _get_public_profile_or_404(db: AsyncSession, username: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.username == username))
    profile = result.scalar_one_or_none()
    if not profile or not profile.is_public:
        raise HTTPException(404, "This portfolio doesn't exist or is private")
    return profile


# ── Profiles ────────────────────────────────────────────

@router.post("/profiles", response_model=ProfileResponse, status_code=201)
async def create_profile(req: ProfileCreate, db: AsyncSession = Depends(get_db)):
    profile = Profile(**req.model_dump())
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(409, f"Username {req.username} is already taken")
    await db.refresh(profile)

    logger.info("✅ Profile created: %s", profile.username)
    return profile


@router.get("/profiles/{profile_id}", response_model=ProfileResponse)
async def get_profile(profile_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_profile_or_404(db, profile_id)


@router.patch("/profiles/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    req: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
):
    profile = await _get_profile_or_404(db, profile_id)

    update_data = req.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(profile, key, value)

    await db.commit()
    await db.refresh(profile)

    logger.info("✅ Profile %s patched: %s", profile.username, list(update_data.keys()))
    return profile


# ── Projects ────────────────────────────────────────────

@router.post("/profiles/{profile_id}/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    profile_id: str,
    req: ProjectCreate,
    db: AsyncSession = Depends(get_db),
):
    await _get_profile_or_404(db, profile_id)

    project = Project(profile_id=profile_id, **req.model_dump())
    db.add(project)
    await db.commit()
    await db.refresh(project)

    logger.info("✅ Project created for %s: %s", profile_id, project.title)
    return project


@router.get("/profiles/{profile_id}/projects", response_model=ProjectListResponse)
async def list_projects(profile_id: str, db: AsyncSession = Depends(get_db)):
    """All projects for the owner, public or not, in display order."""
    await _get_profile_or_404(db, profile_id)
    result = await db.execute(
        select(Project)
        .where(Project.profile_id == profile_id)
        .order_by(Project.display_order.asc(), Project.created_at.asc())
    )
    projects = result.scalars().all()
    return {"projects": projects, "total": len(projects)}


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    req: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
):
    project = await _get_project_or_404(db, project_id)

    update_data = req.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(project, key, value)

    await db.commit()
    await db.refresh(project)

    logger.info("✅ Project %s patched: %s", project_id, list(update_data.keys()))
    return project


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(project_id: str, db: AsyncSession = Depends(get_db)):
    project = await _get_project_or_404(db, project_id)
    await db.delete(project)
    await db.commit()
    logger.info("🗑️ Project %s deleted", project_id)
    return Response(status_code=204)


# ── Public portfolio ────────────────────────────────────

@router.get("/portfolio/{username}", response_model=PublicPortfolioResponse)
async def public_portfolio(
    username: str,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    store: EventStore = Depends(get_event_store),
):
    """Public profile + public projects. Counts as a page view."""
    profile = await _get_public_profile_or_404(db, username)

    result = await db.execute(
        select(Project)
        .where(Project.profile_id == profile.id, Project.is_public.is_(True))
        .order_by(Project.display_order.asc(), Project.created_at.asc())
    )
    projects = result.scalars().all()

    # Issue the visitor cookie now; the write itself happens after the response
    storage = visitor_storage_for(request, response)
    get_or_create_visitor_id(storage, settings.visitor_cookie_name)
    background_tasks.add_task(
        record_event_quietly,
        store, storage, profile.id, EventType.PAGE_VIEW, None, settings.visitor_cookie_name,
    )

    return {"profile": profile, "projects": projects}


@router.post("/portfolio/{username}/projects/{project_id}/click", status_code=202)
async def project_click(
    username: str,
    project_id: str,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    store: EventStore = Depends(get_event_store),
):
    """Visitor opened a project card on the public page."""
    profile = await _get_public_profile_or_404(db, username)
    project = await _get_project_or_404(db, project_id)
    if project.profile_id != profile.id:
        raise HTTPException(404, f"Project {project_id} not found")

    storage = visitor_storage_for(request, response)
    visitor_id = get_or_create_visitor_id(storage, settings.visitor_cookie_name)
    background_tasks.add_task(
        record_event_quietly,
        store, storage, profile.id, EventType.PROJECT_CLICK, project.id, settings.visitor_cookie_name,
    )

    return {"accepted": True, "visitorId": visitor_id}
