from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from marketplace.database import get_session
from marketplace.errors import NotFound
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.schemas.project_schemas import (
    ProjectCreate,
    ProjectListResponse,
    ProjectRead,
)
from marketplace.utils.pagination import paginate
from marketplace.utils.token import get_current_user

router = APIRouter()


@router.get("", response_model=ProjectListResponse)
def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = select(Project).where(Project.is_active == True)  # noqa: E712

    if category:
        query = query.where(Project.category == category)

    if search:
        query = query.where(Project.title.ilike(f"%{search}%"))

    projects, pagination = paginate(
        session=session,
        query=query.order_by(Project.created_at.desc()),
        page=page,
        limit=limit,
    )

    return {"projects": projects, "pagination": pagination}


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(project_id: int, session: Session = Depends(get_session)):
    project = session.get(Project, project_id)

    if not project or not project.is_active:
        raise NotFound("Project not found")

    return project


@router.post("", response_model=ProjectRead, status_code=201)
def create_project(
    payload: ProjectCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    project = Project(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        price=payload.price,
        author_id=current_user.id,
    )

    session.add(project)
    session.commit()
    session.refresh(project)

    return project
