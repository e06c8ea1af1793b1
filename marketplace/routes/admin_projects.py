# -------- ADMIN PROJECTS --------
import logging
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, func, select

from marketplace.database import get_session
from marketplace.dependencies.admin import require_admin
from marketplace.errors import NotFound
from marketplace.models.order import Order
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.schemas.project_schemas import ProjectRead
from marketplace.utils.clock import utcnow
from marketplace.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


class ProjectState(str, Enum):
    active = "active"
    inactive = "inactive"


class ProjectAction(str, Enum):
    activate = "activate"
    deactivate = "deactivate"


@router.get("")
def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[ProjectState] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    """All listings, hidden ones included, with author and order count."""
    order_count = (
        select(func.count(Order.id))
        .where(Order.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )

    query = (
        select(Project, User, order_count.label("order_count"))
        .join(User, User.id == Project.author_id)
    )

    if search:
        query = query.where(
            (Project.title.ilike(f"%{search}%")) |
            (Project.description.ilike(f"%{search}%"))
        )

    if category:
        query = query.where(Project.category == category)

    if status:
        query = query.where(Project.is_active == (status == ProjectState.active))

    rows, pagination = paginate(
        session=session,
        query=query.order_by(Project.created_at.desc()),
        page=page,
        limit=limit,
    )

    return {
        "projects": [
            {
                "id": p.id,
                "title": p.title,
                "category": p.category,
                "price": float(p.price),
                "status": ProjectState.active if p.is_active else ProjectState.inactive,
                "author": {"id": u.id, "name": u.name, "email": u.email},
                "orderCount": orders,
                "createdAt": p.created_at,
            }
            for p, u, orders in rows
        ],
        "pagination": pagination,
    }


@router.post("/{project_id}/{action}", response_model=ProjectRead)
def project_action(
    project_id: int,
    action: ProjectAction,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    project = session.get(Project, project_id)
    if not project:
        raise NotFound("Project not found")

    # hidden listings cannot be ordered; existing orders are untouched
    project.is_active = action == ProjectAction.activate
    project.updated_at = utcnow()
    session.add(project)
    session.commit()
    session.refresh(project)

    logger.info(f"Admin {admin.id}: {action.value} project {project.id}")
    return project
