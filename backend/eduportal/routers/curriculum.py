"""Curriculum plan endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db
from ..models import CurriculumPlan, EducationLevel, User, UserRole
from ..schemas.task import (
    CurriculumPlanCreate, CurriculumPlanDeleted, CurriculumPlanOverride, CurriculumPlanResponse,
    CurriculumPlanUpdate, CurriculumWeeks,
)
from ..services import NotificationService
from .common import apply_updates, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/curriculum-plans", tags=["Curriculum"])


def _notify_admins(db: Session, actor: User, title: str, plan: CurriculumPlan, verb: str) -> None:
    NotificationService(db).notify_admins(
        title,
        f"{actor.full_name} {verb} the curriculum plan {plan.specialty_code} {plan.specialty_name}",
        exclude=[actor.id],
        related_id=plan.id,
        related_type="curriculum_plan",
    )


def _update_plan(db: Session, plan_id: int, plan_data: CurriculumPlanUpdate, current_user: User) -> CurriculumPlan:
    plan = get_or_404(db, CurriculumPlan, plan_id, "Curriculum plan")
    changes = plan_data.model_dump(exclude_unset=True, exclude={"method"})
    apply_updates(plan, changes, clearable={"description"})
    _notify_admins(db, current_user, "Curriculum Plan Updated", plan, "updated")
    db.commit()
    db.refresh(plan)
    return plan


@router.get("", response_model=list[CurriculumPlanResponse])
async def list_plans(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return db.query(CurriculumPlan).order_by(CurriculumPlan.specialty_code, CurriculumPlan.id).all()


@router.get("/education-level/{level}", response_model=list[CurriculumPlanResponse])
async def plans_by_level(
    level: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    try:
        education_level = EducationLevel(level)
    except ValueError:
        valid = ", ".join(e.value for e in EducationLevel)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid education level. Must be one of: {valid}"
        )
    return (
        db.query(CurriculumPlan)
        .filter(CurriculumPlan.education_level == education_level)
        .order_by(CurriculumPlan.specialty_code, CurriculumPlan.id)
        .all()
    )


@router.post("/weeks", response_model=CurriculumPlanResponse)
async def save_calendar_weeks(
    weeks: CurriculumWeeks,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    """Store the academic calendar grid of a plan."""
    plan = get_or_404(db, CurriculumPlan, weeks.plan_id, "Curriculum plan")
    plan.calendar_data = weeks.calendar_data
    db.commit()
    db.refresh(plan)
    logger.info(f"Saved academic calendar for curriculum plan {plan.id}")
    return plan


@router.get("/{plan_id}", response_model=CurriculumPlanResponse)
async def get_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return get_or_404(db, CurriculumPlan, plan_id, "Curriculum plan")


@router.post("", response_model=CurriculumPlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: CurriculumPlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    data = plan_data.model_dump()
    data["created_by"] = data.get("created_by") or current_user.id
    data["calendar_data"] = data.get("calendar_data") or {}
    data["curriculum_plan_data"] = data.get("curriculum_plan_data") or {}
    plan = CurriculumPlan(**data)
    db.add(plan)
    db.flush()
    _notify_admins(db, current_user, "New Curriculum Plan", plan, "created")
    db.commit()
    db.refresh(plan)
    return plan


@router.put("/{plan_id}", response_model=CurriculumPlanResponse)
@router.patch("/{plan_id}", response_model=CurriculumPlanResponse)
async def update_plan(
    plan_id: int,
    plan_data: CurriculumPlanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    return _update_plan(db, plan_id, plan_data, current_user)


@router.post("/{plan_id}", response_model=CurriculumPlanResponse)
async def update_plan_override(
    plan_id: int,
    plan_data: CurriculumPlanOverride,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    """Update through POST for clients that cannot send PUT (``{"_method": "PUT"}`` in the body)."""
    if plan_data.method != "PUT":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request method, expected _method=PUT in the request body",
        )
    return _update_plan(db, plan_id, plan_data, current_user)


@router.delete("/{plan_id}", response_model=CurriculumPlanDeleted)
async def delete_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    plan = get_or_404(db, CurriculumPlan, plan_id, "Curriculum plan")
    _notify_admins(db, current_user, "Curriculum Plan Deleted", plan, "deleted")
    db.delete(plan)
    db.commit()
    return {"message": "Curriculum plan deleted successfully", "plan_id": plan_id}
