"""Task endpoints."""
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..auth.service import get_current_active_user
from ..database import get_db, utcnow
from ..models import NotificationCategory, Task, TaskStatus, User
from ..models.task import OPEN_STATUSES, PRIORITY_ORDER
from ..schemas.task import TaskCreate, TaskDeleted, TaskResponse, TaskStatusUpdate, TaskUpdate
from ..services import NotificationService
from .common import OVERSIGHT_ROLES, ensure_self_or_oversight, forbid, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])
user_tasks_router = APIRouter(prefix="/api/users", tags=["Tasks"])

MAX_DUE_SOON_DAYS = 30
EXECUTOR_EDITABLE_FIELDS = {"status", "description"}
NULLABLE_FIELDS = {"description", "due_date"}


def _task_query(db: Session):
    return db.query(Task).options(joinedload(Task.client), joinedload(Task.executor))


def _visible_to(query, user: User):
    if user.role in OVERSIGHT_ROLES:
        return query
    return query.filter(or_(Task.client_id == user.id, Task.executor_id == user.id))


def _sorted(tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.sort_key)


def _parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in TaskStatus)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid status. Must be one of: {valid}")


def _notify_status_change(db: Session, task: Task, actor: User) -> None:
    notifications = NotificationService(db)
    if task.status == TaskStatus.completed:
        if task.client_id != actor.id:
            notifications.notify(
                task.client_id, "Task Completed", f"Task '{task.title}' has been completed",
                category=NotificationCategory.task, related_id=task.id, related_type="task",
            )
        notifications.notify_admins(
            "Task Completed", f"Task '{task.title}' has been completed",
            exclude=[task.client_id, task.executor_id, actor.id],
            category=NotificationCategory.task, related_id=task.id, related_type="task",
        )
        return

    recipients = [uid for uid in (task.client_id, task.executor_id) if uid != actor.id]
    notifications.notify_many(
        recipients, "Task Status Updated",
        f"Task '{task.title}' is now {task.status.value.replace('_', ' ')}",
        category=NotificationCategory.task, related_id=task.id, related_type="task",
    )


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Tasks ordered by status, priority and age."""
    return _sorted(_visible_to(_task_query(db), current_user).all())


@router.get("/client/{user_id}", response_model=list[TaskResponse])
async def tasks_by_client(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_oversight(current_user, user_id)
    return _sorted(_task_query(db).filter(Task.client_id == user_id).all())


@router.get("/executor/{user_id}", response_model=list[TaskResponse])
async def tasks_by_executor(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_oversight(current_user, user_id)
    return _sorted(_task_query(db).filter(Task.executor_id == user_id).all())


@router.get("/status/{task_status}", response_model=list[TaskResponse])
async def tasks_by_status(
    task_status: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    wanted = _parse_status(task_status)
    query = _visible_to(_task_query(db).filter(Task.status == wanted), current_user)
    return _sorted(query.all())


@router.get("/due-soon/{days}", response_model=list[TaskResponse])
async def tasks_due_soon(
    days: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Open tasks due within the next ``days`` days (overdue ones included)."""
    if days < 0 or days > MAX_DUE_SOON_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"days must be between 0 and {MAX_DUE_SOON_DAYS}"
        )
    deadline = utcnow() + timedelta(days=days)
    query = _task_query(db).filter(
        Task.status.in_(OPEN_STATUSES),
        Task.due_date.isnot(None),
        Task.due_date <= deadline,
    )
    tasks = _visible_to(query, current_user).all()
    return sorted(tasks, key=lambda t: (t.due_date, PRIORITY_ORDER[t.priority]))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    task = get_or_404(db, Task, task_id)
    if current_user.role not in OVERSIGHT_ROLES and not task.involves(current_user.id):
        raise forbid()
    return task


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    data = task_data.model_dump()
    client_id = data.pop("client_id") or current_user.id
    if client_id != current_user.id and not current_user.is_admin:
        raise forbid("You can only create tasks on your own behalf")
    get_or_404(db, User, client_id, "Client")
    get_or_404(db, User, task_data.executor_id, "Executor")

    task = Task(**data, client_id=client_id)
    db.add(task)
    db.flush()

    if task.executor_id != current_user.id:
        NotificationService(db).notify(
            task.executor_id, "New Task Assigned", f"You have been assigned '{task.title}'",
            category=NotificationCategory.task, related_id=task.id, related_type="task",
        )
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} created by {current_user.email} for executor {task.executor_id}")
    return task


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    task = get_or_404(db, Task, task_id)
    changes = {
        key: value for key, value in task_data.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }

    if not (current_user.is_admin or task.client_id == current_user.id):
        if task.executor_id != current_user.id:
            raise forbid("You can only edit tasks you created")
        disallowed = sorted(set(changes) - EXECUTOR_EDITABLE_FIELDS)
        if disallowed:
            raise forbid(f"Executors may only change status and description, not: {', '.join(disallowed)}")

    if "executor_id" in changes:
        get_or_404(db, User, changes["executor_id"], "Executor")

    previous_status = task.status
    for key, value in changes.items():
        setattr(task, key, value)

    if task.status != previous_status:
        _notify_status_change(db, task, current_user)
    db.commit()
    db.refresh(task)
    return task


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: int,
    status_data: TaskStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    new_status = _parse_status(status_data.status)
    task = get_or_404(db, Task, task_id)
    if not current_user.is_admin and not task.involves(current_user.id):
        raise forbid()

    task.status = new_status
    if new_status == TaskStatus.completed and task.client_id != current_user.id:
        NotificationService(db).notify(
            task.client_id, "Task Completed", f"Task '{task.title}' has been completed",
            category=NotificationCategory.task, related_id=task.id, related_type="task",
        )
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    task = get_or_404(db, Task, task_id)
    if not (current_user.is_admin or task.client_id == current_user.id):
        raise forbid("Only the task creator or an admin can delete this task")

    if task.executor_id != current_user.id:
        NotificationService(db).notify(
            task.executor_id, "Task Deleted", f"Task '{task.title}' has been deleted",
            category=NotificationCategory.task, related_type="task",
        )
    db.delete(task)
    db.commit()
    return {"message": "Task deleted successfully", "task_id": task_id}


@user_tasks_router.get("/{user_id}/tasks", response_model=list[TaskResponse])
async def tasks_of_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Tasks where the user is client or executor."""
    ensure_self_or_oversight(current_user, user_id)
    tasks = _task_query(db).filter(or_(Task.client_id == user_id, Task.executor_id == user_id)).all()
    return _sorted(tasks)
