"""
DailyThree — API v1: Tasks
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.core.patch import apply_patch, blank_to_none
from app.core.security import CurrentUser, get_current_user
from app.database import get_db
from app.models.tasks import Task

router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: Optional[str]
    deadline: Optional[date]
    category: Optional[str]
    is_completed: bool
    created_at: datetime
    updated_at: datetime


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]


class TaskEnvelope(BaseModel):
    task: TaskResponse


class TaskMessageResponse(TaskEnvelope):
    message: str


class CreateTaskRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    deadline: Optional[date] = None
    category: Optional[str] = Field(None, max_length=100)

    @field_validator("description", "deadline", "category", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    deadline: Optional[date] = None
    category: Optional[str] = Field(None, max_length=100)
    is_completed: Optional[bool] = None

    @field_validator("description", "deadline", "category", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)

    @field_validator("title", "is_completed")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


def _get_owned_task(db: Session, task_id: str, user_id: str) -> Task:
    task = db.query(Task).filter_by(id=task_id, user_id=user_id).first()
    if not task:
        raise ResourceNotFoundError("Task", task_id)
    return task


@router.get("/", response_model=TaskListResponse)
def list_tasks(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    tasks = (
        db.query(Task)
        .filter_by(user_id=current_user.user_id)
        .order_by(Task.created_at.desc())
        .all()
    )
    return {"tasks": tasks}


@router.get("/{task_id}", response_model=TaskEnvelope)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return {"task": _get_owned_task(db, task_id, current_user.user_id)}


@router.post(
    "/", response_model=TaskMessageResponse, status_code=status.HTTP_201_CREATED
)
def create_task(
    req: CreateTaskRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    task = Task(
        user_id=current_user.user_id,
        title=req.title,
        description=req.description,
        deadline=req.deadline,
        category=req.category,
        is_completed=False,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return {"message": "Task created successfully.", "task": task}


@router.put("/{task_id}", response_model=TaskMessageResponse)
def update_task(
    task_id: str,
    req: UpdateTaskRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    task = _get_owned_task(db, task_id, current_user.user_id)
    apply_patch(task, req)
    db.commit()
    db.refresh(task)
    return {"message": "Task updated successfully.", "task": task}


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    task = _get_owned_task(db, task_id, current_user.user_id)
    db.delete(task)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
