"""
DailyThree — API v1: Habits and habit completions
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import CompletionConflictError, ResourceNotFoundError
from app.core.patch import apply_patch, blank_to_none
from app.core.security import CurrentUser, get_current_user
from app.database import get_db
from app.models.habits import Habit, HabitCompletion

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/habits", tags=["habits"])

Frequency = Literal["daily", "weekly", "monthly"]


class CompletionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    habit_id: str
    user_id: str
    date: dt.date
    notes: Optional[str]
    created_at: dt.datetime


class HabitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    description: Optional[str]
    frequency: Frequency
    goal: Optional[str]
    color: Optional[str]
    icon: Optional[str]
    created_at: dt.datetime
    updated_at: dt.datetime
    completions: List[CompletionResponse] = []


class HabitListResponse(BaseModel):
    habits: List[HabitResponse]


class HabitEnvelope(BaseModel):
    habit: HabitResponse


class HabitMessageResponse(HabitEnvelope):
    message: str


class CreateHabitRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    frequency: Frequency
    description: Optional[str] = None
    goal: Optional[str] = Field(None, max_length=255)
    color: Optional[str] = Field(None, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)

    @field_validator("description", "goal", "color", "icon", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class UpdateHabitRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    frequency: Optional[Frequency] = None
    description: Optional[str] = None
    goal: Optional[str] = Field(None, max_length=255)
    color: Optional[str] = Field(None, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)

    @field_validator("description", "goal", "color", "icon", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)

    @field_validator("name", "frequency")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class ToggleCompletionRequest(BaseModel):
    date: dt.date
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


def _get_owned_habit(db: Session, habit_id: str, user_id: str) -> Habit:
    habit = (
        db.query(Habit)
        .options(selectinload(Habit.completions))
        .filter_by(id=habit_id, user_id=user_id)
        .first()
    )
    if not habit:
        raise ResourceNotFoundError("Habit", habit_id)
    return habit


@router.get("/", response_model=HabitListResponse)
def list_habits(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    habits = (
        db.query(Habit)
        .options(selectinload(Habit.completions))
        .filter_by(user_id=current_user.user_id)
        .order_by(Habit.created_at.desc())
        .all()
    )
    return {"habits": habits}


@router.get("/{habit_id}", response_model=HabitEnvelope)
def get_habit(
    habit_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return {"habit": _get_owned_habit(db, habit_id, current_user.user_id)}


@router.post(
    "/", response_model=HabitMessageResponse, status_code=status.HTTP_201_CREATED
)
def create_habit(
    req: CreateHabitRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    habit = Habit(
        user_id=current_user.user_id,
        name=req.name,
        description=req.description,
        frequency=req.frequency,
        goal=req.goal,
        color=req.color,
        icon=req.icon,
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)
    return {"message": "Habit created successfully.", "habit": habit}


@router.put("/{habit_id}", response_model=HabitMessageResponse)
def update_habit(
    habit_id: str,
    req: UpdateHabitRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    habit = _get_owned_habit(db, habit_id, current_user.user_id)
    apply_patch(habit, req)
    db.commit()
    db.refresh(habit)
    return {"message": "Habit updated successfully.", "habit": habit}


@router.delete("/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_habit(
    habit_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    habit = _get_owned_habit(db, habit_id, current_user.user_id)
    db.delete(habit)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{habit_id}/completions")
def toggle_completion(
    habit_id: str,
    req: ToggleCompletionRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Mark the habit done for ``date``, or undo it if already marked.
    201 when a completion is created, 200 when one is removed.
    """
    habit = _get_owned_habit(db, habit_id, current_user.user_id)

    existing = (
        db.query(HabitCompletion)
        .filter_by(habit_id=habit.id, date=req.date)
        .first()
    )
    if existing:
        db.delete(existing)
        db.commit()
        return {
            "message": "Habit completion removed.",
            "habit_id": habit.id,
            "date": req.date.isoformat(),
            "completed": False,
        }

    completion = HabitCompletion(
        habit_id=habit.id,
        user_id=current_user.user_id,
        date=req.date,
        notes=req.notes,
    )
    db.add(completion)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Completion toggle conflict for habit %s on %s", habit.id, req.date)
        raise CompletionConflictError(habit.id, req.date.isoformat()) from exc
    db.refresh(completion)

    body = {
        "message": "Habit marked as completed.",
        "completion": CompletionResponse.model_validate(completion),
        "completed": True,
    }
    return JSONResponse(
        status_code=status.HTTP_201_CREATED, content=jsonable_encoder(body)
    )
