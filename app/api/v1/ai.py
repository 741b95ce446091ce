"""
DailyThree — API v1: AI suggestions
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.security import CurrentUser, get_current_user
from app.database import get_db
from app.services.ai_suggestions import AISuggestionService, SuggestionEvent
from app.services.gemini_client import GeminiClient, get_gemini_client

router = APIRouter(prefix="/ai", tags=["ai"])

EventAction = Literal[
    "added",
    "completed",
    "created",
    "threshold_reached",
    "streak_update",
    "repeated_category_expense",
    "general_info",
    "milestone",
]


class SuggestionEventData(BaseModel):
    model_config = ConfigDict(extra="allow")

    item_name: Optional[str] = None
    item_value: Optional[Union[float, str]] = None
    item_category: Optional[str] = None
    action: Optional[EventAction] = None
    count: Optional[int] = Field(None, ge=0)
    currency: Optional[Literal["PHP", "USD"]] = None
    expense_amount: Optional[float] = None
    habit_streak_length: Optional[int] = Field(None, ge=0)

    def to_event(self) -> SuggestionEvent:
        return SuggestionEvent(
            action=self.action,
            item_name=self.item_name,
            item_value=self.item_value,
            item_category=self.item_category,
            count=self.count,
            currency=self.currency,
            expense_amount=self.expense_amount,
            habit_streak_length=self.habit_streak_length,
        )


class SuggestionRequest(BaseModel):
    suggestion_type: str = Field(..., min_length=1, max_length=64)
    data: Optional[SuggestionEventData] = None


class SuggestionResponse(BaseModel):
    message_type: str
    text: str
    suggestion_category: str


@router.post("/suggestion", response_model=SuggestionResponse)
def create_suggestion(
    req: SuggestionRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    client: GeminiClient = Depends(get_gemini_client),
):
    """Generate a one- or two-sentence nudge for the caller's current situation."""
    event = req.data.to_event() if req.data else SuggestionEvent()
    suggestion = AISuggestionService(db, client).suggest(
        current_user, req.suggestion_type, event
    )
    return SuggestionResponse(
        message_type=suggestion.message_type,
        text=suggestion.text,
        suggestion_category=suggestion.suggestion_category,
    )
