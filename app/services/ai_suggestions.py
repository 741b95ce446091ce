"""
DailyThree — AI Suggestion Service
Builds a short plain-text picture of the user's day from their tasks, expenses
and habits, turns it into a prompt for the requested suggestion type and asks
the language model for one or two encouraging sentences.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.decimal_utils import display_round
from app.core.security import CurrentUser
from app.models.expenses import Expense
from app.models.habits import Habit
from app.models.tasks import Task
from app.services.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

SUGGESTION_TYPES = (
    "general_greeting",
    "task_tip",
    "expense_insight",
    "habit_motivation",
    "daily_summary_prompt",
)


@dataclass
class SuggestionEvent:
    """What the user just did, as reported by the client."""

    action: Optional[str] = None
    item_name: Optional[str] = None
    item_value: Optional[Union[str, float]] = None
    item_category: Optional[str] = None
    count: Optional[int] = None
    currency: Optional[str] = None
    expense_amount: Optional[float] = None
    habit_streak_length: Optional[int] = None


@dataclass
class Suggestion:
    text: str
    suggestion_category: str
    message_type: str = "ai_suggestion"
    prompt: str = field(default="", repr=False)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _money(currency: Optional[str], amount: Union[Decimal, float, int]) -> str:
    return f"{currency or '$'}{display_round(amount)}"


class AISuggestionService:
    def __init__(self, db: Session, client: GeminiClient) -> None:
        self.db = db
        self.client = client

    # ── Context ────────────────────────────────────────────────────────────────

    def build_context(
        self,
        user: CurrentUser,
        suggestion_type: str,
        event: SuggestionEvent,
        today: Optional[date] = None,
    ) -> str:
        today = today or date.today()
        parts: List[str] = [
            f"User: {user.username or 'Valued User'}.",
            f"Today is {today.strftime('%A, %B')} {today.day}, {today.year}.",
        ]

        overdue = (
            self.db.query(func.count(Task.id))
            .filter(
                Task.user_id == user.user_id,
                Task.is_completed.is_(False),
                Task.deadline < today,
            )
            .scalar()
            or 0
        )
        due_today = (
            self.db.query(func.count(Task.id))
            .filter(
                Task.user_id == user.user_id,
                Task.is_completed.is_(False),
                Task.deadline == today,
            )
            .scalar()
            or 0
        )
        if overdue:
            parts.append(f"They have {_plural(overdue, 'overdue task')}.")
        if due_today:
            parts.append(f"They also have {_plural(due_today, 'task')} due today.")
        elif not overdue and event.action != "completed":
            parts.append("They have no tasks immediately due or overdue.")

        if event.action == "completed" and event.item_name:
            parts.append(f'They just completed the task: "{event.item_name}".')
        elif (
            event.action == "added"
            and event.item_name
            and suggestion_type == "task_tip"
        ):
            parts.append(f'They just added a new task: "{event.item_name}".')

        month_start = today.replace(day=1)
        month_end = month_start + relativedelta(months=1, days=-1)
        monthly_total = (
            self.db.query(func.sum(Expense.amount))
            .filter(
                Expense.user_id == user.user_id,
                Expense.date.between(month_start, month_end),
            )
            .scalar()
        )
        if monthly_total:
            parts.append(
                f"This month, they have spent {_money(event.currency, monthly_total)} so far."
            )

        if suggestion_type == "expense_insight":
            parts.extend(self._expense_event_context(event))
        elif suggestion_type == "habit_motivation":
            parts.extend(self._habit_event_context(user, event))

        context = " ".join(parts)
        logger.debug("AI context for user %s: %s", user.user_id, context)
        return context

    def _expense_event_context(self, event: SuggestionEvent) -> List[str]:
        parts = []
        if event.action == "added" and event.item_category and event.item_value:
            parts.append(
                f'They just added an expense of {event.item_value} for "{event.item_category}".'
            )
        if (
            event.action == "threshold_reached"
            and event.item_category
            and event.expense_amount
            and event.currency
        ):
            parts.append(
                "They just logged a significant expense of "
                f'{_money(event.currency, event.expense_amount)} for "{event.item_category}".'
            )
        if (
            event.action == "repeated_category_expense"
            and event.item_category
            and event.count
        ):
            parts.append(
                f'They have logged expenses for "{event.item_category}" {event.count} times today.'
            )
        return parts

    def _habit_event_context(
        self, user: CurrentUser, event: SuggestionEvent
    ) -> List[str]:
        if event.action == "created" and event.item_name:
            return [f'They just created a new habit: "{event.item_name}".']
        if (
            event.action == "streak_update"
            and event.item_name
            and event.habit_streak_length
        ):
            return [
                f"They are now on a {event.habit_streak_length}-day streak "
                f'for their habit: "{event.item_name}".'
            ]
        if not event.action:
            latest = (
                self.db.query(Habit.name)
                .filter(Habit.user_id == user.user_id)
                .order_by(Habit.updated_at.desc())
                .first()
            )
            if latest:
                return [f'One of their habits is "{latest.name}".']
        return []

    # ── Prompt ─────────────────────────────────────────────────────────────────

    @staticmethod
    def build_prompt(suggestion_type: str, context: str, event: SuggestionEvent) -> str:
        if suggestion_type == "general_greeting":
            return (
                f'Based on this context: "{context}". Generate a very short, friendly, '
                "and positive greeting or an insightful thought for the user "
                "(1-2 sentences max). Be encouraging."
            )

        if suggestion_type == "task_tip":
            if event.action == "added" and event.item_name:
                return (
                    f'Context: "{context}". The user just added a new task: "{event.item_name}". '
                    "Offer a brief, encouraging tip about starting new tasks or staying "
                    "organized (1-2 sentences max)."
                )
            if event.action == "completed" and event.item_name:
                return (
                    f'Context: "{context}". The user just completed a task: "{event.item_name}". '
                    "Offer brief praise and a positive follow-up thought or tip "
                    "(1-2 sentences max)."
                )
            return (
                f'Context: "{context}". Offer a concise, actionable, and empathetic '
                "productivity tip specifically related to managing tasks. If they have "
                "overdue tasks, acknowledge it gently and offer a tip for tackling them. "
                "If they have tasks due today, offer a tip for focus. If no tasks, a "
                "general productivity tip is fine (1-2 sentences max)."
            )

        if suggestion_type == "expense_insight":
            if (
                event.action == "threshold_reached"
                and event.currency
                and event.expense_amount
                and event.item_category
            ):
                return (
                    f'Context: "{context}". The user just logged a significant expense: '
                    f'{_money(event.currency, event.expense_amount)} for "{event.item_category}". '
                    "Offer a very brief, non-judgmental observation or a gentle tip about "
                    "mindful spending (1-2 sentences max)."
                )
            if (
                event.action == "repeated_category_expense"
                and event.item_category
                and event.count
            ):
                return (
                    f'Context: "{context}". The user has logged expenses for '
                    f'"{event.item_category}" {event.count} times today. Offer a brief, '
                    "neutral observation or a gentle question about this pattern "
                    "(1-2 sentences max). Avoid being accusatory."
                )
            if event.action == "added" and event.item_value and event.item_category:
                return (
                    f'Context: "{context}". The user just added an expense: '
                    f'{event.item_value} for "{event.item_category}". Offer a brief, '
                    "positive acknowledgement or a very general financial wellness tip "
                    "(1-2 sentences max)."
                )
            return (
                f'Context: "{context}". Give a short, general, and positive tip about '
                "personal finance awareness or a small, encouraging insight about "
                "spending habits, avoiding judgment (1-2 sentences max). Do not lecture."
            )

        if suggestion_type == "habit_motivation":
            if event.action == "created" and event.item_name:
                return (
                    f'Context: "{context}". The user just created a new habit: '
                    f'"{event.item_name}". Offer a short, encouraging message about '
                    "starting new habits (1-2 sentences max)."
                )
            if (
                event.action == "streak_update"
                and event.item_name
                and event.habit_streak_length
            ):
                return (
                    f'Context: "{context}". The user is now on a '
                    f"{event.habit_streak_length}-day streak for their habit: "
                    f'"{event.item_name}". Provide a specific, positive, and motivational '
                    "message celebrating this milestone (1-2 sentences max)."
                )
            return (
                f'Context: "{context}". Provide a short, encouraging message about '
                "building or maintaining good habits (1-2 sentences max)."
            )

        if suggestion_type == "daily_summary_prompt":
            return (
                f'Context: "{context}". Generate a single, engaging, and positive '
                "open-ended question to help the user reflect on their day's "
                "achievements or positive aspects, or to plan for a productive "
                "tomorrow (1 sentence max)."
            )

        return (
            f'Context: "{context}". Offer a general piece of wisdom, a light-hearted '
            "positive comment, or a very short motivational quote (1-2 sentences max)."
        )

    # ── Entry point ────────────────────────────────────────────────────────────

    def suggest(
        self,
        user: CurrentUser,
        suggestion_type: str,
        event: Optional[SuggestionEvent] = None,
    ) -> Suggestion:
        event = event or SuggestionEvent()
        context = self.build_context(user, suggestion_type, event)
        prompt = self.build_prompt(suggestion_type, context, event)
        logger.info(
            "Requesting %s suggestion for user %s (action=%s)",
            suggestion_type,
            user.user_id,
            event.action,
        )
        text = self.client.generate(prompt)
        return Suggestion(text=text, suggestion_category=suggestion_type, prompt=prompt)
