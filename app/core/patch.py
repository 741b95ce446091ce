"""
Partial-update helper shared by the resource routers.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel

from app.core.exceptions import NoUpdateFieldsError
from app.database import utcnow


def blank_to_none(value: Any) -> Any:
    """Treat an empty string as an explicit clear of a nullable field."""
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def apply_patch(entity: Any, patch: BaseModel) -> Dict[str, Any]:
    """
    Assign each field the client actually sent onto the ORM entity and bump
    ``updated_at``. Raises NoUpdateFieldsError when nothing was sent.
    """
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise NoUpdateFieldsError()
    for field, value in changes.items():
        setattr(entity, field, value)
    entity.updated_at = utcnow()
    return changes
