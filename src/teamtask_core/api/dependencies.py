"""Shared FastAPI dependencies: the acting user and pagination."""
from math import ceil
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from .. import models
from ..auth import resolve_actor
from ..config import get_settings
from ..database import get_db

settings = get_settings()

# Header set by the authentication gateway after it verified the caller
PRINCIPAL_HEADER = "X-Authenticated-User"


def get_current_actor(
    x_authenticated_user: Optional[str] = Header(None, alias=PRINCIPAL_HEADER),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Resolve the acting user from the gateway header.

    Raises:
        AuthenticationRequiredError: If the header is missing or unknown
    """
    return resolve_actor(db, x_authenticated_user)


class PageParams:
    """Page/page_size query parameters shared by every list endpoint."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        page_size: int = Query(
            settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Items per page",
        ),
    ):
        self.page = page
        self.page_size = page_size

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    def response(self, items: list, total: int) -> dict:
        return {
            "items": items,
            "total": total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": ceil(total / self.page_size) if total > 0 else 0,
        }
