from fastapi import Header, Query

from postapi.config import settings
from postapi.security import IdentityClaim, resolve_credential


class PaginationParams:
    """
    Reusable FastAPI dependency for ``page`` / ``page_size`` query params.

    page:
        1-based page number (minimum 1).
    page_size:
        Items per page, clamped to ``settings.MAX_PAGE_SIZE``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)


async def get_identity(authorization: str | None = Header(None)) -> IdentityClaim:
    """
    Resolve the caller from the ``Authorization`` header.

    Runs once per request; a bad or missing credential raises
    ``InvalidCredentialError`` (401) before any service code runs.
    """
    return resolve_credential(authorization)
