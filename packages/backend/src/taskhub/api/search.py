"""Search API — GET /api/search?q=…

Returns up to five projects and five tasks whose title or description
contains the query. A store failure on either lookup fails the whole
request with a generic 500 rather than returning half the results.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.db.engine import STORE_ERRORS, get_db
from taskhub.schemas.search import SearchResults
from taskhub.services.search_service import SearchService

logger = structlog.get_logger()

router = APIRouter()


def get_search_service(db: AsyncSession = Depends(get_db)) -> SearchService:
    return SearchService(
        db,
        min_query_length=settings.search_min_query_length,
        limit=settings.search_result_limit,
    )


@router.get("/search", response_model=SearchResults)
async def search(
    q: Optional[str] = Query(None, description="Free-text query"),
    svc: SearchService = Depends(get_search_service),
):
    """Case-insensitive substring search over projects and tasks."""
    try:
        return await svc.search(q)
    except STORE_ERRORS:
        logger.exception("search.failed", query=q)
        return JSONResponse(status_code=500, content={"error": "Search failed"})
