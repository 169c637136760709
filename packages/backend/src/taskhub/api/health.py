"""Health check endpoint.

Verifies the server is running and the database is reachable, and
reports row counts for the core tables.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub import __version__
from taskhub.db.engine import get_db
from taskhub.db.models import Project, Task, User

router = APIRouter()

_COUNTED_TABLES = (Project, Task, User)


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}
    table_stats = []

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"
    else:
        for model in _COUNTED_TABLES:
            try:
                count = await db.scalar(select(func.count()).select_from(model))
            except Exception:
                count = 0
            table_stats.append({"table": model.__tablename__, "count": count or 0})

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {
        "status": status,
        **checks,
        "table_stats": table_stats,
        "total_records": sum(t["count"] for t in table_stats),
    }
