"""Search service — global search box across projects and tasks.

A query is lower-cased, its LIKE metacharacters escaped, and wrapped in
wildcards, then matched case-insensitively against title OR description.
Each entity kind returns at most `limit` rows in whatever order the
database scans them; nothing is ranked.

Queries shorter than the minimum length return empty results without
touching the database (a one-character pattern scans everything).
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, load_only

from taskhub.db.models import Project, Task
from taskhub.schemas.search import ProjectHit, SearchResults, TaskHit

LIKE_ESCAPE = "\\"

MIN_QUERY_LENGTH = 2
RESULT_LIMIT = 5


def build_pattern(query: str) -> str:
    """'Engine_v2' → '%engine\\_v2%' (substring match, literal metacharacters)."""
    escaped = (
        query.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class SearchService:
    """Read-only search over projects and tasks."""

    def __init__(
        self,
        db: AsyncSession,
        min_query_length: int = MIN_QUERY_LENGTH,
        limit: int = RESULT_LIMIT,
    ):
        self.db = db
        self.min_query_length = min_query_length
        self.limit = limit

    async def search(self, query: str | None) -> SearchResults:
        """Search both entity kinds. Store errors propagate to the caller."""
        if not query or len(query.strip()) < self.min_query_length:
            return SearchResults()

        pattern = build_pattern(query)
        projects = await self.search_projects(pattern, self.limit)
        tasks = await self.search_tasks(pattern, self.limit)
        return SearchResults(
            projects=[ProjectHit.model_validate(p) for p in projects],
            tasks=[TaskHit.model_validate(t) for t in tasks],
        )

    async def search_projects(self, pattern: str, limit: int) -> list[Project]:
        q = (
            select(Project)
            .options(
                load_only(
                    Project.id,
                    Project.title,
                    Project.slug,
                    Project.status,
                    Project.priority,
                )
            )
            .where(
                or_(
                    Project.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Project.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
            .limit(limit)
        )
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def search_tasks(self, pattern: str, limit: int) -> list[Task]:
        """Matching tasks with their parent project loaded in the same query."""
        q = (
            select(Task)
            .outerjoin(Task.project)
            .options(
                load_only(Task.id, Task.title, Task.status, Task.phase),
                contains_eager(Task.project).load_only(
                    Project.id, Project.title, Project.slug
                ),
            )
            .where(
                or_(
                    Task.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Task.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
            .limit(limit)
        )
        result = await self.db.execute(q)
        return list(result.scalars().unique().all())
