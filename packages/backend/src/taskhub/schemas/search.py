"""Pydantic schemas for search results.

Each hit carries only the columns the search box renders; tasks embed a
summary of their parent project so the UI can link without a second call.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ProjectHit(BaseModel):
    id: str
    title: str
    slug: str
    status: str
    priority: str

    model_config = {"from_attributes": True}


class ProjectSummary(BaseModel):
    id: str
    title: str
    slug: str

    model_config = {"from_attributes": True}


class TaskHit(BaseModel):
    id: str
    title: str
    status: str
    phase: str
    project: Optional[ProjectSummary] = None

    model_config = {"from_attributes": True}


class SearchResults(BaseModel):
    projects: list[ProjectHit] = Field(default_factory=list)
    tasks: list[TaskHit] = Field(default_factory=list)
