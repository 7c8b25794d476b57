from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class NeighborsModel(BaseModel):
    prev: Optional[str] = None
    next: Optional[str] = None


class ErrorPageModel(NeighborsModel):
    route: str
    title: str
    message: str
    key: str
    nav: Dict[str, object] = Field(default_factory=dict)


class MetaListResponse(BaseModel):
    values: List[str]


class NotFoundResponse(BaseModel):
    detail: str = "Not Found"
    path: str