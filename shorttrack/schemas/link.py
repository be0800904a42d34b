# shorttrack/schemas/link.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LinkCreateIn(BaseModel):
    url: str = Field(..., max_length=2048)
    slug: Optional[str] = Field(default=None, max_length=24)
    title: Optional[str] = Field(default=None, max_length=255)


class LinkUpdateIn(BaseModel):
    url: Optional[str] = Field(default=None, max_length=2048)
    slug: Optional[str] = Field(default=None, max_length=24)
    title: Optional[str] = Field(default=None, max_length=255)
