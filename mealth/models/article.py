"""Article model. Articles are public, not session-scoped."""

from __future__ import annotations

import datetime as dt

from pydantic import Field

from mealth.models.base import StoredModel


class Article(StoredModel):
    title: str
    summary: str
    content: str
    author: str
    date: dt.date
    read_time: str = Field(alias="readTime")
