from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, field_validator

from ..descriptor import REPLACE, define
from ..schema import ArtifactModel


class Link(ArtifactModel):
    text: str
    href: str


class FormField(ArtifactModel):
    name: str
    type: str
    value: str | None = None


class Form(ArtifactModel):
    action: str | None = None
    method: str | None = None
    fields: list[FormField]


class Viewport(ArtifactModel):
    width: float = Field(ge=0)
    height: float = Field(ge=0)


class PageContext(ArtifactModel):
    url: str
    title: str
    text_content: str
    links: list[Link]
    forms: list[Form]
    viewport: Viewport
    screenshot: str | None = None
    timestamp: int

    @field_validator("url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        # Any scheme: agents also land on chrome://, about: and file: pages.
        parsed = urlparse(value.strip())
        if not parsed.scheme or not (parsed.netloc or parsed.path):
            raise ValueError("url must be an absolute URL")
        return value


PAGE_CONTEXT = define(
    "page_context",
    PageContext,
    merge_policy={
        "url": REPLACE,
        "title": REPLACE,
        "textContent": REPLACE,
        "links": REPLACE,
        "forms": REPLACE,
        "viewport": REPLACE,
        "screenshot": REPLACE,
        "timestamp": REPLACE,
    },
    description="Snapshot of the current page: text, links, forms, viewport",
)
