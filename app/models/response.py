from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class PageMetadata(BaseModel):
    title: str
    description: str
    source_url: str
    url: str
    """Final URL after redirects."""
    status_code: int
    engine: str
    engines_attempted: List[str]
    platform_type: str
    """Detected platform / rendering technology: ``"wordpress"``, ``"spa"`` or ``"ssr"``."""
    used_only_main_content: bool
    """False when main-content extraction came back empty and the full page was used."""


class ChangeTrackingResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    previous_scrape_at: Optional[datetime] = None
    change_status: Literal["new", "same", "changed"]
    visibility: Literal["visible"] = "visible"
    diff: Optional[str] = None
    json_changes: Optional[Dict[str, Any]] = Field(default=None, alias="json")


class ScrapeData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    markdown: Optional[str] = None
    html: Optional[str] = None
    raw_html: Optional[str] = None
    links: Optional[List[str]] = None
    screenshot: Optional[str] = None
    extract: Optional[Any] = None
    json_data: Optional[Any] = Field(default=None, alias="json")
    change_tracking: Optional[ChangeTrackingResult] = None
    metadata: PageMetadata
    format_errors: Optional[Dict[str, str]] = None
    """Per-format failures (e.g. extraction provider errors); sibling formats are unaffected."""


class ScrapeResponse(BaseModel):
    success: bool = True
    data: ScrapeData
