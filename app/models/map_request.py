from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator
from pydantic.alias_generators import to_camel


class MapRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    url: HttpUrl
    search: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Only return links whose URL contains this term (case-insensitive).",
    )
    sitemap: Literal["default", "only", "skip"] = "default"
    """How the sitemap source participates.

    ``"default"``
        Sitemap and link index are queried concurrently and merged.

    ``"only"``
        Sitemap only; the link index is never queried.

    ``"skip"``
        Link index only.
    """
    ignore_sitemap: bool = Field(
        default=False, description='Legacy alias for `sitemap: "skip"` (wire name `ignoreSitemap`).'
    )
    sitemap_only: bool = Field(
        default=False, description='Legacy alias for `sitemap: "only"` (wire name `sitemapOnly`).'
    )
    include_subdomains: bool = True
    ignore_query_parameters: bool = True
    limit: int = Field(
        default=5000,
        ge=1,
        le=100_000,
        description="Maximum number of links to return (1–100 000).",
    )
    timeout: Optional[int] = Field(
        default=None,
        ge=1,
        description="Deadline for the whole map operation, in milliseconds.",
    )

    @model_validator(mode="after")
    def _fold_legacy_sitemap_flags(self):
        if self.ignore_sitemap and self.sitemap_only:
            raise ValueError("ignore_sitemap and sitemap_only cannot both be set.")
        if self.ignore_sitemap:
            self.sitemap = "skip"
        elif self.sitemap_only:
            self.sitemap = "only"
        return self
