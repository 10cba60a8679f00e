from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator
from pydantic.alias_generators import to_camel


class _RequestModel(BaseModel):
    """Accepts both snake_case field names and their camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MarkdownFormat(_RequestModel):
    type: Literal["markdown"] = "markdown"


class HtmlFormat(_RequestModel):
    type: Literal["html"] = "html"


class RawHtmlFormat(_RequestModel):
    type: Literal["rawHtml"] = "rawHtml"


class LinksFormat(_RequestModel):
    type: Literal["links"] = "links"


class ScreenshotFormat(_RequestModel):
    type: Literal["screenshot"] = "screenshot"
    full_page: bool = False


class _SchemaFormat(_RequestModel):
    json_schema: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    prompt: Optional[str] = Field(default=None, max_length=10_000)


class ExtractFormat(_SchemaFormat):
    type: Literal["extract"] = "extract"

    @model_validator(mode="after")
    def _needs_schema_or_prompt(self):
        if self.json_schema is None and not self.prompt:
            raise ValueError(f"The '{self.type}' format requires a schema or a prompt.")
        return self


class JsonFormat(ExtractFormat):
    type: Literal["json"] = "json"


class ChangeTrackingFormat(_SchemaFormat):
    type: Literal["changeTracking"] = "changeTracking"
    modes: List[Literal["git-diff", "json"]] = Field(default_factory=lambda: ["git-diff"])
    tag: Optional[str] = Field(default=None, max_length=128)
    """Separates independent histories of the same URL."""


FormatOption = Annotated[
    Union[
        MarkdownFormat,
        HtmlFormat,
        RawHtmlFormat,
        LinksFormat,
        ScreenshotFormat,
        ExtractFormat,
        JsonFormat,
        ChangeTrackingFormat,
    ],
    Field(discriminator="type"),
]

# Bare-string formats whose options live in a top-level request field
_SHORTHAND_OPTIONS = {
    "extract": ("extract",),
    "json": ("json_options", "jsonOptions"),
    "changeTracking": ("change_tracking_options", "changeTrackingOptions"),
}


class ScrapeRequest(_RequestModel):
    model_config = ConfigDict(extra="forbid")

    url: HttpUrl
    formats: List[FormatOption] = Field(
        default_factory=lambda: [MarkdownFormat()],
        min_length=1,
        description=(
            "Requested outputs. Each entry is a format name (e.g. `\"markdown\"`) "
            "or an object with a `type` field (e.g. `{\"type\": \"json\", \"schema\": {...}}`)."
        ),
    )
    only_main_content: bool = True
    render_mode: Literal["auto", "http", "browser"] = "auto"
    """Rendering strategy for the target URL.

    ``"auto"`` (default)
        Plain HTTP first; pages that turn out to be JavaScript SPA shells fall
        through to headless-browser rendering.

    ``"http"``
        Plain HTTP only.  Fastest; may return incomplete content for SPAs.

    ``"browser"``
        Headless Chromium only.
    """
    timeout: int = Field(
        default=30_000,
        ge=1,
        le=300_000,
        description="Overall deadline for the scrape, in milliseconds.",
    )
    wait_for: int = Field(
        default=0,
        ge=0,
        le=60_000,
        description="Extra milliseconds a rendering engine waits after the page loads.",
    )
    extract: Optional[Dict[str, Any]] = Field(
        default=None, description="Options for the `\"extract\"` shorthand format."
    )
    json_options: Optional[Dict[str, Any]] = Field(
        default=None, description="Options for the `\"json\"` shorthand format."
    )
    change_tracking_options: Optional[Dict[str, Any]] = Field(
        default=None, description="Options for the `\"changeTracking\"` shorthand format."
    )

    @model_validator(mode="before")
    @classmethod
    def _expand_format_shorthands(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("formats"), list):
            return data
        expanded = []
        for fmt in data["formats"]:
            if isinstance(fmt, str):
                options = next(
                    (data[key] for key in _SHORTHAND_OPTIONS.get(fmt, ()) if data.get(key) is not None),
                    None,
                )
                fmt = {**(options if isinstance(options, dict) else {}), "type": fmt}
            expanded.append(fmt)
        return {**data, "formats": expanded}

    @model_validator(mode="after")
    def _check_render_options(self):
        if self.render_mode == "http" and any(f.type == "screenshot" for f in self.formats):
            raise ValueError("The 'screenshot' format requires browser rendering.")
        if self.wait_for >= self.timeout:
            raise ValueError("wait_for must be shorter than timeout.")
        return self
