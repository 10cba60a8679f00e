"""Change tracking: compares a page against its previous snapshot."""

import difflib
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional, Tuple

from app.models.request import ChangeTrackingFormat
from app.models.response import ChangeTrackingResult
from app.services.llm_extractor import extract_structured
from app.services.transformer import TransformResult
from app.services.urls import strip_fragment


class Snapshot(NamedTuple):
    markdown: str
    json: Any
    scraped_at: datetime


class ChangeTracker:
    """In-process store of the last snapshot per ``(url, tag)``."""

    def __init__(self):
        self._snapshots: Dict[Tuple[str, str], Snapshot] = {}

    @staticmethod
    def _key(url: str, tag: Optional[str]) -> Tuple[str, str]:
        return strip_fragment(url), tag or ""

    def previous(self, url: str, tag: Optional[str] = None) -> Optional[Snapshot]:
        return self._snapshots.get(self._key(url, tag))

    def store(self, url: str, tag: Optional[str], snapshot: Snapshot) -> None:
        self._snapshots[self._key(url, tag)] = snapshot

    def clear(self) -> None:
        self._snapshots.clear()


change_tracker = ChangeTracker()


def markdown_diff(previous: str, current: str) -> str:
    """Return a unified diff between two Markdown documents ('' when equal)."""
    return "\n".join(
        difflib.unified_diff(
            previous.splitlines(),
            current.splitlines(),
            fromfile="previous",
            tofile="current",
            lineterm="",
        )
    )


def json_changes(previous: Any, current: Any) -> Dict[str, Any]:
    """Return ``{field: {"previous": ..., "current": ...}}`` for top-level fields that differ."""
    if not isinstance(previous, dict) or not isinstance(current, dict):
        if previous == current:
            return {}
        return {"$": {"previous": previous, "current": current}}

    changes = {}
    for key in dict.fromkeys([*previous, *current]):
        before, after = previous.get(key), current.get(key)
        if before != after:
            changes[key] = {"previous": before, "current": after}
    return changes


async def track_changes(
    url: str,
    content: TransformResult,
    fmt: ChangeTrackingFormat,
    tracker: ChangeTracker = change_tracker,
) -> ChangeTrackingResult:
    """Compare *content* with the last snapshot of *url* and store the new one.

    Raises:
        ExtractionError: in ``json`` mode, when the extraction backend fails.
            The previous snapshot is then left untouched.
    """
    previous = tracker.previous(url, fmt.tag)

    current_json = None
    if "json" in fmt.modes:
        current_json = await extract_structured(
            content.transformed_html, schema=fmt.json_schema, prompt=fmt.prompt
        )

    tracker.store(
        url,
        fmt.tag,
        Snapshot(
            markdown=content.markdown,
            json=current_json,
            scraped_at=datetime.now(timezone.utc),
        ),
    )

    if previous is None:
        return ChangeTrackingResult(change_status="new")

    diff = markdown_diff(previous.markdown, content.markdown)
    # A snapshot taken without json mode has no baseline to compare against
    has_json_baseline = "json" in fmt.modes and previous.json is not None
    changes = json_changes(previous.json, current_json) if has_json_baseline else {}
    status = "changed" if diff or changes else "same"

    return ChangeTrackingResult(
        previous_scrape_at=previous.scraped_at,
        change_status=status,
        diff=(diff or None) if "git-diff" in fmt.modes else None,
        json_changes=changes if has_json_baseline else None,
    )
