"""Turn ``npm search --json`` output into Package objects."""

from __future__ import annotations

import json
import logging
from typing import Any, List

from models import Package

logger = logging.getLogger(__name__)


def _author_name(raw: Any) -> str | None:
    if isinstance(raw, dict):
        return raw.get("name") or raw.get("username") or raw.get("email")
    if isinstance(raw, str):
        return raw
    return None


def _first_maintainer(raw: Any) -> str | None:
    if isinstance(raw, list) and raw:
        return _author_name(raw[0])
    return None


def parse_search_output(text: str | None) -> List[Package]:
    """Parse the JSON array printed by npm search.

    Entries without a name are skipped.

    Raises:
        ValueError: If text is not a JSON array.
    """
    if not text or not text.strip():
        return []
    data = json.loads(text)
    if isinstance(data, dict) and "objects" in data:
        # registry search API shape, returned by some npm versions
        data = [obj.get("package", {}) for obj in data.get("objects", []) if isinstance(obj, dict)]
    if not isinstance(data, list):
        raise ValueError("npm search output is not a JSON array")

    packages: List[Package] = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("name"):
            logger.debug("Skipping unusable search entry: %r", entry)
            continue
        keywords = entry.get("keywords") or []
        links = entry.get("links")
        packages.append(
            Package(
                name=entry["name"],
                version=entry.get("version"),
                description=entry.get("description"),
                author=_author_name(entry.get("author")) or _first_maintainer(entry.get("maintainers")),
                keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
                date=entry.get("date"),
                links=dict(links) if isinstance(links, dict) else {},
            )
        )
    return packages
