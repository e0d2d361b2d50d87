"""
Bookmark record for shellmark.

A bookmark is an absolute filesystem path plus an optional label and the usage
metadata that drives ranking.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from shellmark.utils import default_label


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any, field_name: str) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be an ISO-8601 string")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Bookmark:
    """
    A bookmarked path.

    Attributes:
        path: Normalized absolute path, unique within a store
        label: Optional short name shown and matched instead of the path
        score: Usage weight, incremented on every selection
        created_at: When the bookmark was added
        last_used_at: Last selection time, None until first use
    """

    path: str
    label: Optional[str] = None
    score: int = 0
    created_at: datetime = field(default_factory=utcnow)
    last_used_at: Optional[datetime] = None

    @property
    def display_text(self) -> str:
        """Text the matcher ranks against: label if present, else path."""
        return self.label or self.path

    @property
    def name(self) -> str:
        """Short name for listings: label, or the final path component."""
        return self.label or default_label(self.path)

    def touch(self, now: Optional[datetime] = None) -> None:
        """Record one selection."""
        self.score += 1
        self.last_used_at = now or utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "label": self.label,
            "score": self.score,
            "created_at": self.created_at.isoformat(),
            "last_used_at": self.last_used_at.isoformat() if self.last_used_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bookmark":
        """
        Build a bookmark from its serialized form.

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("bookmark entry must be an object")

        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise ValueError("bookmark path must be a non-empty string")

        label = data.get("label")
        if label is not None and not isinstance(label, str):
            raise ValueError(f"label of {path} must be a string")

        score = data.get("score", 0)
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValueError(f"score of {path} must be an integer")

        created_at = _parse_timestamp(data.get("created_at"), "created_at")
        return cls(
            path=path,
            label=label or None,
            score=score,
            created_at=created_at or utcnow(),
            last_used_at=_parse_timestamp(data.get("last_used_at"), "last_used_at"),
        )

    @classmethod
    def from_legacy(cls, data: Dict[str, Any]) -> "Bookmark":
        """Build a bookmark from the old ``{"name", "dest"}`` format."""
        if not isinstance(data, dict):
            raise ValueError("bookmark entry must be an object")
        dest = data.get("dest")
        if not isinstance(dest, str) or not dest:
            raise ValueError("bookmark dest must be a non-empty string")
        name = data.get("name")
        if name is not None and not isinstance(name, str):
            raise ValueError(f"name of {dest} must be a string")
        return cls(path=dest, label=name or None)
