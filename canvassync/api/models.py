"""
Canvas resources as returned by the REST API.

Only the fields the sync needs are kept. Each model parses itself from the
decoded JSON object with from_dict; missing required keys raise KeyError and
wrongly typed values raise TypeError/ValueError, which the client reports as a
malformed response.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..core.files import timestamp_ns


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a Canvas ISO 8601 timestamp ("2023-01-31T12:00:00Z") as aware UTC."""
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _require_timestamp(data: dict, key: str) -> datetime:
    moment = parse_timestamp(data[key])
    if moment is None:
        raise ValueError(f"missing timestamp {key!r}")
    return moment


@dataclass(frozen=True)
class Course:
    """A course; the root of one synced tree."""
    id: int
    name: str
    access_restricted: bool = False  # Past/future course Canvas hides the content of

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            access_restricted=bool(data.get("access_restricted_by_date", False)),
        )


@dataclass(frozen=True)
class Folder:
    """A folder in a course's file area."""
    id: int
    parent_id: int  # 0 for the course's root folder
    name: str
    full_name: str
    updated_at: Optional[datetime]
    folders_count: int
    files_count: int

    @classmethod
    def from_dict(cls, data: dict) -> "Folder":
        return cls(
            id=int(data["id"]),
            parent_id=int(data.get("parent_folder_id") or 0),
            name=data["name"],
            full_name=data.get("full_name", data["name"]),
            updated_at=parse_timestamp(data.get("updated_at")),
            folders_count=int(data.get("folders_count") or 0),
            files_count=int(data.get("files_count") or 0),
        )


@dataclass(frozen=True)
class File:
    """A file in a course folder."""
    id: int
    folder_id: int
    display_name: str
    size: int
    created_at: datetime
    updated_at: datetime
    url: str

    @property
    def modified_ns(self) -> int:
        """Remote modification time in nanoseconds, as written to disk."""
        return timestamp_ns(self.updated_at)

    @classmethod
    def from_dict(cls, data: dict) -> "File":
        return cls(
            id=int(data["id"]),
            folder_id=int(data["folder_id"]),
            display_name=data["display_name"],
            size=int(data["size"]),
            created_at=_require_timestamp(data, "created_at"),
            updated_at=_require_timestamp(data, "updated_at"),
            url=data["url"],
        )
