"""Documents stored by the service and their JSON and MongoDB forms."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from bson import ObjectId
from bson.errors import InvalidId

ZERO_OBJECT_ID = ObjectId(b"\x00" * 12)
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _field(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"field {key!r} must be of type {kind.__name__}")
    return value


def _mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return data


def _object_id(value: Any, key: str) -> ObjectId | None:
    if value is None or value == "" or isinstance(value, ObjectId):
        return value or None
    try:
        return ObjectId(value) if isinstance(value, str) else ObjectId(None if False else value)
    except (InvalidId, TypeError) as exc:
        raise ValueError(f"field {key!r} is not a valid object id") from exc


def _hex(value: ObjectId | None) -> str:
    return str(value or ZERO_OBJECT_ID)


def _with_id(value: ObjectId | None) -> dict[str, Any]:
    return {"_id": value} if value is not None and value != ZERO_OBJECT_ID else {}


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def parse_time(text: Any) -> datetime:
    """Parse an RFC 3339 timestamp as sent in JSON."""
    match = _RFC3339.match(text) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    *parts, fraction, zone = match.groups()
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        hours, minutes = zone[1:].split(":")
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        tz = timezone(offset if zone[0] == "+" else -offset)
    micro = int(fraction.ljust(6, "0")[:6]) if fraction else 0
    return datetime(*map(int, parts), micro, tzinfo=tz)


def format_time(value: datetime) -> str:
    """Format a timestamp as RFC 3339 with trailing fraction zeros removed."""
    value = _as_utc(value)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    minutes = abs(int(offset.total_seconds())) // 60
    sign = "+" if offset > timedelta(0) else "-"
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass
class Subtask:
    """A step inside a to-do item."""

    id: str = ""
    content: str = ""
    completed: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "Subtask":
        data = _mapping(data)
        return cls(
            _field(data, "id", str, ""),
            _field(data, "content", str, ""),
            _field(data, "completed", bool, False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "content": self.content, "completed": self.completed}


@dataclass
class TodoItem:
    """A to-do entry owned by one user."""

    id: ObjectId | None = None
    user_id: ObjectId = ZERO_OBJECT_ID
    content: str = ""
    completed: bool = False
    priority: str = ""
    order: int = 0
    date: datetime = ZERO_TIME
    subtasks: list[Subtask] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> "TodoItem":
        """Build an item from a request body; raises ValueError on bad input."""
        data = _mapping(data)
        raw_date = data.get("date")
        return cls(
            id=_object_id(data.get("_id"), "_id"),
            user_id=_object_id(data.get("userId"), "userId") or ZERO_OBJECT_ID,
            content=_field(data, "content", str, ""),
            completed=_field(data, "completed", bool, False),
            priority=_field(data, "priority", str, ""),
            order=_field(data, "order", int, 0),
            date=ZERO_TIME if raw_date is None else parse_time(raw_date),
            subtasks=[Subtask.from_dict(item) for item in _field(data, "subtask", list, [])],
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TodoItem":
        raw_date = doc.get("date")
        return cls(
            id=doc.get("_id"),
            user_id=doc.get("userId") or ZERO_OBJECT_ID,
            content=doc.get("content") or "",
            completed=bool(doc.get("completed", False)),
            priority=doc.get("priority") or "",
            order=int(doc.get("order") or 0),
            date=ZERO_TIME if raw_date is None else _as_utc(raw_date),
            subtasks=[Subtask.from_dict(item) for item in doc.get("subtask") or []],
        )

    def _fields(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "completed": self.completed,
            "priority": self.priority,
            "order": self.order,
        }

    def _subtask_field(self) -> dict[str, Any]:
        return {"subtask": [s.to_dict() for s in self.subtasks]} if self.subtasks else {}

    def to_document(self) -> dict[str, Any]:
        return {
            **_with_id(self.id),
            "userId": self.user_id,
            **self._fields(),
            "date": self.date,
            **self._subtask_field(),
        }

    def to_json(self) -> dict[str, Any]:
        return {
            "_id": _hex(self.id),
            "userId": _hex(self.user_id),
            **self._fields(),
            "date": format_time(self.date),
            **self._subtask_field(),
        }


@dataclass
class User:
    """A registered account."""

    id: ObjectId | None = None
    email: str = ""
    password: str = ""
    username: str = ""
    theme: str = ""
    language: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "User":
        data = _mapping(data)
        text = {k: _field(data, k, str, "") for k in ("email", "password", "username", "theme", "language")}
        return cls(id=_object_id(data.get("id"), "id"), **text)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "User":
        text = {k: doc.get(k) or "" for k in ("email", "password", "username", "theme", "language")}
        return cls(id=doc.get("_id"), **text)

    def to_document(self) -> dict[str, Any]:
        doc = {**_with_id(self.id), "email": self.email, "password": self.password, "username": self.username}
        doc.update({k: v for k, v in (("theme", self.theme), ("language", self.language)) if v})
        return doc


@dataclass
class UserPreferences:
    """Display preferences stored for a user."""

    id: ObjectId | None = None
    user_id: ObjectId = ZERO_OBJECT_ID
    preferred_language: str = ""
    preferred_theme: str = ""

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "UserPreferences":
        return cls(
            id=doc.get("_id"),
            user_id=doc.get("userId") or ZERO_OBJECT_ID,
            preferred_language=doc.get("preferredLanguage") or "",
            preferred_theme=doc.get("preferredTheme") or "",
        )

    def to_json(self) -> dict[str, Any]:
        body = {"id": _hex(self.id), "userId": _hex(self.user_id)}
        for key, value in (("preferredLanguage", self.preferred_language), ("preferredTheme", self.preferred_theme)):
            if value:
                body[key] = value
        return body