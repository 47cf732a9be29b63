# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 timestamp from the API into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Note:
    id: object
    owner: object
    title: str
    content: str
    updated_at: datetime

    @classmethod
    def from_json(cls, data) -> 'Note':
        return cls(
            id=data['id'],
            owner=data.get('user_id'),
            title=data.get('title') or '',
            content=data.get('content') or '',
            updated_at=parse_timestamp(data['updated_at']),
        )

    def matches(self, query) -> bool:
        """Case-insensitive substring match on title or content."""
        if not query:
            return True
        needle = query.lower()
        return needle in self.title.lower() or needle in self.content.lower()


@dataclass(frozen=True)
class TrashedNote(Note):
    trashed_at: datetime = None
    original_updated_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data) -> 'TrashedNote':
        note = Note.from_json(data)
        original = data.get('original_updated_at')
        trashed_at = data.get('trashed_at')
        return cls(
            id=note.id,
            owner=note.owner,
            title=note.title,
            content=note.content,
            updated_at=note.updated_at,
            trashed_at=parse_timestamp(trashed_at) if trashed_at else note.updated_at,
            original_updated_at=parse_timestamp(original) if original else None,
        )


def newest_first(notes, key='updated_at') -> list:
    return sorted(notes, key=lambda n: getattr(n, key), reverse=True)
