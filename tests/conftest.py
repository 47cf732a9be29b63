# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import datetime, timedelta, timezone

import pytest

from notefied.application import NotesApp
from notefied.auto_save import DebounceScheduler
from notefied.config import Settings
from notefied.errors import NotesError, NotFoundError, UnauthenticatedError
from notefied.note import Note, TrashedNote
from notefied.token_store import TokenStore

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class ManualClock:
    """Stands in for GLib.timeout_add / GLib.source_remove."""

    def __init__(self):
        self.now = 0
        self._next_id = 1
        self._sources = {}

    def timeout_add(self, delay_ms, func, *args):
        source_id = self._next_id
        self._next_id += 1
        self._sources[source_id] = (self.now + delay_ms, source_id, func, args)
        return source_id

    def source_remove(self, source_id):
        del self._sources[source_id]
        return True

    @property
    def pending(self):
        return len(self._sources)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [(when, sid) for when, sid, _, _ in self._sources.values() if when <= target]
            if not due:
                break
            when, source_id = min(due)
            _, _, func, args = self._sources.pop(source_id)
            self.now = when
            func(*args)
        self.now = target


class ImmediateDispatcher:

    def submit(self, func, *args, on_success=None, on_error=None):
        try:
            result = func(*args)
        except NotesError as e:
            if on_error is not None:
                on_error(e)
            return
        if on_success is not None:
            on_success(result)


class QueuedDispatcher:
    """Holds calls until the test completes them, like requests in flight."""

    def __init__(self):
        self.queue = []

    def submit(self, func, *args, on_success=None, on_error=None):
        self.queue.append((func, args, on_success, on_error))

    def complete(self, index=0):
        func, args, on_success, on_error = self.queue.pop(index)
        ImmediateDispatcher().submit(func, *args, on_success=on_success, on_error=on_error)

    def complete_all(self):
        while self.queue:
            self.complete()


class FakeNotesClient:
    """In-memory notes service recording every call."""

    def __init__(self, token='secret-token'):
        self.token = token
        self.notes = {}
        self.trashed = {}
        self.calls = []
        self.failures = {}
        self._next_id = 1
        self._tick = 0

    def _now(self):
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    def _call(self, op, *args):
        self.calls.append((op,) + args)
        if not self.token:
            raise UnauthenticatedError('no token', 401)
        key = (op, args[0]) if args else (op, None)
        error = self.failures.get(key) or self.failures.get((op, None))
        if error is not None:
            raise error

    def count(self, op):
        return sum(1 for call in self.calls if call[0] == op)

    def seed(self, title, content, minutes=0):
        note = Note(
            id=self._next_id, owner=1, title=title, content=content,
            updated_at=BASE_TIME - timedelta(minutes=minutes),
        )
        self._next_id += 1
        self.notes[note.id] = note
        return note

    def seed_trashed(self, title, content, minutes=0):
        note = self.seed(title, content)
        del self.notes[note.id]
        trashed = TrashedNote(
            id=note.id, owner=1, title=title, content=content,
            updated_at=note.updated_at,
            trashed_at=BASE_TIME - timedelta(minutes=minutes),
        )
        self.trashed[note.id] = trashed
        return trashed

    def list_notes(self):
        self._call('list_notes')
        return list(self.notes.values())

    def create_note(self, title, content):
        self._call('create_note', title, content)
        note = Note(id=self._next_id, owner=1, title=title, content=content,
                    updated_at=self._now())
        self._next_id += 1
        self.notes[note.id] = note
        return note

    def update_note(self, note_id, title, content):
        self._call('update_note', note_id, title, content)
        if note_id not in self.notes:
            raise NotFoundError('Note not found', 404)
        note = Note(id=note_id, owner=1, title=title, content=content,
                    updated_at=self._now())
        self.notes[note_id] = note
        return note

    def trash_note(self, note_id):
        self._call('trash_note', note_id)
        note = self.notes.pop(note_id, None)
        if note is None:
            raise NotFoundError('Note not found', 404)
        trashed = TrashedNote(
            id=note.id, owner=note.owner, title=note.title, content=note.content,
            updated_at=note.updated_at, trashed_at=self._now(),
        )
        self.trashed[note_id] = trashed
        return trashed

    def list_trashed(self):
        self._call('list_trashed')
        return list(self.trashed.values())

    def restore_note(self, note_id):
        self._call('restore_note', note_id)
        trashed = self.trashed.pop(note_id, None)
        if trashed is None:
            raise NotFoundError('Note not found', 404)
        note = Note(
            id=trashed.id, owner=trashed.owner, title=trashed.title,
            content=trashed.content, updated_at=trashed.updated_at,
        )
        self.notes[note_id] = note
        return note

    def purge_note(self, note_id):
        self._call('purge_note', note_id)
        if self.trashed.pop(note_id, None) is None:
            raise NotFoundError('Note not found', 404)


class FakeAuthClient:

    def __init__(self):
        self.users = {}
        self.calls = []

    def register(self, username, password):
        from notefied.errors import RemoteValidationError

        self.calls.append(('register', username))
        if username in self.users:
            raise RemoteValidationError('Username already exists or invalid input', 400)
        self.users[username] = password
        return len(self.users)

    def login(self, username, password):
        self.calls.append(('login', username))
        if self.users.get(username) != password:
            raise UnauthenticatedError('Invalid username or password', 401)
        return f'token-for-{username}'


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return DebounceScheduler(timeout_add=clock.timeout_add, source_remove=clock.source_remove)


@pytest.fixture
def client():
    return FakeNotesClient()


@pytest.fixture
def auth():
    return FakeAuthClient()


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path))


@pytest.fixture
def app(settings, auth, client, scheduler):
    return NotesApp(
        settings=settings,
        auth_client=auth,
        notes_client=client,
        dispatcher=ImmediateDispatcher(),
        scheduler=scheduler,
        token_store=TokenStore(settings.data_dir),
    )
