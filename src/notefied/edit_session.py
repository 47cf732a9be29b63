# SPDX-License-Identifier: GPL-3.0-or-later

import logging
from enum import Enum

from gi.repository import GObject

from notefied.constants import AUTOSAVE_DELAY_MS, NEW_NOTE_KEY
from notefied.title import derive_title

logger = logging.getLogger(__name__)


class EditState(Enum):
    EMPTY = 'empty'
    NEW_DIRTY = 'new-dirty'
    CREATED = 'created'
    EXISTING_DIRTY = 'existing-dirty'
    PENDING_TOMBSTONE = 'pending-tombstone'


def tombstone_key(note_id):
    return ('tombstone', note_id)


class EditSession(GObject.Object):
    """The single note open in the editor, autosaved as the user types.

    Every edit re-arms a debounced save keyed by the note id (or
    NEW_NOTE_KEY before the note exists on the server). The original_*
    fields hold the last persisted values and are the dirty-check
    baseline.

    Clearing the content of a saved note evacuates it: it leaves the
    active store at once, waits in the undo buffer, and is moved to the
    trash only when its own debounce fires without an undo.
    """

    __gsignals__ = {
        'changed': (GObject.SignalFlags.RUN_LAST, None, ()),
        'note-created': (GObject.SignalFlags.RUN_LAST, None, (object,)),
        'note-saved': (GObject.SignalFlags.RUN_LAST, None, (object,)),
    }

    def __init__(self, store, trash, undo, scheduler, client, dispatcher,
                 delay_ms=AUTOSAVE_DELAY_MS, on_error=None):
        super().__init__()
        self._store = store
        self._trash = trash
        self._undo = undo
        self._scheduler = scheduler
        self._client = client
        self._dispatcher = dispatcher
        self._delay_ms = delay_ms
        self._on_error = on_error
        trash.connect('trash-requested', self._on_trash_requested)
        # Bumped whenever the editor switches context; completions from an
        # older epoch may touch the store but never the session.
        self._epoch = 0
        self._creating_epoch = None
        self._deferred_save = False
        self._clear_fields()

    # --- State ---

    @property
    def note_id(self):
        return self._note_id

    @property
    def content(self) -> str:
        return self._content

    @property
    def title(self) -> str:
        return self._title

    @property
    def original_content(self) -> str:
        return self._original_content

    @property
    def original_title(self) -> str:
        return self._original_title

    @property
    def title_is_manual(self) -> bool:
        return self._title_is_manual

    @property
    def key(self):
        return NEW_NOTE_KEY if self._note_id is None else self._note_id

    @property
    def is_dirty(self) -> bool:
        return (self._content != self._original_content
                or self._title != self._original_title)

    @property
    def state(self) -> EditState:
        if self._undo:
            return EditState.PENDING_TOMBSTONE
        if self._note_id is None:
            if self._content.strip():
                return EditState.NEW_DIRTY
            return EditState.EMPTY
        if self.is_dirty:
            return EditState.EXISTING_DIRTY
        return EditState.CREATED

    # --- Editor events ---

    def set_content(self, content):
        content = content or ''
        self._content = content
        if not self._title_is_manual:
            self._title = derive_title(content)

        if not content.strip():
            if self._note_id is not None:
                self._evacuate()
            else:
                self._scheduler.cancel(NEW_NOTE_KEY)
                self._deferred_save = False
        else:
            if self._undo:
                self._undo.clear()
            self._schedule_save()
        self.emit('changed')

    def set_title(self, title):
        self._title_is_manual = True
        self._title = title or ''
        if self._content.strip():
            self._schedule_save()
        self.emit('changed')

    def select(self, note):
        """Open an existing note, dropping any pending save for the old one."""
        if note.id == self._note_id:
            return
        self._leave()
        self._load(note)
        self.emit('changed')

    def reset(self):
        """Back to a blank editor for a brand new note."""
        self._leave()
        self._clear_fields()
        self._epoch += 1
        self.emit('changed')

    def undo(self) -> bool:
        note = self._undo.consume()
        if note is None:
            return False
        self._scheduler.cancel(tombstone_key(note.id))
        self._scheduler.cancel(NEW_NOTE_KEY)
        self._store.upsert(note)
        self._load(note)
        logger.info('restored note %s from undo buffer', note.id)
        self.emit('changed')
        return True

    def flush(self) -> bool:
        """Save now instead of waiting for the debounce."""
        return self._scheduler.flush(self.key)

    # --- Internals ---

    def _on_trash_requested(self, trash, note_id):
        if self._note_id is None or note_id != self._note_id:
            return
        logger.debug('open note %s trashed, closing editor', note_id)
        self.reset()

    def _clear_fields(self):
        self._note_id = None
        self._content = ''
        self._title = ''
        self._original_content = ''
        self._original_title = ''
        self._title_is_manual = False

    def _load(self, note):
        self._note_id = note.id
        self._content = note.content
        self._title = note.title
        self._original_content = note.content
        self._original_title = note.title
        self._title_is_manual = False
        self._epoch += 1

    def _leave(self):
        self._scheduler.cancel(self.key)
        self._undo.clear()
        self._deferred_save = False

    def _schedule_save(self):
        if self._note_id is not None and not self.is_dirty:
            self._scheduler.cancel(self._note_id)
            return
        self._scheduler.schedule(self.key, self._delay_ms, self._save)

    def _save(self):
        if not self._content.strip():
            return
        if self._note_id is None:
            if self._creating_epoch == self._epoch:
                logger.debug('create still in flight, deferring save')
                self._deferred_save = True
                return
            self._create()
        elif self.is_dirty:
            self._update()

    def _evacuate(self):
        note_id = self._note_id
        self._scheduler.cancel(note_id)
        note = self._store.remove(note_id)
        self._clear_fields()
        self._deferred_save = False
        self._epoch += 1
        if note is None:
            return
        self._undo.evict(note)
        self._scheduler.schedule(
            tombstone_key(note.id), self._delay_ms,
            lambda: self._finalize_tombstone(note),
        )
        logger.debug('note %s cleared, pending tombstone', note.id)

    def _finalize_tombstone(self, note):
        held = self._undo.peek()
        if held is not None and held.id == note.id:
            self._undo.clear()
            self.emit('changed')
        logger.info('finalizing cleared note %s', note.id)
        self._trash.move_to_trash(note.id)

    def _create(self):
        epoch = self._epoch
        content = self._content
        raw_title = self._title
        title = raw_title.strip() or derive_title(content)
        self._creating_epoch = epoch
        self._dispatcher.submit(
            self._client.create_note, title, content,
            on_success=lambda note: self._on_created(epoch, raw_title, title, content, note),
            on_error=lambda e: self._on_create_failed(epoch, e),
        )

    def _on_created(self, epoch, raw_title, title, content, note):
        logger.info('created note %s', note.id)
        self._store.upsert(note)
        self.emit('note-created', note)
        if epoch != self._epoch or self._note_id is not None:
            return

        deferred = self._deferred_save
        self._creating_epoch = None
        self._deferred_save = False
        self._scheduler.cancel(NEW_NOTE_KEY)
        self._note_id = note.id
        self._original_content = content
        self._original_title = note.title
        if self._title == raw_title:
            self._title = note.title

        if not self._content.strip():
            self._evacuate()
        elif self.is_dirty:
            if deferred:
                self._update()
            else:
                self._schedule_save()
        self.emit('changed')

    def _on_create_failed(self, epoch, error):
        if epoch == self._epoch:
            self._creating_epoch = None
            self._deferred_save = False
        self._report(error, 'create')

    def _update(self):
        epoch = self._epoch
        note_id = self._note_id
        content = self._content
        raw_title = self._title
        title = raw_title.strip() or derive_title(content)
        self._dispatcher.submit(
            self._client.update_note, note_id, title, content,
            on_success=lambda note: self._on_updated(epoch, raw_title, title, content, note),
            on_error=lambda e: self._report(e, 'update'),
        )

    def _on_updated(self, epoch, raw_title, title, content, note):
        logger.debug('saved note %s', note.id)
        self._store.replace(note)
        held = self._undo.peek()
        if held is not None and held.id == note.id:
            self._undo.evict(note)
        self.emit('note-saved', note)
        if epoch != self._epoch or self._note_id != note.id:
            return
        self._original_content = content
        self._original_title = title
        if self._title == raw_title:
            self._title = title
        self.emit('changed')

    def _report(self, error, action):
        logger.warning('autosave %s failed: %s', action, error)
        if self._on_error is not None:
            self._on_error(error, action)
