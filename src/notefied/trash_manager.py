# SPDX-License-Identifier: GPL-3.0-or-later

import logging

from gi.repository import GObject

from notefied.note import newest_first

logger = logging.getLogger(__name__)


class TrashManager(GObject.Object):
    """Trashed notes, the bulk selection and the restore/purge operations.

    Mutations are optimistic where the UI needs instant feedback; any
    failure is handed to on_error, which resynchronizes from the server
    rather than rolling back locally.
    """

    __gsignals__ = {
        'changed': (GObject.SignalFlags.RUN_LAST, None, ()),
        'trash-requested': (GObject.SignalFlags.RUN_LAST, None, (object,)),
        'purge-requested': (GObject.SignalFlags.RUN_LAST, None, (int,)),
        'note-trashed': (GObject.SignalFlags.RUN_LAST, None, (object,)),
        'notes-restored': (GObject.SignalFlags.RUN_LAST, None, (object,)),
        'notes-purged': (GObject.SignalFlags.RUN_LAST, None, (object,)),
    }

    def __init__(self, store, client, dispatcher, on_error=None):
        super().__init__()
        self._store = store
        self._client = client
        self._dispatcher = dispatcher
        self._on_error = on_error
        self._trashed = []
        self._selected = set()
        self._pending_purge = frozenset()
        self._query = ''
        self._generation = 0

    # --- Queries ---

    @property
    def query(self) -> str:
        return self._query

    @property
    def selection(self) -> frozenset:
        return frozenset(self._selected)

    @property
    def pending_purge(self) -> frozenset:
        return self._pending_purge

    def set_query(self, query):
        query = query or ''
        if query == self._query:
            return
        self._query = query
        self.emit('changed')

    def get(self, note_id):
        for note in self._trashed:
            if note.id == note_id:
                return note
        return None

    def __contains__(self, note_id):
        return self.get(note_id) is not None

    def __len__(self):
        return len(self._trashed)

    def all(self) -> list:
        return list(self._trashed)

    def projection(self) -> list:
        """Visible trashed notes, most recently trashed first."""
        return [note for note in self._trashed if note.matches(self._query)]

    # --- Local state ---

    def reset(self, trashed):
        self._trashed = newest_first(trashed, key='trashed_at')
        ids = {note.id for note in self._trashed}
        self._selected &= ids
        self.emit('changed')

    def clear(self):
        self._generation += 1
        self._trashed = []
        self._selected.clear()
        self._pending_purge = frozenset()
        self._query = ''
        self.emit('changed')

    def _insert(self, trashed_note):
        others = [n for n in self._trashed if n.id != trashed_note.id]
        self._trashed = newest_first(others + [trashed_note], key='trashed_at')

    def _discard(self, ids):
        self._trashed = [n for n in self._trashed if n.id not in ids]

    # --- Selection ---

    def toggle(self, note_id):
        if note_id in self._selected:
            self._selected.discard(note_id)
        elif note_id in self:
            self._selected.add(note_id)
        self.emit('changed')

    def select_all(self):
        """Select every visible note, or clear if they are all selected already."""
        visible = {note.id for note in self.projection()}
        if visible and self._selected == visible:
            self._selected.clear()
        else:
            self._selected = visible
        self.emit('changed')

    def clear_selection(self):
        self._selected.clear()
        self.emit('changed')

    def exit_view(self):
        self._selected.clear()
        self._query = ''
        self.emit('changed')

    # --- Remote operations ---

    def refresh(self):
        generation = self._generation

        def on_success(trashed):
            if generation == self._generation:
                self.reset(trashed)

        self._dispatcher.submit(
            self._client.list_trashed,
            on_success=on_success,
            on_error=lambda e: self._report(e, 'fetch-trash', generation),
        )

    def move_to_trash(self, note_id):
        generation = self._generation
        self.emit('trash-requested', note_id)
        self._store.remove(note_id)

        def on_success(trashed_note):
            if generation != self._generation:
                return
            logger.info('note %s moved to trash', note_id)
            if trashed_note is None:
                self.refresh()
            else:
                self._store.remove(trashed_note.id)
                self._insert(trashed_note)
                self.emit('changed')
            self.emit('note-trashed', note_id)

        self._dispatcher.submit(
            self._client.trash_note, note_id,
            on_success=on_success,
            on_error=lambda e: self._report(e, 'trash', generation),
        )

    def restore(self, note_id, on_done=None):
        def unwrap(restored):
            if on_done is not None:
                on_done(restored[0] if restored else None)

        self.restore_many([note_id], on_done=unwrap)

    def restore_many(self, ids, on_done=None):
        """Restore each id with its own request and apply every success.

        Ids whose request failed stay in the trash.
        """
        ids = list(dict.fromkeys(ids))
        if not ids:
            return
        generation = self._generation
        restored = []
        failures = []
        remaining = [len(ids)]

        def settle():
            remaining[0] -= 1
            if remaining[0] or generation != self._generation:
                return
            if restored:
                self._discard({note.id for note in restored})
                for note in restored:
                    self._store.upsert(note)
            self._selected.clear()
            self.emit('changed')
            logger.info('restored %d of %d notes', len(restored), len(ids))
            if restored:
                self.emit('notes-restored', list(restored))
            if failures:
                self._report(failures[0], 'restore', generation)
            if on_done is not None:
                on_done(list(restored))

        def on_success(note):
            restored.append(note)
            settle()

        def on_error(error):
            failures.append(error)
            settle()

        for note_id in ids:
            self._dispatcher.submit(
                self._client.restore_note, note_id,
                on_success=on_success,
                on_error=on_error,
            )

    def request_purge(self, ids):
        """Stage ids for permanent deletion; nothing is sent until confirmed."""
        ids = frozenset(ids)
        if not ids:
            return
        self._pending_purge = ids
        self.emit('purge-requested', len(ids))

    def cancel_purge(self):
        self._pending_purge = frozenset()

    def confirm_purge(self, on_done=None):
        ids = list(self._pending_purge)
        self._pending_purge = frozenset()
        if not ids:
            return
        generation = self._generation
        purged = []
        failures = []
        remaining = [len(ids)]

        def settle():
            remaining[0] -= 1
            if remaining[0] or generation != self._generation:
                return
            self._discard(set(purged))
            self._selected.clear()
            self.emit('changed')
            logger.info('purged %d of %d notes', len(purged), len(ids))
            if purged:
                self.emit('notes-purged', list(purged))
            if failures:
                self._report(failures[0], 'purge', generation)
            if on_done is not None:
                on_done(list(purged))

        def make_success(note_id):
            def on_success(_result):
                purged.append(note_id)
                settle()
            return on_success

        def on_error(error):
            failures.append(error)
            settle()

        for note_id in ids:
            self._dispatcher.submit(
                self._client.purge_note, note_id,
                on_success=make_success(note_id),
                on_error=on_error,
            )

    def _report(self, error, action, generation):
        if generation != self._generation:
            return
        logger.warning('%s failed: %s', action, error)
        if self._on_error is not None:
            self._on_error(error, action)
