# SPDX-License-Identifier: GPL-3.0-or-later

import logging

from gi.repository import GObject

from notefied.note import newest_first

logger = logging.getLogger(__name__)


class NoteStore(GObject.Object):
    """In-memory set of active notes, newest first.

    'changed' is emitted once per mutation, after the collection has been
    re-sorted, so handlers never see it half-updated.
    """

    __gsignals__ = {
        'changed': (GObject.SignalFlags.RUN_LAST, None, ()),
    }

    def __init__(self):
        super().__init__()
        self._notes = []
        self._query = ''

    # --- Queries ---

    @property
    def query(self) -> str:
        return self._query

    def set_query(self, query):
        query = query or ''
        if query == self._query:
            return
        self._query = query
        self.emit('changed')

    def get(self, note_id):
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def __contains__(self, note_id):
        return self.get(note_id) is not None

    def __len__(self):
        return len(self._notes)

    def all(self) -> list:
        return list(self._notes)

    def projection(self) -> list:
        """Active notes matching the search query, most recently updated first."""
        return [note for note in self._notes if note.matches(self._query)]

    # --- Mutations ---

    def reset(self, notes):
        self._notes = newest_first(notes)
        self.emit('changed')

    def upsert(self, note):
        others = [n for n in self._notes if n.id != note.id]
        self._notes = newest_first(others + [note])
        self.emit('changed')

    def replace(self, note) -> bool:
        """Swap in a fresher copy of a note that is still active."""
        if note.id not in self:
            logger.debug('note %s no longer active, ignoring update', note.id)
            return False
        self.upsert(note)
        return True

    def remove(self, note_id):
        note = self.get(note_id)
        if note is None:
            return None
        self._notes = [n for n in self._notes if n.id != note_id]
        self.emit('changed')
        return note

    def clear(self):
        self._notes = []
        self._query = ''
        self.emit('changed')
