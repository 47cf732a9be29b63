# SPDX-License-Identifier: GPL-3.0-or-later

import logging

logger = logging.getLogger(__name__)


class UndoBuffer:
    """Holds the one note most recently evacuated by clearing its content."""

    def __init__(self):
        self._note = None

    def evict(self, note):
        if self._note is not None and self._note.id != note.id:
            logger.debug('undo buffer dropped note %s', self._note.id)
        self._note = note

    def consume(self):
        note, self._note = self._note, None
        return note

    def peek(self):
        return self._note

    def clear(self):
        self._note = None

    def __bool__(self):
        return self._note is not None
