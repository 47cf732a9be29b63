# SPDX-License-Identifier: GPL-3.0-or-later

import logging

from gi.repository import GLib

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """Keyed debounce timers on the GLib main loop.

    Scheduling under a key replaces whatever was pending for that key, so
    an action only runs once activity under its key has settled.
    """

    def __init__(self, timeout_add=GLib.timeout_add, source_remove=GLib.source_remove):
        self._timeout_add = timeout_add
        self._source_remove = source_remove
        self._pending = {}

    def schedule(self, key, delay_ms, action):
        """Run action after delay_ms unless rescheduled or cancelled first."""
        self.cancel(key)
        timer = _Timer(key, action)
        timer.source_id = self._timeout_add(delay_ms, self._fire, timer)
        self._pending[key] = timer
        logger.debug('scheduled %r in %d ms', key, delay_ms)

    def cancel(self, key) -> bool:
        timer = self._pending.pop(key, None)
        if timer is None:
            return False
        self._source_remove(timer.source_id)
        logger.debug('cancelled %r', key)
        return True

    def cancel_all(self):
        for key in list(self._pending):
            self.cancel(key)

    def is_pending(self, key) -> bool:
        return key in self._pending

    def flush(self, key) -> bool:
        """Run the pending action for key now, skipping the rest of the delay."""
        timer = self._pending.get(key)
        if timer is None:
            return False
        self.cancel(key)
        timer.action()
        return True

    def _fire(self, timer):
        if self._pending.get(timer.key) is timer:
            del self._pending[timer.key]
            timer.action()
        return GLib.SOURCE_REMOVE


class _Timer:
    __slots__ = ('key', 'action', 'source_id')

    def __init__(self, key, action):
        self.key = key
        self.action = action
        self.source_id = None
