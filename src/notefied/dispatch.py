# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import threading

from gi.repository import GLib

from notefied.errors import NotesError, TransientError

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs blocking client calls off the main loop.

    The call executes on a worker thread; its result or error is handed
    back to on_success / on_error from the GLib main loop, which keeps
    every state mutation on the main thread.
    """

    def __init__(self, idle_add=GLib.idle_add):
        self._idle_add = idle_add

    def submit(self, func, *args, on_success=None, on_error=None):
        worker = threading.Thread(
            target=self._run,
            args=(func, args, on_success, on_error),
            daemon=True,
        )
        worker.start()

    def _run(self, func, args, on_success, on_error):
        try:
            result = func(*args)
        except NotesError as e:
            self._idle_add(_deliver, on_error, e)
        except Exception as e:
            logger.exception('unexpected failure in %s', getattr(func, '__name__', func))
            self._idle_add(_deliver, on_error, TransientError(str(e)))
        else:
            self._idle_add(_deliver, on_success, result)


def _deliver(callback, value):
    if callback is not None:
        callback(value)
    return GLib.SOURCE_REMOVE
