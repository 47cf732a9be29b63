# SPDX-License-Identifier: GPL-3.0-or-later

import threading

from notefied.dispatch import Dispatcher
from notefied.errors import NotFoundError, TransientError


class IdleQueue:
    """Collects idle callbacks so the test can run them like the main loop."""

    def __init__(self):
        self.callbacks = []
        self.ready = threading.Event()

    def idle_add(self, func, *args):
        self.callbacks.append((func, args))
        self.ready.set()
        return len(self.callbacks)

    def drain(self):
        assert self.ready.wait(5)
        for func, args in self.callbacks:
            func(*args)


def run(func, *args):
    idle = IdleQueue()
    results, errors = [], []
    Dispatcher(idle_add=idle.idle_add).submit(
        func, *args, on_success=results.append, on_error=errors.append,
    )
    idle.drain()
    return results, errors, idle


def test_result_is_delivered_through_idle_callback():
    caller = threading.get_ident()
    worker = []

    def work(x):
        worker.append(threading.get_ident())
        return x * 2

    results, errors, idle = run(work, 21)

    assert results == [42]
    assert errors == []
    assert worker[0] != caller


def test_notes_errors_are_passed_through():
    def work():
        raise NotFoundError('gone', 404)

    results, errors, _ = run(work)
    assert results == []
    assert isinstance(errors[0], NotFoundError)


def test_unexpected_errors_become_transient():
    def work():
        raise RuntimeError('bug')

    _, errors, _ = run(work)
    assert isinstance(errors[0], TransientError)
