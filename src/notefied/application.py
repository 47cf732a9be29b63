# SPDX-License-Identifier: GPL-3.0-or-later

import logging

from gi.repository import GObject

from notefied.api import AuthClient, NotesClient
from notefied.auto_save import DebounceScheduler
from notefied.config import Settings
from notefied.dispatch import Dispatcher
from notefied.edit_session import EditSession
from notefied.errors import (
    NotFoundError,
    TransientError,
    UnauthenticatedError,
    ValidationError,
)
from notefied.note_store import NoteStore
from notefied.token_store import TokenStore
from notefied.trash_manager import TrashManager
from notefied.undo_buffer import UndoBuffer

logger = logging.getLogger(__name__)

# Failures of these actions are shown to the user and followed by a resync.
SURFACED_ACTIONS = {
    'trash': 'Failed to move note to trash',
    'restore': 'Failed to restore note',
    'purge': 'Failed to permanently delete notes',
}
FETCH_ACTIONS = {'fetch', 'fetch-trash'}


class NotesApp(GObject.Object):
    """Signed-in session: credentials, collections and the editor."""

    __gsignals__ = {
        'session-changed': (GObject.SignalFlags.RUN_LAST, None, (bool,)),
        'session-expired': (GObject.SignalFlags.RUN_LAST, None, ()),
        'error': (GObject.SignalFlags.RUN_LAST, None, (str,)),
    }

    def __init__(self, settings=None, auth_client=None, notes_client=None,
                 dispatcher=None, scheduler=None, token_store=None):
        super().__init__()
        self.settings = settings or Settings.load()
        self.auth = auth_client or AuthClient(
            self.settings.auth_url,
            self.settings.request_timeout,
            verify=self.settings.verify_tls,
        )
        self.client = notes_client or NotesClient(
            self.settings.notes_url,
            self.settings.request_timeout,
            verify=self.settings.verify_tls,
        )
        self.dispatcher = dispatcher or Dispatcher()
        self.scheduler = scheduler or DebounceScheduler()
        self.tokens = token_store or TokenStore(self.settings.data_dir)

        self.store = NoteStore()
        self.undo_buffer = UndoBuffer()
        self.trash = TrashManager(
            self.store, self.client, self.dispatcher, on_error=self.handle_error,
        )
        self.session = EditSession(
            self.store, self.trash, self.undo_buffer, self.scheduler,
            self.client, self.dispatcher,
            delay_ms=self.settings.autosave_delay_ms,
            on_error=self.handle_error,
        )
        self._generation = 0

    @property
    def is_authenticated(self) -> bool:
        return bool(self.client.token)

    # --- Credentials ---

    def login(self, username, password):
        username = (username or '').strip()
        if not username or not password:
            raise ValidationError('Username and password are required')
        generation = self._generation
        self.dispatcher.submit(
            self.auth.login, username, password,
            on_success=lambda token: self._on_login(generation, token),
            on_error=self._on_login_failed,
        )

    def _on_login(self, generation, token):
        if generation != self._generation:
            return
        self.tokens.save(token)
        self.client.token = token
        logger.info('logged in')
        self.emit('session-changed', True)
        self.resync()

    def _on_login_failed(self, error):
        logger.warning('login failed: %s', error)
        if isinstance(error, TransientError):
            self.emit('error', 'Unable to reach the server')
        else:
            self.emit('error', 'Incorrect Username or Password')

    def register(self, username, password, confirm_password, on_done=None):
        username = (username or '').strip()
        if not username or not password:
            raise ValidationError('Username and password are required')
        if password != confirm_password:
            raise ValidationError("Password Doesn't Match")

        def on_success(user_id):
            logger.info('registered user %s', user_id)
            if on_done is not None:
                on_done(user_id)

        self.dispatcher.submit(
            self.auth.register, username, password,
            on_success=on_success,
            on_error=self._on_register_failed,
        )

    def _on_register_failed(self, error):
        logger.warning('registration failed: %s', error)
        if 'username' in str(error).lower():
            self.emit('error', 'Username Already Exists')
        else:
            self.emit('error', 'Registration Failed')

    def restore_session(self) -> bool:
        """Pick up a token saved by an earlier run."""
        token = self.tokens.load()
        if not token:
            return False
        self.client.token = token
        self.emit('session-changed', True)
        self.resync()
        return True

    def logout(self):
        # In-flight requests keep running; the generation bump makes their
        # completions no-ops.
        self._generation += 1
        self.scheduler.cancel_all()
        self.session.reset()
        self.undo_buffer.clear()
        self.store.clear()
        self.trash.clear()
        self.tokens.clear()
        self.client.token = None
        logger.info('logged out')
        self.emit('session-changed', False)

    # --- Synchronization ---

    def resync(self):
        """Replace both collections with the server's view."""
        generation = self._generation

        def on_success(notes):
            if generation == self._generation:
                self.store.reset(notes)

        def on_error(error):
            if generation == self._generation:
                self.handle_error(error, 'fetch')

        self.dispatcher.submit(self.client.list_notes, on_success=on_success, on_error=on_error)
        self.trash.refresh()

    def handle_error(self, error, action):
        if isinstance(error, UnauthenticatedError):
            if self.is_authenticated:
                logger.info('token rejected during %s, logging out', action)
                self.logout()
                self.emit('session-expired')
            return
        message = SURFACED_ACTIONS.get(action)
        if message is not None:
            self.emit('error', message)
        if action in FETCH_ACTIONS:
            # Reads are retried by the next trigger.
            return
        if message is not None or isinstance(error, NotFoundError):
            self.resync()
