# SPDX-License-Identifier: GPL-3.0-or-later

import logging

import httpx

from notefied.errors import (
    ApiError,
    NotFoundError,
    RemoteValidationError,
    TransientError,
    UnauthenticatedError,
)
from notefied.note import Note, TrashedNote

logger = logging.getLogger(__name__)


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        if body.get('error'):
            return str(body['error'])
        if body.get('errors'):
            return '; '.join(str(e.get('msg', e)) for e in body['errors'])
    return response.reason_phrase


def _raise_for_status(response):
    if response.is_success:
        return
    status = response.status_code
    message = _error_message(response)
    if status in (401, 403):
        raise UnauthenticatedError(message, status)
    if status == 400:
        raise RemoteValidationError(message, status)
    if status in (404, 409):
        raise NotFoundError(message, status)
    if status >= 500:
        raise TransientError(message, status)
    raise ApiError(message, status)


class _BaseClient:

    def __init__(self, base_url, timeout, verify=True, transport=None):
        self._http = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            verify=verify,
            transport=transport,
        )

    def _request(self, method, path, **kwargs):
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(f'{method} {path} timed out') from e
        except httpx.RequestError as e:
            raise TransientError(f'{method} {path} failed: {e}') from e
        logger.debug('%s %s -> %d', method, path, response.status_code)
        _raise_for_status(response)
        return response

    def _json(self, response):
        try:
            return response.json()
        except ValueError as e:
            raise TransientError('malformed response body', response.status_code) from e

    def close(self):
        self._http.close()


class AuthClient(_BaseClient):
    """Credential exchange with the user service."""

    def register(self, username, password):
        response = self._request(
            'POST', '/register',
            json={'username': username, 'password': password},
        )
        return self._json(response).get('id')

    def login(self, username, password) -> str:
        response = self._request(
            'POST', '/login',
            json={'username': username, 'password': password},
        )
        token = self._json(response).get('token')
        if not token:
            raise TransientError('login response carried no token', response.status_code)
        return token


class NotesClient(_BaseClient):
    """The remote note collection, authorized by an opaque token.

    The token goes out as the raw Authorization header value.
    """

    def __init__(self, base_url, timeout, verify=True, transport=None, token=None):
        super().__init__(base_url, timeout, verify=verify, transport=transport)
        self.token = token

    def _authorized(self, method, path, **kwargs):
        if not self.token:
            raise UnauthenticatedError('no token')
        headers = {'Authorization': self.token}
        return self._request(method, path, headers=headers, **kwargs)

    def _decode(self, response, cls):
        data = self._json(response)
        try:
            return cls.from_json(data)
        except (KeyError, TypeError, ValueError) as e:
            raise TransientError(f'malformed note: {e}', response.status_code) from e

    def _decode_list(self, response, cls) -> list:
        data = self._json(response)
        if not isinstance(data, list):
            raise TransientError('expected a list of notes', response.status_code)
        try:
            return [cls.from_json(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise TransientError(f'malformed note: {e}', response.status_code) from e

    # --- Active notes ---

    def list_notes(self) -> list[Note]:
        return self._decode_list(self._authorized('GET', '/notes'), Note)

    def create_note(self, title, content) -> Note:
        response = self._authorized(
            'POST', '/notes', json={'title': title, 'content': content},
        )
        return self._decode(response, Note)

    def update_note(self, note_id, title, content) -> Note:
        response = self._authorized(
            'PUT', f'/notes/{note_id}', json={'title': title, 'content': content},
        )
        return self._decode(response, Note)

    def trash_note(self, note_id) -> TrashedNote | None:
        """Move a note to the trash.

        Returns the trashed note when the server echoes it back, else None.
        """
        response = self._authorized('DELETE', f'/notes/{note_id}')
        if not response.content:
            return None
        try:
            return TrashedNote.from_json(response.json())
        except (KeyError, TypeError, ValueError):
            return None

    # --- Trash ---

    def list_trashed(self) -> list[TrashedNote]:
        return self._decode_list(self._authorized('GET', '/trashed-notes'), TrashedNote)

    def restore_note(self, note_id) -> Note:
        response = self._authorized('POST', f'/trashed-notes/{note_id}/restore', json={})
        return self._decode(response, Note)

    def purge_note(self, note_id):
        self._authorized('DELETE', f'/trashed-notes/{note_id}')
