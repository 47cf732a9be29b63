# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import os

from notefied.constants import TOKEN_FILENAME

logger = logging.getLogger(__name__)


class TokenStore:
    """Keeps the session token on disk until logout."""

    def __init__(self, data_dir):
        self._path = os.path.join(data_dir, TOKEN_FILENAME)

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> str | None:
        try:
            with open(self._path, encoding='utf-8') as f:
                token = f.read().strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token):
        os.makedirs(os.path.dirname(self._path), exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(token)
        logger.debug('token saved to %s', self._path)

    def clear(self):
        try:
            os.remove(self._path)
        except FileNotFoundError:
            pass
