# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import os
from dataclasses import dataclass, field, fields, replace

from gi.repository import Gio, GLib

from notefied.constants import (
    APP_ID,
    AUTH_URL,
    AUTOSAVE_DELAY_MS,
    NOTES_URL,
    REQUEST_TIMEOUT_S,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = 'NOTEFIED_'

_TRUE = {'1', 'true', 'yes', 'on'}
_FALSE = {'0', 'false', 'no', 'off'}


def _default_data_dir():
    return os.path.join(GLib.get_user_data_dir(), 'notefied')


@dataclass(frozen=True)
class Settings:
    auth_url: str = AUTH_URL
    notes_url: str = NOTES_URL
    autosave_delay_ms: int = AUTOSAVE_DELAY_MS
    request_timeout: float = REQUEST_TIMEOUT_S
    verify_tls: bool = True
    data_dir: str = field(default_factory=_default_data_dir)

    @classmethod
    def load(cls, environ=None) -> 'Settings':
        """Defaults, then the installed GSettings schema, then NOTEFIED_* variables."""
        settings = cls()
        settings = replace(settings, **_from_gsettings())
        settings = replace(settings, **_from_environ(os.environ if environ is None else environ))
        return settings


def _from_gsettings() -> dict:
    schema_source = Gio.SettingsSchemaSource.get_default()
    if not schema_source or not schema_source.lookup(APP_ID, True):
        return {}
    gsettings = Gio.Settings.new(APP_ID)
    values = {}
    for key, attr in (('auth-url', 'auth_url'), ('notes-url', 'notes_url')):
        value = gsettings.get_string(key)
        if value:
            values[attr] = value
    delay = gsettings.get_int('autosave-delay-ms')
    if delay > 0:
        values['autosave_delay_ms'] = delay
    return values


def _from_environ(environ) -> dict:
    values = {}
    for f in fields(Settings):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw is None or raw == '':
            continue
        try:
            values[f.name] = _coerce(f.type, raw)
        except ValueError:
            logger.warning('ignoring invalid %s%s=%r', ENV_PREFIX, f.name.upper(), raw)
    return values


def _coerce(type_, raw):
    if type_ in (bool, 'bool'):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(raw)
    if type_ in (int, 'int'):
        return int(raw)
    if type_ in (float, 'float'):
        return float(raw)
    return raw
