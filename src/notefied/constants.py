# SPDX-License-Identifier: GPL-3.0-or-later

APP_ID = 'io.github.notefied'

AUTH_URL = 'https://localhost:3001'
NOTES_URL = 'https://localhost:3002'

AUTOSAVE_DELAY_MS = 2000
REQUEST_TIMEOUT_S = 10.0

TITLE_WORD_LIMIT = 5
TITLE_ELLIPSIS = '...'

# Debounce key for a note that has no server id yet.
NEW_NOTE_KEY = 'new'

TOKEN_FILENAME = 'token'
