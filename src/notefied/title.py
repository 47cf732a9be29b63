# SPDX-License-Identifier: GPL-3.0-or-later

from notefied.constants import TITLE_ELLIPSIS, TITLE_WORD_LIMIT


def derive_title(content) -> str:
    """Build a display title from the first words of the content.

    Blank content yields an empty title. When the content has more words
    than fit, the title ends with an ellipsis.
    """
    words = (content or '').split()
    if not words:
        return ''
    title = ' '.join(words[:TITLE_WORD_LIMIT])
    if len(words) > TITLE_WORD_LIMIT:
        title += TITLE_ELLIPSIS
    return title
