# SPDX-License-Identifier: GPL-3.0-or-later

import pytest

from notefied.title import derive_title


@pytest.mark.parametrize('content', ['', '   ', '\n\t \n', None])
def test_blank_content_has_no_title(content):
    assert derive_title(content) == ''


def test_short_content_is_the_title():
    assert derive_title('one two') == 'one two'


def test_exactly_five_words_have_no_ellipsis():
    assert derive_title('Buy milk and eggs today') == 'Buy milk and eggs today'


def test_long_content_is_cut_to_five_words():
    # Five words, then an ellipsis; six words here would break the word limit.
    assert derive_title('a b c d e f g') == 'a b c d e...'


def test_whitespace_runs_collapse():
    assert derive_title('  hello\n\nworld\tagain  ') == 'hello world again'
