#!/usr/bin/env python3
"""
numeral.py - Numeric conversion (数値変換) for SKK lookups

SKK jisyo store numbers as a "#" placeholder:

    #ばん /#1番/#3番/
    だい#かい /第#1回/第#2回/第#3回/

A lookup for "だい12かい" is sent to the wrapped dictionary as "だい#かい",
and every "#n" in the answer is filled with the digits the user typed:

    #, #0, #4-#9 : 12    (as typed)
    #1           : １２  (full-width / 全角)
    #2           : 一二  (kanji digits / 漢数字)
    #3           : 十二  (place-value kanji / 位取り漢数字)

Markers and digit runs are paired left to right. A marker with no digit run
left stays as it is; surplus digit runs are dropped.
"""

import re

import jisyo


PLACEHOLDER = '#'

_DIGITS_RE = re.compile(r'[0-9]+')
_MARKER_RE = re.compile(r'#([0-9]?)')

_ZENKAKU_DIGITS = '０１２３４５６７８９'
_KANJI_DIGITS = '〇一二三四五六七八九'
_SMALL_UNITS = ((1000, '千'), (100, '百'), (10, '十'))
_LARGE_UNITS = ('', '万', '億', '兆', '京')


def to_zenkaku(n):
    return ''.join(_ZENKAKU_DIGITS[int(c)] for c in str(n))


def to_kanji_modern(n):
    return ''.join(_KANJI_DIGITS[int(c)] for c in str(n))


def _kanji_below_10000(n):
    out = []
    for value, unit in _SMALL_UNITS:
        digit, n = divmod(n, value)
        if digit:
            # 十, 百, 千 rather than 一十, 一百, 一千
            out.append(('' if digit == 1 else _KANJI_DIGITS[digit]) + unit)
    if n:
        out.append(_KANJI_DIGITS[n])
    return ''.join(out)


def to_kanji_classic(n):
    """
    Render n with place-value kanji: 1234 → 千二百三十四, 10000 → 一万.

    Numbers of 10^20 and above have no unit left and fall back to
    to_kanji_modern().
    """
    if n == 0:
        return _KANJI_DIGITS[0]
    if n >= 10 ** (4 * len(_LARGE_UNITS)):
        return to_kanji_modern(n)
    groups = []
    for unit in _LARGE_UNITS:
        n, group = divmod(n, 10000)
        if group:
            groups.append(_kanji_below_10000(group) + unit)
        if not n:
            break
    return ''.join(reversed(groups))


def format_number(suffix, digits):
    """
    Format a digit run for a "#<suffix>" marker.

    Args:
        suffix: The marker digit as str ('' for a bare "#")
        digits: The digit run typed by the user, e.g. "012"
    """
    if suffix == '1':
        return to_zenkaku(int(digits))
    if suffix == '2':
        return to_kanji_modern(int(digits))
    if suffix == '3':
        return to_kanji_classic(int(digits))
    return digits


def convert_number(pattern, word):
    """
    Fill the "#n" markers of a candidate with the digit runs of word.

    Args:
        pattern: Candidate from the jisyo, e.g. "第#3回"
        word: The original lookup key, e.g. "だい12かい"

    Returns:
        str: e.g. "第十二回"
    """
    digit_runs = iter(_DIGITS_RE.findall(word))

    def substitute(match):
        digits = next(digit_runs, None)
        if digits is None:
            return match.group(0)
        return format_number(match.group(1), digits)

    return _MARKER_RE.sub(substitute, pattern)


class NumberConversionWrapper(jisyo.Dictionary):
    """Decorator adding numeric conversion to any Dictionary (including another wrapper)."""

    def __init__(self, inner):
        self.inner = inner

    def get_candidate(self, henkan_type, word):
        real_word = _DIGITS_RE.sub(PLACEHOLDER, word)
        candidates = self.inner.get_candidate(henkan_type, real_word)
        if real_word == word:
            return candidates
        return [convert_number(c, word) for c in candidates]

    def get_candidates(self, prefix, feed):
        real_prefix = _DIGITS_RE.sub(PLACEHOLDER, prefix)
        completions = self.inner.get_candidates(real_prefix, feed)
        if real_prefix == prefix:
            return completions
        return [(key, [convert_number(c, prefix) for c in candidates]) for key, candidates in completions]


def wrap_dictionary(dictionary):
    return NumberConversionWrapper(dictionary)
