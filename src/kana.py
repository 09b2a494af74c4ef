#!/usr/bin/env python3
# kana.py - Romaji to kana table used by completion lookups

import logging

logger = logging.getLogger(__name__)

_VOWELS = 'aiueo'

# consonant -> kana for a, i, u, e, o
_GOJUON = {
    '': 'あいうえお',
    'k': 'かきくけこ',
    's': 'さしすせそ',
    't': 'たちつてと',
    'n': 'なにぬねの',
    'h': 'はひふへほ',
    'm': 'まみむめも',
    'r': 'らりるれろ',
    'g': 'がぎぐげご',
    'z': 'ざじずぜぞ',
    'd': 'だぢづでど',
    'b': 'ばびぶべぼ',
    'p': 'ぱぴぷぺぽ',
    'x': 'ぁぃぅぇぉ',
}

# consonant -> i-row kana combined with small ゃぃゅぇょ
_YOUON = {
    'ky': 'き', 'gy': 'ぎ', 'sy': 'し', 'zy': 'じ', 'jy': 'じ',
    'ty': 'ち', 'cy': 'ち', 'dy': 'ぢ', 'ny': 'に', 'hy': 'ひ',
    'by': 'び', 'py': 'ぴ', 'my': 'み', 'ry': 'り',
    'sh': 'し', 'ch': 'ち', 'j': 'じ',
}
_SMALL_Y = 'ゃぃゅぇょ'

_EXTRA = {
    'ya': 'や', 'yu': 'ゆ', 'yo': 'よ',
    'wa': 'わ', 'wo': 'を', 'we': 'うぇ', 'wi': 'うぃ',
    'shi': 'し', 'chi': 'ち', 'tsu': 'つ', 'ji': 'じ',
    'fa': 'ふぁ', 'fi': 'ふぃ', 'fu': 'ふ', 'fe': 'ふぇ', 'fo': 'ふぉ',
    'va': 'ゔぁ', 'vi': 'ゔぃ', 'vu': 'ゔ', 've': 'ゔぇ', 'vo': 'ゔぉ',
    'xtu': 'っ', 'xtsu': 'っ', 'xya': 'ゃ', 'xyu': 'ゅ', 'xyo': 'ょ', 'xwa': 'ゎ',
    'nn': 'ん', "n'": 'ん',
    '-': 'ー', ',': '、', '.': '。', '[': '「', ']': '」',
}

# Consonants that double into っ ("kk" -> っ + pending "k")
_SOKUON_CONSONANTS = 'kstcmyrwgzdbpjfvh'
# Consonants after which a lone "n" is committed as ん
_HATSUON_CONSONANTS = 'kstchmrwgzdbpjfv'


def _build_default_table():
    table = {}
    for consonant, row in _GOJUON.items():
        for vowel, kana in zip(_VOWELS, row):
            table[consonant + vowel] = (kana, '')
    for consonant, kana in _YOUON.items():
        for vowel, small in zip(_VOWELS, _SMALL_Y):
            table[consonant + vowel] = (kana + small, '')
    for key, kana in _EXTRA.items():
        table[key] = (kana, '')
    for c in _SOKUON_CONSONANTS:
        table[c + c] = ('っ', c)
    for c in _HATSUON_CONSONANTS:
        table['n' + c] = ('ん', c)
    return table


# romaji -> (kana, pending romaji); pending is empty for most rows
DEFAULT_KANA_TABLE = _build_default_table()


def kana_table_from_layout(layout_data):
    """
    Convert PSKK layout rows into a kana table.

    Layout rows look like ``[input_str, output_str, pending_str]`` or
    ``[input_str, output_str, pending_str, simul_limit_ms]``; the layout may
    also be given as the whole layout JSON object (``{"layout": [...]}``).

    Args:
        layout_data: list of rows, or a dict holding them under "layout"

    Returns:
        dict: {input_str: (output_str, pending_str)}, pending_str may be empty
    """
    if isinstance(layout_data, dict):
        layout_data = layout_data.get('layout', [])

    table = {}
    for row in layout_data:
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            logger.warning(f'kana table: skipping malformed layout row {row!r}')
            continue
        input_str = str(row[0])
        output_str = str(row[1])
        pending_str = str(row[2]) if len(row) > 2 else ''
        if not input_str or not output_str:
            continue
        table[input_str] = (output_str, pending_str)
    return table


def first_kana(kanas):
    return kanas[0]
