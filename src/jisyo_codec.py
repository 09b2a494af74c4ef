#!/usr/bin/env python3
"""
jisyo_codec.py - SKK jisyo (辞書) text format encoder/decoder
SKK辞書テキスト形式のエンコーダ/デコーダ

================================================================================
FILE FORMAT / ファイル形式
================================================================================

An SKK jisyo is plain text split into two sections by marker lines:
SKK辞書はマーカー行で2つのセクションに分かれたプレーンテキスト:

    ;; okuri-ari entries.
    わたr /渡/
    あるk /歩/
    ;; okuri-nasi entries.
    あい /愛/相/藍;植物/
    かんじ /漢字/幹事/

Each entry line is ``KEY<space>/CAND1/CAND2/.../``. A candidate may carry an
annotation after ``;`` (``藍;植物``). The annotation is kept verbatim here;
only display layers call strip_annotation().

候補には「;」の後に注釈を付けられる。ここでは注釈をそのまま保持し、
表示層のみが strip_annotation() を呼ぶ。

Lines before the first marker (the usual ``;; -*- coding -*-`` header) are
ignored. Lines without a space are skipped silently.

================================================================================
SORT ORDER ON ENCODE / エンコード時の並び順
================================================================================

    okuri-ari  : key DESCENDING  (降順)
    okuri-nasi : key ascending   (昇順)

This is the layout every SKK implementation writes, so a jisyo that already
follows it survives decode() → encode() byte for byte.
"""

import logging

logger = logging.getLogger(__name__)

OKURI_ARI_MARKER = ';; okuri-ari entries.'
OKURI_NASI_MARKER = ';; okuri-nasi entries.'


def parse_line(line):
    """
    Parse a single entry line of an SKK jisyo.

    Unlike the JSON dictionary converter, annotations are NOT stripped:
    the jisyo is storage, so candidates round-trip untouched.

    Args:
        line: One line without its trailing newline

    Returns:
        tuple: (key, candidates_list) or (None, None) for comments and
               malformed lines
    """
    if not line or line.startswith(';'):
        return None, None

    pos = line.find(' ')
    if pos == -1:
        return None, None

    key = line[:pos]
    body = line[pos + 1:]
    if body.startswith('/'):
        body = body[1:]
    if body.endswith('/'):
        body = body[:-1]

    # dict.fromkeys() keeps the first occurrence of a duplicated candidate
    candidates = list(dict.fromkeys(c for c in body.split('/') if c))
    if not key or not candidates:
        return None, None
    return key, candidates


def decode(text):
    """
    Decode jisyo text into (okuri_ari, okuri_nasi) tables.

    Args:
        text: The whole jisyo as str (already decoded from bytes)

    Returns:
        tuple: (okuri_ari, okuri_nasi), each a dict {key: [candidate, ...]}
    """
    okuri_ari = {}
    okuri_nasi = {}
    table = None
    skipped = 0

    for line in text.split('\n'):
        line = line.rstrip('\r')
        if line == OKURI_ARI_MARKER:
            table = okuri_ari
            continue
        if line == OKURI_NASI_MARKER:
            table = okuri_nasi
            continue
        if table is None:
            continue
        key, candidates = parse_line(line)
        if key is None:
            if line and not line.startswith(';'):
                skipped += 1
            continue
        table[key] = candidates

    if skipped:
        logger.debug(f'jisyo decode: skipped {skipped} malformed line(s)')
    return okuri_ari, okuri_nasi


def format_entry(key, candidates):
    return f'{key} /{"/".join(candidates)}/'


def encode(okuri_ari, okuri_nasi):
    """
    Encode the two tables back into jisyo text.

    Args:
        okuri_ari: dict {key: [candidate, ...]} for inflected words
        okuri_nasi: dict {key: [candidate, ...]} for the rest

    Returns:
        str: jisyo text terminated by a newline
    """
    lines = [OKURI_ARI_MARKER]
    # okuri-ari is written in reverse key order
    for key in sorted(okuri_ari, reverse=True):
        lines.append(format_entry(key, okuri_ari[key]))
    lines.append(OKURI_NASI_MARKER)
    for key in sorted(okuri_nasi):
        lines.append(format_entry(key, okuri_nasi[key]))
    lines.append('')
    return '\n'.join(lines)


def strip_annotation(candidate):
    """Return the surface part of ``surface;annotation``."""
    return candidate.split(';', 1)[0]
