#!/usr/bin/env python3
# tests/test_jisyo_codec.py - Unit tests for jisyo_codec.py

import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from jisyo_codec import (
    OKURI_ARI_MARKER,
    OKURI_NASI_MARKER,
    decode,
    encode,
    parse_line,
    strip_annotation,
)

CANONICAL_JISYO = """;; okuri-ari entries.
わたr /渡/
てすt /テスト/
あるk /歩/
;; okuri-nasi entries.
あい /愛/相/藍;植物/
かんじ /漢字/幹事/
てすと /テスト/test/
"""


class TestParseLine:
    """Test suite for parse_line() function"""

    def test_simple_entry(self):
        assert parse_line("あい /愛/") == ("あい", ["愛"])

    def test_multiple_candidates(self):
        assert parse_line("へんかん /変換/返還/編纂/") == ("へんかん", ["変換", "返還", "編纂"])

    def test_annotation_is_kept(self):
        """Storage never strips annotations"""
        assert parse_line("あい /愛;love/相/") == ("あい", ["愛;love", "相"])

    def test_no_space_is_skipped(self):
        assert parse_line("nospace/候補/") == (None, None)

    def test_comment_is_skipped(self):
        assert parse_line(";; comment here") == (None, None)

    def test_empty_line_is_skipped(self):
        assert parse_line("") == (None, None)

    def test_empty_candidates_are_skipped(self):
        assert parse_line("からっぽ //") == (None, None)

    def test_duplicate_candidates_collapse(self):
        assert parse_line("あい /愛/相/愛/") == ("あい", ["愛", "相"])


class TestDecode:
    """Test suite for decode() function"""

    def test_decode_tables(self):
        okuri_ari, okuri_nasi = decode(CANONICAL_JISYO)
        assert okuri_ari == {
            "わたr": ["渡"],
            "てすt": ["テスト"],
            "あるk": ["歩"],
        }
        assert okuri_nasi["あい"] == ["愛", "相", "藍;植物"]
        assert okuri_nasi["てすと"] == ["テスト", "test"]

    def test_header_before_marker_is_ignored(self):
        text = ";; -*- coding: utf-8 -*-\nうそ /嘘/\n" + CANONICAL_JISYO
        _, okuri_nasi = decode(text)
        assert "うそ" not in okuri_nasi

    def test_malformed_line_does_not_abort(self):
        text = f"{OKURI_ARI_MARKER}\n{OKURI_NASI_MARKER}\nbrokenline\nあ /亜/\n"
        okuri_ari, okuri_nasi = decode(text)
        assert okuri_ari == {}
        assert okuri_nasi == {"あ": ["亜"]}

    def test_crlf_line_endings(self):
        text = CANONICAL_JISYO.replace("\n", "\r\n")
        assert decode(text) == decode(CANONICAL_JISYO)

    def test_same_key_in_both_tables(self):
        text = f"{OKURI_ARI_MARKER}\nかk /書/\n{OKURI_NASI_MARKER}\nかk /kakkoku/\n"
        okuri_ari, okuri_nasi = decode(text)
        assert okuri_ari["かk"] == ["書"]
        assert okuri_nasi["かk"] == ["kakkoku"]

    def test_no_markers_gives_empty_tables(self):
        assert decode("あい /愛/\n") == ({}, {})


class TestEncode:
    """Test suite for encode() function"""

    def test_canonical_text_round_trips_exactly(self):
        assert encode(*decode(CANONICAL_JISYO)) == CANONICAL_JISYO

    def test_okuri_ari_descending_okuri_nasi_ascending(self):
        text = encode({"あk": ["a"], "かk": ["b"]}, {"か": ["c"], "あ": ["d"]})
        assert text.split("\n") == [
            OKURI_ARI_MARKER,
            "かk /b/",
            "あk /a/",
            OKURI_NASI_MARKER,
            "あ /d/",
            "か /c/",
            "",
        ]

    def test_decode_encode_decode_is_stable(self):
        """Non-canonical order still decodes to the same tables after re-encoding"""
        text = f"{OKURI_ARI_MARKER}\nあk /a/\nかk /b/\n{OKURI_NASI_MARKER}\nか /c/\nあ /d/\n"
        tables = decode(text)
        assert decode(encode(*tables)) == tables

    def test_empty_tables(self):
        assert encode({}, {}) == f"{OKURI_ARI_MARKER}\n{OKURI_NASI_MARKER}\n"


class TestStripAnnotation:
    """Test suite for strip_annotation() function"""

    def test_with_annotation(self):
        assert strip_annotation("藍;植物") == "藍"

    def test_without_annotation(self):
        assert strip_annotation("愛") == "愛"
