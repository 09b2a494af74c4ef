#!/usr/bin/env python3
"""
jisyo.py - Dictionary (辞書) sources for kana-to-kanji candidate lookup
かな漢字変換の候補を引く辞書ソース

================================================================================
WHAT LIVES HERE / このファイルの内容
================================================================================

    Dictionary          ← common interface: exact lookup + completion search
        │                 共通インターフェース: 完全一致検索 + 補完検索
        ├── StaticDictionary   read-only, loaded from a bundled SKK jisyo
        │                      読み取り専用、同梱のSKK辞書から読み込み
        └── UserDictionary     mutable, ranked by use, persisted to disk
                               変更可能、使用順にランク付け、ディスクに保存

The remote skkserv client (skkserv.py) and the numeral decorator
(numeral.py) implement the same interface.

================================================================================
TWO TABLES PER SOURCE / ソースごとに2つのテーブル
================================================================================

Every source keeps okuri-ari (送りあり, inflected: "わたr") and okuri-nasi
(送りなし: "わたし") entries apart. The same key may exist in both tables.

================================================================================
THREAD SAFETY / スレッド安全性
================================================================================

UserDictionary guards its tables, completion cache and rank map with one
RLock, so a save() never sees a half-applied register_candidate() and two
saves never interleave their writes.
"""

import abc
import enum
import logging
import os
import tempfile
import threading
import time

import orjson

import jisyo_codec
import kana
import util

logger = logging.getLogger(__name__)


class HenkanType(enum.Enum):
    OKURI_ARI = 'okuriari'
    OKURI_NASI = 'okurinasi'

    @classmethod
    def of(cls, value):
        """Accept either a member or its string value ("okuriari"/"okurinasi")."""
        return value if isinstance(value, cls) else cls(value)


class JisyoError(Exception):
    """Base class for errors raised by dictionary sources."""


class RankFormatError(JisyoError, ValueError):
    """The rank file is not a JSON array of strings."""


class Dictionary(abc.ABC):
    """
    A source of conversion candidates.

    get_candidate() answers an exact (type, key) lookup; get_candidates()
    answers a completion search over okuri-nasi keys.
    """

    @abc.abstractmethod
    def get_candidate(self, henkan_type, word):
        """
        Args:
            henkan_type: HenkanType or "okuriari"/"okurinasi"
            word: Phonetic key, e.g. "かんじ" or "わたr"

        Returns:
            list: Candidates, most preferred first (empty if none)
        """

    @abc.abstractmethod
    def get_candidates(self, prefix, feed):
        """
        Args:
            prefix: Key prefix typed so far, e.g. "かん"
            feed: Romaji not yet turned into kana, e.g. "k" (may be empty)

        Returns:
            list: [(key, [candidate, ...]), ...]
        """


def search_completions(okuri_nasi, prefix, feed, kana_table):
    """
    Completion search shared by the file-backed dictionaries.

    With an empty feed every okuri-nasi key starting with prefix matches.
    With a feed, each kana-table row whose romaji starts with the feed
    contributes the search prefix ``prefix + kana of the row``, so "k" after
    "かん" searches かんか, かんき, ... かんっ. Rows that are not
    ``(kana, pending)`` sequences are ignored.

    Candidate lists in the result are copies of the table lists.

    Returns:
        list: [(key, candidates), ...] sorted by key
    """
    if feed:
        prefixes = []
        for romaji, kanas in kana_table.items():
            if romaji.startswith(feed) and isinstance(kanas, (tuple, list)) and kanas:
                feed_prefix = prefix + kana.first_kana(kanas)
                if feed_prefix not in prefixes:
                    prefixes.append(feed_prefix)
        prefixes = tuple(prefixes)
        if not prefixes:
            return []
    else:
        prefixes = prefix

    found = [(key, list(candidates)) for key, candidates in okuri_nasi.items() if key.startswith(prefixes)]
    found.sort(key=lambda entry: entry[0])
    return found


class _TableDictionary(Dictionary):
    """Dictionary holding both tables in memory."""

    def __init__(self, okuri_ari=None, okuri_nasi=None, kana_table=None):
        self._okuri_ari = dict(okuri_ari) if okuri_ari else {}
        self._okuri_nasi = dict(okuri_nasi) if okuri_nasi else {}
        self.kana_table = kana_table if kana_table is not None else kana.DEFAULT_KANA_TABLE

    def _table(self, henkan_type):
        if HenkanType.of(henkan_type) is HenkanType.OKURI_ARI:
            return self._okuri_ari
        return self._okuri_nasi

    def get_candidate(self, henkan_type, word):
        return list(self._table(henkan_type).get(word, ()))

    def __len__(self):
        return len(self._okuri_ari) + len(self._okuri_nasi)


class StaticDictionary(_TableDictionary):
    """
    Read-only dictionary backed by an SKK jisyo file (SKK-JISYO.L etc.).

    The file is read once by load(); later changes on disk are only seen
    after another explicit load().
    """

    def __init__(self, okuri_ari=None, okuri_nasi=None, kana_table=None):
        super().__init__(okuri_ari, okuri_nasi, kana_table)
        self.path = None

    def get_candidates(self, prefix, feed):
        return search_completions(self._okuri_nasi, prefix, feed, self.kana_table)

    def load(self, path, encoding=None):
        """
        Replace the tables with the contents of a jisyo file.

        Args:
            path: Path to the jisyo file
            encoding: Charset name ("euc-jp", "UTF8", ...) or an
                      util.Encoding; None/"" auto-detects from the bytes

        Raises:
            OSError: The file cannot be read
            UnicodeDecodeError: The bytes do not decode with the charset
            LookupError: The charset name is not supported

        A failed load leaves the dictionary empty.
        """
        self._okuri_ari = {}
        self._okuri_nasi = {}
        self.path = path

        with open(path, 'rb') as f:
            data = f.read()
        if encoding:
            charset = util.Encoding.from_name(encoding)
        else:
            charset = util.detect_encoding(data)
        okuri_ari, okuri_nasi = jisyo_codec.decode(data.decode(charset.value))

        self._okuri_ari = okuri_ari
        self._okuri_nasi = okuri_nasi
        logger.info(f'Loaded jisyo: {path} ({charset.value}, '
                    f'{len(okuri_ari)} okuri-ari / {len(okuri_nasi)} okuri-nasi entries)')


class RankView:
    """
    Lazy, restartable sequence of (candidate, rank) pairs.

    Pairs are produced on demand from a snapshot of the rank map, keeping
    only candidates in the given set. Iterating twice yields the same pairs.
    """

    def __init__(self, ranks, candidates):
        self._ranks = ranks
        self._candidates = candidates

    def __iter__(self):
        return ((candidate, rank) for candidate, rank in self._ranks if candidate in self._candidates)

    def to_list(self):
        return list(self)


def _write_file(path, data):
    """Write bytes to path via a temporary file, so a failed write never truncates it."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.' + os.path.basename(path) + '.')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class UserDictionary(_TableDictionary):
    """
    The user's own jisyo: registered words, usage ranking and persistence.

    Newly registered candidates move to the front of their entry. Each
    registration also stamps the candidate in the rank map so completion
    popups can order candidates by recency (see get_ranks()).

    In-memory state and the files on disk are reconciled only by load()
    and save(); nothing syncs in the background.
    """

    def __init__(self, okuri_ari=None, okuri_nasi=None, rank=None, kana_table=None):
        super().__init__(okuri_ari, okuri_nasi, kana_table)
        self._rank = dict(rank) if rank else {}
        self._lock = threading.RLock()

        self._path = ''
        self._rank_path = ''
        self._load_time = -1  # st_mtime_ns of the jisyo at the last load/save
        self._clock = max(self._rank.values(), default=0)

        # Completion cache for the last (prefix, feed) query
        self._cached_query = None
        self._cached_candidates = []

    @property
    def path(self):
        return self._path

    @property
    def rank_path(self):
        return self._rank_path

    def get_candidate(self, henkan_type, word):
        with self._lock:
            return super().get_candidate(henkan_type, word)

    def _cache_candidates(self, prefix, feed):
        if self._cached_query == (prefix, feed):
            return
        self._cached_candidates = search_completions(self._okuri_nasi, prefix, feed, self.kana_table)
        self._cached_query = (prefix, feed)

    def _invalidate_cache(self):
        self._cached_query = None
        self._cached_candidates = []

    def get_candidates(self, prefix, feed):
        with self._lock:
            self._cache_candidates(prefix, feed)
            return [(key, list(candidates)) for key, candidates in self._cached_candidates]

    def get_ranks(self, prefix):
        """
        Return rank entries for every candidate completing prefix.

        Args:
            prefix: Key prefix, searched with an empty feed

        Returns:
            RankView: lazy (candidate, rank) pairs; higher rank = used more recently
        """
        with self._lock:
            self._cache_candidates(prefix, '')
            candidates = set()
            for _, cs in self._cached_candidates:
                candidates.update(cs)
            return RankView(list(self._rank.items()), candidates)

    def _tick(self):
        # monotonic even if the wall clock steps back
        self._clock = max(time.time_ns(), self._clock + 1)
        return self._clock

    def register_candidate(self, henkan_type, word, candidate):
        """
        Register candidate for word, moving it to the front of the entry.

        An empty candidate is ignored.
        """
        if not candidate:
            return
        with self._lock:
            table = self._table(henkan_type)
            old_candidates = table.get(word, [])
            table[word] = [candidate] + [c for c in old_candidates if c != candidate]
            self._rank[candidate] = self._tick()
            self._invalidate_cache()
        logger.debug(f'register_candidate: {word} → {candidate}')

    def purge_candidate(self, henkan_type, word, candidate):
        """Remove candidate from word; the key goes away with its last candidate."""
        with self._lock:
            table = self._table(henkan_type)
            new_candidates = [c for c in table.get(word, []) if c != candidate]
            if new_candidates:
                table[word] = new_candidates
            else:
                table.pop(word, None)
            self._invalidate_cache()
        logger.debug(f'purge_candidate: {word} ✗ {candidate}')

    def _read_rank_file(self, rank_path):
        try:
            with open(rank_path, 'rb') as f:
                rank_data = orjson.loads(f.read())
        except FileNotFoundError:
            logger.debug(f'Rank file not found, starting with empty ranks: {rank_path}')
            return {}
        except orjson.JSONDecodeError as e:
            raise RankFormatError(f'{rank_path}: {e}') from e
        if not isinstance(rank_data, list) or not all(isinstance(c, str) for c in rank_data):
            raise RankFormatError(f'{rank_path}: expected a JSON array of strings')
        return {candidate: i for i, candidate in enumerate(rank_data)}

    def load(self, path=None, rank_path=None):
        """
        (Re)load the jisyo and rank file from disk.

        Arguments left as None reuse the paths given to an earlier call.
        Nothing is re-read when the jisyo's modification time equals the one
        recorded by the last load() or save(). The stat and the read are not
        atomic: a file replaced in between is read as found.

        Args:
            path: Path to the user jisyo (always UTF-8)
            rank_path: Path to the rank JSON file ("" for no ranking)

        Raises:
            RankFormatError: The rank file is not a JSON array of strings
            OSError: The jisyo exists but cannot be read
        """
        with self._lock:
            if path is not None:
                self._path = path
            if rank_path is not None:
                self._rank_path = rank_path
            if not self._path:
                return

            try:
                mtime = os.stat(self._path).st_mtime_ns
            except FileNotFoundError:
                logger.debug(f'User jisyo not found, nothing to load: {self._path}')
                return
            if mtime == self._load_time:
                logger.debug(f'User jisyo unchanged since last load: {self._path}')
                return

            with open(self._path, 'r', encoding='utf-8') as f:
                okuri_ari, okuri_nasi = jisyo_codec.decode(f.read())
            rank = self._read_rank_file(self._rank_path) if self._rank_path else self._rank

            self._okuri_ari = okuri_ari
            self._okuri_nasi = okuri_nasi
            self._rank = rank
            self._load_time = mtime
            self._invalidate_cache()
        logger.info(f'Loaded user jisyo: {self._path} ({len(okuri_ari)} okuri-ari / '
                    f'{len(okuri_nasi)} okuri-nasi entries)')

    def save(self):
        """
        Write the jisyo (and rank file, if configured) to disk.

        Does nothing when no path was ever configured. Ranks are written as a
        JSON array of candidates, oldest first.

        Raises:
            OSError: Writing either file failed
        """
        with self._lock:
            if not self._path:
                return
            text = jisyo_codec.encode(self._okuri_ari, self._okuri_nasi)
            try:
                _write_file(self._path, text.encode('utf-8'))
            except OSError:
                logger.warning(f"can't write user jisyo to {self._path}")
                raise

            if self._rank_path:
                ranked = sorted(self._rank.items(), key=lambda e: e[1])
                try:
                    _write_file(self._rank_path, orjson.dumps([candidate for candidate, _ in ranked]))
                except OSError:
                    logger.warning(f"can't write candidate rank data to {self._rank_path}")
                    raise

            self._load_time = os.stat(self._path).st_mtime_ns
        logger.info(f'Saved user jisyo: {self._path}')
