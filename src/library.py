#!/usr/bin/env python3
"""
library.py - Facade merging every dictionary source
全辞書ソースを統合するファサード

================================================================================
LOOKUP ORDER / 検索順
================================================================================

    ┌──────────────────────────────┐
    │ UserDictionary (always first)│  ← registered words win
    ├──────────────────────────────┤
    │ global jisyo 1, 2, ...       │  ← config "dictionaries.global"
    ├──────────────────────────────┤
    │ skkserv (optional)           │  ← config "skk_server"
    └──────────────────────────────┘

Candidates are merged in that order; a candidate already seen keeps its
first position. Mutations (register/purge) only ever touch the user
dictionary.

A Library is an ordinary object: build one with load_library() at startup
(or Library(...) in tests) and pass it to whoever needs it.
"""

import logging

import jisyo
import numeral
import skkserv
import util

logger = logging.getLogger(__name__)

# Completion searches for shorter prefixes would scan most of the jisyo
MIN_COMPLETION_PREFIX = 2


class Library:
    """
    Ordered set of Dictionary sources with one mutable UserDictionary.

    Args:
        dictionaries: Sources queried after the user dictionary, in order
        user_dictionary: The UserDictionary to query first and to mutate
        immediately_save: Save the user dictionary after every mutation
    """

    def __init__(self, dictionaries=None, user_dictionary=None, immediately_save=False):
        self._user_dictionary = user_dictionary if user_dictionary is not None else jisyo.UserDictionary()
        self._dictionaries = [numeral.wrap_dictionary(self._user_dictionary)] + list(dictionaries or [])
        self.immediately_save = immediately_save

    @property
    def user_dictionary(self):
        return self._user_dictionary

    @property
    def dictionaries(self):
        return tuple(self._dictionaries)

    def get_candidate(self, henkan_type, word):
        merged = {}
        for dictionary in self._dictionaries:
            for candidate in dictionary.get_candidate(henkan_type, word):
                merged.setdefault(candidate, None)
        return list(merged)

    def get_candidates(self, prefix, feed=''):
        """
        Completion search over every source.

        Returns:
            list: [(key, [candidate, ...]), ...]; empty for prefixes shorter
                  than MIN_COMPLETION_PREFIX
        """
        if len(prefix) < MIN_COMPLETION_PREFIX:
            return []
        collector = {}
        for dictionary in self._dictionaries:
            for key, candidates in dictionary.get_candidates(prefix, feed):
                merged = collector.setdefault(key, {})
                for candidate in candidates:
                    merged.setdefault(candidate, None)
        return [(key, list(merged)) for key, merged in collector.items()]

    def get_ranks(self, prefix):
        return self._user_dictionary.get_ranks(prefix).to_list()

    def _save_after_mutation(self):
        if not self.immediately_save:
            return
        try:
            self._user_dictionary.save()
        except OSError as e:
            logger.error(f'Saving user jisyo failed: {e}')

    def register_candidate(self, henkan_type, word, candidate):
        self._user_dictionary.register_candidate(henkan_type, word, candidate)
        self._save_after_mutation()

    def purge_candidate(self, henkan_type, word, candidate):
        self._user_dictionary.purge_candidate(henkan_type, word, candidate)
        self._save_after_mutation()

    def load(self):
        self._user_dictionary.load()

    def save(self):
        self._user_dictionary.save()

    def close(self):
        """Close every source that holds a connection."""
        for dictionary in self._dictionaries:
            close = getattr(dictionary, 'close', None)
            if close is not None:
                close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def load_global_dictionaries(entries, kana_table=None):
    """
    Load every configured global jisyo, best effort.

    A jisyo that fails to load is logged and kept as an empty dictionary.

    Args:
        entries: config "dictionaries.global" entries ("path" or ["path", "encoding"])
        kana_table: Kana table for completion searches

    Returns:
        list: StaticDictionary per entry, in config order
    """
    dictionaries = []
    for entry in entries:
        dictionary = jisyo.StaticDictionary(kana_table=kana_table)
        try:
            path, encoding = util.normalize_dictionary_entry(entry)
            dictionary.load(path, encoding)
        except Exception as e:
            logger.error(f'globalDictionary loading failed at {entry}')
            logger.debug(e)
        dictionaries.append(dictionary)
    return dictionaries


def connect_skk_server(server_config):
    """
    Build the skkserv client from config "skk_server" and try to connect.

    Returns:
        RemoteDictionaryClient, or None when the server is disabled. A client
        that failed to connect is still returned and answers nothing.
    """
    if not server_config.get('enabled'):
        return None
    client = skkserv.RemoteDictionaryClient(
        host=server_config.get('host', 'localhost'),
        port=server_config.get('port', 1178),
        request_encoding=server_config.get('request_encoding', 'euc-jp'),
        response_encoding=server_config.get('response_encoding', 'euc-jp'),
        timeout=server_config.get('timeout'))
    try:
        client.connect()
    except OSError as e:
        logger.error(f'connecting to skk server is failed at {client.host}:{client.port}')
        logger.debug(e)
    return client


def load_library(config):
    """
    Build the session's Library from a (validated) config mapping.

    Every source is loaded best effort: failures are logged and the Library
    works with whatever loaded.

    Args:
        config: Config as returned by util.get_config_data()

    Returns:
        Library
    """
    kana_table = util.load_kana_table(config)
    dictionaries_config = config.get('dictionaries', {})

    global_dictionaries = load_global_dictionaries(dictionaries_config.get('global', []), kana_table)

    user_config = dictionaries_config.get('user', {})
    user_dictionary = jisyo.UserDictionary(kana_table=kana_table)
    try:
        user_dictionary.load(user_config.get('path', ''), user_config.get('rank_path', ''))
    except Exception as e:
        logger.error(f'userDictionary loading failed at {user_config.get("path", "")}')
        logger.debug(e)

    dictionaries = [numeral.wrap_dictionary(d) for d in global_dictionaries]
    server = connect_skk_server(config.get('skk_server', {}))
    if server is not None:
        dictionaries.append(server)

    library = Library(dictionaries, user_dictionary,
                      immediately_save=config.get('immediately_jisyo_rw', False))
    logger.info(f'Library ready: {len(global_dictionaries)} global jisyo, '
                f'skkserv {"connected" if server is not None and server.connected else "not used"}')
    return library
