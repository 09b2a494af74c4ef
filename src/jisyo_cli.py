#!/usr/bin/env python3
"""
jisyo_cli.py - Command-line interface for jisyo lookups and user jisyo edits
辞書検索とユーザー辞書編集のコマンドラインインターフェース

================================================================================
USAGE / 使用方法
================================================================================

    # Look up an okuri-nasi word
    # 送りなしの語を検索
    pskk-jisyo lookup かんじ

    # Look up an okuri-ari word
    # 送りありの語を検索
    pskk-jisyo lookup わたr --okuri-ari

    # Completion search (prefix + pending romaji)
    # 補完検索（接頭辞 + 未確定ローマ字）
    pskk-jisyo complete かん --feed k

    # Register / purge a word in the user jisyo (saved on exit)
    # ユーザー辞書に登録・削除（終了時に保存）
    pskk-jisyo register ほげ 保下
    pskk-jisyo purge ほげ 保下

All commands read config.json from the user config dir unless --config is
given.
"""

import argparse
import logging
import sys

import jisyo
import jisyo_codec
import library
import util

logger = logging.getLogger(__name__)


def setup_logging(verbose=False):
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s %(message)s',
        datefmt='%H:%M:%S'
    )


def _henkan_type(args):
    return jisyo.HenkanType.OKURI_ARI if args.okuri_ari else jisyo.HenkanType.OKURI_NASI


def cmd_lookup(lib, args):
    candidates = lib.get_candidate(_henkan_type(args), args.word)
    if not candidates:
        print(f"{args.word}: not found")
        return 1
    for candidate in candidates:
        if args.raw:
            print(candidate)
        else:
            print(jisyo_codec.strip_annotation(candidate))
    return 0


def cmd_complete(lib, args):
    for key, candidates in lib.get_candidates(args.prefix, args.feed):
        if key:
            print(jisyo_codec.format_entry(key, candidates))
    return 0


def cmd_ranks(lib, args):
    for candidate, rank in sorted(lib.get_ranks(args.prefix), key=lambda e: e[1], reverse=True):
        print(f"{rank}\t{candidate}")
    return 0


def cmd_register(lib, args):
    lib.register_candidate(_henkan_type(args), args.word, args.candidate)
    return _save(lib)


def cmd_purge(lib, args):
    lib.purge_candidate(_henkan_type(args), args.word, args.candidate)
    return _save(lib)


def _save(lib):
    if not lib.user_dictionary.path:
        print("ERROR: no user jisyo configured (dictionaries.user.path)")
        return 1
    try:
        lib.save()
    except OSError as e:
        print(f"ERROR: could not save user jisyo: {e}")
        return 1
    return 0


COMMANDS = {
    'lookup': cmd_lookup,
    'complete': cmd_complete,
    'ranks': cmd_ranks,
    'register': cmd_register,
    'purge': cmd_purge,
}


def build_parser():
    parser = argparse.ArgumentParser(
        prog=util.get_package_name(),
        description="SKK jisyo lookup and user jisyo maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose output')
    parser.add_argument('-c', '--config',
                        help='Path to config.json (default: user config dir)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    lookup_parser = subparsers.add_parser('lookup', help='Look up candidates for a word')
    lookup_parser.add_argument('word', help='Phonetic key, e.g. かんじ or わたr')
    lookup_parser.add_argument('-a', '--okuri-ari', action='store_true',
                               help='Look up in the okuri-ari table')
    lookup_parser.add_argument('-r', '--raw', action='store_true',
                               help='Keep ;annotations in the output')

    complete_parser = subparsers.add_parser('complete', help='Completion search')
    complete_parser.add_argument('prefix', help='Key prefix, at least 2 characters')
    complete_parser.add_argument('-f', '--feed', default='',
                                 help='Pending romaji not yet turned into kana')

    ranks_parser = subparsers.add_parser('ranks', help='Show usage ranks for completions of a prefix')
    ranks_parser.add_argument('prefix', help='Key prefix')

    for name, help_text in (('register', 'Register a candidate in the user jisyo'),
                            ('purge', 'Remove a candidate from the user jisyo')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('word', help='Phonetic key')
        sub.add_argument('candidate', help='Candidate (may carry ;annotation)')
        sub.add_argument('-a', '--okuri-ari', action='store_true',
                         help='Use the okuri-ari table')
    return parser


def main(argv=None):
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    # get_config_data logs its own warnings
    config, _ = util.get_config_data(args.config)
    if config.get('debug', False):
        logging.getLogger().setLevel(logging.DEBUG)

    with library.load_library(config) as lib:
        return COMMANDS[args.command](lib, args)


if __name__ == "__main__":
    sys.exit(main())
