#!/usr/bin/env python3
"""
skkserv.py - Client for skkserv-compatible dictionary servers
skkserv互換辞書サーバのクライアント

================================================================================
PROTOCOL / プロトコル
================================================================================

    request  "1" + key + " "     lookup (key in the request charset)
    request  "0"                 disconnect
    response "1/cand1/cand2/\\n"  found
    response "4..."              not found

The response is read up to its newline terminator before the next request
is sent; the connection carries one request at a time.
レスポンスを改行まで読み切ってから次のリクエストを送る。

Completion search is not part of this protocol version: get_candidates()
always answers the placeholder [("", [""])].
"""

import logging
import socket
import threading

import jisyo
import util

logger = logging.getLogger(__name__)

_RECV_SIZE = 4096


def parse_response(response):
    """
    Turn a decoded skkserv response into a candidate list.

    Args:
        response: e.g. "1/AI/人工知能/\\n" or "4ai \\n"

    Returns:
        list: ["AI", "人工知能"], or [] for the not-found answer
    """
    if response.startswith('4'):
        return []
    # first field is the status, last one the trailing newline
    return response.split('/')[1:-1]


class RemoteDictionaryClient(jisyo.Dictionary):
    """
    Dictionary answered by an skkserv over a single TCP connection.

    Until connect() succeeds (or after the connection breaks) every lookup
    returns an empty list. There is no reconnect and no read timeout.
    """

    def __init__(self, host='localhost', port=1178, request_encoding='euc-jp',
                 response_encoding='euc-jp', timeout=None):
        self.host = host
        self.port = port
        self.request_encoding = util.Encoding.from_name(request_encoding)
        self.response_encoding = util.Encoding.from_name(response_encoding)
        self.timeout = timeout
        self._sock = None
        self._lock = threading.Lock()

    @property
    def connected(self):
        return self._sock is not None

    def connect(self):
        """
        Open the connection.

        Raises:
            OSError: The server cannot be reached
        """
        sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        # the timeout only bounds connecting; reads block until the server answers
        sock.settimeout(None)
        with self._lock:
            self._sock = sock
        logger.info(f'Connected to skkserv {self.host}:{self.port}')

    def _drop(self):
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def _read_response(self):
        chunks = []
        while True:
            chunk = self._sock.recv(_RECV_SIZE)
            if not chunk:
                return None
            chunks.append(chunk)
            if chunk.endswith(b'\n'):
                break
        return b''.join(chunks).decode(self.response_encoding.value, errors='replace')

    def get_candidate(self, henkan_type, word):
        try:
            request = b'1' + word.encode(self.request_encoding.value) + b' '
        except UnicodeEncodeError:
            logger.debug(f'skkserv: {word!r} cannot be sent as {self.request_encoding.value}')
            return []

        with self._lock:
            if self._sock is None:
                return []
            try:
                self._sock.sendall(request)
                response = self._read_response()
            except OSError as e:
                logger.error(f'skkserv connection failed: {e}')
                self._drop()
                return []
            if response is None:
                logger.error('skkserv closed the connection')
                self._drop()
                return []

        return parse_response(response)

    def get_candidates(self, prefix, feed):
        # TODO: implement completion once a server protocol version supports it
        return [('', [''])]

    def close(self):
        """Send the disconnect request and close the socket."""
        with self._lock:
            if self._sock is None:
                return
            try:
                self._sock.sendall(b'0')
            except OSError as e:
                logger.debug(f'skkserv disconnect request failed: {e}')
            finally:
                self._drop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
