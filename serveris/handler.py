#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
HTTP Request Handler Module for Serveris
----------------------------------------
Reads a single request from a connection, interprets its request line and
answers with a file from the document root, a redirect page or an error
status.

Only the first line of the request and the Host header are looked at.
The whole request must arrive in one receive call.
"""

import os
import html
import socket
import selectors
import logging
import threading
import urllib.parse

from .response import Response
from .utils import is_path_safe

SP = ' '
CRLF = '\r\n'
GET_PREFIX = 'GET' + SP
HOST_FIELD = 'Host: '

# Separators stripped from the start of a target before joining it to the root
PATH_SEPARATORS = '/\\' + os.sep + (os.altsep or '')

REDIRECT_PAGE_TEMPLATE = """<html>
<head>
<meta http-equiv="Content-Type" content="text/html; charset=UTF-8">
<title>{host}</title>
<meta http-equiv="REFRESH" content="0;url={target}">
</head>
<body>
Hello. <a href="{target}">Redirecting...</a>
</body>
</html>"""


def extract_host(request_text):
    """
    Extract the value of the first Host header.

    Args:
        request_text: Decoded request text

    Returns:
        str: Header value or None when missing or not terminated by CRLF
    """
    host_idx = request_text.find(HOST_FIELD)
    if host_idx < 0:
        return None

    end_idx = request_text.find(CRLF, host_idx)
    if end_idx < 0:
        return None

    return request_text[host_idx + len(HOST_FIELD):end_idx]


def resolve_default_target(host, default_page):
    """
    Resolve the default page against `http://<host>/`.

    Returns:
        str: Absolute URI, or None when the host does not form a valid URI
        or the default page is not a relative reference
    """
    if not host:
        return None

    page = urllib.parse.urlsplit(default_page)
    if page.scheme or page.netloc:
        return None

    try:
        root = urllib.parse.urlsplit(f"http://{host}/")
        # Accessing the port validates it
        root.port
    except ValueError:
        return None

    if not root.hostname or any(c.isspace() for c in host):
        return None

    return urllib.parse.urljoin(root.geturl(), default_page)


def build_redirect_page(request_text, default_page):
    """
    Render the page that sends the browser to the default page.

    Args:
        request_text: Decoded request text, searched for the Host header
        default_page: Name of the default page

    Returns:
        str: HTML document
    """
    host = extract_host(request_text)
    target = resolve_default_target(host, default_page)

    return REDIRECT_PAGE_TEMPLATE.format(
        host=html.escape(host or '', quote=True),
        target=html.escape(target or '', quote=True)
    )


class RequestHandler:
    """
    Interprets HTTP requests and writes the responses back to the client.
    """

    def __init__(self, server_config):
        """
        Initialize the request handler.

        Args:
            server_config: Server configuration object
        """
        self.config = server_config
        self.logger = logging.getLogger('RequestHandler')

        self._stats_lock = threading.Lock()
        self._stats = {
            'total_requests': 0,
            'status_2xx': 0,
            'status_4xx': 0,
            'status_5xx': 0
        }

    @property
    def stats(self):
        with self._stats_lock:
            return dict(self._stats)

    def handle_connection(self, client_socket, client_address=None):
        """
        Serve one request on an accepted connection and close it.

        A connection with nothing to read yet is closed without a response.
        Socket errors, timeouts and connection errors are logged and
        swallowed; any other error is logged and re-raised.

        Args:
            client_socket: Accepted client socket
            client_address: Client address tuple (ip, port)
        """
        peer = self._format_peer(client_address)
        try:
            try:
                if not self._has_data(client_socket):
                    self.logger.debug(f"{peer} - nothing to read, closing")
                    return

                client_socket.settimeout(self.config.io_timeout)

                # The request must fit inside a single receive
                request_bytes = client_socket.recv(self.config.receive_buffer_size)
            except OSError as e:
                self._log_socket_error(peer, e)
                return

            if not request_bytes:
                return

            # Outside the socket guard: a failed file read is not a socket error
            response = self.interpret(request_bytes)

            try:
                client_socket.sendall(response.to_bytes())
            except OSError as e:
                self._log_socket_error(peer, e)
                return

            self._record(response.status)
            self.logger.info(f"{peer} - {self._request_line(request_bytes)} {response.status}")

        except socket.timeout:
            self.logger.warning(f"Request from {peer} timed out")
        except ConnectionError as e:
            self.logger.warning(f"Connection error from {peer}: {e}")
        except Exception:
            self.logger.exception(f"Error handling request from {peer}")
            raise
        finally:
            client_socket.close()

    def interpret(self, request_bytes):
        """
        Turn the raw bytes of a request into a response.

        Args:
            request_bytes: Bytes received from the client

        Returns:
            Response: Response to send back
        """
        request_text = request_bytes.decode('ascii', 'replace')

        if request_text.startswith(GET_PREFIX):
            line_end = request_text.find(CRLF)
            if line_end < 0:
                line_end = len(request_text)

            start_idx = request_text.find(SP) + 1
            last_sp = request_text.rfind(SP, 0, line_end)

            if start_idx < last_sp:
                encoded_target = request_text[start_idx:last_sp]
                if SP in encoded_target:
                    return Response(400)

                decoded_target = urllib.parse.unquote(encoded_target)
                return self._handle_get(request_text, decoded_target)

        return Response(501)

    def _handle_get(self, request_text, request_target):
        """
        Handle a GET request.

        Args:
            request_text: Full decoded request text
            request_target: Percent-decoded request target
        """
        if not request_target or request_target == '/':
            if self.config.redirect_to_index:
                return Response(200, build_redirect_page(request_text, self.config.default_page))
            request_target = self.config.default_page

        document_root = self.config.document_root
        file_path = os.path.join(document_root, request_target.lstrip(PATH_SEPARATORS))

        if is_path_safe(document_root, file_path) and os.path.isfile(file_path):
            with open(file_path, 'rb') as f:
                return Response(200, f.read())

        self.logger.debug(f"Not found: {request_target}")
        return Response(404)

    @staticmethod
    def _has_data(client_socket):
        """Check, without waiting, whether the connection has bytes to read."""
        with selectors.DefaultSelector() as selector:
            selector.register(client_socket, selectors.EVENT_READ)
            return bool(selector.select(timeout=0))

    def _log_socket_error(self, peer, error):
        if isinstance(error, socket.timeout):
            self.logger.warning(f"Request from {peer} timed out")
        else:
            self.logger.warning(f"Socket error from {peer}: {error}")

    def _record(self, status_code):
        with self._stats_lock:
            self._stats['total_requests'] += 1
            if 200 <= status_code < 300:
                self._stats['status_2xx'] += 1
            elif 400 <= status_code < 500:
                self._stats['status_4xx'] += 1
            elif 500 <= status_code < 600:
                self._stats['status_5xx'] += 1

    @staticmethod
    def _request_line(request_bytes):
        return request_bytes.split(b'\r\n', 1)[0].decode('ascii', 'replace')

    @staticmethod
    def _format_peer(client_address):
        if not client_address:
            return '<unknown>'
        if isinstance(client_address, tuple) and len(client_address) >= 2:
            return f"{client_address[0]}:{client_address[1]}"
        return str(client_address)
