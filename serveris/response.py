#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
HTTP Response Module for Serveris
---------------------------------
Builds the raw bytes of the HTTP/1.1 responses the server sends.

Every response carries a single `Content-Type: text/html` header. A body,
when present, follows a blank line and is appended verbatim; no
Content-Length is emitted since the connection is closed after each
response.
"""

# HTTP status codes with reason phrases
HTTP_STATUS = {
    200: 'OK',
    400: 'Bad request',
    404: 'Not found',
    501: 'Not implemented'
}

CONTENT_TYPE = 'text/html'
CRLF = '\r\n'


def get_reason(status_code):
    """Return the reason phrase for a status code, or the code itself."""
    return HTTP_STATUS.get(status_code, str(status_code))


def build_response(status_code, body=None):
    """
    Build the bytes of an HTTP response.

    Args:
        status_code: HTTP status code
        body: Optional body, str (encoded as UTF-8) or bytes (sent as is)

    Returns:
        bytes: Status line, header and optional blank line + body
    """
    head = f"HTTP/1.1 {status_code} {get_reason(status_code)}{CRLF}Content-Type: {CONTENT_TYPE}"

    if body is None:
        return head.encode('ascii')

    if isinstance(body, str):
        body = body.encode('utf-8')

    return (head + CRLF + CRLF).encode('ascii') + bytes(body)


class Response:
    """
    An HTTP response waiting to be written to a connection.
    """

    __slots__ = ('status', 'body')

    def __init__(self, status, body=None):
        self.status = status
        self.body = body

    @property
    def reason(self):
        return get_reason(self.status)

    @property
    def content_type(self):
        return CONTENT_TYPE

    def to_bytes(self):
        return build_response(self.status, self.body)

    def __eq__(self, other):
        if not isinstance(other, Response):
            return NotImplemented
        return (self.status, self.body) == (other.status, other.body)

    def __repr__(self):
        size = 0 if self.body is None else len(self.body)
        return f"<Response {self.status} {self.reason} body={size}B>"
