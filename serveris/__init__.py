#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Serveris
--------
A minimal HTTP server built on Python's socket library.

It answers GET requests with files from a document root, or with a page
redirecting to the default page, and serves a bounded number of
connections at once.
"""

__version__ = '1.0.0'

from .server import WebServer, create_server
from .config import ServerConfig
from .handler import RequestHandler
from .response import Response, build_response
from .utils import setup_logging

# Make these classes available at the package level
__all__ = [
    'WebServer', 'create_server', 'ServerConfig', 'RequestHandler',
    'Response', 'build_response', 'setup_logging'
]
