#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Serveris HTTP Server
--------------------
Command line entry point: serves files from a directory over HTTP.
"""

import sys
import argparse

from serveris.server import create_server


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Serveris HTTP Server')

    # Basic server options
    parser.add_argument('-c', '--config', type=str, help='Path to JSON configuration file')
    parser.add_argument('-H', '--host', type=str, help='IPv4 address to bind to')
    parser.add_argument('-p', '--port', type=int, help='Port to listen on')
    parser.add_argument('--listener', type=str, help='Address to bind to, as ip[:port]')
    parser.add_argument('-d', '--document-root', type=str, help='Document root directory')
    parser.add_argument('--default-page', type=str, help='Page served for "/"')
    parser.add_argument('--redirect-to-index', action='store_true', default=None,
                        help='Answer "/" with a page redirecting to the default page')

    # Connection options
    parser.add_argument('--connection-limit', type=int, help='Maximum concurrent connections')
    parser.add_argument('--connection-queue', type=int, help='Listen backlog size')
    parser.add_argument('--transmission-timeout', type=int, help='Send/receive timeout in milliseconds')

    # Logging options
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging level')
    parser.add_argument('--log-file', type=str, help='Path to log file')
    parser.add_argument('--no-color', action='store_true', help='Disable colored logging')

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point for the server.
    """
    args = parse_args(argv)

    # Convert arguments to dictionary, excluding None values
    config_args = {k: v for k, v in vars(args).items() if v is not None}
    config_file = config_args.pop('config', None)

    if config_args.pop('no_color', False):
        config_args['colored_logging'] = False

    server = create_server(config_file, **config_args)
    server.install_signal_handlers()

    if not server.start():
        return 1

    failure = server.wait_for_shutdown()
    return 1 if failure is not None else 0


if __name__ == '__main__':
    sys.exit(main())
