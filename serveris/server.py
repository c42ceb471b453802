#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Serveris Main Module
--------------------
Owns the listening socket, accepts connections and hands each of them to a
worker thread, never serving more than the configured number of
connections at once.
"""

import socket
import threading
import time
import logging
import signal
from concurrent.futures import ThreadPoolExecutor

from .config import ServerConfig
from .handler import RequestHandler
from .utils import setup_logging, check_hostname_availability, format_uptime


class WebServer:
    """
    Web server class that accepts incoming connections and dispatches them
    to the request handler.

    Admission is bounded by a semaphore sized to the connection limit: a
    slot is taken before each accept and given back when the connection's
    handler finishes, so no accept is issued while at capacity.
    """

    def __init__(self, config_file=None, config=None, **kwargs):
        """
        Initialize the web server.

        Args:
            config_file: Path to the configuration file
            config: Ready made ServerConfig, used instead of config_file/kwargs
            **kwargs: Additional configuration parameters that override config file
        """
        self.config = config if config is not None else ServerConfig(config_file, **kwargs)
        self.logger = logging.getLogger('WebServer')

        self.request_handler = RequestHandler(self.config)

        # Server state
        self.server_socket = None
        self.is_running = False
        self.start_time = time.time()
        self._shutdown_event = threading.Event()
        self._serve_thread = None
        self._failure = None

        # Admission control
        self._slots = threading.BoundedSemaphore(self.config.connection_limit)
        self.active_connections = 0
        self.total_connections = 0
        self.active_connections_lock = threading.Lock()

        self.thread_pool = None

    def install_signal_handlers(self):
        """
        Shut down on SIGINT and SIGTERM. Must be called from the main thread.
        """
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, sig, frame):
        self.logger.info(f"Received signal {sig}, shutting down...")
        self.shutdown()

    @property
    def server_address(self):
        """Address the listening socket is bound to."""
        if self.server_socket is None:
            return self.config.listen_address
        return self.server_socket.getsockname()

    def bind(self):
        """
        Create the listening socket, bind it and start listening.

        Raises:
            OSError: If the address cannot be bound
        """
        server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind(self.config.listen_address)
            server_socket.listen(self.config.connection_queue)
            # Wake up regularly to observe the shutdown flag
            server_socket.settimeout(self.config.poll_interval)
        except OSError:
            server_socket.close()
            raise

        self.server_socket = server_socket
        host, port = self.server_address
        self.logger.info(f"Server started and bound to http://{host}:{port}")
        self.logger.info(f"Serving files from {self.config.document_root}")

    def serve_forever(self):
        """
        Run the admission loop until shutdown is requested.

        Binds first if `bind()` has not been called. Returns after the
        listening socket is closed and in-flight connections are done.

        Raises:
            Exception: The first unexpected error raised by a connection handler
        """
        if self.server_socket is None:
            self.bind()

        self.is_running = True
        self.thread_pool = ThreadPoolExecutor(
            max_workers=self.config.connection_limit,
            thread_name_prefix="WebServerWorker"
        )

        try:
            while not self._shutdown_event.is_set():
                self._raise_on_failure()

                if not self._slots.acquire(timeout=self.config.poll_interval):
                    continue

                connection = self._accept()
                if connection is None:
                    self._slots.release()
                    break

                self._dispatch(*connection)
        finally:
            self.is_running = False
            self._close_server_socket()
            self.logger.debug("Waiting for in-flight connections...")
            self.thread_pool.shutdown(wait=True)
            self.logger.info("Server stopped")

        self._raise_on_failure()

    def _accept(self):
        """
        Block until a connection arrives.

        Returns:
            tuple: (client_socket, client_address) or None on shutdown
        """
        while not self._shutdown_event.is_set():
            try:
                return self.server_socket.accept()
            except socket.timeout:
                if self._failure is not None:
                    return None
                continue
            except OSError:
                if self._shutdown_event.is_set():
                    return None
                raise
        return None

    def _dispatch(self, client_socket, client_address):
        with self.active_connections_lock:
            self.active_connections += 1
            self.total_connections += 1

        future = self.thread_pool.submit(
            self.request_handler.handle_connection,
            client_socket,
            client_address
        )
        future.add_done_callback(self._on_connection_done)

    def _on_connection_done(self, future):
        error = future.exception()
        if error is not None and self._failure is None:
            self._failure = error
        self._connection_done()

    def _connection_done(self):
        with self.active_connections_lock:
            self.active_connections -= 1
        self._slots.release()

    def _raise_on_failure(self):
        if self._failure is not None:
            raise self._failure

    def _close_server_socket(self):
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None

    def start(self):
        """
        Bind (unless `bind()` was already called) and run the admission
        loop on a background thread.

        Returns:
            bool: True if the server started, False otherwise
        """
        if self.is_running:
            self.logger.warning("Server is already running")
            return False

        if self.server_socket is None:
            host, port = self.config.listen_address
            if not check_hostname_availability(host, port):
                self.logger.error(f"Address {host}:{port} is already in use")
                return False

            try:
                self.bind()
            except OSError as e:
                self.logger.error(f"Error starting server: {e}")
                return False

        self.is_running = True
        self._serve_thread = threading.Thread(target=self._serve_in_thread, daemon=True)
        self._serve_thread.start()
        return True

    def _serve_in_thread(self):
        try:
            self.serve_forever()
        except Exception as e:
            self.logger.exception("Fatal error in connection acceptance loop")
            if self._failure is None:
                self._failure = e
            self._shutdown_event.set()

    def shutdown(self):
        """
        Stop accepting connections. In-flight connections run to completion.
        """
        if self._shutdown_event.is_set():
            return
        self.logger.info("Shutting down server...")
        self._shutdown_event.set()

    def wait_for_shutdown(self):
        """
        Wait for the server started with `start()` to stop.

        Returns:
            Exception: The failure that stopped the server, or None
        """
        try:
            while self._serve_thread is not None and self._serve_thread.is_alive():
                self._serve_thread.join(timeout=1)
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt, shutting down...")
            self.shutdown()
            self._serve_thread.join()
        return self._failure

    @property
    def stats(self):
        """
        Get server statistics.

        Returns:
            dict: Server statistics
        """
        uptime = time.time() - self.start_time
        handler_stats = self.request_handler.stats

        with self.active_connections_lock:
            active = self.active_connections
            total = self.total_connections

        return {
            'uptime': uptime,
            'uptime_formatted': format_uptime(uptime),
            'active_connections': active,
            'total_connections': total,
            'total_requests': handler_stats['total_requests'],
            'status_2xx': handler_stats['status_2xx'],
            'status_4xx': handler_stats['status_4xx'],
            'status_5xx': handler_stats['status_5xx']
        }


def create_server(config_file=None, **kwargs):
    """
    Create a server with logging configured from its configuration.
    """
    config = ServerConfig(config_file, **kwargs)
    setup_logging(
        log_level=config.log_level,
        log_file=config.log_file,
        use_colored_logging=config.colored_logging
    )
    return WebServer(config=config)
