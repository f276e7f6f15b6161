from __future__ import annotations

import logging
import socket
import threading

from apcupsd_nut_proxy.config import ProxyConfig
from apcupsd_nut_proxy.errors import AcceptError
from apcupsd_nut_proxy.exporter import ProxyMetricsPublisher
from apcupsd_nut_proxy.session import NutSession


LOGGER = logging.getLogger("apcupsd_nut_proxy.server")
MAX_CONSECUTIVE_ACCEPT_FAILURES = 3
ACCEPT_POLL_SECONDS = 0.5


class NutProxyServer:
    """Accept NUT clients and serve each one on its own thread.

    Configuration and the variable catalog are shared read-only; every
    session owns its telemetry snapshot.
    """

    def __init__(
        self,
        config: ProxyConfig,
        *,
        metrics: ProxyMetricsPublisher | None = None,
        sock: socket.socket | None = None,
    ) -> None:
        self._config = config
        self._metrics = metrics
        self._socket = sock
        self._stop_event = threading.Event()

    @property
    def server_address(self) -> tuple[str, int]:
        if self._socket is None:
            raise RuntimeError("server is not listening")
        host, port = self._socket.getsockname()[:2]
        return host, port

    def listen(self) -> tuple[str, int]:
        self._bind()
        return self.server_address

    def _bind(self) -> socket.socket:
        if self._socket is None:
            self._socket = socket.create_server((self._config.address, self._config.port))
            LOGGER.info("listening for NUT clients on %s:%d", *self.server_address)
        return self._socket

    def serve_forever(self) -> None:
        listener = self._bind()
        # accept() wakes up periodically so shutdown() is noticed
        listener.settimeout(ACCEPT_POLL_SECONDS)

        failed_in_a_row = 0
        while not self._stop_event.is_set():
            try:
                conn, address = listener.accept()
            except TimeoutError:
                continue
            except OSError as error:
                if self._stop_event.is_set():
                    break
                failed_in_a_row += 1
                LOGGER.warning("failed accepting new connection: %s", error)
                if failed_in_a_row >= MAX_CONSECUTIVE_ACCEPT_FAILURES:
                    raise AcceptError(
                        f"failed {failed_in_a_row} times in a row accepting new connections"
                    ) from error
                continue
            failed_in_a_row = 0

            session = NutSession(conn, self._config, metrics=self._metrics, peer=_format_peer(address))
            threading.Thread(target=session.run, name=f"nut-session-{session.peer}", daemon=True).start()

    def shutdown(self) -> None:
        self._stop_event.set()
        if self._socket is not None:
            self._socket.close()


def _format_peer(address: object) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        return f"{address[0]}:{address[1]}"
    return str(address)
