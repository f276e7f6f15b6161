from __future__ import annotations

import enum
import logging
import socket
from typing import BinaryIO

from apcupsd_nut_proxy.apcaccess import ApcValues, RefreshResult
from apcupsd_nut_proxy.commands import CommandResult, dispatch
from apcupsd_nut_proxy.config import ProxyConfig
from apcupsd_nut_proxy.errors import ProxyError
from apcupsd_nut_proxy.exporter import ProxyMetricsPublisher


LOGGER = logging.getLogger("apcupsd_nut_proxy.session")


class SessionState(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class NutSession:
    """Serve NUT requests from one client connection until LOGOUT or a transport failure."""

    def __init__(
        self,
        conn: socket.socket,
        config: ProxyConfig,
        *,
        metrics: ProxyMetricsPublisher | None = None,
        peer: str | None = None,
    ) -> None:
        self._conn = conn
        self._config = config
        self._metrics = metrics
        self.peer = peer or "<unknown>"
        self.state = SessionState.OPEN
        self.values = ApcValues(on_refresh=self._refresh_finished)

    def _refresh_finished(self, result: RefreshResult) -> None:
        if self._metrics is not None:
            self._metrics.apply_refresh_result(target=self._config.apcaccess.target_address, result=result)

    def handle_line(self, line: str) -> CommandResult | None:
        if self._metrics is not None:
            self._metrics.command_received(line)
        try:
            return dispatch(line, self._config, self.values)
        except ProxyError as error:
            if self._metrics is not None:
                self._metrics.command_failed(line)
            LOGGER.error('handling command "%s" for client %s failed: %s', line, self.peer, error)
            return None

    def run(self) -> None:
        LOGGER.info("received connection from %s", self.peer)
        if self._metrics is not None:
            self._metrics.session_started()
        reader = self._conn.makefile("rb")
        writer = self._conn.makefile("wb")
        try:
            while self.state is SessionState.OPEN:
                self._serve_one(reader, writer)
        finally:
            self.state = SessionState.CLOSED
            for stream in (reader, writer):
                try:
                    stream.close()
                except OSError as error:
                    LOGGER.debug("closing stream for client %s failed: %s", self.peer, error)
            self._conn.close()
            if self._metrics is not None:
                self._metrics.session_finished()
            LOGGER.info("connection from %s closed", self.peer)

    def _serve_one(self, reader: BinaryIO, writer: BinaryIO) -> None:
        try:
            self._conn.settimeout(self._config.timeout_seconds)
            raw_line = reader.readline()
        except OSError as error:
            LOGGER.info("reading command from client %s failed: %s", self.peer, error)
            self.state = SessionState.CLOSED
            return
        if not raw_line:
            LOGGER.info("client %s disconnected", self.peer)
            self.state = SessionState.CLOSED
            return

        line = raw_line.decode("utf-8", errors="replace").strip()
        LOGGER.debug("received command from %s: %s", self.peer, line)

        result = self.handle_line(line)
        if result is None:
            return

        try:
            if result.response:
                writer.write((result.response.strip() + "\n").encode("utf-8"))
            writer.flush()
        except OSError as error:
            LOGGER.info("writing response for client %s failed: %s", self.peer, error)
            self.state = SessionState.CLOSED
            return

        if result.close:
            self.state = SessionState.CLOSED
