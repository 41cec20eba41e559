"""Qt-driven transports that deliver newline-delimited text frames.

Both sources emit ``frameReceived(str)`` on the GUI thread; the text is handed
to ``PipelineController.feed`` unchanged.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from PySide6 import QtCore, QtNetwork

logger = logging.getLogger(__name__)


class SimulatedFeed(QtCore.QObject):
    """Synthetic multi-channel sensor producing ``seq,v0,...,vN`` records.

    Each channel is a sine at its own frequency on a 10-bit scale plus a little
    noise, sampled at ``sample_rate_hz`` and delivered every ``interval_ms``.
    """

    frameReceived = QtCore.Signal(str)

    def __init__(
        self,
        n_channels: int = 6,
        *,
        sample_rate_hz: float = 250.0,
        interval_ms: int = 50,
        frequencies_hz: Optional[Sequence[float]] = None,
        noise: float = 8.0,
        seed: Optional[int] = None,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        if n_channels <= 0:
            raise ValueError("n_channels must be positive")
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be positive")
        self._n_channels = int(n_channels)
        self._sample_rate = float(sample_rate_hz)
        if frequencies_hz is None:
            frequencies_hz = [2.0 + 5.0 * idx for idx in range(self._n_channels)]
        self._freqs = np.asarray(list(frequencies_hz)[: self._n_channels], dtype=np.float64)
        if self._freqs.size != self._n_channels:
            raise ValueError("need one frequency per channel")
        self._noise = float(noise)
        self._rng = np.random.default_rng(seed)
        self._seq = 0
        self._carry = 0.0
        self._interval_ms = max(1, int(interval_ms))

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(self._interval_ms)
        self._timer.timeout.connect(self._emit_frame)

    @property
    def running(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        logger.info("Simulated feed started: %d channels @ %.1f Hz", self._n_channels, self._sample_rate)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def next_frame(self) -> str:
        """Build the text for one delivery interval."""
        self._carry += self._sample_rate * self._interval_ms / 1000.0
        n = int(self._carry)
        self._carry -= n
        if n <= 0:
            return ""
        t = (self._seq + np.arange(n, dtype=np.float64))[:, None] / self._sample_rate
        values = 512.0 + 400.0 * np.sin(2.0 * np.pi * self._freqs[None, :] * t)
        values += self._rng.normal(0.0, self._noise, size=values.shape)
        lines = []
        for row in values:
            lines.append(",".join([str(self._seq)] + [f"{v:.2f}" for v in row]))
            self._seq += 1
        return "\n".join(lines) + "\n"

    def _emit_frame(self) -> None:
        frame = self.next_frame()
        if frame:
            self.frameReceived.emit(frame)


class SocketFeed(QtCore.QObject):
    """TCP client reading a text bridge (serial-to-socket and the like).

    Partial trailing lines are held back until their newline arrives, so every
    emitted frame contains only complete records. Lost connections are retried.
    """

    frameReceived = QtCore.Signal(str)
    connectionChanged = QtCore.Signal(bool)

    def __init__(
        self,
        host: str,
        port: int,
        *,
        reconnect_ms: int = 2000,
        encoding: str = "utf-8",
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._host = host
        self._port = int(port)
        self._encoding = encoding
        self._partial = ""
        self._active = False

        self._socket = QtNetwork.QTcpSocket(self)
        self._socket.readyRead.connect(self._on_ready_read)
        self._socket.connected.connect(self._on_connected)
        self._socket.disconnected.connect(self._on_disconnected)
        self._socket.errorOccurred.connect(self._on_error)

        self._reconnect_timer = QtCore.QTimer(self)
        self._reconnect_timer.setSingleShot(True)
        self._reconnect_timer.setInterval(max(1, int(reconnect_ms)))
        self._reconnect_timer.timeout.connect(self._connect)

    def start(self) -> None:
        self._active = True
        self._connect()

    def stop(self) -> None:
        self._active = False
        self._reconnect_timer.stop()
        self._socket.abort()
        self._partial = ""

    def push_text(self, text: str) -> None:
        """Feed decoded text through the line reassembly (also used by readyRead)."""
        data = self._partial + text
        cut = data.rfind("\n")
        if cut < 0:
            self._partial = data
            return
        self._partial = data[cut + 1:]
        self.frameReceived.emit(data[: cut + 1])

    def _connect(self) -> None:
        if not self._active:
            return
        logger.info("Connecting to feed %s:%d", self._host, self._port)
        self._socket.connectToHost(self._host, self._port)

    def _on_ready_read(self) -> None:
        raw = bytes(self._socket.readAll())
        self.push_text(raw.decode(self._encoding, errors="replace"))

    def _on_connected(self) -> None:
        logger.info("Feed connected")
        self.connectionChanged.emit(True)

    def _on_disconnected(self) -> None:
        logger.warning("Feed disconnected")
        self._partial = ""
        self.connectionChanged.emit(False)
        if self._active:
            self._reconnect_timer.start()

    def _on_error(self, error) -> None:
        logger.warning("Feed socket error: %s", self._socket.errorString())
        if self._active and self._socket.state() == QtNetwork.QAbstractSocket.UnconnectedState:
            self._reconnect_timer.start()


__all__ = ["SimulatedFeed", "SocketFeed"]
