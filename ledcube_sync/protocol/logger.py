"""
In-memory record of the units exchanged with the cube.

Every byte group the engine sends or receives is kept in a bounded ring,
labelled with the protocol step it belongs to, so a failed transfer can be
read back through the API after the fact.
"""

import threading
from collections import Counter, deque
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Deque, List, Optional

from ledcube_sync.protocol.constants import ACK, ERROR, FINISH_MARKER


TX = "TX"
RX = "RX"
ERR = "ERR"


@dataclass
class ProtocolMessage:
    timestamp: str
    direction: str
    raw_hex: str
    length: int
    step: Optional[str] = None
    description: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def describe_unit(data: bytes) -> str:
    """Short human-readable description of a unit on the wire."""
    if data == FINISH_MARKER:
        return "Finish marker"
    if len(data) != 1:
        lit = sum(bin(b).count("1") for b in data)
        return f"{len(data)} bytes ({lit} LEDs on)"

    value = data[0]
    if value == ACK:
        return "ACK"
    if value == ERROR:
        return "ERROR"
    if 32 < value < 127:
        return f"Value {value} ('{chr(value)}')"
    return f"Value {value}"


class ProtocolLogger:
    """
    Thread-safe ring of protocol units.

    Counters keep growing after old entries fall out of the ring; clear()
    resets both.
    """

    DEFAULT_MAX_MESSAGES = 1000

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES):
        self._messages: Deque[ProtocolMessage] = deque(maxlen=max_messages)
        self._counts: Counter = Counter()
        self._lock = threading.Lock()
        self.enabled = True

    def log_tx(self, data: bytes, step: Optional[str] = None) -> None:
        self._append(TX, data, step)

    def log_rx(self, data: bytes, step: Optional[str] = None) -> None:
        # An empty read only happens after a cancelled (timed-out) call
        self._append(RX, data, step, None if data else "Empty response (timeout?)")

    def log_error(self, error_msg: str, data: bytes = b"", step: Optional[str] = None) -> None:
        self._append(ERR, data, step, error_msg)

    def _append(self, direction: str, data: bytes, step: Optional[str], error: Optional[str] = None) -> None:
        if not self.enabled:
            return

        message = ProtocolMessage(
            timestamp=datetime.now().isoformat(timespec="milliseconds"),
            direction=direction,
            raw_hex=data.hex().upper(),
            length=len(data),
            step=step,
            description=describe_unit(data) if data and direction != ERR else None,
            error=error,
        )
        with self._lock:
            self._messages.append(message)
            self._counts[direction] += 1
            if error is not None and direction != ERR:
                self._counts[ERR] += 1

    def get_messages(self, limit: int = 100) -> List[dict]:
        """The newest `limit` messages, oldest first."""
        with self._lock:
            recent = list(self._messages)[-limit:]
        return [m.to_dict() for m in recent]

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "total_messages": len(self._messages),
                "tx_count": self._counts[TX],
                "rx_count": self._counts[RX],
                "error_count": self._counts[ERR],
                "max_messages": self._messages.maxlen,
                "enabled": self.enabled,
            }

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()
            self._counts.clear()


_protocol_logger: Optional[ProtocolLogger] = None


def get_protocol_logger() -> ProtocolLogger:
    """Process-wide protocol logger shared by every session."""
    global _protocol_logger
    if _protocol_logger is None:
        _protocol_logger = ProtocolLogger()
    return _protocol_logger
