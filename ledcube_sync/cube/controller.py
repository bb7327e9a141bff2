"""
Cube controller.

Owns at most one CubeSession and serializes every operation on it, so the
HTTP layer and the CLI can share a cube without interleaving transfers.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from ledcube_sync.animation.models import AnimationSet
from ledcube_sync.config.models import SerialConfig
from ledcube_sync.protocol.engine import CubeSession, ErrorNotifier
from ledcube_sync.protocol.interface import Transport
from ledcube_sync.utils.exceptions import CubeException, NotConnectedError


logger = logging.getLogger(__name__)


class CubeController:
    """
    Cube controller managing the session lifecycle and transfer history.

    Two locks: _lock serializes transfers and may be held for minutes;
    _state_lock guards the notification and transfer history and is only
    held briefly, so status() answers while a transfer is running.
    """

    MAX_NOTIFICATIONS = 50

    def __init__(
        self,
        transport_factory: Callable[[], Transport],
        config: Optional[SerialConfig] = None,
        notifier: Optional[ErrorNotifier] = None,
    ):
        """
        Initialize cube controller.

        Args:
            transport_factory: Builds a fresh, unopened transport for each connect().
            config: Serial settings (timeouts) for new sessions.
            notifier: Extra sink called for every failure, after it is recorded.
        """
        self._transport_factory = transport_factory
        self.config = config or SerialConfig()
        self._notifier = notifier
        self._session: Optional[CubeSession] = None
        self._lock = threading.Lock()
        self._state_lock = threading.Lock()

        self._notifications: List[dict] = []
        self._last_transfer: Optional[dict] = None

        logger.info("CubeController initialized")

    @property
    def connected(self) -> bool:
        return self._session is not None and self._session.transport.is_open

    @property
    def port_name(self) -> Optional[str]:
        return self._session.transport.name if self._session else None

    @property
    def last_error(self) -> Optional[CubeException]:
        return self._session.last_error if self._session else None

    @property
    def notifications(self) -> List[dict]:
        """Failures reported since start-up, oldest first."""
        with self._state_lock:
            return list(self._notifications)

    def connect(self) -> None:
        """
        Open a session on a new transport.

        Raises:
            DriverError: If the port cannot be opened.
        """
        with self._lock:
            if self._session is not None:
                logger.warning("Already connected")
                return

            self._session = CubeSession.open(
                self._transport_factory(), self.config, notifier=self._record
            )
            logger.info(f"Cube session opened on {self._session.transport.name}")

    def disconnect(self) -> None:
        """Close the session, if any."""
        with self._lock:
            if self._session is None:
                return
            name = self._session.transport.name
            self._session.close()
            self._session = None
            logger.info(f"Cube session on {name} closed")

    def probe(self) -> bool:
        with self._lock:
            return self._require_session().probe()

    def download(self) -> Optional[AnimationSet]:
        with self._lock:
            result = self._require_session().download()
            if result is not None:
                self._note_transfer("download", result)
            return result

    def upload(self, animations: AnimationSet) -> bool:
        with self._lock:
            ok = self._require_session().upload(animations)
            if ok:
                self._note_transfer("upload", animations)
            return ok

    def clear(self) -> bool:
        with self._lock:
            ok = self._require_session().clear()
            if ok:
                self._note_transfer("clear", AnimationSet())
            return ok

    def status(self) -> dict:
        session = self._session
        error = session.last_error if session else None
        with self._state_lock:
            last_transfer = dict(self._last_transfer) if self._last_transfer else None
            notification_count = len(self._notifications)
        return {
            "connected": session is not None and session.transport.is_open,
            "port": session.transport.name if session else None,
            "last_error": str(error) if error else None,
            "last_error_type": type(error).__name__ if error else None,
            "last_transfer": last_transfer,
            "notification_count": notification_count,
        }

    def _require_session(self) -> CubeSession:
        if self._session is None:
            raise NotConnectedError("Cube not connected")
        return self._session

    def _note_transfer(self, kind: str, animations: AnimationSet) -> None:
        record = {
            "kind": kind,
            "time": datetime.now().isoformat(timespec="seconds"),
            "animation_count": len(animations),
            "frame_total": animations.frame_total,
        }
        with self._state_lock:
            self._last_transfer = record

    def _record(self, title: str, message: str) -> None:
        logger.error(f"{title}: {message}")
        entry = {
            "time": datetime.now().isoformat(timespec="seconds"),
            "title": title,
            "message": message,
        }
        with self._state_lock:
            self._notifications.append(entry)
            del self._notifications[:-self.MAX_NOTIFICATIONS]
        if self._notifier:
            self._notifier(title, message)
