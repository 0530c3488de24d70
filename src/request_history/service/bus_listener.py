"""D-Bus bridge forwarding record store notifications to a history list."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from pydbus import SessionBus

if TYPE_CHECKING:
    from ..ui.history_list import HistoryListController

logger = logging.getLogger(__name__)


def _unpack_variant(value: Any) -> Any:
    """Return raw value from GLib.Variant-like objects."""
    if hasattr(value, "unpack"):
        try:
            return value.unpack()
        except Exception:
            return value
    return value


class HistoryBusListener:
    """Subscribes to record store signals on the session bus.

    Signal callbacks fire on the GLib main loop thread, so every event is
    handed to the controller's asyncio loop before it touches the list.
    """

    BUS_NAME = "org.requesthistory.Store"

    def __init__(
        self,
        controller: "HistoryListController",
        loop: asyncio.AbstractEventLoop,
        bus_name: Optional[str] = None,
    ):
        """
        Initialize the listener. Call start() to connect.

        Args:
            controller: History list receiving the events
            loop: Event loop the controller runs on
            bus_name: Well-known name of the record store daemon
        """
        self.controller = controller
        self.loop = loop
        self.bus_name = bus_name or self.BUS_NAME
        self._bus = None
        self._proxy = None
        self._connected = False
        self._subscriptions: list = []

    @property
    def is_connected(self) -> bool:
        """Whether the listener is connected to the record store daemon."""
        return self._connected

    def start(self) -> bool:
        """Connect to the daemon and subscribe to its signals. Returns success."""
        try:
            if self._bus is None:
                self._bus = SessionBus()
            self._proxy = self._bus.get(self.bus_name)
            self._connected = True
            logger.info(f"Listening for history changes from {self.bus_name}")
        except Exception as e:
            logger.warning(f"Could not connect to record store {self.bus_name}: {e}")
            self._proxy = None
            self._connected = False
            return False

        self._subscribe_signal("RecordChanged", self._on_record_changed)
        self._subscribe_signal("RecordDeleted", self._on_record_deleted)
        self._subscribe_signal("DatastoreDestroyed", self._on_datastore_destroyed)
        self._subscribe_signal("DataImported", self._on_data_imported)
        return True

    def stop(self) -> None:
        """Disconnect signal subscriptions."""
        for subscription in self._subscriptions:
            try:
                subscription.disconnect()
            except Exception as e:
                logger.debug(f"Failed to disconnect subscription: {e}")
        self._subscriptions.clear()
        self._proxy = None
        self._bus = None
        self._connected = False
        logger.info("Stopped listening for history changes")

    def _subscribe_signal(self, signal_name: str, callback: Callable) -> None:
        """Internal: subscribe to a D-Bus signal by name."""
        try:
            sig = getattr(self._proxy, signal_name)
            self._subscriptions.append(sig.connect(callback))
        except Exception as e:
            logger.warning(f"Failed to subscribe to {signal_name}: {e}")

    # ─── Signal handlers (GLib thread) ───────────────────────────────────

    def _on_record_changed(self, payload, kind) -> None:
        """RecordChanged(a{sv} payload, s kind)."""
        doc = {k: _unpack_variant(v) for k, v in dict(payload or {}).items()}
        self.loop.call_soon_threadsafe(
            self.controller.apply_upsert, doc, str(_unpack_variant(kind))
        )

    def _on_record_deleted(self, record_id, kind) -> None:
        """RecordDeleted(s id, s kind)."""
        self.loop.call_soon_threadsafe(
            self.controller.apply_removal,
            str(_unpack_variant(record_id)),
            str(_unpack_variant(kind)),
        )

    def _on_datastore_destroyed(self, stores) -> None:
        """DatastoreDestroyed(as stores)."""
        names = [str(_unpack_variant(name)) for name in (_unpack_variant(stores) or [])]
        asyncio.run_coroutine_threadsafe(
            self.controller.handle_store_destroyed(names), self.loop
        )

    def _on_data_imported(self, *args) -> None:
        """DataImported()."""
        asyncio.run_coroutine_threadsafe(
            self.controller.handle_data_imported(), self.loop
        )
