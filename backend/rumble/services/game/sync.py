"""Durable store and broadcast channels used to keep windows in sync.

A channel delivers a published payload to every *other* subscriber on the
same name; the publisher never hears its own message. Engines rely on that
plus their remote-update flag to keep a change from echoing forever.
"""

import json
import time
import weakref
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from rumble import db
from rumble.models import SavedState

Listener = Callable[[Dict[str, Any]], None]

STORAGE_KEY = 'royal-rumble-state'
CHANNEL_NAME = 'rumble_sync'


class SQLStateStore:
    """Keyed JSON store backed by the ``saved_state`` table.

    Must be used inside an application context.
    """

    def __init__(self, key: str = STORAGE_KEY):
        self.key = key

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored record, or None if nothing is stored.

        Raises ValueError when the stored text is not a JSON object.
        """
        row = db.session.get(SavedState, self.key)
        if row is None:
            return None
        payload = json.loads(row.payload)
        if not isinstance(payload, dict):
            raise ValueError(f'Stored state under {self.key!r} is not an object')
        return payload

    def save(self, payload: Dict[str, Any]) -> None:
        row = db.session.get(SavedState, self.key)
        if row is None:
            row = SavedState(key=self.key)
        row.payload = json.dumps(payload)
        row.updated_at = time.time()
        db.session.add(row)
        db.session.commit()

    def clear(self) -> None:
        SavedState.query.filter_by(key=self.key).delete()
        db.session.commit()


class LocalChannel:
    """In-process named channel. Every live instance with the same name is a peer.

    The registry only holds weak references, so a channel that is dropped
    without ``close()`` stops receiving once it is collected.
    """

    _peers: Dict[str, 'weakref.WeakSet[LocalChannel]'] = defaultdict(weakref.WeakSet)

    def __init__(self, name: str = CHANNEL_NAME):
        self.name = name
        self._listeners: List[Listener] = []
        self._peers[name].add(self)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def publish(self, payload: Dict[str, Any]) -> None:
        message = json.dumps(payload)
        for peer in list(self._peers[self.name]):
            if peer is not self:
                peer.deliver(json.loads(message))

    def deliver(self, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            listener(payload)

    def close(self) -> None:
        peers = self._peers.get(self.name)
        if peers is not None:
            peers.discard(self)
        self._listeners.clear()


class SocketIOChannel:
    """Channel whose peers are the windows joined to a Socket.IO room.

    ``publish`` emits ``state_update`` to the room. Incoming window messages
    are handed to ``deliver`` by the socket event handlers.
    """

    event = 'state_update'

    def __init__(self, socketio, name: str = CHANNEL_NAME, namespace: str = '/ws'):
        self.socketio = socketio
        self.name = name
        self.namespace = namespace
        self._listeners: List[Listener] = []

    @property
    def room(self) -> str:
        return f"sync:{self.name}"

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def publish(self, payload: Dict[str, Any]) -> None:
        self.socketio.emit(self.event, payload, to=self.room, namespace=self.namespace)

    def deliver(self, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            listener(payload)

    def close(self) -> None:
        self._listeners.clear()
