"""Notification bus for the formstore package.

This module provides the topic-keyed publish/subscribe bus a FormStore uses to
notify observers. Subscribers register a callback under a topic and receive the
delta payload of every emission on that topic.

Registrations are tracked individually: subscribing the same callback twice
yields two registrations and two independent unsubscribe handles.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from formstore.types import Callback, Topic, Unsubscribe

logger = logging.getLogger(__name__)

TopicName = Union[Topic, str]


def _key(topic: TopicName) -> str:
    return topic.value if isinstance(topic, Topic) else topic


@dataclass(eq=False)
class Subscription:
    """A single registration of a callback under a topic.

    Compared by identity so that two registrations of the same callback
    remain distinct.

    Attributes:
        topic: Topic name the callback is registered under
        callback: Function invoked with each payload
    """
    topic: str
    callback: Callback


class NotificationBus:
    """Topic-keyed event bus with per-registration unsubscribe handles.

    Features:
    - Per-topic subscriptions (topics are independent of each other)
    - Synchronous dispatch in registration order
    - Safe unsubscription during dispatch (emission iterates a snapshot)
    - Error isolation (a failing callback is logged, others still run)

    Examples:
        >>> bus = NotificationBus()
        >>> received = []
        >>> off = bus.on(Topic.VALUES, received.append)
        >>> bus.emit(Topic.VALUES, {"name": "Alice"})
        >>> received
        [{'name': 'Alice'}]
        >>> off()
        >>> off()  # idempotent
        >>> bus.emit(Topic.VALUES, {"name": "Bob"})
        >>> received
        [{'name': 'Alice'}]
    """

    def __init__(self):
        """Initialize the bus with empty per-topic registries."""
        self._handlers: Dict[str, List[Subscription]] = {}

    def on(self, topic: TopicName, callback: Callback) -> Unsubscribe:
        """Subscribe a callback to a topic.

        Args:
            topic: Topic to listen on
            callback: Function invoked with each payload emitted on the topic

        Returns:
            Zero-argument function removing exactly this registration.
            Calling it more than once is a no-op.
        """
        subscription = Subscription(topic=_key(topic), callback=callback)
        self._handlers.setdefault(subscription.topic, []).append(subscription)

        def unsubscribe() -> None:
            handlers = self._handlers.get(subscription.topic)
            if not handlers:
                return
            # Rebind rather than mutate so an in-flight snapshot is untouched
            self._handlers[subscription.topic] = [s for s in handlers if s is not subscription]

        return unsubscribe

    def emit(self, topic: TopicName, payload: Any) -> None:
        """Dispatch a payload to every callback registered on a topic.

        Callbacks are invoked synchronously in registration order. The list is
        snapshotted first, so callbacks may unsubscribe themselves or others.
        If a callback raises, the exception is logged and dispatch continues.

        Args:
            topic: Topic to emit on
            payload: Delta passed to each callback
        """
        key = _key(topic)
        for subscription in list(self._handlers.get(key, ())):
            try:
                subscription.callback(payload)
            except Exception:
                logger.exception("Subscriber %r failed on topic %r", subscription.callback, key)

    def clear(self) -> None:
        """Remove all subscriptions on every topic."""
        self._handlers.clear()

    def listener_count(self, topic: Optional[TopicName] = None) -> int:
        """Get count of registered callbacks.

        Args:
            topic: If provided, count registrations for this topic only.
                   If None, count registrations across all topics.

        Returns:
            Number of registrations
        """
        if topic is not None:
            return len(self._handlers.get(_key(topic), []))
        return sum(len(handlers) for handlers in self._handlers.values())


__all__ = [
    "NotificationBus",
    "Subscription",
    "TopicName",
]
