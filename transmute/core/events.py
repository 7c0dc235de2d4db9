"""
Lifecycle events emitted around queued transformations.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from transmute.core.media import QueueableMedia
from transmute.core.results import TransformerResult

EventContent = Union[str, QueueableMedia]


class TransformationEvent(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    context: Dict[str, Any] = Field(default_factory=dict)


class TransformationStarted(TransformationEvent):
    content: Optional[EventContent] = None


class TransformationCompleted(TransformationEvent):
    result: Optional[TransformerResult] = None


class TransformationFailed(TransformationEvent):
    exception: BaseException
    content: Optional[EventContent] = None


EventT = TypeVar("EventT", bound=TransformationEvent)
Listener = Callable[[Any], None]


class EventDispatcher:
    """
    Synchronous publish/subscribe for transformation events.

    A listener registered for a base class also receives its subclasses.
    Listener errors are logged and never interrupt the transformation.
    """

    def __init__(self):
        self._listeners: Dict[Type[TransformationEvent], List[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def listen(self, event_type: Type[EventT], listener: Callable[[EventT], None]) -> None:
        with self._lock:
            self._listeners[event_type].append(listener)

    def forget(self, event_type: Type[TransformationEvent]) -> None:
        with self._lock:
            self._listeners.pop(event_type, None)

    def has_listeners(self, event_type: Type[TransformationEvent]) -> bool:
        with self._lock:
            return any(issubclass(event_type, t) for t in self._listeners if self._listeners[t])

    def dispatch(self, event: TransformationEvent) -> None:
        with self._lock:
            listeners = [
                listener
                for event_type, registered in self._listeners.items()
                if isinstance(event, event_type)
                for listener in registered
            ]

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logging.exception(f"Listener {listener!r} failed for {type(event).__name__}")


class RecordingEventDispatcher(EventDispatcher):
    """Dispatcher that keeps every event, for tests and debugging."""

    def __init__(self):
        super().__init__()
        self.events: List[TransformationEvent] = []

    def dispatch(self, event: TransformationEvent) -> None:
        self.events.append(event)
        super().dispatch(event)

    def of_type(self, event_type: Type[EventT]) -> List[EventT]:
        return [event for event in self.events if isinstance(event, event_type)]
