from typing import Any, Callable, Dict, List, Type
from videonft.domain.events import Event

Handler = Callable[[Any], None]

class EventBus:
    """Synchronous publish/subscribe hub between the pipeline and the console UI.

    Handlers registered for a base event class also receive its subclasses.
    """

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Handler]] = {}

    def subscribe(self, event_type: Type[Event], callback: Handler):
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: Type[Event], callback: Handler):
        handlers = self._subscribers.get(event_type, [])
        if callback in handlers:
            handlers.remove(callback)

    def publish(self, event: Event):
        for event_type in type(event).__mro__:
            for callback in list(self._subscribers.get(event_type, ())):
                callback(event)
