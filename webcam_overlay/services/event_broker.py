"""
EventBroker - publish/subscribe hub with class decorator for automatic injection
Carries configuration requests from the UI to the config store and status
events (camera, image, config changes) back to the widgets
"""

from typing import Callable, Dict, List, Any, Optional, Type
from functools import wraps
import threading
from enum import Enum, auto


class EventPriority(Enum):
    """Event priority levels"""
    LOW = auto()
    NORMAL = auto()
    HIGH = auto()
    CRITICAL = auto()


class EventBroker:
    """
    General-purpose event broker for managing publish-subscribe patterns
    Supports priorities and per-subscriber error handling
    """

    # Global registry for event brokers
    _instances: Dict[str, 'EventBroker'] = {}
    _default_broker: Optional['EventBroker'] = None

    def __init__(self, name: str = "default", enable_logging: bool = False):
        self.name = name
        self._subscribers: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.RLock()
        self._enable_logging = enable_logging
        self._logger: Optional[Callable[[str, str], None]] = None

        # Register this broker
        EventBroker._instances[name] = self
        if name == "default":
            EventBroker._default_broker = self

    @classmethod
    def get_broker(cls, name: str = "default") -> 'EventBroker':
        """Get or create a named event broker"""
        if name not in cls._instances:
            cls._instances[name] = EventBroker(name)
        return cls._instances[name]

    @classmethod
    def get_default(cls) -> 'EventBroker':
        """Get the default event broker"""
        if cls._default_broker is None:
            cls._default_broker = cls.get_broker("default")
        return cls._default_broker

    def set_logger(self, logger: Callable[[str, str], None], enable_logging: bool = True):
        """Set logger function for debugging"""
        self._logger = logger
        self._enable_logging = enable_logging

    def _log(self, message: str, level: str = "debug"):
        if self._enable_logging and self._logger:
            self._logger(f"EventBroker[{self.name}]: {message}", level)

    def subscribe(self, event_type: str, callback: Callable,
                  priority: EventPriority = EventPriority.NORMAL,
                  error_handler: Optional[Callable[[Exception], None]] = None) -> str:
        """
        Subscribe to an event type

        Args:
            event_type: Name of the event to subscribe to
            callback: Function to call when event is published
            priority: Priority level for callback execution order
            error_handler: Optional error handler for this specific callback

        Returns:
            Subscription ID for unsubscribing
        """
        with self._lock:
            if event_type not in self._subscribers:
                self._subscribers[event_type] = []

            subscription_id = f"{event_type}_{id(callback)}_{len(self._subscribers[event_type])}"

            subscriber_info = {
                'callback': callback,
                'priority': priority,
                'error_handler': error_handler,
                'subscription_id': subscription_id
            }

            # Higher priority first, FIFO within the same priority
            subscribers = self._subscribers[event_type]
            insert_index = len(subscribers)
            for i, sub in enumerate(subscribers):
                if sub['priority'].value < priority.value:
                    insert_index = i
                    break

            subscribers.insert(insert_index, subscriber_info)

            self._log(f"Subscribed to '{event_type}' with priority {priority.name}")
            return subscription_id

    def unsubscribe(self, event_type: str, subscription_id: str) -> bool:
        """Remove one subscription by the ID subscribe() returned"""
        with self._lock:
            if event_type not in self._subscribers:
                return False

            subscribers = self._subscribers[event_type]

            for i, sub in enumerate(subscribers):
                if sub['subscription_id'] == subscription_id:
                    subscribers.pop(i)
                    self._log(f"Unsubscribed from '{event_type}'")
                    return True

            return False

    def unsubscribe_all(self, event_type: str = None):
        """Unsubscribe all callbacks from event type, or clear all events"""
        with self._lock:
            if event_type:
                if event_type in self._subscribers:
                    del self._subscribers[event_type]
                    self._log(f"Cleared all subscribers for '{event_type}'")
            else:
                self._subscribers.clear()
                self._log("Cleared all subscribers")

    def publish(self, event_type: str, *args, **kwargs) -> int:
        """
        Publish an event to all subscribers, returns the number of successful calls

        Subscribers run synchronously on the publishing thread, so events meant
        for tkinter widgets must be published from the Tk thread.
        """
        with self._lock:
            if event_type not in self._subscribers:
                return 0

            subscribers = self._subscribers[event_type].copy()

        successful_calls = 0

        for subscriber in subscribers:
            try:
                subscriber['callback'](*args, **kwargs)
                successful_calls += 1
            except Exception as e:
                self._log(f"Error in subscriber for '{event_type}': {e}", "error")

                if subscriber['error_handler']:
                    try:
                        subscriber['error_handler'](e)
                    except Exception as handler_error:
                        self._log(f"Error in error handler: {handler_error}", "error")

        return successful_calls

    def has_subscribers(self, event_type: str) -> bool:
        """Check if event type has any subscribers"""
        with self._lock:
            return event_type in self._subscribers and len(self._subscribers[event_type]) > 0


def event_aware(broker_name: str = "default"):
    """
    Class decorator that automatically injects EventBroker functionality

    Usage:
        @event_aware()
        class MyClass:
            def __init__(self):
                # self._event_broker is automatically available
                self.emit('my.event', data)
    """
    def decorator(cls: Type) -> Type:
        original_init = cls.__init__

        @wraps(original_init)
        def new_init(self, *args, **kwargs):
            self._event_broker = EventBroker.get_broker(broker_name)
            self._subscriptions: List[tuple] = []

            original_init(self, *args, **kwargs)

            self._auto_register_handlers()

        cls.__init__ = new_init

        def emit(self, event_type: str, *args, **kwargs) -> int:
            """Emit an event"""
            return self._event_broker.publish(event_type, *args, **kwargs)

        def listen(self, event_type: str, callback: Callable,
                   priority: EventPriority = EventPriority.NORMAL,
                   error_handler: Optional[Callable[[Exception], None]] = None) -> str:
            """Subscribe to an event and track the subscription"""
            subscription_id = self._event_broker.subscribe(
                event_type, callback, priority, error_handler
            )
            self._subscriptions.append((event_type, subscription_id))
            return subscription_id

        def cleanup_subscriptions(self):
            """Clean up all subscriptions"""
            for event_type, subscription_id in self._subscriptions:
                self._event_broker.unsubscribe(event_type, subscription_id)
            self._subscriptions.clear()

        def has_listeners(self, event_type: str) -> bool:
            """Check if anyone is listening to this event type"""
            return self._event_broker.has_subscribers(event_type)

        def _auto_register_handlers(self):
            """Find and register all decorated event handler methods"""
            for attr_name in dir(type(self)):
                attr = getattr(self, attr_name, None)
                if callable(attr) and hasattr(attr, '_event_type'):
                    self.listen(
                        attr._event_type,
                        attr,
                        attr._event_priority
                    )

        cls.emit = emit
        cls.listen = listen
        cls.cleanup_subscriptions = cleanup_subscriptions
        cls.has_listeners = has_listeners
        cls._auto_register_handlers = _auto_register_handlers

        return cls

    return decorator


def event_handler(event_type: str, priority: EventPriority = EventPriority.NORMAL):
    """
    Decorator for automatically registering event handlers
    Usage: @event_handler('camera.connected')
    """
    def decorator(func):
        func._event_type = event_type
        func._event_priority = priority
        return func
    return decorator
