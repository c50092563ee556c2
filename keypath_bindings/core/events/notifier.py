"""
ChangeNotifier - Property change pub/sub keyed by object identity.

Subscribers register interest in one or more properties of one specific
object. Code that mutates such a property calls ``emit`` afterwards; the
notifier then calls every matching handler synchronously on the emitting
thread.

Usage:
    from keypath_bindings.core.events import default_notifier

    notifier = default_notifier()
    sub = notifier.subscribe(model, "count", lambda event: print(event.new_value))

    model.count += 1
    notifier.emit(model, "count")

    notifier.unsubscribe(sub)

Properties may be identified by attribute name or by a KeyPath; both are
normalized to the attribute name, which is unique per object.
"""
import threading
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional
from loguru import logger


class _Missing:
    """Marker for an old value that was not supplied."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def property_name(key_path: Any) -> str:
    """Normalize a property identifier (str or KeyPath-like) to its attribute name."""
    if isinstance(key_path, str):
        return key_path
    name = getattr(key_path, "name", None)
    if not isinstance(name, str):
        raise TypeError(f"Not a property identifier: {key_path!r}")
    return name


def _property_names(key_paths: Any) -> FrozenSet[str]:
    if isinstance(key_paths, (set, frozenset, list, tuple)):
        names = frozenset(property_name(k) for k in key_paths)
    else:
        names = frozenset([property_name(key_paths)])
    if not names:
        raise ValueError("At least one property must be given")
    return names


@dataclass(frozen=True)
class ChangeEvent:
    """A single property change emission."""
    subject: Any
    key_path: Any
    old_value: Any = MISSING

    @property
    def property_name(self) -> str:
        return property_name(self.key_path)

    @property
    def has_old_value(self) -> bool:
        return self.old_value is not MISSING

    @property
    def new_value(self) -> Any:
        """Current value of the property on the subject."""
        getter = getattr(self.key_path, "get", None)
        if callable(getter):
            return getter(self.subject)
        return getattr(self.subject, self.property_name)


class Subscription:
    """
    Handle returned by ``ChangeNotifier.subscribe``.

    Holds the subject weakly and the handler strongly. Pass it to
    ``ChangeNotifier.unsubscribe`` (or call ``cancel``) to stop delivery.
    """

    def __init__(self, notifier: "ChangeNotifier", subject: Any,
                 names: FrozenSet[str], handler: Callable[[ChangeEvent], None]):
        try:
            self._subject_ref = weakref.ref(subject)
        except TypeError:
            raise TypeError(
                f"Cannot observe {type(subject).__name__} instances: they do not support weak references"
            ) from None
        self._notifier_ref = weakref.ref(notifier)
        self.subject_id = id(subject)
        self.property_names = names
        self.handler = handler
        self.active = True

    @property
    def subject(self) -> Optional[Any]:
        return self._subject_ref()

    @property
    def notifier(self) -> Optional["ChangeNotifier"]:
        return self._notifier_ref()

    def matches(self, subject: Any, name: str) -> bool:
        return self.active and self._subject_ref() is subject and name in self.property_names

    def cancel(self) -> None:
        notifier = self._notifier_ref()
        if notifier is not None:
            notifier.unsubscribe(self)
        else:
            self.active = False

    def __repr__(self) -> str:
        subject = self.subject
        owner = type(subject).__name__ if subject is not None else "<reclaimed>"
        state = "active" if self.active else "cancelled"
        return f"<Subscription {owner} {sorted(self.property_names)} {state}>"


class ChangeNotifier:
    """
    Publish/subscribe hub for property changes.

    Subscriptions for different objects never see each other's events;
    matching is by object identity, never by equality or type. Several
    subscriptions for the same object and property all fire.
    """

    def __init__(self, name: str = "ChangeNotifier"):
        self.name = name
        self._lock = threading.RLock()
        # id(subject) -> subscriptions; identity is re-checked on delivery
        self._subscriptions: Dict[int, List[Subscription]] = {}

    def subscribe(self, subject: Any, key_paths: Any,
                  handler: Callable[[ChangeEvent], None]) -> Subscription:
        """
        Register ``handler`` for changes of ``key_paths`` on ``subject``.

        Args:
            subject: Object to observe (must support weak references).
            key_paths: A property name or KeyPath, or a set of them.
            handler: Called with a ChangeEvent for every matching emit.

        Returns:
            Subscription handle to pass to ``unsubscribe``.
        """
        names = _property_names(key_paths)
        subscription = Subscription(self, subject, names, handler)
        with self._lock:
            self._prune(subscription.subject_id)
            self._subscriptions.setdefault(subscription.subject_id, []).append(subscription)
        logger.debug(f"{self.name}: subscribed to {type(subject).__name__}.{'/'.join(sorted(names))}")
        return subscription

    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        """
        Stop delivery to ``subscription``.

        Idempotent: unknown, already removed or None handles are ignored.
        """
        if subscription is None or subscription.notifier is not self:
            return
        with self._lock:
            was_active = subscription.active
            subscription.active = False
            bucket = self._subscriptions.get(subscription.subject_id)
            if bucket is not None and subscription in bucket:
                bucket.remove(subscription)
                if not bucket:
                    del self._subscriptions[subscription.subject_id]
        if was_active:
            logger.debug(f"{self.name}: unsubscribed {subscription!r}")

    def emit(self, subject: Any, key_path: Any, old_value: Any = MISSING) -> int:
        """
        Notify every live subscription for ``subject`` and ``key_path``.

        Handlers run sequentially on the calling thread; the call returns
        once all of them have returned. A handler raising is logged and does
        not stop delivery to the others.

        Returns:
            Number of handlers called.
        """
        name = property_name(key_path)
        with self._lock:
            matching = [s for s in self._subscriptions.get(id(subject), ()) if s.matches(subject, name)]
        if not matching:
            return 0

        event = ChangeEvent(subject, key_path, old_value)
        delivered = 0
        for subscription in matching:
            # Honour unsubscribes made by earlier handlers of this emission
            if not subscription.active:
                continue
            try:
                subscription.handler(event)
            except Exception as e:
                logger.error(f"{self.name}: error in handler for {type(subject).__name__}.{name}: {e}")
            delivered += 1
        return delivered

    def subscription_count(self, subject: Any = None) -> int:
        """Number of live subscriptions, overall or for one subject."""
        with self._lock:
            if subject is None:
                for subject_id in list(self._subscriptions):
                    self._prune(subject_id)
                return sum(len(bucket) for bucket in self._subscriptions.values())
            self._prune(id(subject))
            return sum(1 for s in self._subscriptions.get(id(subject), ()) if s.subject is subject)

    def has_subscribers(self, subject: Any, key_path: Any = None) -> bool:
        if key_path is None:
            return self.subscription_count(subject) > 0
        name = property_name(key_path)
        with self._lock:
            return any(s.matches(subject, name) for s in self._subscriptions.get(id(subject), ()))

    def clear(self) -> None:
        """Cancel every subscription."""
        with self._lock:
            for bucket in self._subscriptions.values():
                for subscription in bucket:
                    subscription.active = False
            self._subscriptions.clear()

    def _prune(self, subject_id: int) -> None:
        """Drop subscriptions whose subject has been reclaimed. Caller holds the lock."""
        bucket = self._subscriptions.get(subject_id)
        if bucket is None:
            return
        alive = [s for s in bucket if s.subject is not None]
        if len(alive) != len(bucket):
            for s in bucket:
                if s.subject is None:
                    s.active = False
            if alive:
                self._subscriptions[subject_id] = alive
            else:
                del self._subscriptions[subject_id]


_default_notifier: Optional[ChangeNotifier] = None
_default_lock = threading.Lock()


def default_notifier() -> ChangeNotifier:
    """Process-wide notifier, created on first use."""
    global _default_notifier
    if _default_notifier is None:
        with _default_lock:
            if _default_notifier is None:
                _default_notifier = ChangeNotifier("KeyPathBinding")
    return _default_notifier
