"""
One-Way KeyPath Bindings.

Keeps ``destination.property == transform(source.property)`` after every
change the ChangeNotifier reports for the source property.

Usage:
    from keypath_bindings.ui.mvvm.binding import KeyPathBinding, bind

    # Same type: copied as-is. A plain attribute needs a manual emit after
    # each change, e.g. model.notify_property_changed("title")
    binding = KeyPathBinding(model, "title", view_model, "title")

    # Different types need a transform(source, destination, old_value, new_value)
    binding = bind((slider, "value"), (label, "text", lambda s, d, old, new: str(new)))

    # Stop updating
    binding.dispose()

A binding holds its source and destination weakly. When either is
garbage collected the binding stops updating without raising.
"""
import threading
import types
import typing
import weakref
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Union
from loguru import logger

from keypath_bindings.core.config import BindingSettings
from keypath_bindings.core.dispatch import Dispatcher, dispatcher_from_settings, main_dispatcher
from keypath_bindings.core.events import MISSING, ChangeEvent, ChangeNotifier, default_notifier
from keypath_bindings.ui.mvvm.keypath import KeyPath, type_name

# transform(source, destination, old_value, new_value) -> value to write
Transform = Callable[[Any, Any, Any, Any], Any]
KeyLike = Union[KeyPath, str]

_NoneType = type(None)


class BindingState(Enum):
    """Binding lifecycle states."""
    CONSTRUCTING = "constructing"
    ACTIVE = "active"
    INERT = "inert"
    DISPOSED = "disposed"


class BindingError(Exception):
    """Base class for errors raised while creating a binding."""


class IncompatibleTypesError(BindingError):
    """Source and destination value types differ and no transform was given."""

    def __init__(self, source_type: Any, destination_type: Any):
        self.source_type = source_type
        self.destination_type = destination_type
        super().__init__(
            f"Cannot bind source key path type {type_name(source_type)} with destination "
            f"key path type {type_name(destination_type)} without a custom transform function."
        )


class SameObjectAndPropertyError(BindingError):
    """A property was bound to itself on the same instance."""

    def __init__(self, key_path: KeyPath):
        self.key_path = key_path
        super().__init__(f"Cannot bind {key_path!r} to itself on the same object.")


# --- Type compatibility ---

def _union_members(tp: Any) -> Optional[frozenset]:
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        return frozenset(typing.get_args(tp))
    return None


def is_assignable(source_type: Any, destination_type: Any, strict: bool = True) -> bool:
    """
    Whether source values can be written to the destination without a transform.

    Types must be equal, or the destination must be ``Optional`` of the
    source type. An ``Any`` destination accepts everything; an ``Any``
    source is accepted only when ``strict`` is False.
    """
    if destination_type is Any:
        return True
    if source_type is Any:
        return not strict
    if source_type == destination_type:
        return True

    destination_members = _union_members(destination_type)
    if destination_members is None:
        return False
    source_members = _union_members(source_type) or frozenset([source_type])
    if source_members == destination_members:
        return True
    return (
        _NoneType in destination_members
        and _NoneType not in source_members
        and destination_members - {_NoneType} == source_members
    )


def _identity(source: Any, destination: Any, old_value: Any, new_value: Any) -> Any:
    return new_value


def _resolve_key_path(obj: Any, key: KeyLike) -> KeyPath:
    if isinstance(key, KeyPath):
        if not isinstance(obj, key.owner):
            raise TypeError(f"{key!r} does not apply to {type(obj).__name__}")
        return key
    return KeyPath.for_object(obj, key)


# --- Defaults ---

_defaults_lock = threading.Lock()
_default_dispatcher: Optional[Dispatcher] = None
_default_strict_types = True


def configure(settings: BindingSettings) -> None:
    """Apply the ``binding`` config section to bindings created afterwards."""
    global _default_dispatcher, _default_strict_types
    with _defaults_lock:
        _default_dispatcher = dispatcher_from_settings(settings.default_dispatcher)
        _default_strict_types = settings.strict_types
    logger.debug(f"Binding defaults: dispatcher={settings.default_dispatcher}, strict_types={settings.strict_types}")


def _defaults() -> Tuple[Dispatcher, bool]:
    with _defaults_lock:
        return _default_dispatcher or main_dispatcher(), _default_strict_types


class KeyPathBinding:
    """
    One-way binding from a source property to a destination property.

    Args:
        source: Object owning the observed property.
        source_key: KeyPath or attribute name on ``source``.
        destination: Object owning the written property.
        destination_key: KeyPath or attribute name on ``destination``.
        transform: ``transform(source, destination, old_value, new_value)``
            producing the value to write. Required when the value types are
            not compatible.
        dispatcher: Execution context for writes. Defaults to the UI-safe
            main thread dispatcher.
        notifier: ChangeNotifier to subscribe on. Defaults to the
            process-wide notifier.
        strict_types: Reject untyped (``Any``) sources without a transform.

    Raises:
        IncompatibleTypesError: Types differ and no transform was given.
        SameObjectAndPropertyError: Source and destination are the same
            property of the same object.
    """

    def __init__(
        self,
        source: Any,
        source_key: KeyLike,
        destination: Any,
        destination_key: KeyLike,
        transform: Optional[Transform] = None,
        dispatcher: Optional[Dispatcher] = None,
        notifier: Optional[ChangeNotifier] = None,
        strict_types: Optional[bool] = None,
    ):
        self._state = BindingState.CONSTRUCTING
        default_dispatcher, default_strict = _defaults()

        self.source_key_path = _resolve_key_path(source, source_key)
        self.destination_key_path = _resolve_key_path(destination, destination_key)
        if not self.destination_key_path.writable:
            raise TypeError(f"Destination {self.destination_key_path!r} is read-only")

        # The notifier matches by attribute name, so compare names, not owners
        if source is destination and self.source_key_path.name == self.destination_key_path.name:
            raise SameObjectAndPropertyError(self.source_key_path)

        if transform is None:
            strict = default_strict if strict_types is None else strict_types
            source_type = self.source_key_path.value_type
            destination_type = self.destination_key_path.value_type
            if not is_assignable(source_type, destination_type, strict):
                raise IncompatibleTypesError(source_type, destination_type)

        self._source_ref = weakref.ref(source)
        self._destination_ref = weakref.ref(destination)
        self._transform: Transform = transform or _identity
        self._dispatcher = dispatcher or default_dispatcher
        self._notifier = notifier or default_notifier()
        self._last_value: Any = MISSING

        # Initial value, reported without an old value
        self._push(source, MISSING)

        self_ref = weakref.ref(self)

        def on_source_changed(event: ChangeEvent) -> None:
            binding = self_ref()
            if binding is not None:
                binding._source_changed(event)

        self._subscription = self._notifier.subscribe(source, self.source_key_path, on_source_changed)
        self._finalizer = weakref.finalize(self, self._notifier.unsubscribe, self._subscription)
        self._state = BindingState.ACTIVE
        logger.debug(f"Bound {self.source_key_path!r} -> {self.destination_key_path!r} on {self._dispatcher!r}")

    # --- State ---

    @property
    def state(self) -> BindingState:
        if self._state is BindingState.ACTIVE and (self._source_ref() is None or self._destination_ref() is None):
            self._state = BindingState.INERT
            logger.debug(f"Binding {self.source_key_path!r} -> {self.destination_key_path!r} is inert")
        return self._state

    @property
    def is_active(self) -> bool:
        return self.state is BindingState.ACTIVE

    @property
    def source(self) -> Optional[Any]:
        return self._source_ref()

    @property
    def destination(self) -> Optional[Any]:
        return self._destination_ref()

    def dispose(self) -> None:
        """Unsubscribe from the notifier. Safe to call more than once."""
        if self._state is BindingState.DISPOSED:
            return
        self._finalizer()
        self._state = BindingState.DISPOSED
        logger.debug(f"Disposed binding {self.source_key_path!r} -> {self.destination_key_path!r}")

    def __enter__(self) -> "KeyPathBinding":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # --- Propagation ---

    def _source_changed(self, event: ChangeEvent) -> None:
        if self.state is not BindingState.ACTIVE:
            return
        source = self._source_ref()
        if source is None:
            return
        old_value = event.old_value if event.has_old_value else self._last_value
        self._push(source, old_value)

    def _push(self, source: Any, old_value: Any) -> None:
        new_value = self.source_key_path.get(source)
        self._last_value = new_value
        reported_old = None if old_value is MISSING else old_value

        # Deferred writes may sit in a queue; hold nothing strongly but the values
        binding_ref = weakref.ref(self)
        source_ref = self._source_ref

        def write() -> None:
            binding = binding_ref()
            if binding is None or binding._state is BindingState.DISPOSED:
                return
            source = source_ref()
            destination = binding._destination_ref()
            if source is None or destination is None:
                logger.debug(f"Source or destination of {binding!r} reclaimed; skipping write")
                return
            value = binding._transform(source, destination, reported_old, new_value)
            binding.destination_key_path.set(destination, value)

        self._dispatcher.dispatch(write)

    def __repr__(self) -> str:
        return f"<KeyPathBinding {self.source_key_path!r} -> {self.destination_key_path!r} {self.state.value}>"


def bind(
    source: Tuple[Any, KeyLike],
    destination: Union[Tuple[Any, KeyLike], Tuple[Any, KeyLike, Transform]],
    transform: Optional[Transform] = None,
    **kwargs: Any,
) -> KeyPathBinding:
    """
    Shorthand for ``KeyPathBinding``.

    Args:
        source: ``(object, key)`` pair.
        destination: ``(object, key)`` or ``(object, key, transform)``.
        transform: Transform, when not given in ``destination``.
        **kwargs: Passed to KeyPathBinding (dispatcher, notifier, strict_types).

    Example:
        bindings = [
            bind((slider, "value"), (label, "text", lambda s, d, old, new: f"{new}")),
            bind((model, "title"), (window, "title")),
        ]
    """
    source_obj, source_key = source
    if len(destination) == 3:
        destination_obj, destination_key, destination_transform = destination
        if transform is not None:
            raise ValueError("Transform given twice")
        transform = destination_transform
    else:
        destination_obj, destination_key = destination
    return KeyPathBinding(source_obj, source_key, destination_obj, destination_key, transform, **kwargs)
