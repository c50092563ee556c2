"""
Notifying Property Descriptor.

Emits a change event on the ChangeNotifier whenever the property value
changes, so observed models do not have to call ``emit`` by hand.

Usage:
    class Counter(ChangeNotifierMixin):
        count: int = NotifyingProperty(default=0)
        label = NotifyingProperty(default="", coerce=str)

    # Assigning emits a change event for (counter, "count") with the old value
    counter.count = 5

Plain attributes stay supported; their owners call
``notify_property_changed`` after mutating them.
"""
import typing
from typing import Any, Callable, Generic, Optional, TypeVar
from loguru import logger

from keypath_bindings.core.events import MISSING, ChangeNotifier, default_notifier

T = TypeVar('T')


class NotifyingProperty(Generic[T]):
    """
    Descriptor that emits a property change when the value changes.

    Args:
        default: Default value for the property.
        value_type: Declared type used by bindings for compatibility checks.
            Defaults to the class annotation, then ``type(default)``.
        coerce: Optional callable to coerce/validate the value before setting.
        notifier: Notifier to emit on. Defaults to the instance's notifier
            (ChangeNotifierMixin) or the process-wide one.

    Example:
        class Slider(ChangeNotifierMixin):
            value: float = NotifyingProperty(default=0.0)
            maximum = NotifyingProperty(default=100, coerce=int)
    """

    def __init__(
        self,
        default: T = None,
        value_type: Any = None,
        coerce: Optional[Callable[[Any], T]] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.default = default
        self._value_type = value_type
        self.coerce = coerce
        self.notifier = notifier
        self._owner: Optional[type] = None
        self._attr_name: str = ""
        self.name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        """Called when the descriptor is assigned to a class attribute."""
        self._owner = owner
        self.name = name
        self._attr_name = f"_notifying_{name}"

    @property
    def value_type(self) -> Any:
        if self._value_type is None:
            self._value_type = self._resolve_value_type()
        return self._value_type

    def _resolve_value_type(self) -> Any:
        if self._owner is not None:
            try:
                hint = typing.get_type_hints(self._owner).get(self.name)
            except Exception as e:
                logger.debug(f"Could not resolve annotation of {self._owner.__name__}.{self.name}: {e}")
                hint = None
            if hint is not None:
                # Allow ``value: NotifyingProperty[int] = NotifyingProperty(0)``
                if typing.get_origin(hint) is NotifyingProperty:
                    return typing.get_args(hint)[0]
                return hint
        if self.default is not None:
            return type(self.default)
        return Any

    def __get__(self, obj: Any, objtype: type = None) -> T:
        """Get the property value."""
        if obj is None:
            return self  # type: ignore
        return getattr(obj, self._attr_name, self.default)

    def __set__(self, obj: Any, value: Any) -> None:
        """Set the property value and emit a change event if different."""
        if self.coerce is not None:
            value = self.coerce(value)

        old_value = getattr(obj, self._attr_name, self.default)

        if old_value != value:
            setattr(obj, self._attr_name, value)
            self._notifier_for(obj).emit(obj, self.name, old_value)

    def _notifier_for(self, obj: Any) -> ChangeNotifier:
        if self.notifier is not None:
            return self.notifier
        instance_notifier = getattr(obj, "notifier", None)
        if isinstance(instance_notifier, ChangeNotifier):
            return instance_notifier
        return default_notifier()


class ChangeNotifierMixin:
    """
    Mixin for models that announce their own property changes.

    Set ``notifier`` (class or instance attribute) to use a specific
    ChangeNotifier instead of the process-wide one.

    Example:
        class ViewModel(ChangeNotifierMixin):
            def __init__(self):
                self.title = ""

            def rename(self, title):
                old = self.title
                self.title = title
                self.notify_property_changed("title", old)
    """

    notifier: Optional[ChangeNotifier] = None

    def change_notifier(self) -> ChangeNotifier:
        return self.notifier if self.notifier is not None else default_notifier()

    def notify_property_changed(self, key_path: Any, old_value: Any = MISSING) -> int:
        """Emit a change of one of this object's properties."""
        return self.change_notifier().emit(self, key_path, old_value)

    def notify_object_changed(self, obj: Any, key_path: Any, old_value: Any = MISSING) -> int:
        """Emit a change of a property of another object, e.g. a widget this object owns."""
        return self.change_notifier().emit(obj, key_path, old_value)
