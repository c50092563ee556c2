"""
KeyPath - Typed accessor for one property of one type.

A KeyPath identifies a property independently of any instance. It knows
the owning type, the attribute name and the declared value type, and can
read and (when writable) write that property on any instance of the owner.
KeyPaths compare and hash by (owner, name) so they can be used as
subscription keys.

Usage:
    from keypath_bindings.ui.mvvm.keypath import KeyPath

    class Person:
        name: str = ""

    name_path = KeyPath.of(Person, "name")
    name_path.value_type        # str
    name_path.set(person, "Ada")
    name_path.get(person)       # "Ada"

Types that expose properties through getter/setter methods (Qt widgets)
register explicit KeyPaths with ``KeyPath.register``.
"""
import typing
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar
from loguru import logger

T = TypeVar('T')

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], None]


class KeyPath(Generic[T]):
    """
    Typed, comparable property accessor.

    Args:
        owner: Type declaring the property.
        name: Attribute name.
        value_type: Declared value type (``typing.Any`` when unknown).
        getter: Optional ``getter(obj)``; defaults to ``getattr``.
        setter: Optional ``setter(obj, value)``; defaults to ``setattr``.
        writable: Whether ``set`` is allowed.
    """

    # (owner, name) -> explicitly registered KeyPath
    _registry: Dict[Tuple[type, str], "KeyPath"] = {}

    def __init__(
        self,
        owner: type,
        name: str,
        value_type: Any = Any,
        getter: Optional[Getter] = None,
        setter: Optional[Setter] = None,
        writable: bool = True,
    ):
        self.owner = owner
        self.name = name
        self.value_type = value_type
        self._getter = getter
        self._setter = setter
        self.writable = writable

    # --- Resolution ---

    @classmethod
    def register(cls, key_path: "KeyPath") -> "KeyPath":
        """Make ``key_path`` the result of ``KeyPath.of`` for its owner (and subclasses) and name."""
        cls._registry[(key_path.owner, key_path.name)] = key_path
        return key_path

    @classmethod
    def of(cls, owner: type, name: str) -> "KeyPath":
        """
        Resolve the KeyPath for ``owner.name``.

        Looks for, in order: a registered KeyPath on the MRO, a descriptor
        declaring its own value type (NotifyingProperty), a ``property``, a
        type annotation.

        Raises:
            AttributeError: ``owner`` has no such attribute or annotation.
        """
        for klass in owner.__mro__:
            registered = cls._registry.get((klass, name))
            if registered is not None:
                return registered

        attr = _class_attribute(owner, name)

        if attr is not None and hasattr(attr, "value_type") and hasattr(attr, "__set__"):
            return cls(owner, name, attr.value_type)

        if isinstance(attr, property):
            value_type = _type_hints(attr.fget).get("return", Any) if attr.fget else Any
            return cls(owner, name, value_type, writable=attr.fset is not None)

        hints = _type_hints(owner)
        if name in hints:
            return cls(owner, name, hints[name])

        if attr is not None and not callable(attr):
            return cls(owner, name, type(attr))

        raise AttributeError(f"{owner.__name__} has no property '{name}'")

    @classmethod
    def for_object(cls, obj: Any, name: str) -> "KeyPath":
        """
        Resolve ``name`` against the type of ``obj``.

        Falls back to an untyped KeyPath when only the instance carries the
        attribute (set in ``__init__`` without a class annotation).
        """
        try:
            return cls.of(type(obj), name)
        except AttributeError:
            if hasattr(obj, name):
                logger.debug(f"{type(obj).__name__}.{name} has no declared type; using Any")
                return cls(type(obj), name, Any)
            raise

    # --- Access ---

    def get(self, obj: Any) -> T:
        if self._getter is not None:
            return self._getter(obj)
        return getattr(obj, self.name)

    def set(self, obj: Any, value: T) -> None:
        if not self.writable:
            raise TypeError(f"{self!r} is read-only")
        if self._setter is not None:
            self._setter(obj, value)
        else:
            setattr(obj, self.name, value)

    # --- Identity ---

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyPath):
            return NotImplemented
        return self.owner is other.owner and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.owner, self.name))

    def __repr__(self) -> str:
        return f"\\{self.owner.__name__}.{self.name}"


def type_name(tp: Any) -> str:
    """Readable name for a type or typing construct."""
    if tp is Any:
        return "Any"
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        return tp.__name__
    return repr(tp).replace("typing.", "")


def _class_attribute(owner: type, name: str) -> Any:
    for klass in owner.__mro__:
        if name in vars(klass):
            return vars(klass)[name]
    return None


def _type_hints(obj: Any) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except Exception as e:
        # Unresolvable forward references; treat everything as untyped
        logger.debug(f"Could not resolve type hints of {obj!r}: {e}")
        return {}
