"""Method registry mapping :class:`~embedkit.methods.Method` to implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Type, Union

from .errors import UnsupportedMethodError
from .methods import Method, parse_method

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .variants.base import MethodImplementation

ImplementationFactory = Callable[..., "MethodImplementation"]


class MethodRegistry:
    """Simple registry that maps methods to implementation factories."""

    def __init__(self) -> None:
        self._registry: Dict[Method, ImplementationFactory] = {}

    def register(
        self,
        method: Union[Method, str],
        factory: ImplementationFactory,
        *,
        overwrite: bool = False,
    ) -> None:
        key = parse_method(method)
        if not overwrite and key in self._registry:
            raise ValueError(f"Implementation already registered for method '{key.value}'.")
        self._registry[key] = factory

    def unregister(self, method: Union[Method, str]) -> None:
        self._registry.pop(parse_method(method), None)

    def get(self, method: Method) -> ImplementationFactory:
        try:
            return self._registry[method]
        except KeyError as exc:
            available = ", ".join(sorted(m.value for m in self._registry)) or "<none>"
            raise UnsupportedMethodError(
                f"{method.display_name} is not supported. Available methods: {available}."
            ) from exc

    def create(self, method: Method, **kwargs) -> "MethodImplementation":
        return self.get(method)(**kwargs)

    def is_supported(self, method: Method) -> bool:
        return method in self._registry

    def available_methods(self) -> Dict[Method, ImplementationFactory]:
        return dict(self._registry)


global_method_registry = MethodRegistry()


def register_method(
    method: Method,
) -> Callable[[Type["MethodImplementation"]], Type["MethodImplementation"]]:
    """Class decorator registering an implementation for ``method``."""

    def decorator(cls: Type[MethodImplementation]) -> Type[MethodImplementation]:
        global_method_registry.register(method, cls)
        return cls

    return decorator


__all__ = [
    "ImplementationFactory",
    "MethodRegistry",
    "global_method_registry",
    "register_method",
]
