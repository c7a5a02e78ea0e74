"""
Proxy classes built at runtime.

A proxy class is a subclass of the target whose public methods run an
ordered chain of advices before (or instead of) the target method:

    aspect = ProxyAspect(TimingAdvice(), AllMethodsPointcut())
    TimedService = ProxyFactory([aspect]).define(Service)

Advice order follows aspect order: the first aspect is the outermost.
"""

import functools
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from .errors import ProxyBindingError


class Invocation:
    """
    A single intercepted method call travelling through the advice chain.
    """

    __slots__ = ("proxy", "method_name", "args", "kwargs", "_method", "_chain", "_index")

    def __init__(
        self,
        proxy: Any,
        method_name: str,
        method: Callable,
        args: tuple,
        kwargs: dict,
        chain: Tuple["ProxyAdvice", ...],
        index: int = 0,
    ):
        self.proxy = proxy
        self.method_name = method_name
        self.args = args
        self.kwargs = kwargs
        self._method = method
        self._chain = chain
        self._index = index

    def proceed(self) -> Any:
        """Run the next advice, or the target method once the chain is exhausted."""
        if self._index < len(self._chain):
            advice = self._chain[self._index]
            return advice.invoke(
                Invocation(
                    self.proxy,
                    self.method_name,
                    self._method,
                    self.args,
                    self.kwargs,
                    self._chain,
                    self._index + 1,
                )
            )
        return self._method(self.proxy, *self.args, **self.kwargs)

    def __repr__(self) -> str:
        return f"Invocation({type(self.proxy).__name__}.{self.method_name})"


class ProxyAdvice(ABC):
    """Interception behaviour applied around a proxied method."""

    @abstractmethod
    def invoke(self, invocation: Invocation) -> Any:
        """Handle the call. Call ``invocation.proceed()`` to continue the chain."""
        ...


class Pointcut(ABC):
    """Selects which methods of a target an aspect applies to."""

    @abstractmethod
    def apply(self, name: str, member: Any) -> bool:
        ...


class AllMethodsPointcut(Pointcut):
    """Matches every public instance method."""

    def apply(self, name: str, member: Any) -> bool:
        return not name.startswith("_") and inspect.isfunction(member)


@dataclass(frozen=True)
class ProxyAspect:
    """An advice bound to the pointcut selecting the methods it wraps."""

    advice: ProxyAdvice
    pointcut: Pointcut = field(default_factory=AllMethodsPointcut)


def _public_methods(target: type) -> Dict[str, Any]:
    """Collect plain functions visible on ``target`` (own and inherited)."""
    methods: Dict[str, Any] = {}
    for name in dir(target):
        if name.startswith("__"):
            continue
        member = inspect.getattr_static(target, name)
        if inspect.isfunction(member):
            methods[name] = member
    return methods


def _intercept(name: str, method: Callable, chain: Tuple[ProxyAdvice, ...]) -> Callable:
    @functools.wraps(method)
    def intercepted(self, *args, **kwargs):
        return Invocation(self, name, method, args, kwargs, chain).proceed()

    intercepted.__proxied__ = True
    return intercepted


class ProxyFactory:
    """
    Defines proxy subclasses for a fixed, ordered list of aspects.

    Args:
        aspects: Aspects in application order (first is outermost)
        suffix: Appended to the target class name
        mixins: Extra bases placed before the target in the MRO
    """

    def __init__(
        self,
        aspects: Sequence[ProxyAspect],
        *,
        suffix: str = "Proxy",
        mixins: Sequence[type] = (),
    ):
        self.aspects: Tuple[ProxyAspect, ...] = tuple(aspects)
        self.suffix = suffix
        self.mixins: Tuple[type, ...] = tuple(mixins)

    def define(self, target: Type) -> Type:
        """
        Build the proxy class for ``target``.

        Raises:
            TypeError: If ``target`` cannot be subclassed
        """
        if not isinstance(target, type):
            raise TypeError(f"Proxy target must be a class, got {target!r}")

        namespace: Dict[str, Any] = {
            "__module__": target.__module__,
            "__qualname__": f"{target.__qualname__}{self.suffix}",
            "__proxy_target__": target,
            "__proxy_aspects__": self.aspects,
        }

        for name, method in _public_methods(target).items():
            chain = tuple(
                aspect.advice
                for aspect in self.aspects
                if aspect.pointcut.apply(name, method)
            )
            if chain:
                namespace[name] = _intercept(name, method, chain)

        return type(f"{target.__name__}{self.suffix}", (*self.mixins, target), namespace)


def proxy_target(proxy_class: type) -> Optional[type]:
    """Return the class a proxy class was generated from, or ``None``."""
    return proxy_class.__dict__.get("__proxy_target__")


def bind_field(instance: Any, field_name: str, value: Any) -> None:
    """
    Assign ``field_name`` on a freshly created proxy.

    Raises:
        ProxyBindingError: If the assignment is rejected
    """
    try:
        setattr(instance, field_name, value)
    except (AttributeError, TypeError) as e:
        raise ProxyBindingError(field_name, type(instance), str(e)) from e
