"""
Scoped proxy runtime: the state every scoped proxy carries and the advice
that re-resolves the real bean on each call.
"""

from typing import Any

from .proxy import Invocation, ProxyAdvice, bind_field

CONTAINER_FIELD = "_scoped_container"
NAME_FIELD = "_scoped_name"


class ScopedProxyMixin:
    """
    First base of every scoped proxy class.

    Replaces the target's constructor: a scoped proxy never builds the
    target's own state, it only remembers where to find the real bean.
    """

    def __init__(self, container: Any, name: str):
        bind_field(self, CONTAINER_FIELD, container)
        bind_field(self, NAME_FIELD, name)

    def __repr__(self) -> str:
        name = self.__dict__.get(NAME_FIELD, "?")
        return f"<{type(self).__qualname__} for '{name}'>"


class ScopedProxyAdvice(ProxyAdvice):
    """
    Looks the real bean up in the container on every call and invokes the
    same method on it.

    The advice does not proceed down the chain: the looked-up bean runs its
    own interceptors, if it has any.
    """

    def invoke(self, invocation: Invocation) -> Any:
        proxy = invocation.proxy
        container = getattr(proxy, CONTAINER_FIELD)
        target = container.get_bean(getattr(proxy, NAME_FIELD))
        method = getattr(target, invocation.method_name)
        return method(*invocation.args, **invocation.kwargs)


def is_scoped_proxy(value: Any) -> bool:
    return isinstance(value, ScopedProxyMixin)


def scoped_name(proxy: ScopedProxyMixin) -> str:
    """Name of the bean a scoped proxy resolves."""
    return getattr(proxy, NAME_FIELD)
