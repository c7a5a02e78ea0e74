"""
Bean definitions - what the container knows about a registered bean.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .scopes import Scope


@dataclass(frozen=True, slots=True)
class BeanDefinition:
    """
    Registered bean.

    Attributes:
        name: Unique bean name
        type: Class instantiated for the bean
        scope: Scope holding the bean's instances (``None`` means unscoped)
        refs: Attribute name -> referenced bean name, wired after creation
    """
    name: str
    type: type
    scope: Optional[Scope]
    refs: Dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def scope_kind(self) -> str:
        return type(self.scope).__name__

    def __repr__(self) -> str:
        return f"BeanDefinition({self.name!r}, {self.type.__qualname__}, {self.scope_kind})"


@dataclass(frozen=True, slots=True)
class WrappedBeanDefinition(BeanDefinition):
    """
    Bean whose ``type`` is a proxy class generated from ``original_target``
    with ``aspects`` applied.
    """
    original_target: type = object
    aspects: Tuple[Any, ...] = ()

    def __repr__(self) -> str:
        return (
            f"WrappedBeanDefinition({self.name!r}, {self.original_target.__qualname__}, "
            f"{self.scope_kind}, aspects={len(self.aspects)})"
        )


def default_bean_name(bean_type: type) -> str:
    """Class name with the first letter lower-cased: ``UserRepo`` -> ``userRepo``."""
    name = bean_type.__name__
    return name[:1].lower() + name[1:]
