"""
Manager for mixing scopes.

"Mixed scopes" is the situation when a bean of a narrower scope is
injected into a bean of a wider scope, e.g. a request scoped bean into a
singleton. The singleton would keep the first request's instance forever.

Depending on configuration the manager rejects such an injection, skips
it, or injects a scoped proxy instead: a per-name singleton that looks the
real bean up in the container on every method call.

Proxy classes are defined once per bean type; proxy instances are created
once per bean name. Both caches belong to one manager, and one manager
belongs to one container.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import logging

from .cache import ComputeCache
from .definitions import BeanDefinition, WrappedBeanDefinition
from .diagnostics import DIDiagnostics, DIEventType
from .errors import ProxyBindingError, ProxyGenerationError, ScopeMixingError
from .proxy import AllMethodsPointcut, ProxyAspect, ProxyFactory
from .scoped import ScopedProxyAdvice, ScopedProxyMixin

logger = logging.getLogger("scopewire.proxy")


class MixingOutcome(str, Enum):
    """How an injection point is handled."""

    COMPATIBLE = "compatible"        # inject the real bean
    REJECT_FATAL = "reject_fatal"    # raise ScopeMixingError
    REJECT_SILENT = "reject_silent"  # leave the injection point unset
    MEDIATE = "mediate"              # inject a scoped proxy


@dataclass(frozen=True, slots=True)
class Injection:
    """
    Decision for one injection point.

    ``value`` is the scoped proxy for MEDIATE and ``None`` otherwise.
    """
    outcome: MixingOutcome
    value: Any = None

    @property
    def skip(self) -> bool:
        return self.outcome is MixingOutcome.REJECT_SILENT


def evaluate_mixing(
    target_definition: BeanDefinition,
    ref_definition: BeanDefinition,
    *,
    detect_mixed_scopes: bool,
    wire_scoped_proxy: bool,
) -> MixingOutcome:
    """
    Decide how ``ref_definition`` may be injected into ``target_definition``.

    A target without a scope accepts any bean, like a prototype.
    """
    target_scope = target_definition.scope

    if target_scope is None or target_scope.accept(ref_definition.scope):
        return MixingOutcome.COMPATIBLE

    if wire_scoped_proxy:
        return MixingOutcome.MEDIATE

    if detect_mixed_scopes:
        return MixingOutcome.REJECT_FATAL

    return MixingOutcome.REJECT_SILENT


def create_mixing_message(target_definition: BeanDefinition, ref_definition: BeanDefinition) -> str:
    """Creates mixed scope message."""
    return (
        f"Scopes mixing detected: "
        f"{ref_definition.name}@{type(ref_definition.scope).__name__} -> "
        f"{target_definition.name}@{type(target_definition.scope).__name__}"
    )


class ScopedProxyManager:
    """
    Resolves scoped proxies for mixed-scope injection points.

    Args:
        suffix: Suffix of generated proxy class names
        diagnostics: Event bus shared with the owning container
    """

    def __init__(
        self,
        *,
        suffix: str = "ScopedProxy",
        diagnostics: Optional[DIDiagnostics] = None,
    ):
        self.aspect = ProxyAspect(ScopedProxyAdvice(), AllMethodsPointcut())
        self.suffix = suffix
        self._diagnostics = diagnostics or DIDiagnostics()

        self._proxy_classes: ComputeCache[type, type] = ComputeCache()  # {bean type: proxy class}
        self._proxies: ComputeCache[str, Any] = ComputeCache()  # {bean name: proxy}

        logger.debug("ScopedProxyManager created")

    @property
    def proxy_classes(self) -> ComputeCache:
        return self._proxy_classes

    @property
    def proxies(self) -> ComputeCache:
        return self._proxies

    def evaluate(
        self,
        container: Any,
        target_definition: BeanDefinition,
        ref_definition: BeanDefinition,
    ) -> MixingOutcome:
        config = container.config
        return evaluate_mixing(
            target_definition,
            ref_definition,
            detect_mixed_scopes=config.detect_mixed_scopes,
            wire_scoped_proxy=config.wire_scoped_proxy,
        )

    def lookup_value(
        self,
        container: Any,
        target_definition: BeanDefinition,
        ref_definition: BeanDefinition,
    ) -> Any:
        """
        Returns scoped proxy bean if injection scopes are mixed on some injection point.
        May return ``None`` if mixing scopes is not detected or the injection
        is silently skipped; use :meth:`resolve_injection` to tell them apart.

        Raises:
            ScopeMixingError: If scopes are mixed, proxies are disabled and
                detection is enabled
            ProxyGenerationError: If the proxy class cannot be defined or built
            ProxyBindingError: If the proxy cannot be bound to the container
        """
        return self.resolve_injection(container, target_definition, ref_definition).value

    def resolve_injection(
        self,
        container: Any,
        target_definition: BeanDefinition,
        ref_definition: BeanDefinition,
    ) -> Injection:
        """Same decision as :meth:`lookup_value`, as a typed result."""
        outcome = self.evaluate(container, target_definition, ref_definition)

        if outcome is MixingOutcome.COMPATIBLE:
            return Injection(outcome)

        self._diagnostics.emit(
            DIEventType.SCOPE_MIXING,
            name=ref_definition.name,
            target=target_definition.name,
            scope=type(ref_definition.scope).__name__,
            metadata={"outcome": outcome.value},
        )

        if outcome is MixingOutcome.REJECT_FATAL:
            raise ScopeMixingError(
                bean_name=ref_definition.name,
                bean_scope=type(ref_definition.scope).__name__,
                target_name=target_definition.name,
                target_scope=type(target_definition.scope).__name__,
                message=create_mixing_message(target_definition, ref_definition),
            )

        if outcome is MixingOutcome.REJECT_SILENT:
            return Injection(outcome)

        if container.config.detect_mixed_scopes:
            if logger.isEnabledFor(logging.WARNING):
                logger.warning(create_mixing_message(target_definition, ref_definition))
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug(create_mixing_message(target_definition, ref_definition))

        return Injection(outcome, self.get_proxy(container, ref_definition))

    def get_proxy(self, container: Any, ref_definition: BeanDefinition) -> Any:
        """Returns the single scoped proxy for a bean name, creating it on first use."""
        return self._proxies.get_or_create(
            ref_definition.name,
            lambda: self.create_scoped_proxy_bean(container, ref_definition),
        )

    def get_proxy_class(self, ref_definition: BeanDefinition) -> type:
        """Returns the scoped proxy class for a bean type, defining it only once."""
        return self._proxy_classes.get_or_create(
            ref_definition.type,
            lambda: self.define_proxy_class(ref_definition),
        )

    def define_proxy_class(self, ref_definition: BeanDefinition) -> type:
        """
        Defines a scoped proxy class for given bean definition.

        A bean that is already a proxy is not proxied twice: the scoped
        proxy is built from its original target with the scoped aspect
        placed before the bean's own aspects.
        """
        if isinstance(ref_definition, WrappedBeanDefinition):
            target = ref_definition.original_target
            aspects = (self.aspect, *ref_definition.aspects)
        else:
            target = ref_definition.type
            aspects = (self.aspect,)

        builder = ProxyFactory(aspects, suffix=self.suffix, mixins=(ScopedProxyMixin,))

        try:
            proxy_class = builder.define(target)
        except TypeError as e:
            raise ProxyGenerationError(ref_definition.name, target, str(e)) from e

        self._diagnostics.emit(
            DIEventType.PROXY_CLASS_DEFINED,
            name=ref_definition.name,
            bean_type=target,
            metadata={"aspects": len(aspects)},
        )
        return proxy_class

    def create_scoped_proxy_bean(self, container: Any, ref_definition: BeanDefinition) -> Any:
        """Creates scoped proxy bean for given bean definition."""
        proxy_class = self.get_proxy_class(ref_definition)

        try:
            proxy = proxy_class(container, ref_definition.name)
        except ProxyBindingError:
            raise
        except Exception as e:
            raise ProxyGenerationError(ref_definition.name, proxy_class, str(e)) from e

        self._diagnostics.emit(
            DIEventType.PROXY_CREATED,
            name=ref_definition.name,
            bean_type=proxy_class,
        )
        return proxy
