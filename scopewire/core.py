"""
Container - bean registry and attribute wiring.

Beans are created with their no-argument constructor, stored in their
scope, then wired: every entry of ``refs`` names an attribute and the bean
to assign to it. Each injection point goes through the scoped proxy
manager, which decides between the real bean, a scoped proxy, leaving the
attribute unset, or failing.
"""

import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar
import logging

from .cache import KeyedLocks
from .config import ContainerConfig
from .definitions import BeanDefinition, WrappedBeanDefinition, default_bean_name
from .diagnostics import DIDiagnostics, DIEventType
from .errors import BeanNotFoundError, DuplicateBeanError
from .manager import MixingOutcome, ScopedProxyManager
from .proxy import ProxyAspect, ProxyFactory
from .scopes import Scope, ScopeName, resolve_scope_type

logger = logging.getLogger("scopewire.container")

S = TypeVar("S", bound=Scope)


def _same_registration(existing: BeanDefinition, definition: BeanDefinition) -> bool:
    if type(existing) is not type(definition) or existing.refs != definition.refs:
        return False
    if isinstance(existing, WrappedBeanDefinition):
        # each registration defines a fresh proxy class, so compare what it was built from
        return (
            existing.name == definition.name
            and existing.scope == definition.scope
            and existing.original_target is definition.original_target
            and existing.aspects == definition.aspects
        )
    return existing == definition


class Container:
    """
    Bean container.

    Example:
        container = Container(ContainerConfig(wire_scoped_proxy=True))
        container.register(Cart, scope="request")
        container.register(Checkout, refs={"cart": "cart"})

        checkout = container.get_bean("checkout")
        with container.scope(RequestScope).open():
            checkout.cart.total()  # resolved in the current request
    """

    def __init__(
        self,
        config: Optional[ContainerConfig] = None,
        diagnostics: Optional[DIDiagnostics] = None,
    ):
        self.config = config or ContainerConfig()
        self._definitions: Dict[str, BeanDefinition] = {}
        self._scopes: Dict[Type[Scope], Scope] = {}
        self._lock = threading.Lock()
        self._creation_locks: KeyedLocks[str] = KeyedLocks(reentrant=True)
        self._creating: Dict[str, Any] = {}  # {name: instance being wired}, read under its name lock
        self._diagnostics = diagnostics or DIDiagnostics()
        self._proxy_manager = ScopedProxyManager(
            suffix=self.config.proxy_class_suffix,
            diagnostics=self._diagnostics,
        )

    @property
    def proxy_manager(self) -> ScopedProxyManager:
        return self._proxy_manager

    @property
    def diagnostics(self) -> DIDiagnostics:
        return self._diagnostics

    def scope(self, scope: "str | ScopeName | Type[S]") -> S:
        """Returns this container's instance of a scope, creating it on first use."""
        scope_type = resolve_scope_type(scope)
        instance = self._scopes.get(scope_type)
        if instance is None:
            with self._lock:
                instance = self._scopes.get(scope_type)
                if instance is None:
                    instance = self._scopes[scope_type] = scope_type()
        return instance

    def register(
        self,
        bean_type: type,
        name: Optional[str] = None,
        scope: "str | ScopeName | Type[Scope] | None" = None,
        refs: Optional[Mapping[str, str]] = None,
        aspects: Optional[Sequence[ProxyAspect]] = None,
    ) -> BeanDefinition:
        """
        Register a bean.

        Args:
            bean_type: Class to instantiate
            name: Bean name (default: class name with lower-case first letter)
            scope: Scope name or class (default: ``config.default_scope``)
            refs: Attribute name -> bean name to inject
            aspects: Interceptors; the bean type becomes a proxy of ``bean_type``

        Returns:
            The registered definition

        Raises:
            DuplicateBeanError: If another bean uses the name
        """
        if not isinstance(bean_type, type):
            raise TypeError(f"Bean type must be a class, got {bean_type!r}")

        name = name or default_bean_name(bean_type)
        scope_instance = self.scope(scope if scope is not None else self.config.default_scope)

        if aspects:
            definition: BeanDefinition = WrappedBeanDefinition(
                name=name,
                type=ProxyFactory(aspects).define(bean_type),
                scope=scope_instance,
                refs=dict(refs or {}),
                original_target=bean_type,
                aspects=tuple(aspects),
            )
        else:
            definition = BeanDefinition(
                name=name,
                type=bean_type,
                scope=scope_instance,
                refs=dict(refs or {}),
            )

        with self._lock:
            existing = self._definitions.get(name)
            if existing is not None:
                # Idempotency: same definition is ignored
                if _same_registration(existing, definition):
                    return existing
                raise DuplicateBeanError(name, existing)
            self._definitions[name] = definition

        self._diagnostics.emit(
            DIEventType.REGISTRATION,
            name=name,
            scope=definition.scope_kind,
            bean_type=bean_type,
        )
        return definition

    def lookup_definition(self, name: str) -> Optional[BeanDefinition]:
        return self._definitions.get(name)

    def get_definition(self, name: str, requested_by: Optional[str] = None) -> BeanDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise BeanNotFoundError(name, requested_by=requested_by)
        return definition

    def definitions(self) -> List[BeanDefinition]:
        return list(self._definitions.values())

    def is_registered(self, name: str) -> bool:
        return name in self._definitions

    def get_bean(self, name: str) -> Any:
        """
        Returns the bean instance for ``name``, creating and wiring it if its
        scope holds none yet.

        Raises:
            BeanNotFoundError: If no bean is registered under ``name``
            ScopeMixingError: If wiring hits a rejected scope combination
        """
        definition = self.get_definition(name)
        scope = definition.scope

        if scope is not None:
            instance = scope.lookup(name)
            if instance is not None:
                return instance

        with self._creation_locks.hold(name):
            # only the thread holding the name lock can be wiring this bean
            instance = self._creating.get(name)
            if instance is not None:
                return instance
            if scope is not None:
                instance = scope.lookup(name)
                if instance is not None:
                    return instance
            return self._create_bean(definition)

    def _create_bean(self, definition: BeanDefinition) -> Any:
        instance = definition.type()

        # visible to reference cycles while wiring, published to the scope only when wired
        self._creating[definition.name] = instance
        try:
            self._wire(definition, instance)
        finally:
            del self._creating[definition.name]

        if definition.scope is not None:
            definition.scope.register(definition, instance)

        self._diagnostics.emit(
            DIEventType.BEAN_CREATED,
            name=definition.name,
            scope=definition.scope_kind,
            bean_type=definition.type,
        )
        return instance

    def _wire(self, definition: BeanDefinition, instance: Any) -> None:
        for attribute, ref_name in definition.refs.items():
            ref_definition = self.get_definition(ref_name, requested_by=definition.name)
            injection = self._proxy_manager.resolve_injection(self, definition, ref_definition)

            if injection.outcome is MixingOutcome.REJECT_SILENT:
                logger.debug(
                    f"Skipped injection of '{ref_name}' into {definition.name}.{attribute}"
                )
                continue

            if injection.outcome is MixingOutcome.MEDIATE:
                value = injection.value
            else:
                value = self.get_bean(ref_name)

            setattr(instance, attribute, value)

    def shutdown(self) -> None:
        """Release all scoped instances held by this container."""
        with self._lock:
            scopes = list(self._scopes.values())
        for scope in scopes:
            scope.shutdown()
