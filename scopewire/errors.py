"""
Container error types with rich diagnostics.
"""

from typing import Optional, Any


class ContainerError(Exception):
    """Base exception for container errors."""
    pass


class ContainerConfigError(ContainerError):
    """Wiring configuration is invalid and the container cannot proceed."""
    pass


class ScopeMixingError(ContainerConfigError):
    """Narrower-scoped bean injected into a wider-scoped bean while proxies are disabled."""

    def __init__(
        self,
        bean_name: str,
        bean_scope: str,
        target_name: str,
        target_scope: str,
        message: Optional[str] = None,
    ):
        self.bean_name = bean_name
        self.bean_scope = bean_scope
        self.target_name = target_name
        self.target_scope = target_scope

        msg = message or (
            f"Scopes mixing detected: {bean_name}@{bean_scope} -> "
            f"{target_name}@{target_scope}"
        )
        msg += (
            f"\n\nSuggested fixes:"
            f"\n  - Enable wire_scoped_proxy to inject a scoped proxy for '{bean_name}'"
            f"\n  - Change '{target_name}' to a scope that accepts {bean_scope}"
            f"\n  - Disable detect_mixed_scopes to skip the injection silently"
        )

        super().__init__(msg)


class ProxyGenerationError(ContainerConfigError):
    """Scoped proxy class could not be defined or instantiated."""

    def __init__(self, bean_name: str, bean_type: Any, reason: str):
        self.bean_name = bean_name
        self.bean_type = bean_type
        self.reason = reason

        type_name = getattr(bean_type, "__qualname__", repr(bean_type))
        msg = (
            f"Failed to create scoped proxy for '{bean_name}' ({type_name}): {reason}"
            f"\n\nSuggested fixes:"
            f"\n  - Make sure {type_name} is a subclassable class"
            f"\n  - Give '{bean_name}' a scope accepted by its consumers"
        )

        super().__init__(msg)


class ProxyBindingError(ContainerConfigError):
    """Container handle or bean name could not be bound on a scoped proxy."""

    def __init__(self, field_name: str, proxy_type: Any, reason: str):
        self.field_name = field_name
        self.proxy_type = proxy_type
        self.reason = reason

        type_name = getattr(proxy_type, "__qualname__", repr(proxy_type))
        super().__init__(
            f"Cannot bind field '{field_name}' on {type_name}: {reason}"
        )


class BeanNotFoundError(ContainerError):
    """Bean is not registered in the container."""

    def __init__(self, name: str, requested_by: Optional[str] = None):
        self.name = name
        self.requested_by = requested_by

        msg = f"No bean registered under name '{name}'"
        if requested_by:
            msg += f"\nRequested by: {requested_by}"

        super().__init__(msg)


class DuplicateBeanError(ContainerError):
    """A different bean is already registered under the same name."""

    def __init__(self, name: str, existing: Any):
        self.name = name
        self.existing = existing

        super().__init__(
            f"Bean '{name}' already registered: {existing!r}"
            f"\n\nSuggested fixes:"
            f"\n  - Pass an explicit name= to register()"
            f"\n  - Remove the duplicate registration"
        )


class ScopeNotActiveError(ContainerError):
    """Scoped lookup attempted outside of an open scope context."""

    def __init__(self, scope_kind: str, name: Optional[str] = None):
        self.scope_kind = scope_kind
        self.name = name

        msg = f"{scope_kind} is not active"
        if name:
            msg += f" while looking up '{name}'"
        msg += f"\n\nSuggested fix:\n  - Wrap the call in the scope's open() context"

        super().__init__(msg)


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass
