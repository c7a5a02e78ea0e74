"""
scopewire - scope-aware bean container with scoped proxies.

Key Features:
- Scopes: singleton, prototype, request, session, thread
- Mixed-scope detection: fail, skip, or inject a scoped proxy
- Scoped proxies re-resolve the real bean on every call
- Proxy classes defined once per type, proxies created once per bean name
- Interceptor chains (aspects) on any bean
"""

__version__ = "0.3.0"

from .core import Container

from .config import (
    ContainerConfig,
    ConfigLoader,
)

from .definitions import (
    BeanDefinition,
    WrappedBeanDefinition,
)

from .manager import (
    ScopedProxyManager,
    MixingOutcome,
    Injection,
    evaluate_mixing,
)

from .scopes import (
    Scope,
    ScopeName,
    SingletonScope,
    ProtoScope,
    RequestScope,
    SessionScope,
    ThreadLocalScope,
    SCOPES,
)

from .proxy import (
    ProxyAdvice,
    ProxyAspect,
    ProxyFactory,
    Pointcut,
    AllMethodsPointcut,
    Invocation,
)

from .scoped import (
    ScopedProxyAdvice,
    is_scoped_proxy,
)

from .diagnostics import (
    DIDiagnostics,
    DIEvent,
    DIEventType,
    LoggingDiagnosticListener,
)

from .errors import (
    ContainerError,
    ContainerConfigError,
    ScopeMixingError,
    ProxyGenerationError,
    ProxyBindingError,
    BeanNotFoundError,
    DuplicateBeanError,
    ScopeNotActiveError,
    ConfigError,
)

__all__ = [
    # Core
    "Container",
    "ContainerConfig",
    "ConfigLoader",
    "BeanDefinition",
    "WrappedBeanDefinition",

    # Scope mixing
    "ScopedProxyManager",
    "MixingOutcome",
    "Injection",
    "evaluate_mixing",

    # Scopes
    "Scope",
    "ScopeName",
    "SingletonScope",
    "ProtoScope",
    "RequestScope",
    "SessionScope",
    "ThreadLocalScope",
    "SCOPES",

    # Proxies
    "ProxyAdvice",
    "ProxyAspect",
    "ProxyFactory",
    "Pointcut",
    "AllMethodsPointcut",
    "Invocation",
    "ScopedProxyAdvice",
    "is_scoped_proxy",

    # Diagnostics
    "DIDiagnostics",
    "DIEvent",
    "DIEventType",
    "LoggingDiagnosticListener",

    # Errors
    "ContainerError",
    "ContainerConfigError",
    "ScopeMixingError",
    "ProxyGenerationError",
    "ProxyBindingError",
    "BeanNotFoundError",
    "DuplicateBeanError",
    "ScopeNotActiveError",
    "ConfigError",
]
