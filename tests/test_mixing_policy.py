"""
Mixing policy: how each scope combination and flag pair is handled.
"""

import logging
import pytest
from types import SimpleNamespace

from scopewire.config import ContainerConfig
from scopewire.definitions import BeanDefinition
from scopewire.errors import ContainerConfigError, ScopeMixingError
from scopewire.manager import (
    Injection,
    MixingOutcome,
    ScopedProxyManager,
    create_mixing_message,
    evaluate_mixing,
)
from scopewire.scopes import (
    ProtoScope,
    RequestScope,
    SessionScope,
    SingletonScope,
    ThreadLocalScope,
)
from tests.conftest import Cart, Checkout

FLAGS = [(False, False), (False, True), (True, False), (True, True)]
ALL_SCOPES = [SingletonScope, ProtoScope, RequestScope, SessionScope, ThreadLocalScope]
ACCEPTING_PAIRS = [
    (target_scope, ref_scope)
    for target_scope in ALL_SCOPES
    for ref_scope in ALL_SCOPES
    if target_scope().accept(ref_scope())
]


def _stub_container(detect: bool, proxy: bool):
    return SimpleNamespace(
        config=ContainerConfig(detect_mixed_scopes=detect, wire_scoped_proxy=proxy),
        get_bean=lambda name: None,
    )


def _pair(target_scope, ref_scope):
    target = BeanDefinition(name="consumer", type=Checkout, scope=target_scope)
    ref = BeanDefinition(name="dep", type=Cart, scope=ref_scope)
    return target, ref


def _assert_caches_empty(manager: ScopedProxyManager):
    assert len(manager.proxies) == 0
    assert len(manager.proxy_classes) == 0


# ============================================================================
# Outcome matrix
# ============================================================================

class TestEvaluateMixing:

    @pytest.mark.parametrize("detect,proxy", FLAGS)
    def test_compatible_pair(self, detect, proxy):
        target, ref = _pair(RequestScope(), SingletonScope())
        outcome = evaluate_mixing(target, ref, detect_mixed_scopes=detect, wire_scoped_proxy=proxy)
        assert outcome is MixingOutcome.COMPATIBLE

    @pytest.mark.parametrize("ref_scope", ALL_SCOPES)
    @pytest.mark.parametrize("detect,proxy", FLAGS)
    def test_unscoped_target_accepts_everything(self, ref_scope, detect, proxy):
        target, ref = _pair(None, ref_scope())
        outcome = evaluate_mixing(target, ref, detect_mixed_scopes=detect, wire_scoped_proxy=proxy)
        assert outcome is MixingOutcome.COMPATIBLE

    def test_reject_fatal(self):
        target, ref = _pair(SingletonScope(), RequestScope())
        outcome = evaluate_mixing(target, ref, detect_mixed_scopes=True, wire_scoped_proxy=False)
        assert outcome is MixingOutcome.REJECT_FATAL

    def test_reject_silent(self):
        target, ref = _pair(SingletonScope(), RequestScope())
        outcome = evaluate_mixing(target, ref, detect_mixed_scopes=False, wire_scoped_proxy=False)
        assert outcome is MixingOutcome.REJECT_SILENT

    @pytest.mark.parametrize("detect", [False, True])
    def test_mediate_when_proxies_enabled(self, detect):
        target, ref = _pair(SingletonScope(), RequestScope())
        outcome = evaluate_mixing(target, ref, detect_mixed_scopes=detect, wire_scoped_proxy=True)
        assert outcome is MixingOutcome.MEDIATE

    def test_mixing_message(self):
        target, ref = _pair(SingletonScope(), RequestScope())
        assert create_mixing_message(target, ref) == (
            "Scopes mixing detected: dep@RequestScope -> consumer@SingletonScope"
        )


# ============================================================================
# lookup_value
# ============================================================================

class TestLookupValue:

    @pytest.mark.parametrize("ref_scope", ALL_SCOPES)
    @pytest.mark.parametrize("detect,proxy", FLAGS)
    def test_unscoped_target_returns_none(self, ref_scope, detect, proxy):
        manager = ScopedProxyManager()
        target, ref = _pair(None, ref_scope())
        assert manager.lookup_value(_stub_container(detect, proxy), target, ref) is None
        _assert_caches_empty(manager)

    @pytest.mark.parametrize("target_scope,ref_scope", ACCEPTING_PAIRS)
    @pytest.mark.parametrize("detect,proxy", FLAGS)
    def test_compatible_pairs_return_none(self, target_scope, ref_scope, detect, proxy):
        target, ref = _pair(target_scope(), ref_scope())

        manager = ScopedProxyManager()
        assert manager.lookup_value(_stub_container(detect, proxy), target, ref) is None
        _assert_caches_empty(manager)

    def test_fatal_raises_and_leaves_caches_untouched(self):
        manager = ScopedProxyManager()
        target, ref = _pair(SingletonScope(), RequestScope())

        with pytest.raises(ScopeMixingError) as exc_info:
            manager.lookup_value(_stub_container(True, False), target, ref)

        error = exc_info.value
        assert isinstance(error, ContainerConfigError)
        assert str(error).startswith("Scopes mixing detected: dep@RequestScope -> consumer@SingletonScope")
        assert error.bean_name == "dep"
        assert error.bean_scope == "RequestScope"
        assert error.target_name == "consumer"
        assert error.target_scope == "SingletonScope"
        _assert_caches_empty(manager)

    def test_silent_returns_none_and_leaves_caches_untouched(self):
        manager = ScopedProxyManager()
        target, ref = _pair(SingletonScope(), RequestScope())
        assert manager.lookup_value(_stub_container(False, False), target, ref) is None
        _assert_caches_empty(manager)

    def test_mediate_returns_proxy(self):
        manager = ScopedProxyManager()
        target, ref = _pair(SingletonScope(), RequestScope())
        proxy = manager.lookup_value(_stub_container(False, True), target, ref)
        assert proxy is not None
        assert isinstance(proxy, Cart)


# ============================================================================
# resolve_injection
# ============================================================================

class TestResolveInjection:

    def test_compatible_and_silent_are_distinguishable(self):
        manager = ScopedProxyManager()
        compatible = manager.resolve_injection(
            _stub_container(False, False), *_pair(RequestScope(), SingletonScope())
        )
        silent = manager.resolve_injection(
            _stub_container(False, False), *_pair(SingletonScope(), RequestScope())
        )

        assert compatible == Injection(MixingOutcome.COMPATIBLE)
        assert compatible.skip is False
        assert silent == Injection(MixingOutcome.REJECT_SILENT)
        assert silent.skip is True

    def test_mediate_carries_proxy(self):
        manager = ScopedProxyManager()
        injection = manager.resolve_injection(
            _stub_container(True, True), *_pair(SingletonScope(), RequestScope())
        )
        assert injection.outcome is MixingOutcome.MEDIATE
        assert injection.value is manager.proxies.get("dep")


# ============================================================================
# Mixing diagnostics
# ============================================================================

class TestMixingLog:

    def test_warning_when_detection_enabled(self, caplog):
        manager = ScopedProxyManager()
        target, ref = _pair(SingletonScope(), RequestScope())

        with caplog.at_level(logging.DEBUG, logger="scopewire.proxy"):
            manager.lookup_value(_stub_container(True, True), target, ref)

        records = [r for r in caplog.records if "Scopes mixing detected" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].getMessage() == "Scopes mixing detected: dep@RequestScope -> consumer@SingletonScope"

    def test_debug_when_detection_disabled(self, caplog):
        manager = ScopedProxyManager()
        target, ref = _pair(SingletonScope(), RequestScope())

        with caplog.at_level(logging.DEBUG, logger="scopewire.proxy"):
            manager.lookup_value(_stub_container(False, True), target, ref)

        records = [r for r in caplog.records if "Scopes mixing detected" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG

    def test_no_log_for_compatible_pairs(self, caplog):
        manager = ScopedProxyManager()
        target, ref = _pair(SingletonScope(), SingletonScope())

        with caplog.at_level(logging.DEBUG, logger="scopewire.proxy"):
            manager.lookup_value(_stub_container(True, True), target, ref)

        assert not [r for r in caplog.records if "Scopes mixing detected" in r.getMessage()]

