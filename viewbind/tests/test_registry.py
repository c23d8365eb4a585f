"""
Tests for the binder registry.
"""
import threading

import pytest

from viewbind.errors import BinderSignatureError, RegistrationError
from viewbind.runtime.registry import BinderRegistry, default_registry, register_binder


class Owner:
    pass


class OwnerBinding:
    def __init__(self, target):
        target.bound = True


class OtherOwnerBinding:
    def __init__(self, target):
        pass


class TestBinderRegistry:

    def test_register_and_lookup(self):
        registry = BinderRegistry()
        entry = registry.register(Owner, OwnerBinding, [("bound", 1)])
        assert registry.lookup(Owner) is entry
        assert entry.bindings == (("bound", 1),)
        assert entry.binder_qualname.endswith(".OwnerBinding")
        assert Owner in registry
        assert len(registry) == 1

    def test_lookup_is_exact_type(self):
        class Child(Owner):
            pass

        registry = BinderRegistry()
        registry.register(Owner, OwnerBinding)
        assert registry.lookup(Child) is None

    def test_second_binder_for_owner_refused(self):
        registry = BinderRegistry()
        registry.register(Owner, OwnerBinding)
        with pytest.raises(RegistrationError, match="already has binder"):
            registry.register(Owner, OtherOwnerBinding)
        assert registry.lookup(Owner).binder is OwnerBinding

    def test_same_binder_reregistered(self):
        """A reloaded binder module replaces its own entry."""
        registry = BinderRegistry()
        registry.register(Owner, OwnerBinding, [("bound", 1)])
        registry.register(Owner, OwnerBinding, [("bound", 2)])
        assert registry.lookup(Owner).bindings == (("bound", 2),)

    def test_non_class_refused(self):
        with pytest.raises(RegistrationError):
            BinderRegistry().register(Owner, lambda target: None)

    def test_snapshot_is_read_only(self):
        registry = BinderRegistry()
        registry.register(Owner, OwnerBinding)
        snapshot = registry.snapshot()
        with pytest.raises(TypeError):
            snapshot[Owner] = None

    def test_snapshot_unaffected_by_later_writes(self):
        registry = BinderRegistry()
        before = registry.snapshot()
        registry.register(Owner, OwnerBinding)
        assert Owner not in before

    def test_concurrent_registration(self):
        owners = [type(f"Owner{i}", (), {}) for i in range(64)]
        registry = BinderRegistry()

        def worker(owner):
            registry.register(owner, OwnerBinding)

        threads = [threading.Thread(target=worker, args=(o,)) for o in owners]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(registry) == len(owners)
        assert all(registry.lookup(o) is not None for o in owners)

    def test_register_binder_uses_default_registry(self):
        class LocalOwner:
            pass

        class LocalOwnerBinding:
            def __init__(self, target):
                pass

        assert register_binder(LocalOwner, LocalOwnerBinding) is LocalOwnerBinding
        assert default_registry.lookup(LocalOwner).binder is LocalOwnerBinding


class TestBinderSignature:

    def test_no_parameters(self):
        class Binding:
            def __init__(self):
                pass

        with pytest.raises(BinderSignatureError):
            BinderRegistry().register(Owner, Binding)

    def test_two_parameters(self):
        class Binding:
            def __init__(self, target, extra):
                pass

        with pytest.raises(BinderSignatureError, match="exactly one positional"):
            BinderRegistry().register(Owner, Binding)

    def test_defaulted_parameter(self):
        class Binding:
            def __init__(self, target=None):
                pass

        with pytest.raises(BinderSignatureError):
            BinderRegistry().register(Owner, Binding)

    def test_keyword_only_parameter(self):
        class Binding:
            def __init__(self, *, target):
                pass

        with pytest.raises(BinderSignatureError):
            BinderRegistry().register(Owner, Binding)

    def test_signature_error_is_registration_error(self):
        assert issubclass(BinderSignatureError, RegistrationError)
