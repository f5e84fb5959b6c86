"""
Tests for the middleware and hook registry.
"""

import pytest

from srvkit.core import Middleware, Registry
from srvkit.core.registry import descriptor_key
from srvkit.server.middleware import BUILTIN_MIDDLEWARE, Session


class Custom(Middleware):
    def bind_to_router(self) -> None:
        pass


@pytest.mark.unit
class TestRegistry:
    def test_builtins(self):
        registry = Registry.with_builtins()
        for name, cls in BUILTIN_MIDDLEWARE.items():
            assert registry.resolve(name) is cls
            assert registry.resolve(f"srvkit.server.{name}") is cls
        assert registry.resolve("Session") is Session

    def test_builtin_names(self):
        assert set(BUILTIN_MIDDLEWARE) == {
            "Session",
            "Templates",
            "Static",
            "JSON",
            "XML",
            "Form",
            "Upload",
            "RequestLog",
            "ServerError",
        }

    def test_register_and_resolve(self):
        registry = Registry()
        registry.register("Custom", Custom)
        assert "Custom" in registry
        assert registry.resolve("Custom") is Custom
        assert registry.middleware_names == ["Custom"]

    def test_register_callable_factory(self):
        registry = Registry()
        registry.register("Lazy", lambda *args: Custom(*args))
        assert callable(registry.resolve("Lazy"))

    def test_rejects_non_middleware_class(self):
        with pytest.raises(TypeError, match="is not a Middleware"):
            Registry().register("Bad", dict)

    def test_rejects_empty_identifier(self):
        with pytest.raises(ValueError):
            Registry().register("", Custom)
        with pytest.raises(ValueError):
            Registry().register_hook("", object)

    def test_unknown_identifier(self):
        with pytest.raises(KeyError, match="Unknown middleware module 'Nope'"):
            Registry().resolve("Nope")

    def test_hooks(self):
        registry = Registry()

        class Warmup:
            pass

        registry.register_hook("warmup", Warmup)
        assert registry.resolve_hook("warmup") is Warmup
        assert registry.hook_names == ["warmup"]
        with pytest.raises(KeyError, match="Unknown hook module"):
            registry.resolve_hook("other")


@pytest.mark.unit
class TestDescriptorKey:
    def test_module_and_class(self):
        assert descriptor_key({"module": "srvkit.server", "class": "Static"}, "public") == (
            "srvkit.server.Static"
        )

    def test_module_only(self):
        assert descriptor_key({"module": "Static", "dir": "public"}, "public") == "Static"

    def test_class_only(self):
        assert descriptor_key({"class": "Static"}, "public") == "Static"

    def test_no_descriptor(self):
        assert descriptor_key({"dir": "public"}, "Static") == "Static"
        assert descriptor_key(None, "Static") == "Static"

    def test_mistyped(self):
        with pytest.raises(AssertionError, match="'class' of 'public' must be a string"):
            descriptor_key({"class": ["Static"]}, "public")
