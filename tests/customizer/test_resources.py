"""
Unit Tests for ObjectUrlRegistry
"""

import logging

import pytest

from layered_shop.customizer.resources import ObjectUrlRegistry


class TestObjectUrlRegistry:
    """Tests for handle minting and revocation."""

    def test_create_when_called_then_handle_resolves_to_payload(self):
        registry = ObjectUrlRegistry()

        url = registry.create(b"abc", "image/png")

        assert url.startswith("blob:")
        assert registry.resolve(url).data == b"abc"
        assert registry.resolve(url).size == 3
        assert url in registry

    def test_create_when_called_twice_then_handles_differ(self):
        registry = ObjectUrlRegistry(scheme="local")

        first, second = registry.create(b"a"), registry.create(b"a")

        assert first != second
        assert first.startswith("local:")
        assert len(registry) == 2

    def test_resolve_when_revoked_then_raises_key_error(self):
        registry = ObjectUrlRegistry()
        url = registry.create(b"abc")

        assert registry.revoke(url) is True

        with pytest.raises(KeyError, match="not live"):
            registry.resolve(url)

    def test_revoke_when_already_revoked_then_false_and_warns(self, caplog):
        registry = ObjectUrlRegistry()
        url = registry.create(b"abc")
        registry.revoke(url)

        with caplog.at_level(logging.WARNING, logger="layered_shop.customizer.resources"):
            assert registry.revoke(url) is False

        assert "already revoked" in caplog.text

    def test_revoke_many_when_mixed_then_counts_live_only(self):
        registry = ObjectUrlRegistry()
        live = registry.create(b"a")

        assert registry.revoke_many([live, "blob:layered/unknown"]) == 1

    def test_context_manager_when_exited_then_all_revoked(self):
        with ObjectUrlRegistry() as registry:
            registry.create(b"a")
            registry.create(b"b")
            assert len(registry) == 2

        assert len(registry) == 0

    def test_context_manager_when_error_raised_then_still_revoked(self):
        registry = ObjectUrlRegistry()

        with pytest.raises(RuntimeError):
            with registry:
                registry.create(b"a")
                raise RuntimeError("boom")

        assert len(registry) == 0

    def test_revoke_all_when_called_then_returns_count(self):
        registry = ObjectUrlRegistry()
        registry.create(b"a")
        registry.create(b"b")

        assert registry.revoke_all() == 2
        assert registry.revoke_all() == 0
