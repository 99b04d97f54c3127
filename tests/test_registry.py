"""
Tests for the chart lifecycle registry.
"""

import pytest

from services.visualization.models import VisualizationType
from services.visualization.registry import ChartRegistry


@pytest.fixture
def registry():
    return ChartRegistry()


class TestRegister:

    def test_ids_never_collide(self, registry, handle_factory):
        ids = [registry.register(VisualizationType.TIMELINE, handle_factory()) for _ in range(50)]
        assert len(set(ids)) == 50
        assert len(registry) == 50

    def test_ids_not_reused_after_destroy(self, registry, handle_factory):
        first = registry.register(VisualizationType.TIMELINE, handle_factory())
        registry.destroy(first)
        second = registry.register(VisualizationType.TIMELINE, handle_factory())
        assert first != second

    def test_accepts_type_value(self, registry, fake_handle):
        chart_id = registry.register("departments", fake_handle)
        assert registry.get(chart_id).type == VisualizationType.DEPARTMENTS

    def test_rejects_unknown_type(self, registry, fake_handle):
        with pytest.raises(ValueError):
            registry.register("sankey", fake_handle)


class TestDestroy:

    def test_double_destroy_disposes_once(self, registry, fake_handle):
        chart_id = registry.register(VisualizationType.COLLABORATION, fake_handle)

        assert registry.destroy(chart_id) is True
        assert registry.destroy(chart_id) is False
        assert fake_handle.destroy_calls == 1
        assert not registry.is_live(chart_id)

    def test_unknown_id_is_noop(self, registry):
        assert registry.destroy("timeline-chart-999") is False
        assert registry.disposed_count == 0

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_destroy_all(self, registry, handle_factory, count):
        handles = [handle_factory() for _ in range(count)]
        for handle in handles:
            registry.register(VisualizationType.TIMELINE, handle)

        assert registry.destroy_all() == count
        assert len(registry) == 0
        assert registry.live_ids() == []
        assert all(handle.destroy_calls == 1 for handle in handles)

    def test_disposal_accounting(self, registry, handle_factory):
        ids = [registry.register(VisualizationType.TIMELINE, handle_factory()) for _ in range(4)]
        registry.destroy(ids[0])
        registry.destroy(ids[0])
        registry.destroy(ids[2])

        assert registry.disposed_count == registry.registered_count - len(registry)
        registry.destroy_all()
        assert registry.disposed_count == registry.registered_count

    def test_failing_handle_is_still_forgotten(self, registry):
        class BrokenHandle:
            def destroy(self):
                raise RuntimeError("already gone")

        chart_id = registry.register(VisualizationType.TIMELINE, BrokenHandle())
        assert registry.destroy(chart_id) is True
        assert chart_id not in registry
