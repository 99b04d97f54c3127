"""
Tests for the chat host's callback logic.
"""

import pytest

import app as host
from services.visualization.interactions import Gesture
from services.visualization.models import VisualizationDescriptor, VisualizationType
from tests.helpers import find_ids, iter_components


def _mount_one(session, viz_type, result_set):
    session.mount([VisualizationDescriptor(viz_type, "Chart", result_set)], [])
    return list(session.components)[-1]


def _outputs(id_type, component_id, nodes):
    return [{"id": {"type": id_type, "component": component_id, "node": node}, "property": "style"} for node in nodes]


class TestChartUpdate:

    def test_timer_draws_pending_chart_once(self, session, meetings):
        cid = _mount_one(session, VisualizationType.TIMELINE, {"meetings": meetings})
        timer = {"type": "render-timer", "component": cid}

        figure, message = host.chart_update(session, timer)
        assert figure is not None and message == ""
        assert host.chart_update(session, timer) == (None, "")

    def test_action_returns_redrawn_figure(self, session, meetings):
        cid = _mount_one(session, VisualizationType.TIMELINE, {"meetings": meetings})
        host.chart_update(session, {"type": "render-timer", "component": cid})

        figure, _ = host.chart_update(session, {"type": "chart-action", "component": cid, "action": "month"})
        assert list(figure.data[0].y) == [3, 1]

    def test_export_reports_path(self, session, meetings, tmp_path):
        cid = _mount_one(session, VisualizationType.TIMELINE, {"meetings": meetings})
        host.chart_update(session, {"type": "render-timer", "component": cid})

        figure, message = host.chart_update(session, {"type": "chart-action", "component": cid, "action": "export"})
        assert figure is None
        assert message == f"Exported to {tmp_path / (cid + '.html')}"


class TestOrgTreeOutputs:

    def test_values_follow_output_order(self, session, people):
        cid = _mount_one(session, VisualizationType.ORGANIZATION, {"people": people})
        session.handle(Gesture("toggle", cid, "p2"))
        states = session.components[cid].node_states

        styles, icons = host.org_tree_outputs(
            states,
            _outputs("org-subordinates", cid, ["p2", "p1"]),
            _outputs("org-toggle-icon", cid, ["p1", "p2"]),
        )
        assert styles == [{"display": "none"}, {"display": "block"}]
        assert icons == ["fas fa-chevron-down", "fas fa-chevron-right"]

    def test_collapse_all(self, session, people):
        cid = _mount_one(session, VisualizationType.ORGANIZATION, {"people": people})
        session.handle(Gesture("collapse", cid))

        styles, icons = host.org_tree_outputs(session.components[cid].node_states,
                                              _outputs("org-subordinates", cid, ["p1", "p2"]), [])
        assert styles == [{"display": "none"}] * 2
        assert icons == []

    def test_unknown_node_defaults_visible(self):
        styles, _ = host.org_tree_outputs({}, _outputs("org-subordinates", "organization-1", ["x"]), [])
        assert styles == [{"display": "block"}]


class TestChatExchange:

    @pytest.fixture(autouse=True)
    def end_sessions(self):
        yield
        host.session_manager.end_all()

    def test_person_query_answered_with_visualizations(self, people):
        session = host.session_manager.get_or_create("chat-test")
        cid = _mount_one(session, VisualizationType.ORGANIZATION, {"people": people})
        session.handle(Gesture("node-click", cid, "p3"))
        query = session.conversation.drain()[-1]

        user_message, agent_message = host.chat_exchange(
            query, "organization_hierarchy", '{"people": [{"id": "p3", "name": "Carol"}]}', "chat-test")

        texts = [c.children for c in iter_components(user_message) if isinstance(getattr(c, 'children', None), str)]
        assert "Tell me more about the person with ID p3" in texts
        assert len(find_ids(agent_message, "chart-container")) == 1

    def test_invalid_result_set_reported(self):
        _, agent_message = host.chat_exchange("hello", "general_query", "{broken", "chat-test")
        texts = [c.children for c in iter_components(agent_message) if isinstance(getattr(c, 'children', None), str)]
        assert any(text.startswith("❌ Result set is not valid JSON") for text in texts)
