"""
Tests for Dash rendering of chat visualizations.
"""

from dash import dcc

from services.visualization.models import NodeState, VisualizationDescriptor, VisualizationType
from services.visualization.renderer import indicator_class, render_topic_bubbles, subtree_style, topic_trend
from services.visualization.session import VisualizationSession
from tests.helpers import find_by_id, find_ids, iter_components


def _mount(session, viz_type, result_set):
    mount = []
    session.mount([VisualizationDescriptor(viz_type, "Chart", result_set)], mount)
    return mount[0]


class TestOrganizationTree:
    """Test disclosure controls on the organization tree."""

    def test_only_parents_get_toggles(self, session, people):
        card = _mount(session, VisualizationType.ORGANIZATION, {"people": people})

        toggles = [toggle["node"] for toggle in find_ids(card, "org-toggle")]
        assert toggles == ["p1", "p2"]

        subtrees = [subtree["node"] for subtree in find_ids(card, "org-subordinates")]
        assert subtrees == ["p1", "p2"]

        nodes = [node["node"] for node in find_ids(card, "org-node")]
        assert nodes == ["p1", "p2", "p3", "p4"]

    def test_subtrees_start_expanded(self, session, people):
        card = _mount(session, VisualizationType.ORGANIZATION, {"people": people})
        component_id = find_ids(card, "chart-container")[0]["component"]

        subtree = find_by_id(card, {"type": "org-subordinates", "component": component_id, "node": "p1"})
        icon = find_by_id(card, {"type": "org-toggle-icon", "component": component_id, "node": "p1"})
        assert subtree.style == {"display": "block"}
        assert icon.className == "fas fa-chevron-down"

    def test_placeholder_labels(self, session):
        card = _mount(session, VisualizationType.ORGANIZATION, {"people": [{"id": "x"}]})
        texts = [c.children for c in iter_components(card) if isinstance(getattr(c, 'children', None), str)]

        assert "Unknown" in texts
        assert "No title" in texts
        assert "?" in texts

    def test_truncated_node_has_no_id(self, session):
        people = [{"id": "a", "name": "A"}, {"id": "b", "managerId": "a"}, {"id": "b", "managerId": "a"}]
        card = _mount(session, VisualizationType.ORGANIZATION, {"people": people})

        nodes = [node["node"] for node in find_ids(card, "org-node")]
        assert nodes == ["a", "b"]


class TestCanvasCharts:

    def test_canvas_gets_graph_and_one_shot_timer(self, session, meetings):
        card = _mount(session, VisualizationType.TIMELINE, {"meetings": meetings})
        component_id = find_ids(card, "chart-container")[0]["component"]

        graph = find_by_id(card, {"type": "chart-graph", "component": component_id})
        timer = find_by_id(card, {"type": "render-timer", "component": component_id})
        assert isinstance(graph, dcc.Graph)
        assert timer.max_intervals == 1
        assert session.is_pending(component_id)

    def test_placeholder_without_charting_backend(self, meetings):
        session = VisualizationSession(charts_enabled=False)
        card = _mount(session, VisualizationType.TIMELINE, {"meetings": meetings})

        assert find_ids(card, "chart-graph") == []
        assert find_ids(card, "render-timer") == []
        texts = [c.children for c in iter_components(card) if isinstance(getattr(c, 'children', None), str)]
        assert "Loading visualization..." in texts

    def test_action_buttons(self, session):
        card = _mount(session, VisualizationType.COLLABORATION, {"relationships": [{"person1": "a", "person2": "b"}]})
        actions = [button["action"] for button in find_ids(card, "chart-action")]
        assert actions == ["filter-department", "filter-frequency", "reset", "export"]


class TestTopicBubbles:

    TOPICS = [
        {"name": "Hiring", "count": 4, "frequency": 1, "trend": 0.5},
        {"name": "Budget", "count": 9, "frequency": 10, "trend": -0.2},
        {"name": "Roadmap", "count": 2, "frequency": 3, "trend": 0},
    ]

    def test_trend_classification(self):
        assert [topic_trend(t) for t in self.TOPICS] == ["trending-up", "trending-down", "stable"]
        assert topic_trend({"trend": "n/a"}) == "stable"

    def test_filters(self):
        assert len(render_topic_bubbles(self.TOPICS)) == 3
        assert len(render_topic_bubbles(self.TOPICS, "trending")) == 1
        assert len(render_topic_bubbles(self.TOPICS, "declining")) == 1

    def test_bubble_size_is_clamped(self):
        sizes = [bubble.style["width"] for bubble in render_topic_bubbles(self.TOPICS)]
        assert sizes == ["40px", "120px", "60px"]


class TestIndicators:

    def test_state_mapping(self):
        assert subtree_style(NodeState.VISIBLE) == {"display": "block"}
        assert subtree_style(NodeState.HIDDEN) == {"display": "none"}
        assert indicator_class(NodeState.HIDDEN) == "fas fa-chevron-right"
