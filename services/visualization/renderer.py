"""
Dash component rendering for chat visualizations.
"""

from dash import dcc, html
import dash_bootstrap_components as dbc
from typing import Any, Dict, List, Optional
import logging

from config import Config
from .hierarchy import HierarchyNode
from .models import NodeState, VisualizationType

logger = logging.getLogger(__name__)

# Charts drawn by Plotly after their markup is in the page
CANVAS_TYPES = (VisualizationType.COLLABORATION, VisualizationType.TIMELINE, VisualizationType.DEPARTMENTS)

CHART_ACTIONS = {
    VisualizationType.ORGANIZATION: ("org-action", [("expand", "Expand All"), ("collapse", "Collapse"), ("export", "Export")]),
    VisualizationType.COLLABORATION: ("chart-action", [("filter-department", "By Department"), ("filter-frequency", "By Frequency"),
                                                       ("reset", "Reset View"), ("export", "Export")]),
    VisualizationType.TIMELINE: ("chart-action", [("week", "Week View"), ("month", "Month View"),
                                                  ("quarter", "Quarter View"), ("export", "Export")]),
    VisualizationType.DEPARTMENTS: ("chart-action", [("meetings", "Meetings"), ("people", "People"),
                                                     ("collaboration", "Collaboration"), ("export", "Export")]),
    VisualizationType.TOPICS: ("topic-action", [("trending", "Trending"), ("declining", "Declining"), ("all", "All Topics")]),
}

STATUS_IDS = {"chart-action": "chart-status", "org-action": "org-status"}

CHART_HEIGHTS = {
    VisualizationType.COLLABORATION: 300,
    VisualizationType.TIMELINE: 220,
    VisualizationType.DEPARTMENTS: 260,
}


def subtree_style(state: NodeState) -> Dict[str, str]:
    return {"display": "block" if state is NodeState.VISIBLE else "none"}


def indicator_class(state: NodeState) -> str:
    if state is NodeState.VISIBLE:
        return "fas fa-chevron-down"
    return "fas fa-chevron-right"


def topic_trend(topic: Dict[str, Any]) -> str:
    try:
        trend = float(topic.get('trend') or 0)
    except (TypeError, ValueError):
        trend = 0
    if trend > 0:
        return "trending-up"
    if trend < 0:
        return "trending-down"
    return "stable"


def render_topic_bubbles(topics: List[Any], trend_filter: str = "all") -> List[html.Div]:
    """Topic bubbles sized by frequency, optionally limited to trending or declining topics."""
    arrows = {"trending-up": "↗", "trending-down": "↘", "stable": "→"}
    bubbles = []

    for topic in topics:
        if not isinstance(topic, dict):
            continue
        trend = topic_trend(topic)
        if trend_filter == "trending" and trend != "trending-up":
            continue
        if trend_filter == "declining" and trend != "trending-down":
            continue

        try:
            frequency = float(topic.get('frequency') or 0)
        except (TypeError, ValueError):
            frequency = 0
        size = min(max(frequency * 20, 40), 120)

        bubbles.append(html.Div([
            html.Div(topic.get('name') or "Untitled", className="topic-name"),
            html.Div(str(topic.get('count', 0)), className="topic-count"),
            html.Div(arrows[trend], className="topic-trend"),
        ], className=f"topic-bubble {trend}", style={"width": f"{size}px", "height": f"{size}px"}))

    return bubbles


class DashRenderer:
    """Maps rendered components to Dash markup."""

    def __init__(self, render_defer_ms: Optional[int] = None):
        self.render_defer_ms = Config.RENDER_DEFER_MS if render_defer_ms is None else render_defer_ms

    def render(self, component, charts_enabled: bool = True) -> html.Div:
        """
        Render one visualization card.

        Args:
            component: RenderedComponent with its transformed data and view state
            charts_enabled: False when no charting backend is available; canvas charts
                then show a loading placeholder instead of a graph

        Returns:
            Card containing the header actions and the chart body
        """
        viz_type = component.descriptor.type
        cid = component.component_id

        try:
            if viz_type == VisualizationType.ORGANIZATION:
                body = self.render_org_tree(component)
            elif viz_type == VisualizationType.TOPICS:
                body = html.Div(
                    render_topic_bubbles(component.data.get('topics', []), component.view_state.get('trend', 'all')),
                    id={"type": "topic-bubbles", "component": cid},
                    className="topic-evolution-container"
                )
            elif viz_type in CANVAS_TYPES and charts_enabled:
                body = self._render_canvas(cid, viz_type)
            else:
                body = self._render_placeholder()
        except Exception as e:
            logger.error(f"Failed to render {viz_type.value} component {cid}: {str(e)}")
            body = self._render_placeholder()

        children = [
            html.Div([
                html.H5(component.descriptor.title, className="chart-title text-light mb-0"),
                html.Div(self._render_actions(cid, viz_type), className="chart-actions")
            ], className="chart-header d-flex justify-content-between align-items-center mb-2"),
            html.Div(body, className="chart-content")
        ]

        # Export feedback, for cards that can be exported
        status_type = STATUS_IDS.get(CHART_ACTIONS[viz_type][0])
        if status_type:
            children.append(html.Div(id={"type": status_type, "component": cid}, className="chart-status small text-muted mt-1"))

        return html.Div(children, id={"type": "chart-container", "component": cid}, className="chat-chart-container")

    def _render_actions(self, cid: str, viz_type: VisualizationType) -> List[dbc.Button]:
        id_type, actions = CHART_ACTIONS[viz_type]
        return [
            dbc.Button(label, id={"type": id_type, "component": cid, "action": action},
                       n_clicks=0, size="sm", color="secondary", outline=True, className="chart-action-btn me-1")
            for action, label in actions
        ]

    def _render_canvas(self, cid: str, viz_type: VisualizationType) -> html.Div:
        # Figure is filled by the deferred render once the interval fires
        return html.Div([
            dcc.Graph(
                id={"type": "chart-graph", "component": cid},
                figure={},
                config={"displaylogo": False, "responsive": True},
                style={"height": f"{CHART_HEIGHTS[viz_type]}px"}
            ),
            dcc.Interval(
                id={"type": "render-timer", "component": cid},
                interval=self.render_defer_ms,
                n_intervals=0,
                max_intervals=1
            ),
        ])

    def _render_placeholder(self) -> html.Div:
        return html.Div([
            dbc.Spinner(size="sm", color="info"),
            html.Span("Loading visualization...", className="text-muted ms-2")
        ], className="chart-loading")

    def render_org_tree(self, component) -> html.Div:
        forest = component.forest
        return html.Div(
            html.Div(
                [self._render_org_node(component.component_id, root, component.node_states) for root in forest.roots],
                className="org-level org-level-0"
            ),
            className="org-chart-container"
        )

    def _render_org_node(self, cid: str, node: HierarchyNode, node_states: Dict[str, NodeState]) -> html.Div:
        person = node.person

        info = [
            html.Div(person.name, className="node-name"),
            html.Div(person.title, className="node-title"),
            html.Div(person.department, className="node-department"),
        ]
        if person.meeting_count:
            info.append(html.Div(f"{person.meeting_count} meetings", className="node-stats"))

        classes = ["org-chart-node"]
        if person.is_manager:
            classes.append("manager")
        card_children = [html.Div(person.initial, className="node-avatar"), html.Div(info, className="node-info")]

        if node.truncated:
            # Same person is already shown elsewhere, so no id or click target here
            classes.append("truncated")
            return html.Div(
                html.Div(html.Div(card_children, className=" ".join(classes)), className="org-node-row"),
                className="org-node-container"
            )

        row = [html.Div(card_children, id={"type": "org-node", "component": cid, "node": person.id},
                        n_clicks=0, className=" ".join(classes))]

        if not node.has_children:
            return html.Div(html.Div(row, className="org-node-row"), className="org-node-container")

        state = node_states.get(person.id, NodeState.VISIBLE)
        row.append(html.Button(
            html.I(id={"type": "org-toggle-icon", "component": cid, "node": person.id}, className=indicator_class(state)),
            id={"type": "org-toggle", "component": cid, "node": person.id},
            n_clicks=0,
            className="node-toggle"
        ))

        subordinates = html.Div(
            [self._render_org_node(cid, child, node_states) for child in node.children],
            id={"type": "org-subordinates", "component": cid, "node": person.id},
            className=f"org-subordinates org-level-{node.depth + 1}",
            style=subtree_style(state)
        )

        return html.Div([html.Div(row, className="org-node-row d-flex align-items-center"), subordinates],
                        className="org-node-container")
