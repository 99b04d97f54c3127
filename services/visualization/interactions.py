"""
Interaction routing: turns user gestures on rendered charts into state changes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional
import logging

from .conversation import ConversationInterface, person_query
from .models import NodeState, VisualizationType
from .step_logger import VisualizationStepLogger

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Gestures a rendered chart can emit."""
    # Organization hierarchy
    TOGGLE = "toggle"
    EXPAND = "expand"
    COLLAPSE = "collapse"
    NODE_CLICK = "node-click"

    # Any chart
    EXPORT = "export"

    # Collaboration network
    FILTER_DEPARTMENT = "filter-department"
    FILTER_FREQUENCY = "filter-frequency"
    RESET = "reset"

    # Meeting timeline
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"

    # Department statistics
    MEETINGS = "meetings"
    PEOPLE = "people"
    COLLABORATION = "collaboration"

    # Topic evolution
    TRENDING = "trending"
    DECLINING = "declining"
    ALL = "all"


@dataclass(frozen=True)
class Gesture:
    """A user action scoped to one rendered component (and one node for hierarchy gestures)."""
    action: ActionType
    component_id: str
    node_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'action', ActionType(self.action))


@dataclass
class InteractionResult:
    handled: bool
    # The component's chart figure was regenerated
    figure_changed: bool = False
    message: str = ""


COLLABORATION_FILTERS = {
    ActionType.FILTER_DEPARTMENT: "department",
    ActionType.FILTER_FREQUENCY: "frequency",
    ActionType.RESET: "none",
}

TIMELINE_GRANULARITIES = {ActionType.WEEK: "week", ActionType.MONTH: "month", ActionType.QUARTER: "quarter"}

DEPARTMENT_METRICS = {ActionType.MEETINGS: "meetings", ActionType.PEOPLE: "people", ActionType.COLLABORATION: "collaboration"}

TOPIC_FILTERS = {ActionType.TRENDING: "trending", ActionType.DECLINING: "declining", ActionType.ALL: "all"}


class InteractionController:
    """
    Routes gestures to the component that produced them.

    A gesture only ever touches the state of its own component; gestures for
    unknown components, unknown nodes or the wrong kind of chart are ignored.
    """

    def __init__(self, session, exporter=None, conversation: Optional[ConversationInterface] = None):
        self.session = session
        self.exporter = exporter
        self.conversation = conversation

        self._handlers: Dict[ActionType, Callable] = {
            ActionType.TOGGLE: self._toggle,
            ActionType.EXPAND: self._expand,
            ActionType.COLLAPSE: self._collapse,
            ActionType.NODE_CLICK: self._node_click,
            ActionType.EXPORT: self._export,
        }
        for action in COLLABORATION_FILTERS:
            self._handlers[action] = self._filter_collaboration
        for action in TIMELINE_GRANULARITIES:
            self._handlers[action] = self._set_granularity
        for action in DEPARTMENT_METRICS:
            self._handlers[action] = self._set_department_metric
        for action in TOPIC_FILTERS:
            self._handlers[action] = self._filter_topics

    def handle(self, gesture: Gesture) -> InteractionResult:
        """Apply a gesture to its component."""
        component = self.session.components.get(gesture.component_id)

        if component is None:
            result = InteractionResult(False, message=f"Unknown component {gesture.component_id}")
        else:
            result = self._handlers[gesture.action](component, gesture)

        VisualizationStepLogger.log_interaction(gesture.action.value, gesture.component_id, result.handled,
                                                self.session.session_id)
        if not result.handled:
            logger.debug(result.message)
        return result

    def _require(self, component, viz_type: VisualizationType) -> Optional[InteractionResult]:
        if component.descriptor.type != viz_type:
            return InteractionResult(
                False, message=f"{component.component_id} is a {component.descriptor.type.value} chart, not {viz_type.value}"
            )
        return None

    # Organization hierarchy

    def _toggle(self, component, gesture: Gesture) -> InteractionResult:
        rejected = self._require(component, VisualizationType.ORGANIZATION)
        if rejected:
            return rejected

        state = component.node_states.get(gesture.node_id)
        if state is None:
            return InteractionResult(False, message=f"Node {gesture.node_id} has no subtree to toggle")

        component.node_states[gesture.node_id] = state.toggled()
        return InteractionResult(True)

    def _expand(self, component, gesture: Gesture) -> InteractionResult:
        return self._set_all_nodes(component, NodeState.VISIBLE)

    def _collapse(self, component, gesture: Gesture) -> InteractionResult:
        return self._set_all_nodes(component, NodeState.HIDDEN)

    def _set_all_nodes(self, component, state: NodeState) -> InteractionResult:
        rejected = self._require(component, VisualizationType.ORGANIZATION)
        if rejected:
            return rejected

        for node_id in component.node_states:
            component.node_states[node_id] = state
        return InteractionResult(True)

    def _node_click(self, component, gesture: Gesture) -> InteractionResult:
        rejected = self._require(component, VisualizationType.ORGANIZATION)
        if rejected:
            return rejected

        if component.forest is None or component.forest.find(gesture.node_id) is None:
            return InteractionResult(False, message=f"Unknown person {gesture.node_id}")

        if self.conversation is None:
            return InteractionResult(False, message="No conversation attached")

        query = person_query(gesture.node_id)
        try:
            self.conversation.send_message(query)
        except Exception as e:
            logger.warning(f"Failed to forward '{query}': {str(e)}")
        return InteractionResult(True, message=query)

    # Any chart

    def _export(self, component, gesture: Gesture) -> InteractionResult:
        if self.exporter is None:
            return InteractionResult(False, message="No exporter configured")

        try:
            path = self.exporter.export(component, self.session.current_figure(component.component_id))
        except Exception as e:
            logger.warning(f"Export of {component.component_id} failed: {str(e)}")
            return InteractionResult(True, message=f"Export failed: {str(e)}")

        return InteractionResult(True, message=f"Exported to {path}")

    # Chart view state

    def _filter_collaboration(self, component, gesture: Gesture) -> InteractionResult:
        return self._set_view(component, VisualizationType.COLLABORATION, 'filter', COLLABORATION_FILTERS[gesture.action])

    def _set_granularity(self, component, gesture: Gesture) -> InteractionResult:
        return self._set_view(component, VisualizationType.TIMELINE, 'granularity', TIMELINE_GRANULARITIES[gesture.action])

    def _set_department_metric(self, component, gesture: Gesture) -> InteractionResult:
        return self._set_view(component, VisualizationType.DEPARTMENTS, 'metric', DEPARTMENT_METRICS[gesture.action])

    def _filter_topics(self, component, gesture: Gesture) -> InteractionResult:
        return self._set_view(component, VisualizationType.TOPICS, 'trend', TOPIC_FILTERS[gesture.action])

    def _set_view(self, component, viz_type: VisualizationType, key: str, value: str) -> InteractionResult:
        rejected = self._require(component, viz_type)
        if rejected:
            return rejected

        component.view_state[key] = value
        figure = self.session.refresh_figure(component.component_id)
        return InteractionResult(True, figure_changed=figure is not None)
