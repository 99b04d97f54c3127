"""
Visualization session: the charts, interaction state and pending renders of one conversation.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence
import logging
import threading
import time
import uuid

import plotly.graph_objects as go

from config import Config

from .conversation import ConversationInterface, QueuedConversation
from .exporter import ChartExporter
from .hierarchy import HierarchyForest, build_forest
from .interactions import Gesture, InteractionController, InteractionResult
from .models import NodeState, VisualizationDescriptor, VisualizationType
from .plotly_generator import ChartHandle, PlotlyGenerator
from .registry import ChartRegistry
from .renderer import CANVAS_TYPES, DashRenderer
from .step_logger import VisualizationStepLogger
from .transformers import transform_for_visualization

logger = logging.getLogger(__name__)


@dataclass
class RenderedComponent:
    """One visualization placed in the conversation."""
    component_id: str
    descriptor: VisualizationDescriptor
    data: Any
    view_state: Dict[str, Any] = field(default_factory=dict)
    # Registry id, set once the chart has been drawn
    chart_id: Optional[str] = None
    forest: Optional[HierarchyForest] = None
    node_states: Dict[str, NodeState] = field(default_factory=dict)


class VisualizationSession:
    """
    Owns the chart registry and per-component state for one conversation.

    Canvas charts are drawn in two steps: `mount` returns their markup and marks
    them pending, and `run_deferred` draws and registers a pending chart once its
    markup is on the page. A component destroyed in between is simply skipped.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        generator: Optional[PlotlyGenerator] = None,
        charts_enabled: bool = True,
        renderer: Optional[DashRenderer] = None,
        exporter: Optional[ChartExporter] = None,
        conversation: Optional[ConversationInterface] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.registry = ChartRegistry()
        if generator is None and charts_enabled:
            generator = PlotlyGenerator()
        self.generator = generator
        self.renderer = renderer or DashRenderer()
        self.conversation = conversation or QueuedConversation()
        self.controller = InteractionController(self, exporter or ChartExporter(), self.conversation)

        self.components: Dict[str, RenderedComponent] = {}
        self._pending: set = set()
        self._sequence = count(1)

    def mount(self, descriptors: Sequence[VisualizationDescriptor], mount: Optional[list]) -> List[Any]:
        """
        Render descriptors and append their markup to `mount`.

        Returns:
            The fragments appended; nothing is rendered when `mount` is None
        """
        if mount is None:
            logger.debug("No mount point for visualizations, skipping render")
            return []

        fragments = []
        for descriptor in descriptors:
            component = self._create_component(descriptor)
            fragment = self.renderer.render(component, charts_enabled=self.generator is not None)
            mount.append(fragment)
            fragments.append(fragment)

            if descriptor.type in CANVAS_TYPES and self.generator is not None:
                self._pending.add(component.component_id)

        VisualizationStepLogger.log_render(len(fragments), len(self._pending), self.session_id)
        return fragments

    def _create_component(self, descriptor: VisualizationDescriptor) -> RenderedComponent:
        component_id = f"{descriptor.type.value}-{next(self._sequence)}"
        data = transform_for_visualization(descriptor.type, descriptor.data)
        component = RenderedComponent(
            component_id=component_id,
            descriptor=descriptor,
            data=data if isinstance(data, dict) else {},
        )

        if descriptor.type == VisualizationType.ORGANIZATION:
            component.forest = build_forest(component.data.get('nodes', []))
            component.node_states = {node_id: NodeState.VISIBLE for node_id in component.forest.parent_ids()}

        self.components[component_id] = component
        return component

    def is_pending(self, component_id: str) -> bool:
        return component_id in self._pending

    def run_deferred(self, component_id: str) -> Optional[go.Figure]:
        """
        Draw a pending canvas chart and register its handle.

        Returns:
            The drawn figure, or None when the component is no longer pending
        """
        if component_id not in self._pending:
            VisualizationStepLogger.log_deferred(component_id, session_id=self.session_id)
            return None
        self._pending.discard(component_id)

        component = self.components.get(component_id)
        if component is None or self.generator is None:
            return None

        figure = self.generator.generate_chart(component.descriptor.type, component.data, component.view_state)
        component.chart_id = self.registry.register(component.descriptor.type, ChartHandle(figure), component.view_state)

        VisualizationStepLogger.log_deferred(component_id, component.chart_id, self.session_id)
        return figure

    def flush_deferred(self) -> Dict[str, go.Figure]:
        """Run every pending render. No ordering between them is implied."""
        drawn = {}
        for component_id in list(self._pending):
            figure = self.run_deferred(component_id)
            if figure is not None:
                drawn[component_id] = figure
        return drawn

    def current_figure(self, component_id: str) -> Optional[go.Figure]:
        component = self.components.get(component_id)
        if component is None or component.chart_id is None:
            return None

        instance = self.registry.get(component.chart_id)
        if instance is None:
            return None
        return instance.handle.figure

    def refresh_figure(self, component_id: str) -> Optional[go.Figure]:
        """
        Redraw a drawn chart from its current view state.

        Returns:
            The new figure, or None if the chart has not been drawn (a pending
            render picks up the view state when it runs)
        """
        component = self.components.get(component_id)
        if component is None or component.chart_id is None or self.generator is None:
            return None

        instance = self.registry.get(component.chart_id)
        if instance is None:
            return None

        figure = self.generator.generate_chart(component.descriptor.type, component.data, component.view_state)
        instance.handle.update(figure)
        return figure

    def handle(self, gesture: Gesture) -> InteractionResult:
        return self.controller.handle(gesture)

    def destroy_component(self, component_id: str) -> bool:
        """Remove a component and destroy its chart, if it was drawn."""
        self._pending.discard(component_id)
        component = self.components.pop(component_id, None)
        if component is None:
            return False

        if component.chart_id is not None:
            self.registry.destroy(component.chart_id)
        return True

    def teardown(self) -> int:
        """Destroy every chart and forget all components. Returns how many charts were destroyed."""
        self._pending.clear()
        self.components.clear()
        destroyed = self.registry.destroy_all()
        VisualizationStepLogger.log_teardown(destroyed, self.session_id)
        return destroyed


class SessionManager:
    """
    Maps conversation session ids to their visualization sessions.

    Sessions idle for longer than `idle_timeout` seconds are ended on the next
    access, as are the least recently used ones once more than `max_sessions`
    are open. Ending a session destroys its charts.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[str], VisualizationSession]] = None,
        idle_timeout: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory or (lambda session_id: VisualizationSession(session_id=session_id))
        self.idle_timeout = Config.SESSION_IDLE_TIMEOUT if idle_timeout is None else idle_timeout
        self.max_sessions = Config.MAX_SESSIONS if max_sessions is None else max_sessions
        self._clock = clock

        self._sessions: Dict[str, VisualizationSession] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._last_access: Dict[str, float] = {}
        self._guard = threading.Lock()

    def get(self, session_id: str) -> Optional[VisualizationSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> VisualizationSession:
        return self._entry(session_id)[0]

    def _entry(self, session_id: str):
        with self._guard:
            session = self._sessions.get(session_id)
            if session is None:
                session = self._session_factory(session_id)
                self._sessions[session_id] = session
                self._locks[session_id] = threading.RLock()
                logger.info(f"Created visualization session {session_id}")
            self._last_access[session_id] = self._clock()
            entry = session, self._locks[session_id]

        self.sweep(keep=session_id)
        return entry

    @contextmanager
    def locked(self, session_id: str) -> Iterator[VisualizationSession]:
        """Run a block against a session with exclusive access to it"""
        session, lock = self._entry(session_id)
        with lock:
            yield session

    def sweep(self, keep: Optional[str] = None) -> int:
        """
        End idle sessions and, above the session cap, the least recently used ones.

        Args:
            keep: Session id that is never ended (the one being accessed)

        Returns:
            Number of sessions ended
        """
        now = self._clock()
        with self._guard:
            candidates = sorted((accessed, sid) for sid, accessed in self._last_access.items() if sid != keep)
            expired = [sid for accessed, sid in candidates if now - accessed > self.idle_timeout]

            overflow = len(self._sessions) - len(expired) - self.max_sessions
            if overflow > 0:
                remaining = [sid for _, sid in candidates if sid not in expired]
                expired.extend(remaining[:overflow])

        destroyed = sum(self.end(session_id) for session_id in expired)
        if expired:
            logger.info(f"Ended {len(expired)} idle visualization sessions, {destroyed} charts destroyed")
        return len(expired)

    def end(self, session_id: str) -> int:
        """Tear a session down and forget it. Returns how many charts were destroyed."""
        with self._guard:
            session = self._sessions.pop(session_id, None)
            lock = self._locks.pop(session_id, None)
            self._last_access.pop(session_id, None)

        if session is None:
            return 0

        with lock:
            return session.teardown()

    def end_all(self) -> int:
        return sum(self.end(session_id) for session_id in list(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)
