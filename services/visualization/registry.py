"""
Chart lifecycle registry: tracks live chart handles so each one is destroyed exactly once.
"""

from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, List, Optional
import logging

from .models import VisualizationType

logger = logging.getLogger(__name__)


@dataclass
class ChartInstance:
    """A registered chart and its native handle."""
    id: str
    type: VisualizationType
    handle: Any
    # Interaction state of the rendered component (filters, view mode)
    view_state: Dict[str, Any] = field(default_factory=dict)


class ChartRegistry:
    """
    Owns the native chart handles of one conversation session.

    Ids are allocated here and never reused within the registry, so two
    registrations in quick succession can not collide.
    """

    def __init__(self):
        self._instances: Dict[str, ChartInstance] = {}
        self._sequence = count(1)
        self.registered_count = 0
        self.disposed_count = 0

    def register(self, chart_type: VisualizationType, handle: Any,
                 view_state: Optional[Dict[str, Any]] = None) -> str:
        """Store a native handle and return its new chart id."""
        chart_type = VisualizationType(chart_type)
        chart_id = f"{chart_type.value}-chart-{next(self._sequence)}"

        self._instances[chart_id] = ChartInstance(
            id=chart_id, type=chart_type, handle=handle,
            view_state=view_state if view_state is not None else {}
        )
        self.registered_count += 1
        logger.debug(f"Registered {chart_id}")
        return chart_id

    def get(self, chart_id: str) -> Optional[ChartInstance]:
        return self._instances.get(chart_id)

    def is_live(self, chart_id: str) -> bool:
        return chart_id in self._instances

    def live_ids(self) -> List[str]:
        return list(self._instances)

    def destroy(self, chart_id: str) -> bool:
        """
        Dispose a chart's handle and forget it.

        Returns:
            True if the chart was live, False for unknown or already destroyed ids
        """
        instance = self._instances.pop(chart_id, None)
        if instance is None:
            logger.debug(f"Ignoring destroy for unknown chart {chart_id}")
            return False

        self._dispose(instance)
        return True

    def destroy_all(self) -> int:
        """Dispose every live chart. Returns how many were disposed."""
        instances = list(self._instances.values())
        self._instances.clear()

        for instance in instances:
            self._dispose(instance)

        if instances:
            logger.info(f"Destroyed {len(instances)} charts")
        return len(instances)

    def _dispose(self, instance: ChartInstance):
        self.disposed_count += 1
        try:
            instance.handle.destroy()
        except Exception as e:
            logger.error(f"Failed to dispose {instance.id}: {str(e)}")

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, chart_id: object) -> bool:
        return chart_id in self._instances
