"""
Visualization selection logic for determining which charts to render based on query intent and result data.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from config import Config
from .models import VisualizationDescriptor, VisualizationType, get_records

logger = logging.getLogger(__name__)

TITLES = {
    VisualizationType.ORGANIZATION: "Organization Structure",
    VisualizationType.COLLABORATION: "Collaboration Network",
    VisualizationType.TIMELINE: "Meeting Timeline",
    VisualizationType.DEPARTMENTS: "Department Statistics",
    VisualizationType.TOPICS: "Topic Evolution",
}


class VisualizationSelector:
    """Selects the visualizations for a classified intent and its result set."""

    def __init__(
        self,
        min_timeline_meetings: Optional[int] = None,
        min_collaboration_people: Optional[int] = None,
        organization_people_threshold: Optional[int] = None,
        max_fallback_visualizations: Optional[int] = None,
    ):
        self.min_timeline_meetings = (
            Config.MIN_TIMELINE_MEETINGS if min_timeline_meetings is None else min_timeline_meetings
        )
        self.min_collaboration_people = (
            Config.MIN_COLLABORATION_PEOPLE if min_collaboration_people is None else min_collaboration_people
        )
        self.organization_people_threshold = (
            Config.ORGANIZATION_PEOPLE_THRESHOLD if organization_people_threshold is None else organization_people_threshold
        )
        self.max_fallback_visualizations = (
            Config.MAX_FALLBACK_VISUALIZATIONS if max_fallback_visualizations is None else max_fallback_visualizations
        )

        # Intents that fully determine their chart: intent -> (required field, chart type)
        self.intent_mappings: Dict[str, Tuple[str, VisualizationType]] = {
            "organization_hierarchy": ("people", VisualizationType.ORGANIZATION),
            "collaboration_analysis": ("relationships", VisualizationType.COLLABORATION),
            "meeting_frequency": ("meetings", VisualizationType.TIMELINE),
            "department_analysis": ("departments", VisualizationType.DEPARTMENTS),
            "topic_analysis": ("topics", VisualizationType.TOPICS),
        }

    def select(self, intent: Any, result_set: Optional[Mapping[str, Any]]) -> List[VisualizationDescriptor]:
        """
        Select the visualizations to render for a query.

        Args:
            intent: Intent tag resolved upstream (e.g. "organization_hierarchy", "general_query")
            result_set: Query results keyed by field name; absent fields count as empty

        Returns:
            Ordered list of descriptors, each referencing `result_set`
        """
        if isinstance(intent, str) and intent in self.intent_mappings:
            descriptors = self._select_direct(intent, result_set)
        else:
            descriptors = self._select_fallback(result_set)

        logger.debug(f"Selected {[d.type.value for d in descriptors]} for intent {intent!r}")
        return descriptors

    def _select_direct(self, intent: str, result_set: Optional[Mapping[str, Any]]) -> List[VisualizationDescriptor]:
        """Single chart for an intent with a direct mapping, or nothing when its field is empty."""
        required_field, viz_type = self.intent_mappings[intent]

        if not get_records(result_set, required_field):
            return []

        return [self._descriptor(viz_type, result_set)]

    def _select_fallback(self, result_set: Optional[Mapping[str, Any]]) -> List[VisualizationDescriptor]:
        """Composite rule for unmapped intents, driven by how much data came back."""
        num_meetings = len(get_records(result_set, 'meetings'))
        num_people = len(get_records(result_set, 'people'))

        descriptors = []

        # Meeting timeline first, collaboration only alongside it
        if num_meetings >= self.min_timeline_meetings:
            descriptors.append(self._descriptor(VisualizationType.TIMELINE, result_set))

            if num_people >= self.min_collaboration_people:
                descriptors.append(self._descriptor(VisualizationType.COLLABORATION, result_set))

        if num_people > self.organization_people_threshold:
            descriptors.append(self._descriptor(VisualizationType.ORGANIZATION, result_set))

        return descriptors[:self.max_fallback_visualizations]

    def _descriptor(self, viz_type: VisualizationType, result_set: Any) -> VisualizationDescriptor:
        return VisualizationDescriptor(type=viz_type, title=TITLES[viz_type], data=result_set)

    def get_supported_visualization_types(self) -> List[str]:
        """Return list of all supported visualization types."""
        return [viz_type.value for viz_type in VisualizationType]
