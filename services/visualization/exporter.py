"""
Chart export: writes rendered charts to the export directory.
"""

import json
import os
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional
import logging

import plotly.io as pio

from config import Config
from .hierarchy import HierarchyNode
from .models import NodeState, VisualizationType

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    return str(value)


class ChartExporter:
    """Exports charts as standalone HTML (Plotly charts) or JSON (organization trees and topics)."""

    def __init__(self, export_dir: Optional[str] = None):
        self.export_dir = export_dir or Config.EXPORT_DIR

    def export(self, component, figure: Any = None) -> str:
        """
        Export a rendered component.

        Args:
            component: RenderedComponent to export
            figure: Current Plotly figure for canvas charts, None otherwise

        Returns:
            Path of the written file

        Raises:
            OSError: if the export directory or file can not be written
        """
        os.makedirs(self.export_dir, exist_ok=True)

        if figure is not None:
            path = os.path.join(self.export_dir, f"{component.component_id}.html")
            pio.write_html(figure, file=path, include_plotlyjs='cdn', full_html=True)
        else:
            path = os.path.join(self.export_dir, f"{component.component_id}.json")
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self._serialize(component), f, indent=2, default=_to_json)

        logger.info(f"Exported {component.component_id} to {path}")
        return path

    def _serialize(self, component) -> Dict[str, Any]:
        payload = {
            "type": component.descriptor.type.value,
            "title": component.descriptor.title,
            "view_state": component.view_state,
        }

        if component.descriptor.type == VisualizationType.ORGANIZATION and component.forest is not None:
            payload["roots"] = [self._serialize_node(root, component.node_states) for root in component.forest.roots]
        else:
            payload["data"] = component.data

        return payload

    def _serialize_node(self, node: HierarchyNode, node_states: Dict[str, NodeState]) -> Dict[str, Any]:
        person = node.person
        entry = {
            "id": person.id,
            "name": person.name,
            "title": person.title,
            "department": person.department,
            "meetingCount": person.meeting_count,
        }
        if node.truncated:
            entry["truncated"] = True
        if node.has_children:
            entry["state"] = node_states.get(person.id, NodeState.VISIBLE).value
            entry["children"] = [self._serialize_node(child, node_states) for child in node.children]
        return entry
