"""
Main visualization service that turns a classified query and its result set
into interactive chat visualizations.
"""

import json
from typing import Dict, Any, Tuple, Optional, List, Sequence
import logging

from .models import RESULT_SET_FIELDS, VisualizationDescriptor
from .selector import VisualizationSelector
from .step_logger import VisualizationStepLogger

logger = logging.getLogger(__name__)

class VisualizationService:
    """
    Main service for attaching visualizations to agent responses.
    Selection is shared across conversations; rendering and chart state live in the session.
    """

    def __init__(self, selector: Optional[VisualizationSelector] = None):
        """
        Initialize the visualization service.

        Args:
            selector: Visualization selector, built from Config when omitted
        """
        self.selector = selector or VisualizationSelector()
        logger.info("VisualizationService initialized successfully")

    def process_visualization_request(self, intent: Any, result_set: Optional[Dict[str, Any]], session,
                                      mount: Optional[list] = None) -> Tuple[bool, Any]:
        """
        Process a visualization request from intent and results to mounted markup.

        Args:
            intent: Intent tag resolved upstream
            result_set: Query results keyed by field name
            session: VisualizationSession of the conversation
            mount: List the rendered fragments are appended to; a fresh list when omitted

        Returns:
            Tuple of (success, result) where result is either a dict with the
            descriptors and fragments or an error message
        """
        logger.info(f"Processing visualization request for intent {intent!r}")

        try:
            # Step 1: Pick the charts for this intent and data
            descriptors = self.selector.select(intent, result_set)
            VisualizationStepLogger.log_selection(str(intent), [d.type.value for d in descriptors], session.session_id)

            # Step 2: Render markup; canvas charts are drawn once mounted
            if mount is None:
                mount = []
            fragments = session.mount(descriptors, mount) if descriptors else []

            result = {
                'descriptors': descriptors,
                'fragments': fragments,
                'visualization_count': len(descriptors),
            }

            logger.info(f"Successfully prepared {len(descriptors)} visualizations")
            return True, result

        except Exception as e:
            error_msg = f"Visualization processing failed: {str(e)}"
            logger.error(error_msg)
            return False, error_msg

    def describe(self, descriptors: Sequence[VisualizationDescriptor]) -> str:
        """One-line summary of the attached visualizations for the chat message."""
        if not descriptors:
            return "No visualizations for this result."

        titles = [descriptor.title for descriptor in descriptors]
        noun = "visualization" if len(titles) == 1 else "visualizations"
        return f"Showing {len(titles)} {noun}: {', '.join(titles)}"

    def get_supported_visualizations(self) -> List[str]:
        """Return list of supported visualization types."""
        return self.selector.get_supported_visualization_types()

    def validate_result_set(self, raw: str) -> Tuple[bool, Any]:
        """
        Parse a JSON result set typed into the chat surface.

        Returns:
            Tuple of (is_valid, result_set or error message)
        """
        if not raw or not raw.strip():
            return True, {}

        try:
            result_set = json.loads(raw)
        except json.JSONDecodeError as e:
            return False, f"Result set is not valid JSON: {str(e)}"

        if not isinstance(result_set, dict):
            return False, "Result set must be a JSON object keyed by field name"

        unknown = [name for name in result_set if name not in RESULT_SET_FIELDS]
        if unknown:
            logger.warning(f"Result set has unrecognized fields: {', '.join(unknown)}")

        return True, result_set
