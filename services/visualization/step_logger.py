"""
Visualization Step Logger - Clean, structured logging for chart selection, rendering and lifecycle steps
"""

import logging

logger = logging.getLogger(__name__)

class VisualizationStepLogger:
    """Clean step-by-step logging for the visualization workflow"""

    @staticmethod
    def log_step(step_name: str, status: str, details: str = "", session_id: str = None):
        """
        Log a clean visualization step

        Args:
            step_name: Name of the step (e.g., "Selection", "Deferred Render")
            status: Status icon/text (e.g., "✅", "❌", "🔄")
            details: Optional details about the step
            session_id: Optional conversation session the step belongs to
        """
        if session_id:
            prefix = f"SESSION {session_id[:8]}"
        else:
            prefix = "VIZ"

        if details:
            logger.info(f"{prefix} | {status} {step_name} - {details}")
        else:
            logger.info(f"{prefix} | {status} {step_name}")

    @staticmethod
    def log_selection(intent: str, chart_types: list, session_id: str = None):
        """Log visualization selection result"""
        if chart_types:
            VisualizationStepLogger.log_step("Selection", "📊 SELECTED", f"{intent} -> {', '.join(chart_types)}", session_id)
        else:
            VisualizationStepLogger.log_step("Selection", "⚪ NONE", f"{intent} -> no visualization", session_id)

    @staticmethod
    def log_render(component_count: int, deferred_count: int, session_id: str = None):
        """Log markup rendering result"""
        VisualizationStepLogger.log_step("Render", "🧱 MOUNTED", f"{component_count} components, {deferred_count} deferred charts", session_id)

    @staticmethod
    def log_deferred(component_id: str, chart_id: str = None, session_id: str = None):
        """Log a deferred chart render"""
        if chart_id:
            VisualizationStepLogger.log_step("Deferred Render", "🚀 DRAWN", f"{component_id} -> {chart_id}", session_id)
        else:
            VisualizationStepLogger.log_step("Deferred Render", "⏭️  SKIPPED", f"{component_id} is no longer pending", session_id)

    @staticmethod
    def log_interaction(action: str, component_id: str, handled: bool, session_id: str = None):
        """Log a routed user gesture"""
        if handled:
            VisualizationStepLogger.log_step("Interaction", "👆 HANDLED", f"{action} on {component_id}", session_id)
        else:
            VisualizationStepLogger.log_step("Interaction", "⚠️  IGNORED", f"{action} on {component_id}", session_id)

    @staticmethod
    def log_teardown(destroyed_count: int, session_id: str = None):
        """Log session teardown"""
        VisualizationStepLogger.log_step("Teardown", "🧹 CLEARED", f"{destroyed_count} charts destroyed", session_id)
