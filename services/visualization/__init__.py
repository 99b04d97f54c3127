"""
Visualization service module for attaching interactive charts to conversational analytics responses.
"""

from .service import VisualizationService
from .selector import VisualizationSelector
from .session import SessionManager, VisualizationSession
from .interactions import ActionType, Gesture
from .plotly_generator import PlotlyGenerator

__all__ = ['VisualizationService', 'VisualizationSelector', 'SessionManager', 'VisualizationSession',
           'ActionType', 'Gesture', 'PlotlyGenerator']
