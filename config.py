import logging
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Config:
    """Configuration class for the application"""

    # Visualization selection thresholds
    MIN_TIMELINE_MEETINGS = int(os.getenv('MIN_TIMELINE_MEETINGS', '3'))
    MIN_COLLABORATION_PEOPLE = int(os.getenv('MIN_COLLABORATION_PEOPLE', '2'))
    ORGANIZATION_PEOPLE_THRESHOLD = int(os.getenv('ORGANIZATION_PEOPLE_THRESHOLD', '3'))
    MAX_FALLBACK_VISUALIZATIONS = int(os.getenv('MAX_FALLBACK_VISUALIZATIONS', '2'))

    # Rendering
    RENDER_DEFER_MS = int(os.getenv('RENDER_DEFER_MS', '100'))
    COLLABORATION_FREQUENCY_THRESHOLD = int(os.getenv('COLLABORATION_FREQUENCY_THRESHOLD', '5'))
    EXPORT_DIR = os.getenv('EXPORT_DIR', './exports')

    # Visualization sessions
    SESSION_IDLE_TIMEOUT = int(os.getenv('SESSION_IDLE_TIMEOUT', '3600'))
    MAX_SESSIONS = int(os.getenv('MAX_SESSIONS', '500'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def get_log_level(cls):
        """Get the logging level, falling back to INFO for unknown names"""
        level = logging.getLevelName(cls.LOG_LEVEL)
        if isinstance(level, int):
            return level
        return logging.INFO

    # App Configuration
    DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', '8050'))
