import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

from src.core.config import settings
from src.utils.cache import RecordEncoder

# Configure logging
activity_log = logging.getLogger("activity_logger")
activity_log.setLevel(logging.INFO)


class ActivityLogger:
    """
    Logger for staff activity in a narrative format.
    Logs are stored in <LOG_DIR>/activity/ with timestamped files.
    """

    def __init__(self, logs_dir: Optional[str] = None):
        """
        Initialize the activity logger.

        Args:
            logs_dir: Optional base directory, defaults to LOG_DIR
        """
        self.logs_dir = Path(logs_dir or settings.log_dir) / "activity"
        self.logs_dir.mkdir(parents=True, exist_ok=True)

        self.max_file_size = settings.activity_log_max_size_mb * 1024 * 1024
        self.rotation_when = settings.activity_log_rotation

        self._configure_handlers()

    def _configure_handlers(self):
        """Configure file handlers for logging."""
        # Clear existing handlers
        if activity_log.handlers:
            activity_log.handlers.clear()

        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S %z'
        )

        timed_handler = TimedRotatingFileHandler(
            filename=self.logs_dir / "activity.log",
            when=self.rotation_when,
            backupCount=30  # Keep logs for 30 days
        )
        timed_handler.setFormatter(formatter)
        activity_log.addHandler(timed_handler)

        size_handler = RotatingFileHandler(
            filename=self.logs_dir / "activity_size.log",
            maxBytes=self.max_file_size,
            backupCount=10  # Keep 10 backup files
        )
        size_handler.setFormatter(formatter)
        activity_log.addHandler(size_handler)

    def _build_entry(self, message: str, user_id: Optional[str],
                     activity_type: Optional[str],
                     metadata: Optional[Dict[str, Any]]) -> str:
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "message": message,
            "user_id": user_id,
            "activity_type": activity_type,
            "metadata": metadata or {}
        }
        return json.dumps(log_entry, cls=RecordEncoder)

    async def log_activity(
        self,
        message: str,
        user_id: Optional[str] = None,
        activity_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an activity in a narrative format.

        Args:
            message: The narrative description of the activity
            user_id: The acting staff member (optional)
            activity_type: The type of activity (optional)
            metadata: Additional contextual information (optional)
        """
        activity_log.info(self._build_entry(message, user_id, activity_type, metadata))

    def log_activity_sync(
        self,
        message: str,
        user_id: Optional[str] = None,
        activity_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Synchronous version of log_activity for non-async contexts."""
        activity_log.info(self._build_entry(message, user_id, activity_type, metadata))


# Global instance for convenience
logger_instance = ActivityLogger()
