# learnify/services/health.py
import logging
import resource
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from learnify.core.database import Database

logger = logging.getLogger(__name__)


def memory_usage() -> Dict[str, Any]:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is kilobytes on Linux and bytes on macOS
    max_rss = usage.ru_maxrss if sys.platform == "darwin" else usage.ru_maxrss * 1024
    return {
        "maxRss": max_rss,
        "userTime": round(usage.ru_utime, 3),
        "systemTime": round(usage.ru_stime, 3),
    }


class HealthService:
    def __init__(self, database: Database, started_at: float):
        self.database = database
        self.started_at = started_at

    def check(self) -> Tuple[Dict[str, Any], bool]:
        """Returns the health report and whether every dependency is healthy."""
        db_status = self.database.status()
        db_healthy = db_status["isConnected"]
        if not db_healthy:
            logger.error("Health check: database unreachable")

        report = {
            "status": "OK" if db_healthy else "ERROR",
            "timeStamp": datetime.now(timezone.utc).isoformat(),
            "services": {
                "database": {
                    "status": "healthy" if db_healthy else "unhealthy",
                    "details": db_status,
                },
                "server": {
                    "status": "healthy",
                    "uptime": round(time.time() - self.started_at, 3),
                    "memoryUsage": memory_usage(),
                },
            },
        }
        return report, db_healthy
