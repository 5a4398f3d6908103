import json
import logging
from datetime import UTC, datetime

from publisphere.infrastructure.logging.context import get_job_id, get_request_id


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line; request and job ids come from the logging context."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = get_request_id()
        if request_id:
            payload["request_id"] = request_id
        job_id = get_job_id()
        if job_id:
            payload["job_id"] = job_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
