"""AWS Lambda handler for the webinar event status sweep."""
import json
import logging
import os
import time
from typing import Dict, Any

from processor.status_transitions import StatusTransitioner
from storage.dynamodb_manager import DynamoDBManager

INTERNAL_ERROR_MESSAGE = 'Failed to update event status'


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Advance event statuses to match the current time.

    Invoked by a scheduled EventBridge rule or over HTTP; the payload is
    ignored because the sweep covers every event.

    Args:
        event: Invocation payload (unused)
        context: Lambda context object

    Returns:
        Response dict with statusCode and a body holding ``success`` and
        ``updated``, or a generic internal error
    """
    # Read configuration from environment variables
    table_name = os.environ.get('TABLE_NAME', 'events')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timezone = os.environ.get('EVENT_TIMEZONE', 'UTC')
    start_filter = os.environ.get('START_FILTER', 'instant')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Status sweep invocation started",
        extra={
            'table_name': table_name,
            'timezone': timezone,
            'start_filter': start_filter
        }
    )

    try:
        store = DynamoDBManager(table_name=table_name)
        transitioner = StatusTransitioner(
            store,
            timezone=timezone,
            start_filter=start_filter
        )

        result = transitioner.run_sweep()

        duration = time.time() - start_time
        logger.info(
            "Status sweep invocation completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_went_live': result.went_live,
                'events_went_past': result.went_past,
                'events_skipped': result.skipped
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'success': result.success,
                'updated': result.updated
            })
        }

    except Exception as e:
        duration = time.time() - start_time

        # Details stay in the logs; callers only get a generic message
        logger.error(
            f"Error updating event status: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'error': 'internal',
                'message': INTERNAL_ERROR_MESSAGE
            })
        }
