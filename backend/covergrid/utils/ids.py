"""
CoverGrid Request ID Utilities
Generate unique IDs for tracing export requests through the logs.
"""
import uuid
from datetime import datetime


def generate_request_id(prefix: str = "exp") -> str:
    """
    Generate a unique request ID for tracking.

    Returns:
        ID of the form ``<prefix>-<YYYYmmddHHMMSS>-<8 hex chars>``
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    short_uuid = uuid.uuid4().hex[:8]
    return f"{prefix}-{timestamp}-{short_uuid}"

