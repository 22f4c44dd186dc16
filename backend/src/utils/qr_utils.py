"""
Test order QR payload helpers.

The payload printed on sample labels is ``HEAL-{order_code}-{patient_code}-{ms}``,
where ``ms`` is the creation time in epoch milliseconds. Order and patient
codes themselves contain dashes (``BR001-ORD001``), so parsing anchors on the
known ``-ORD`` / ``-PAT`` segments rather than splitting blindly.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from core.constants import ORDER_QR_PREFIX

_QR_PATTERN = re.compile(
    rf"^{ORDER_QR_PREFIX}-(?P<order_code>.+?-ORD\d+)-(?P<patient_code>.+?-PAT\d+)-(?P<timestamp>\d+)$"
)


def build_order_qr_payload(order_code: str, patient_code: str, created_at: datetime) -> str:
    """Build the QR payload string for a test order."""
    millis = int(created_at.timestamp() * 1000)
    return f"{ORDER_QR_PREFIX}-{order_code}-{patient_code}-{millis}"


def parse_order_qr_payload(payload: str) -> Optional[dict[str, object]]:
    """
    Parse a QR payload back into its parts.

    Returns:
        Dict with order_code, patient_code and created_at (UTC), or None
        if the payload is not a test order QR string
    """
    match = _QR_PATTERN.match(payload.strip())
    if not match:
        return None
    millis = int(match.group("timestamp"))
    return {
        "order_code": match.group("order_code"),
        "patient_code": match.group("patient_code"),
        "created_at": datetime.fromtimestamp(millis / 1000, tz=timezone.utc),
    }
