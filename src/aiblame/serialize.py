"""Output envelopes and rendering for aiblame commands."""

import json
import logging
from typing import Any, Dict, List, Optional

from .record import AttributionRecord

logger = logging.getLogger(__name__)


class OutputSerializer:
    """Renders command results as JSON envelopes or plain text."""

    def to_json_string(self, payload: Dict[str, Any]) -> str:
        """Convert payload to pretty-printed JSON string."""
        logger.debug("Rendering payload to JSON string")
        return json.dumps(payload, ensure_ascii=False, indent=2)

    def create_success_envelope(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create success envelope around payload."""
        logger.debug("Creating success envelope")
        return {"ok": True, "data": payload}

    def create_error_envelope(
        self, error_code: str, error_message: str, details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create error envelope."""
        logger.debug("Creating error envelope", extra={"code": error_code})
        error_data = {
            "code": error_code,
            "message": error_message,
        }
        if details:
            error_data["details"] = details

        return {"ok": False, "error": error_data}

    def format_record(self, record: AttributionRecord) -> List[str]:
        """Human-readable lines describing a record."""
        lines = []
        for entry in record.entries:
            label = entry.contributor if not entry.tool else f"{entry.contributor} ({entry.tool})"
            lines.append(f"  {entry.portion * 100:6.2f}%  {label}")
        if record.content_fingerprint:
            lines.append(f"  fingerprint: {record.content_fingerprint}")
        return lines
