import json
import logging
import os
import re
from typing import Any, Dict, Optional

PII_RE = re.compile(r"([\w\.-]+)@([\w\.-]+)")  # naive email redaction


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_str(s: str) -> str:
    return PII_RE.sub("[redacted-email]", s)


def preview(value: Any, limit: int = 200) -> str:
    """Compact, redacted, size-capped rendering of a tool argument."""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    text = redact_str(text)
    if len(text) > limit:
        return text[:limit] + f"...(+{len(text) - limit} chars)"
    return text


def redact_args(args: Dict[str, Any], limit: int = 200) -> Dict[str, str]:
    return {k: preview(v, limit) for k, v in args.items()}


def log_tool_call(logger: logging.Logger, name: str, args: Dict[str, Any], limit: int = 200):
    logger.info("tool_call %s %s", name, redact_args(args, limit))
