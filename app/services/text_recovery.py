# app/services/text_recovery.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, List, Tuple
import json
import logging
import re

logger = logging.getLogger(__name__)

MSG_STRICT_FAILED = "Standard JSON parse failed, attempting repairs..."
MSG_REPAIRED = "JSON repaired successfully with syntax fixes"
MSG_UNREPAIRABLE = "Could not repair JSON syntax"

TRAILING_COMMA = re.compile(r",(\s*[}\]])")
BARE_KEY = re.compile(r"([{,])\s*([A-Za-z_][A-Za-z0-9_]*)\s*:")
LINE_COMMENT = re.compile(r"//[^\n]*")
BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
BARE_UNDEFINED = re.compile(r'("(?:[^"\\]|\\.)*")|([:\[,]\s*)(?:undefined|NaN)\b')


@dataclass
class RecoveryResult:
    parsed: Any = None
    ok: bool = False
    diagnostics: List[str] = field(default_factory=list)


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity by default; JSON does not
    raise ValueError(f"Invalid JSON constant: {name}")


def _null_bare_tokens(text: str) -> str:
    # group 1 is a double-quoted literal and passes through untouched
    return BARE_UNDEFINED.sub(lambda m: m.group(1) or m.group(2) + "null", text)


def _strict_loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


# Applied once, in this order. Each rewrite is purely textual.
REWRITES: Tuple[Tuple[str, Callable[[str], str]], ...] = (
    ("trailing_commas", lambda s: TRAILING_COMMA.sub(r"\1", s)),
    ("single_quotes", lambda s: s.replace("'", '"')),
    ("bare_keys", lambda s: BARE_KEY.sub(r'\1"\2":', s)),
    ("comments", lambda s: BLOCK_COMMENT.sub("", LINE_COMMENT.sub("", s))),
    ("undefined_nan", _null_bare_tokens),
)


def recover_json(text: str) -> RecoveryResult:
    """
    Parse `text` as JSON, falling back to a single round of fixed syntax
    rewrites (trailing commas, single quotes, bare keys, comments,
    undefined/NaN) followed by exactly one re-parse.
    """
    result = RecoveryResult()
    try:
        result.parsed = _strict_loads(text)
        result.ok = True
        return result
    except ValueError as e:
        logger.debug("strict parse failed: %s", e)
        result.diagnostics.append(MSG_STRICT_FAILED)

    repaired = text
    for name, rewrite in REWRITES:
        before = repaired
        repaired = rewrite(repaired)
        if repaired != before:
            logger.debug("text rewrite applied: %s", name)

    try:
        result.parsed = _strict_loads(repaired)
        result.ok = True
        result.diagnostics.append(MSG_REPAIRED)
    except ValueError as e:
        logger.debug("re-parse after rewrites failed: %s", e)
        result.diagnostics.append(MSG_UNREPAIRABLE)
    return result
