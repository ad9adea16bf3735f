# app/services/repairer.py
from __future__ import annotations
from typing import Any, Dict, List
import copy
import logging

from app.errors import ParseFailedError, guarded
from app.services.changes import ChangeLedger
from app.services.coercer import coerce
from app.services.defaults import apply_defaults
from app.services.pruner import prune
from app.services.schema_nav import SchemaNode
from app.services.text_recovery import recover_json
from app.services.validator import JsonValidatorService

logger = logging.getLogger(__name__)

STILL_INVALID = (
    "Repaired JSON still has validation errors - some issues could not be automatically fixed"
)


class RepairService:
    """
    Best-effort repair of a JSON value (or malformed JSON text) against a
    draft-07 schema. Passes always run prune -> coerce -> default, each on
    the output of the previous one. The final validation is informational:
    a repaired value that is still invalid is a normal result.
    """

    def __init__(self, validator_service: JsonValidatorService):
        self.validator_service = validator_service

    @guarded("Repair")
    def repair(self, schema: Any, instance_or_text: Any) -> Dict[str, Any]:
        validator = self.validator_service.ensure_schema(schema)

        parse_errors: List[str] = []
        if isinstance(instance_or_text, str):
            recovery = recover_json(instance_or_text)
            parse_errors.extend(recovery.diagnostics)
            if not recovery.ok:
                raise ParseFailedError(
                    "Could not parse or repair JSON string", {"parseErrors": parse_errors}
                )
            working = recovery.parsed
        else:
            working = copy.deepcopy(instance_or_text)

        node = SchemaNode.parse(schema)
        ledger = ChangeLedger()

        for step in (prune, coerce, apply_defaults):
            working, delta = step(working, node)
            ledger.extend(delta)
            logger.debug("%s: %d change(s)", step.__name__, len(delta))

        remaining = self.validator_service.collect(validator, working)
        warnings = [STILL_INVALID] if remaining else []

        out: Dict[str, Any] = {
            "repaired": working,
            "changes": ledger.to_list(),
            "valid": not remaining,
            "warnings": warnings,
        }
        if parse_errors:
            out["parseErrors"] = parse_errors
        return out
