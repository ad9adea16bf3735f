# app/services/changes.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal
import copy

from app.services.schema_nav import display_pointer


Action = Literal["removed", "added", "coerced", "defaulted"]

_UNSET = object()


def _snapshot(value: Any) -> Any:
    return value if value is _UNSET else copy.deepcopy(value)


@dataclass(frozen=True)
class ChangeRecord:
    path: str
    action: Action
    reason: str
    before: Any = _UNSET
    after: Any = _UNSET

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"path": display_pointer(self.path), "action": self.action}
        if self.before is not _UNSET:
            out["from"] = self.before
        if self.after is not _UNSET:
            out["to"] = self.after
        out["reason"] = self.reason
        return out


def removed(path: str, value: Any, reason: str) -> ChangeRecord:
    return ChangeRecord(path, "removed", reason, before=_snapshot(value))


def added(path: str, value: Any, reason: str, before: Any = _UNSET) -> ChangeRecord:
    return ChangeRecord(path, "added", reason, before=_snapshot(before), after=_snapshot(value))


def coerced(path: str, before: Any, after: Any, reason: str) -> ChangeRecord:
    return ChangeRecord(path, "coerced", reason, before=_snapshot(before), after=_snapshot(after))


def defaulted(path: str, value: Any, reason: str, before: Any = _UNSET) -> ChangeRecord:
    return ChangeRecord(
        path, "defaulted", reason, before=_snapshot(before), after=_snapshot(value)
    )


class ChangeLedger:
    """
    Append-only log of the mutations made during one repair call.
    Passes return their own deltas; the repair service extends the ledger
    in pass order.
    """

    def __init__(self) -> None:
        self._records: List[ChangeRecord] = []

    def extend(self, records: Iterable[ChangeRecord]) -> None:
        self._records.extend(records)

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self._records]
