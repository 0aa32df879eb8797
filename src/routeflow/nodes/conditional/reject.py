# src/routeflow/nodes/conditional/reject.py
"""
Reject — anota metadados de rejeição sem filtrar registros.

Motivo (gravado em `rejectReasonField`, default `reject_reason`), na ordem:
    1. `_validationErrors` unidos por `; `
    2. `_failedRules` unidos por `; `
    3. `_rejectReason`
    4. `Rejected`

Metadados gravados apenas quando ausentes: `_rejectedAt` (UTC ISO-8601),
`_rejectedBy` (id do nó) e `_rejectType` (`Validate` quando há metadados
de validação, senão `FilterOrManual`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode

from .validate import FAILED_RULES_FIELD, VALIDATION_ERRORS_FIELD


DEFAULT_REASON = "Rejected"


@dataclass(frozen=True)
class RejectSettings:
    reason_field: str = "reject_reason"


def _join(value: Any) -> str:
    if value is None:
        return DEFAULT_REASON
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value)
    return str(value)


def reject_reason(record: Mapping[str, Any]) -> str:
    if VALIDATION_ERRORS_FIELD in record:
        return _join(record[VALIDATION_ERRORS_FIELD])
    if FAILED_RULES_FIELD in record:
        return _join(record[FAILED_RULES_FIELD])
    if record.get("_rejectReason") is not None:
        return str(record["_rejectReason"])
    return DEFAULT_REASON


class RejectNode(RecordNode):
    node_type = "Reject"

    def validate(self, config: Mapping[str, Any]) -> RejectSettings:
        cfg = ConfigReader(self.node_type, config)
        if "rejectReasonField" in cfg.config:
            return RejectSettings(reason_field=cfg.string("rejectReasonField", required=True))
        return RejectSettings()

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        result = dict(record)
        result[execution.settings.reason_field] = reject_reason(record)
        result.setdefault("_rejectedAt", datetime.now(timezone.utc).isoformat())
        result.setdefault("_rejectedBy", execution.node_id)
        if "_rejectType" not in result:
            validated = VALIDATION_ERRORS_FIELD in record or FAILED_RULES_FIELD in record
            result["_rejectType"] = "Validate" if validated else "FilterOrManual"
        return result
