# src/routeflow/nodes/control/filter.py
"""Filter: descarta registros cuja `condition` não avalia para `True`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from routeflow.core.exceptions import RowLevelError
from routeflow.core.expressions import CompiledExpression, ExpressionError, is_true
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


@dataclass(frozen=True)
class FilterSettings:
    condition: CompiledExpression


class FilterNode(RecordNode):
    node_type = "Filter"

    def validate(self, config: Mapping[str, Any]) -> FilterSettings:
        cfg = ConfigReader(self.node_type, config)
        return FilterSettings(condition=cfg.expression("condition", required=True))

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        try:
            keep = is_true(execution.settings.condition.evaluate(record))
        except ExpressionError as exc:
            raise RowLevelError(
                f"condition failed: {exc}",
                details={"node_id": execution.node_id},
                record=record,
            ) from exc
        return record if keep else None
