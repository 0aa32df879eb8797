# src/routeflow/nodes/conditional/decision.py
"""
Decision — rótulo booleano de rota por registro.

Configuração:
    - condition: expressão avaliada contra o registro (ausente → sempre true)
    - failOnError: quando true, falha de avaliação aborta o stage; caso
      contrário o registro segue pelo ramo `false` com warning

O rótulo (`true`/`false`) é gravado em `_routePort` de uma cópia do registro.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from routeflow.core.expressions import CompiledExpression, ExpressionError, is_true
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import ROUTE_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode


TRUE_PORT = "true"
FALSE_PORT = "false"


@dataclass(frozen=True)
class DecisionSettings:
    condition: Optional[CompiledExpression] = None
    fail_on_error: bool = False


class DecisionNode(RecordNode):
    node_type = "Decision"

    def validate(self, config: Mapping[str, Any]) -> DecisionSettings:
        cfg = ConfigReader(self.node_type, config)
        return DecisionSettings(
            condition=cfg.expression("condition"),
            fail_on_error=cfg.boolean("failOnError", False),
        )

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        settings: DecisionSettings = execution.settings
        outcome = True
        if settings.condition is not None:
            try:
                outcome = is_true(settings.condition.evaluate(record))
            except ExpressionError as exc:
                if settings.fail_on_error:
                    raise
                execution.warn(f"condition failed, routing to '{FALSE_PORT}': {exc}", event="condition_error")
                outcome = False
        labeled = dict(record)
        labeled[ROUTE_FIELD] = TRUE_PORT if outcome else FALSE_PORT
        return labeled
