# src/routeflow/nodes/conditional/job_condition.py
"""
JobCondition — decisão única por stage sobre as variáveis da execução.

A expressão é avaliada uma vez (no reader) contra as variáveis da
execução, não contra os registros. O resultado fica no estado do stage,
é publicado na variável `jobCondition_<nodeId>` e vira o `_routePort` de
todos os registros do lote.

Falha de avaliação aborta o job, exceto com `failOnError: false` (o
resultado passa a ser `false`). O nó não participa da política
`onFailure`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from routeflow.core.expressions import CompiledExpression, ExpressionError, is_true
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import ROUTE_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode

from .decision import FALSE_PORT, TRUE_PORT


VARIABLE_PREFIX = "jobCondition_"


@dataclass(frozen=True)
class JobConditionSettings:
    expression: CompiledExpression
    fail_on_error: bool = True


class JobConditionNode(RecordNode):
    node_type = "JobCondition"
    supports_failure_handling = False

    def validate(self, config: Mapping[str, Any]) -> JobConditionSettings:
        cfg = ConfigReader(self.node_type, config)
        return JobConditionSettings(
            expression=cfg.expression("expression", required=True),
            fail_on_error=cfg.boolean("failOnError", True),
        )

    def read(self, execution: NodeExecution) -> List[Record]:
        settings: JobConditionSettings = execution.settings
        try:
            outcome = is_true(settings.expression.evaluate(execution.ctx.variables))
        except ExpressionError as exc:
            if settings.fail_on_error:
                raise
            execution.warn(f"job condition failed, using false: {exc}", event="condition_error")
            outcome = False
        execution.state["outcome"] = outcome
        execution.set_variable(VARIABLE_PREFIX + execution.node_id, outcome)
        execution.log("info", f"job condition evaluated to {outcome}", event="job_condition", outcome=outcome)
        return super().read(execution)

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        labeled = dict(record)
        labeled[ROUTE_FIELD] = TRUE_PORT if execution.state["outcome"] else FALSE_PORT
        return labeled
