# src/routeflow/nodes/control/end.py
"""
End — coletor terminal do workflow.

Armazena o lote recebido na variável `outputItems` e nas saídas do nó
(`ExecutionContext.outputs`), e publica `exitStatus` (default `COMPLETED`).
Arestas de saída, se existirem, são ignoradas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping

from routeflow.core.pipeline.execution import OUTPUT_ITEMS, NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


EXIT_STATUS = "exitStatus"


@dataclass(frozen=True)
class EndSettings:
    exit_status: str = "COMPLETED"


class EndNode(RecordNode):
    node_type = "End"

    def validate(self, config: Mapping[str, Any]) -> EndSettings:
        cfg = ConfigReader(self.node_type, config)
        return EndSettings(exit_status=cfg.string("exitStatus", "COMPLETED"))

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        execution.ctx.set_variable(OUTPUT_ITEMS, list(records))
        execution.ctx.set_variable(EXIT_STATUS, execution.settings.exit_status)
        execution.ctx.add_outputs(execution.node_id, list(records))
        execution.log("info", f"workflow finished with {len(records)} records", exit_status=execution.settings.exit_status)
        return len(records)
