# src/routeflow/nodes/control/checkpoint.py
"""
Checkpoint e Resume — marcadores de checkpoint nas variáveis da execução.

Checkpoint grava `checkpoint_<checkpointId>` com:
    - checkpointId, timestamp (UTC ISO-8601), scope (`step`|`job`)
    - recordCount: registros que passaram pelo nó
    - lastProcessedId: `id` do último registro, quando presente

Resume exige que o marcador exista (senão CheckpointNotFoundError) e
apenas repassa os registros.

Limites explícitos:
    - Nenhuma posição é restaurada; o marcador é verificado, não reaplicado
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from routeflow.core.exceptions import CheckpointNotFoundError
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


MARKER_PREFIX = "checkpoint_"


def marker_key(checkpoint_id: str) -> str:
    return MARKER_PREFIX + checkpoint_id


@dataclass(frozen=True)
class CheckpointSettings:
    checkpoint_id: str
    scope: str = "step"


class CheckpointNode(RecordNode):
    node_type = "Checkpoint"

    def validate(self, config: Mapping[str, Any]) -> CheckpointSettings:
        cfg = ConfigReader(self.node_type, config)
        return CheckpointSettings(
            checkpoint_id=cfg.string("checkpointId", required=True),
            scope=cfg.choice("scope", "step", ("step", "job")),
        )

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        settings: CheckpointSettings = execution.settings
        marker: Dict[str, Any] = {
            "checkpointId": settings.checkpoint_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "scope": settings.scope,
            "recordCount": len(records),
        }
        if records and records[-1].get("id") is not None:
            marker["lastProcessedId"] = records[-1]["id"]
        execution.set_variable(marker_key(settings.checkpoint_id), marker)
        execution.log("info", f"checkpoint '{settings.checkpoint_id}' saved", event="checkpoint", record_count=len(records))
        return execution.emit(records)


class ResumeNode(RecordNode):
    node_type = "Resume"

    def validate(self, config: Mapping[str, Any]) -> CheckpointSettings:
        cfg = ConfigReader(self.node_type, config)
        return CheckpointSettings(checkpoint_id=cfg.string("checkpointId", required=True))

    def read(self, execution: NodeExecution) -> List[Record]:
        checkpoint_id = execution.settings.checkpoint_id
        if not execution.ctx.has_variable(marker_key(checkpoint_id)):
            raise CheckpointNotFoundError(
                f"Checkpoint '{checkpoint_id}' not found",
                details={"checkpoint_id": checkpoint_id},
                hint="Execute o nó Checkpoint correspondente antes do Resume",
            )
        execution.log("info", f"checkpoint '{checkpoint_id}' found", event="resume")
        return super().read(execution)
