# src/routeflow/nodes/control/start.py
"""Start: emite `config.records` (ou um registro vazio) seguido das entradas semeadas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


@dataclass(frozen=True)
class StartSettings:
    records: Tuple[Record, ...]


class StartNode(RecordNode):
    node_type = "Start"

    def validate(self, config: Mapping[str, Any]) -> StartSettings:
        cfg = ConfigReader(self.node_type, config)
        raw = cfg.config.get("records")
        if raw is None:
            return StartSettings(records=())
        if not isinstance(raw, list) or not all(isinstance(r, Mapping) for r in raw):
            raise cfg.error("records", "'records' must be a list of mappings")
        return StartSettings(records=tuple(dict(r) for r in raw))

    def read(self, execution: NodeExecution) -> List[Record]:
        seeded = super().read(execution)
        configured = [dict(r) for r in execution.settings.records]
        if not configured and not seeded:
            return [{}]
        return configured + seeded
