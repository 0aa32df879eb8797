# src/routeflow/nodes/partition/fanout.py
"""
Broadcast e Replicate — fan-out de registros em N cópias independentes.

Replicate:
    - numberOfCopies (default 3, > 0)

Broadcast:
    - targetNodes: lista de nós destino (informativa, anotada nas cópias)
    - numberOfCopies: quando ausente, o número de `targetNodes`; sem
      destinos, 3
    - modo roteado: cada cópia vai para todas as arestas de saída

Cada cópia é uma cópia profunda do registro com `_replicaIndex` 1-based; Broadcast
anota também `_broadcastTargets` (uma lista nova por cópia). Mutar uma
cópia nunca afeta as demais.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import REPLICA_INDEX_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode


TARGETS_FIELD = "_broadcastTargets"
DEFAULT_COPIES = 3


@dataclass(frozen=True)
class FanOutSettings:
    copies: int
    targets: Tuple[str, ...] = ()


def replicate(record: Record, copies: int) -> List[Record]:
    out: List[Record] = []
    for index in range(1, copies + 1):
        replica = copy.deepcopy(dict(record))
        replica[REPLICA_INDEX_FIELD] = index
        out.append(replica)
    return out


class ReplicateNode(RecordNode):
    node_type = "Replicate"

    def validate(self, config: Mapping[str, Any]) -> FanOutSettings:
        cfg = ConfigReader(self.node_type, config)
        return FanOutSettings(copies=cfg.integer("numberOfCopies", DEFAULT_COPIES, minimum=1))

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        copies = execution.settings.copies
        return execution.emit([c for r in records for c in replicate(r, copies)])


class BroadcastNode(RecordNode):
    node_type = "Broadcast"

    def validate(self, config: Mapping[str, Any]) -> FanOutSettings:
        cfg = ConfigReader(self.node_type, config)
        targets = tuple(cfg.names("targetNodes"))
        copies = cfg.integer("numberOfCopies", None, minimum=1)
        if copies is None:
            copies = len(targets) or DEFAULT_COPIES
        return FanOutSettings(copies=copies, targets=targets)

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        settings: FanOutSettings = execution.settings
        out: List[Record] = []
        for record in records:
            for replica in replicate(record, settings.copies):
                replica[TARGETS_FIELD] = list(settings.targets)
                out.append(replica)
        return execution.emit(out, broadcast=True)
