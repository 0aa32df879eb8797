# src/routeflow/nodes/joins/collect.py
"""
Collect — união de portas com reordenação opcional.

Configuração:
    - collectMode: `concat` (default, ordem de chegada) ou `ordered`
    - stripMetadata: remove campos reservados (`_`) após a ordenação

Modo `ordered`: ordenação estável por `_partitionIndex` e, em empate, por
`_sequence`. Valores ausentes ou não numéricos são tratados como iguais
(a ordem relativa de chegada é mantida), nunca como erro.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, List, Mapping

from routeflow.core.keys import to_long
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import PARTITION_INDEX_FIELD, SEQUENCE_FIELD, Record, is_reserved
from routeflow.nodes._support import ConfigReader, RecordNode

from .merge import MERGE_PORTS, MERGE_VARIABLES


@dataclass(frozen=True)
class CollectSettings:
    mode: str = "concat"
    strip_metadata: bool = False


def _compare_field(a: Record, b: Record, field: str) -> int:
    va, vb = to_long(a.get(field)), to_long(b.get(field))
    if va is None or vb is None or va == vb:
        return 0
    return -1 if va < vb else 1


def _compare(a: Record, b: Record) -> int:
    return _compare_field(a, b, PARTITION_INDEX_FIELD) or _compare_field(a, b, SEQUENCE_FIELD)


def order_records(records: List[Record]) -> List[Record]:
    return sorted(records, key=cmp_to_key(_compare))


def strip_metadata(record: Record) -> Record:
    return {k: v for k, v in record.items() if not is_reserved(k)}


class CollectNode(RecordNode):
    node_type = "Collect"
    input_ports = MERGE_PORTS
    input_variables = MERGE_VARIABLES

    def validate(self, config: Mapping[str, Any]) -> CollectSettings:
        cfg = ConfigReader(self.node_type, config)
        return CollectSettings(
            mode=cfg.choice("collectMode", "concat", ("concat", "ordered")),
            strip_metadata=cfg.boolean("stripMetadata", False),
        )

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        settings: CollectSettings = execution.settings
        collected = order_records(records) if settings.mode == "ordered" else list(records)
        if settings.strip_metadata:
            collected = [strip_metadata(r) for r in collected]
        return execution.emit(collected)
