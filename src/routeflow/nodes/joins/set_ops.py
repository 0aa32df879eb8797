# src/routeflow/nodes/joins/set_ops.py
"""
Intersect e Minus — operações de conjunto por chave composta.

Entradas:
    - primária: portas `in` e `in1` (roteado) ou `inputItems` e
      `in1InputItems` (direto)
    - secundária: porta `in2` (roteado) ou `in2InputItems` (direto)

Ambas emitem registros da entrada primária, deduplicados pela chave
composta de `keyFields` (a primeira ocorrência vence, ordem preservada):
    - Intersect: chave presente na entrada secundária
    - Minus: chave ausente da entrada secundária
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Set, Tuple

from routeflow.core.keys import composite_key
from routeflow.core.pipeline.execution import INPUT_ITEMS, NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


@dataclass(frozen=True)
class KeyFieldsSettings:
    key_fields: Tuple[str, ...]


def keyed_filter(left: List[Record], right: List[Record], key_fields: Tuple[str, ...], *, keep_present: bool) -> List[Record]:
    right_keys: Set[str] = {composite_key(r, key_fields) for r in right}
    seen: Set[str] = set()
    result: List[Record] = []
    for record in left:
        key = composite_key(record, key_fields)
        if key in seen or (key in right_keys) != keep_present:
            continue
        seen.add(key)
        result.append(record)
    return result


class _SetOperationNode(RecordNode):
    input_ports = ("in", "in1")
    input_variables = (INPUT_ITEMS, "in1InputItems")
    keep_present = True

    def validate(self, config: Mapping[str, Any]) -> KeyFieldsSettings:
        cfg = ConfigReader(self.node_type, config)
        return KeyFieldsSettings(key_fields=tuple(cfg.names("keyFields", required=True)))

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        if execution.is_routing:
            right = execution.read_port("in2")
        else:
            right = execution.read_variable("in2InputItems")
        return execution.emit(keyed_filter(records, right, execution.settings.key_fields, keep_present=self.keep_present))


class IntersectNode(_SetOperationNode):
    node_type = "Intersect"
    keep_present = True


class MinusNode(_SetOperationNode):
    node_type = "Minus"
    keep_present = False
