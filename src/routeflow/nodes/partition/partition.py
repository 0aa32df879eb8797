# src/routeflow/nodes/partition/partition.py
"""
Partition e HashPartition — atribuição de id de partição por registro.

Partition:
    - partitionCount (default 3, > 0)
    - strategy: `hash` (default) ou `roundRobin`; `range` não é suportado
      aqui (use RangePartition)
    - keyFields: com `hash`, a chave composta dos campos é hasheada; sem
      campos, o índice de chegada é usado (equivale a round-robin)

HashPartition:
    - hashKeys (obrigatório), partitions (default 3, > 0)
    - chave: valor textual de cada campo seguido de `|`

Em ambos o hash é `stable_hash` (determinístico entre processos) e o id é
`abs(hash) % total`. Com `routeByPartition: true` o id também vira o
rótulo `_routePort`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from routeflow.core.keys import composite_key, stable_hash, stringify
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import PARTITION_FIELD, ROUTE_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode


@dataclass(frozen=True)
class PartitionSettings:
    partitions: int
    strategy: str
    key_fields: Tuple[str, ...] = ()
    route_by_partition: bool = False


def partition_of(key: str, partitions: int) -> int:
    return abs(stable_hash(key)) % partitions


def hash_key(record: Mapping[str, Any], fields: Tuple[str, ...]) -> str:
    return "".join(stringify(record.get(f)) + "|" for f in fields)


class _PartitionerNode(RecordNode, ABC):
    """Anota `_partition` no writer, onde a ordem de chegada do lote é conhecida."""

    @abstractmethod
    def assign(self, settings: PartitionSettings, record: Record, index: int) -> int:
        """Partição do registro na posição `index` do lote."""
        raise NotImplementedError

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        settings: PartitionSettings = execution.settings
        out: List[Record] = []
        for index, record in enumerate(records):
            annotated = dict(record)
            partition = self.assign(settings, record, index)
            annotated[PARTITION_FIELD] = partition
            if settings.route_by_partition:
                annotated[ROUTE_FIELD] = str(partition)
            out.append(annotated)
        return execution.emit(out)


class PartitionNode(_PartitionerNode):
    node_type = "Partition"

    def validate(self, config: Mapping[str, Any]) -> PartitionSettings:
        cfg = ConfigReader(self.node_type, config)
        return PartitionSettings(
            partitions=cfg.integer("partitionCount", 3, minimum=1),
            strategy=cfg.choice("strategy", "hash", ("hash", "roundRobin"), unsupported=("range",)),
            key_fields=tuple(cfg.names("keyFields")),
            route_by_partition=cfg.boolean("routeByPartition", False),
        )

    def assign(self, settings: PartitionSettings, record: Record, index: int) -> int:
        if settings.strategy == "hash" and settings.key_fields:
            return partition_of(composite_key(record, settings.key_fields), settings.partitions)
        return index % settings.partitions


class HashPartitionNode(_PartitionerNode):
    node_type = "HashPartition"

    def validate(self, config: Mapping[str, Any]) -> PartitionSettings:
        cfg = ConfigReader(self.node_type, config)
        return PartitionSettings(
            partitions=cfg.integer("partitions", 3, minimum=1),
            strategy="hash",
            key_fields=tuple(cfg.names("hashKeys", required=True)),
            route_by_partition=cfg.boolean("routeByPartition", False),
        )

    def assign(self, settings: PartitionSettings, record: Record, index: int) -> int:
        return partition_of(hash_key(record, settings.key_fields), settings.partitions)
