# src/routeflow/nodes/partition/range_partition.py
"""
RangePartition — atribuição de bucket por faixa numérica.

Configuração:
    - rangeField: campo numérico avaliado (obrigatório)
    - ranges: buckets `nome:min-max` (fechado) ou `nome:min+` (aberto),
      lista ou string separada por vírgulas, avaliados na ordem declarada
    - routeByPartition: quando true, o bucket também vira `_routePort`

Cada registro recebe:
    - `_rangeBucket`: primeiro bucket cujos limites contêm o valor, ou
      `unknown` (valor ausente, não inteiro ou fora de todas as faixas)
    - `_partitionIndex`: ordem de chegada, usada por Collect `ordered`
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import PARTITION_INDEX_FIELD, ROUTE_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode


BUCKET_FIELD = "_rangeBucket"
UNKNOWN_BUCKET = "unknown"

_RANGE_RE = re.compile(r"^\s*([^:]+?)\s*:\s*(-?\d+)\s*(?:-\s*(-?\d+)|(\+))\s*$")


@dataclass(frozen=True)
class RangeBucket:
    name: str
    minimum: int
    maximum: Optional[int] = None

    def contains(self, value: int) -> bool:
        if value < self.minimum:
            return False
        return self.maximum is None or value <= self.maximum


@dataclass(frozen=True)
class RangePartitionSettings:
    field: str
    buckets: Tuple[RangeBucket, ...]
    route_by_partition: bool = False


def parse_bucket(spec: str) -> Optional[RangeBucket]:
    match = _RANGE_RE.match(spec)
    if match is None:
        return None
    name, low, high, open_ended = match.groups()
    if open_ended:
        return RangeBucket(name=name, minimum=int(low))
    return RangeBucket(name=name, minimum=int(low), maximum=int(high))


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def bucket_for(value: Any, buckets: Tuple[RangeBucket, ...]) -> str:
    number = _as_int(value)
    if number is None:
        return UNKNOWN_BUCKET
    for bucket in buckets:
        if bucket.contains(number):
            return bucket.name
    return UNKNOWN_BUCKET


class RangePartitionNode(RecordNode):
    node_type = "RangePartition"

    def validate(self, config: Mapping[str, Any]) -> RangePartitionSettings:
        cfg = ConfigReader(self.node_type, config)
        field_name = cfg.string("rangeField", required=True)
        buckets: List[RangeBucket] = []
        for spec in cfg.names("ranges", required=True):
            bucket = parse_bucket(spec)
            if bucket is None:
                raise cfg.error("ranges", f"invalid range {spec!r}; expected 'name:min-max' or 'name:min+'")
            if bucket.maximum is not None and bucket.maximum < bucket.minimum:
                raise cfg.error("ranges", f"invalid range {spec!r}; max is lower than min")
            buckets.append(bucket)
        return RangePartitionSettings(
            field=field_name,
            buckets=tuple(buckets),
            route_by_partition=cfg.boolean("routeByPartition", False),
        )

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        settings: RangePartitionSettings = execution.settings
        out: List[Record] = []
        for index, record in enumerate(records):
            annotated = dict(record)
            bucket = bucket_for(record.get(settings.field), settings.buckets)
            annotated[BUCKET_FIELD] = bucket
            annotated[PARTITION_INDEX_FIELD] = index
            if settings.route_by_partition:
                annotated[ROUTE_FIELD] = bucket
            out.append(annotated)
        return execution.emit(out)
