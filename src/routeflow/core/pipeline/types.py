# src/routeflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do RouteFlow.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre nós, Engine e consumidores do resultado de uma execução.

Componentes principais:
    - Record     → registro trafegado entre portas (mapa ordenado str → valor)
    - NodeKind   → classificação estrutural do nó no grafo
    - NodeStatus → estados finais de execução de um nó
    - NodeMetrics → métricas coletadas por stage
    - NodeResult → resultado imutável de um nó na execução

Campos reservados (prefixo `_`) conhecidos pelo core:
    - _routePort      → rótulo de rota consumido pelo RoutingContext
    - _partition      → id de partição (Partition / HashPartition)
    - _partitionIndex → ordem de chegada (RangePartition, Collect ordered)
    - _sequence       → número de sequência (Collect ordered)
    - _replicaIndex   → índice 1-based de cópia (Broadcast / Replicate)

Invariantes:
    - Enums possuem valores textuais canônicos
    - NodeResult é imutável
    - Tipos não dependem de engine nem de nós concretos
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


Record = Dict[str, Any]

ROUTE_FIELD = "_routePort"
PARTITION_FIELD = "_partition"
PARTITION_INDEX_FIELD = "_partitionIndex"
SEQUENCE_FIELD = "_sequence"
REPLICA_INDEX_FIELD = "_replicaIndex"


def is_reserved(key: str) -> bool:
    """Campos com prefixo `_` são metadados reservados."""
    return key.startswith("_")


class NodeKind(str, Enum):
    """
    Classificação estrutural de um nó no grafo.

    Tipos definidos:
        - NORMAL: uma entrada lógica, uma saída lógica
        - JOIN: combina múltiplas portas de entrada (Join, Merge, Collect, Intersect, Minus)
        - FORK: distribui registros (Partition, HashPartition, RangePartition, Broadcast, Replicate)
        - DECISION: anota rótulos de rota (Decision, Switch, JobCondition)

    O valor é informativo: o Engine não altera a execução com base no `kind`.
    """
    NORMAL = "normal"
    JOIN = "join"
    FORK = "fork"
    DECISION = "decision"


class NodeStatus(str, Enum):
    """
    Estados finais possíveis da execução de um nó.

    Estados definidos:
        - SUCCESS: stage concluído
        - SKIPPED: stage não executado (config, dependência falha ou política SKIP)
        - FAILED: stage interrompido por erro
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class NodeMetrics:
    """Métricas de um stage (coletadas apenas para nós com `supports_metrics`)."""
    node_id: str
    node_type: str
    status: Optional[NodeStatus] = None
    read_count: int = 0
    write_count: int = 0
    filtered_count: int = 0
    error_count: int = 0
    skip_count: int = 0
    retry_count: int = 0
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value if self.status is not None else None
        return data


@dataclass(frozen=True)
class NodeResult:
    """
    Resultado imutável da execução de um nó.

    Campos:
        - node_id: identificador do nó
        - node_type: tipo de comportamento executado
        - kind: classificação estrutural
        - status: estado final
        - summary: resumo textual
        - metrics: métricas do stage (dict serializável)
        - warnings: avisos não fatais (incluindo perdas de roteamento)
        - payload: dados adicionais (ex.: `error` com FlowErrorPayload serializado)
    """
    node_id: str
    node_type: str
    kind: NodeKind
    status: NodeStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)
