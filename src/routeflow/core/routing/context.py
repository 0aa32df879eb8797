# src/routeflow/core/routing/context.py
"""
Contexto de roteamento e resolução de portas de saída.

O `RoutingContext` é criado uma vez por execução de stage e liga, de forma
somente-leitura, `(execution_id, source_node_id, output_ports, store)`.
Ele transforma decisões de roteamento em escritas no `EdgeBufferStore`.

Algoritmo de resolução:
    - `route_record(record, key)`:
        - chave ausente/vazia → `route_to_default`
        - primeira aresta cujo `source_port == key` recebe o registro (e só ela)
        - nenhuma correspondência → `route_to_default`
    - `route_to_default(record)`:
        - sem arestas → registro descartado e registrado como RoutingLossWarning
        - caso contrário → somente a primeira aresta declarada
    - `route_to_all_ports(record)`: uma cópia profunda por aresta

Invariantes:
    - Um registro é entregue a no máximo uma aresta por `route_record`
    - Um registro descartado é registrado exatamente uma vez
    - A ordem das arestas é a ordem de declaração no workflow

Limites explícitos:
    - Não calcula rótulos de rota (responsabilidade dos nós)
    - Não interrompe a execução em perdas de roteamento
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from routeflow.core.exceptions import RoutingLossWarning
from routeflow.core.model import DEFAULT_SOURCE_PORT, DEFAULT_TARGET_PORT
from routeflow.core.pipeline.types import Record

from .buffer_store import EdgeBufferStore


@dataclass(frozen=True)
class OutputPort:
    """Aresta de saída resolvida: `source_port` deste nó → `target_node_id:target_port`."""
    target_node_id: str
    source_port: str = DEFAULT_SOURCE_PORT
    target_port: str = DEFAULT_TARGET_PORT


LossHandler = Callable[[RoutingLossWarning], None]


class RoutingContext:
    """Resolve o destino de registros emitidos por um nó durante um stage."""

    def __init__(
        self,
        *,
        execution_id: str,
        source_node_id: str,
        output_ports: Sequence[OutputPort],
        store: EdgeBufferStore,
        on_loss: Optional[LossHandler] = None,
    ) -> None:
        self.execution_id = execution_id
        self.source_node_id = source_node_id
        self.output_ports = tuple(output_ports)
        self.store = store
        self._on_loss = on_loss
        self.dropped: List[RoutingLossWarning] = []
        self.delivered = 0

    @property
    def has_output_ports(self) -> bool:
        return bool(self.output_ports)

    def _deliver(self, port: OutputPort, record: Record) -> None:
        self.store.add_record(self.execution_id, port.target_node_id, port.target_port, record)
        self.delivered += 1

    def route_record(self, record: Record, route_key: Optional[str]) -> Optional[OutputPort]:
        """Entrega `record` à aresta rotulada `route_key` (ou à default)."""
        if not route_key:
            return self.route_to_default(record)

        for port in self.output_ports:
            if port.source_port == route_key:
                self._deliver(port, record)
                return port

        return self.route_to_default(record, route_key=route_key)

    def route_to_default(self, record: Record, *, route_key: Optional[str] = None) -> Optional[OutputPort]:
        """Entrega `record` à primeira aresta declarada; descarta se não houver nenhuma."""
        if not self.output_ports:
            loss = RoutingLossWarning(
                f"Node '{self.source_node_id}' has no output edge; record dropped",
                details={"route_key": route_key},
                node_id=self.source_node_id,
                route_key=route_key,
            )
            self.dropped.append(loss)
            if self._on_loss is not None:
                self._on_loss(loss)
            return None

        port = self.output_ports[0]
        self._deliver(port, record)
        return port

    def route_to_all_ports(self, record: Record) -> int:
        """Entrega uma cópia profunda de `record` a cada aresta; retorna o número de entregas."""
        if not self.output_ports:
            self.route_to_default(record)
            return 0
        for port in self.output_ports:
            self._deliver(port, copy.deepcopy(dict(record)))
        return len(self.output_ports)
