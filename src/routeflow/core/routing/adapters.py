# src/routeflow/core/routing/adapters.py
"""
Adapters entre o contrato de stage e o estado de roteamento.

    - BufferedReader  → faz uma porta do EdgeBufferStore parecer uma
                        sequência de entrada (leitura + limpeza atômicas)
    - RoutingWriter   → faz o RoutingContext parecer um destino de escrita,
                        roteando cada registro pelo seu rótulo de rota
    - BroadcastWriter → entrega cada registro a todas as arestas de saída

Invariantes:
    - Uma segunda leitura antes de nova escrita devolve lista vazia
    - Registros sem rótulo seguem para a aresta default
"""

from __future__ import annotations

from typing import Iterable, Iterator, List

from routeflow.core.keys import stringify
from routeflow.core.pipeline.types import ROUTE_FIELD, Record

from .buffer_store import EdgeBufferStore
from .context import RoutingContext


class BufferedReader:
    """Leitor de uma porta de entrada de um nó."""

    def __init__(self, store: EdgeBufferStore, execution_id: str, node_id: str, port: str = "in") -> None:
        self.store = store
        self.execution_id = execution_id
        self.node_id = node_id
        self.port = port

    def read(self) -> List[Record]:
        return self.store.drain(self.execution_id, self.node_id, self.port)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.read())


class RoutingWriter:
    """Roteia cada registro pelo campo `route_field` (default `_routePort`)."""

    def __init__(self, routing: RoutingContext, *, route_field: str = ROUTE_FIELD) -> None:
        self.routing = routing
        self.route_field = route_field

    def write(self, records: Iterable[Record]) -> int:
        count = 0
        for record in records:
            label = record.get(self.route_field)
            if label is not None and stringify(label) != "":
                self.routing.route_record(record, stringify(label))
            else:
                self.routing.route_to_default(record)
            count += 1
        return count


class BroadcastWriter:
    """Entrega cada registro, como cópia independente, a todas as arestas."""

    def __init__(self, routing: RoutingContext) -> None:
        self.routing = routing

    def write(self, records: Iterable[Record]) -> int:
        count = 0
        for record in records:
            self.routing.route_to_all_ports(record)
            count += 1
        return count
