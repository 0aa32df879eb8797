# src/routeflow/core/pipeline/execution.py
"""
Contexto por execução de nó (um stage).

O `NodeExecution` é criado pelo Engine (ou diretamente pelo chamador, no
modo direto) para cada stage `reader → processor → writer` de um nó, e
descartado ao final do writer.

Ele carrega:
    - a definição do nó e a configuração tipada já validada (`settings`)
    - o `ExecutionContext` da execução (variáveis, logs, warnings)
    - o `RoutingContext` (modo roteado) ou None (modo direto)
    - `state`: estado explícito do stage, visível ao reader, processor e
      writer do mesmo stage (ex.: instante de início do SLA, último envio
      do Throttle)

Modos de I/O:
    - Roteado: entradas são drenadas de portas do EdgeBufferStore; saídas
      são roteadas pelo rótulo `_routePort`. Nós sem arestas de saída são
      terminais: a saída fica em `ExecutionContext.outputs[node_id]`.
    - Direto: entradas vêm de variáveis de execução com lista de registros
      (`inputItems`, `leftInputItems`, ...); saídas vão para `outputItems`.

Invariantes:
    - Nenhum estado de stage vive fora deste objeto
    - `set_variable("outputItems", ...)` em modo roteado roteia os registros
      em vez de armazená-los
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from routeflow.core.model import NodeDefinition
from routeflow.core.routing.adapters import BroadcastWriter, BufferedReader, RoutingWriter
from routeflow.core.routing.context import RoutingContext

from .context import ExecutionContext
from .types import Record


OUTPUT_ITEMS = "outputItems"
INVALID_ITEMS = "invalidItems"
INPUT_ITEMS = "inputItems"


@dataclass
class NodeExecution:
    """Contexto de um stage de nó."""
    node: NodeDefinition
    ctx: ExecutionContext
    settings: Any = None
    routing: Optional[RoutingContext] = None
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def node_id(self) -> str:
        return self.node.id

    @property
    def is_routing(self) -> bool:
        return self.routing is not None

    @property
    def is_terminal(self) -> bool:
        return self.routing is not None and not self.routing.has_output_ports

    # -----------------------------
    # Variáveis
    # -----------------------------
    def get_variable(self, key: str, default: Optional[Any] = None) -> Any:
        return self.ctx.get_variable(key, default)

    def set_variable(self, key: str, value: Any) -> None:
        if key == OUTPUT_ITEMS and self.is_routing:
            self.emit(list(value or []))
            return
        self.ctx.set_variable(key, value)

    # -----------------------------
    # Leitura
    # -----------------------------
    def read_port(self, port: str) -> List[Record]:
        """Drena uma porta de entrada deste nó (modo roteado)."""
        if self.routing is None:
            return []
        reader = BufferedReader(self.routing.store, self.routing.execution_id, self.node_id, port)
        return reader.read()

    def read_variable(self, key: str) -> List[Record]:
        """Lista de registros em uma variável de execução (modo direto)."""
        value = self.ctx.get_variable(key)
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return list(value)

    def read_inputs(self, ports: Sequence[str] = ("in",), variables: Sequence[str] = (INPUT_ITEMS,)) -> List[Record]:
        """Concatena as portas (modo roteado) ou as variáveis (modo direto), em ordem."""
        items: List[Record] = []
        if self.is_routing:
            for port in ports:
                items.extend(self.read_port(port))
        else:
            for key in variables:
                items.extend(self.read_variable(key))
        return items

    # -----------------------------
    # Escrita
    # -----------------------------
    def emit(self, records: Iterable[Record], *, broadcast: bool = False) -> int:
        """Writer padrão: roteia (modo roteado) ou armazena em `outputItems`."""
        batch = list(records)
        if self.routing is None:
            self.ctx.set_variable(OUTPUT_ITEMS, batch)
            return len(batch)
        if not self.routing.has_output_ports:
            self.ctx.add_outputs(self.node_id, batch)
            return len(batch)
        writer = BroadcastWriter(self.routing) if broadcast else RoutingWriter(self.routing)
        return writer.write(batch)

    # -----------------------------
    # Logging
    # -----------------------------
    def log(self, level: str, message: str, **extra: Any) -> None:
        self.ctx.log(node_id=self.node_id, level=level, message=message, **extra)

    def warn(self, message: str, **extra: Any) -> None:
        self.ctx.warn(node_id=self.node_id, message=message, **extra)
