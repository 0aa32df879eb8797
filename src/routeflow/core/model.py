# src/routeflow/core/model.py
"""
Modelo declarativo de workflow do RouteFlow.

Este módulo define as estruturas imutáveis que descrevem um workflow
antes de qualquer planejamento ou execução:

    - NodeDefinition  → nó tipado com configuração própria
    - Edge            → ligação porta-a-porta entre dois nós
    - FailurePolicy   → política de falha declarada por nó (`onFailure`)
    - WorkflowDefinition → conjunto ordenado de nós e arestas

Decisões arquiteturais:
    - A ordem de declaração de nós e arestas é preservada e semanticamente
      relevante (a primeira aresta de saída é a aresta default)
    - Portas ausentes assumem `out` (origem) e `in` (destino)
    - Arestas aceitam tanto os nomes canônicos (`sourceNodeId`, `sourcePort`,
      `targetNodeId`, `targetPort`) quanto o formato de editor visual
      (`source`, `sourceHandle`, `target`, `targetHandle`)
    - Erros estruturais são `InvalidWorkflowError` (ConfigurationError)

Invariantes:
    - Instâncias são imutáveis após construídas
    - A configuração de um nó é sempre um dict (possivelmente vazio)

Limites explícitos:
    - Não valida unicidade de ids nem aciclicidade (responsabilidade do planner)
    - Não valida configuração específica de tipo de nó (responsabilidade do nó)

Este módulo existe para garantir uma representação única, explícita e
imutável do grafo declarado.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from routeflow.core.config.errors import InvalidWorkflowError


DEFAULT_SOURCE_PORT = "out"
DEFAULT_TARGET_PORT = "in"


def _flag(raw: Mapping[str, Any], key: str, node_id: str) -> bool:
    value = raw.get(key)
    if value is None or value == "":
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise InvalidWorkflowError(
        f"Node '{node_id}': {key} deve ser booleano, recebido {value!r}",
        details={"node_id": node_id, "field": key},
    )


class FailureAction(str, Enum):
    """Ação tomada quando um stage falha."""
    STOP = "STOP"
    SKIP = "SKIP"
    RETRY = "RETRY"
    ROUTE = "ROUTE"


@dataclass(frozen=True)
class FailurePolicy:
    """
    Política de falha declarada em `onFailure` de um nó.

    Campos:
        - action: STOP (default), SKIP, RETRY ou ROUTE (não implementado)
        - max_retries: número máximo de novas tentativas (RETRY)
        - retry_delay_ms: espera entre tentativas
        - skip_on_error: equivalente a SKIP para falhas de stage
        - stop_on_error: escala RowLevelError para falha fatal do stage
        - route_to_node: destino declarado para ROUTE
    """
    action: FailureAction = FailureAction.STOP
    max_retries: int = 3
    retry_delay_ms: int = 1000
    skip_on_error: bool = False
    stop_on_error: bool = False
    route_to_node: Optional[str] = None

    @property
    def should_skip(self) -> bool:
        return self.action == FailureAction.SKIP or self.skip_on_error

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]], *, node_id: str = "?") -> "FailurePolicy":
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise InvalidWorkflowError(
                f"Node '{node_id}': onFailure deve ser um mapa",
                details={"node_id": node_id},
            )

        action_raw = str(raw.get("action", FailureAction.STOP.value)).upper()
        try:
            action = FailureAction(action_raw)
        except ValueError:
            raise InvalidWorkflowError(
                f"Node '{node_id}': onFailure.action inválida: {action_raw}",
                details={"node_id": node_id, "allowed": [a.value for a in FailureAction]},
            ) from None

        try:
            max_retries = int(raw.get("maxRetries", 3))
            retry_delay_ms = int(raw.get("retryDelayMs", raw.get("retryDelay", 1000)))
        except (TypeError, ValueError):
            raise InvalidWorkflowError(
                f"Node '{node_id}': maxRetries/retryDelayMs devem ser inteiros",
                details={"node_id": node_id},
            ) from None
        if max_retries < 0 or retry_delay_ms < 0:
            raise InvalidWorkflowError(
                f"Node '{node_id}': maxRetries/retryDelayMs não podem ser negativos",
                details={"node_id": node_id},
            )

        return cls(
            action=action,
            max_retries=max_retries,
            retry_delay_ms=retry_delay_ms,
            skip_on_error=_flag(raw, "skipOnError", node_id),
            stop_on_error=_flag(raw, "stopOnError", node_id),
            route_to_node=raw.get("routeToNode"),
        )


@dataclass(frozen=True)
class NodeDefinition:
    """Nó declarado: identidade (`id`), tipo de comportamento e configuração."""
    id: str
    type: str
    config: Dict[str, Any] = field(default_factory=dict)
    on_failure: FailurePolicy = field(default_factory=FailurePolicy)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "NodeDefinition":
        if not isinstance(raw, Mapping):
            raise InvalidWorkflowError(f"Node deve ser um mapa, recebido: {type(raw).__name__}")

        node_id = raw.get("id")
        node_type = raw.get("type")
        if not isinstance(node_id, str) or not node_id.strip():
            raise InvalidWorkflowError("node.id must be a non-empty string", details={"node": dict(raw)})
        if not isinstance(node_type, str) or not node_type.strip():
            raise InvalidWorkflowError(
                f"Node '{node_id}': type must be a non-empty string",
                details={"node_id": node_id},
            )

        # formato de editor: {"data": {"config": {...}}}
        config = raw.get("config")
        if config is None and isinstance(raw.get("data"), Mapping):
            config = raw["data"].get("config")
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise InvalidWorkflowError(
                f"Node '{node_id}': config deve ser um mapa",
                details={"node_id": node_id},
            )

        return cls(
            id=node_id,
            type=node_type,
            config=dict(config),
            on_failure=FailurePolicy.from_dict(raw.get("onFailure"), node_id=node_id),
        )


@dataclass(frozen=True)
class Edge:
    """Aresta direcionada `source:source_port → target:target_port`."""
    source: str
    target: str
    source_port: str = DEFAULT_SOURCE_PORT
    target_port: str = DEFAULT_TARGET_PORT
    control: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Edge":
        if not isinstance(raw, Mapping):
            raise InvalidWorkflowError(f"Edge deve ser um mapa, recebido: {type(raw).__name__}")

        source = raw.get("sourceNodeId", raw.get("source"))
        target = raw.get("targetNodeId", raw.get("target"))
        if not isinstance(source, str) or not source or not isinstance(target, str) or not target:
            raise InvalidWorkflowError("edge requires source and target node ids", details={"edge": dict(raw)})

        source_port = raw.get("sourcePort", raw.get("sourceHandle")) or DEFAULT_SOURCE_PORT
        target_port = raw.get("targetPort", raw.get("targetHandle")) or DEFAULT_TARGET_PORT
        return cls(
            source=source,
            target=target,
            source_port=str(source_port),
            target_port=str(target_port),
            control=bool(raw.get("control", raw.get("isControl", False))),
        )


@dataclass(frozen=True)
class WorkflowDefinition:
    """Definição completa de um workflow (nós e arestas em ordem de declaração)."""
    nodes: Tuple[NodeDefinition, ...]
    edges: Tuple[Edge, ...] = ()
    id: str = "workflow"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "WorkflowDefinition":
        if not isinstance(raw, Mapping):
            raise InvalidWorkflowError(f"Workflow deve ser um mapa, recebido: {type(raw).__name__}")

        nodes_raw = raw.get("nodes")
        edges_raw = raw.get("edges") or []
        if not isinstance(nodes_raw, list):
            raise InvalidWorkflowError("workflow.nodes must be a list")
        if not isinstance(edges_raw, list):
            raise InvalidWorkflowError("workflow.edges must be a list")

        return cls(
            nodes=tuple(NodeDefinition.from_dict(n) for n in nodes_raw),
            edges=tuple(Edge.from_dict(e) for e in edges_raw),
            id=str(raw.get("id") or "workflow"),
        )

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def to_dict(self) -> Dict[str, Any]:
        """Representação canônica (formato de arestas canônico), usada para hashing."""
        return {
            "id": self.id,
            "nodes": [{"id": n.id, "type": n.type, "config": n.config} for n in self.nodes],
            "edges": [
                {
                    "sourceNodeId": e.source,
                    "sourcePort": e.source_port,
                    "targetNodeId": e.target,
                    "targetPort": e.target_port,
                    "control": e.control,
                }
                for e in self.edges
            ],
        }
