# src/routeflow/core/engine/planner.py
"""
Compilador de plano de execução (DAG de nós).

Este módulo valida a estrutura de um `WorkflowDefinition` e produz um
`ExecutionPlan`: a sequência de stages em ordem de dependência, com as
portas de entrada e arestas de saída resolvidas de cada nó.

O planner opera exclusivamente em nível estrutural, analisando:
    - identificadores de nós (únicos, não vazios)
    - arestas (origem e destino declarados)
    - formação de ciclos
    - tipos de nó conhecidos (quando um registry é fornecido)

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn modificado)
    - Empates são resolvidos pela ordem de declaração dos nós
    - Arestas de controle (`control: true`) ordenam a execução, mas não
      transportam registros
    - Erros estruturais são ConfigurationError, detectados na compilação

Invariantes:
    - Nenhum nó aparece antes de qualquer nó com aresta para ele
    - Todos os nós aparecem exatamente uma vez
    - As arestas de saída de cada nó preservam a ordem de declaração
    - A mesma definição produz sempre o mesmo plano

Limites explícitos:
    - Não valida configuração de nós (responsabilidade de `validate`)
    - Não executa stages

Este módulo existe para garantir correção estrutural,
determinismo e previsibilidade na execução de workflows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from routeflow.core.exceptions import ConfigurationError, UnsupportedFeatureError
from routeflow.core.model import FailureAction, NodeDefinition, WorkflowDefinition
from routeflow.core.pipeline.registry import BehaviorRegistry
from routeflow.core.pipeline.types import NodeKind
from routeflow.core.routing.context import OutputPort


_JOIN_TYPES = {"Join", "Merge", "Collect", "Intersect", "Minus"}
_DECISION_TYPES = {"Decision", "Switch", "JobCondition"}
_FORK_TYPES = {"Partition", "HashPartition", "RangePartition", "Broadcast", "Replicate"}


@dataclass(frozen=True)
class DuplicateNodeIdError(ConfigurationError):
    """
    Dois ou mais nós declaram o mesmo `id`.

    A duplicidade é detectada na compilação, antes de qualquer execução;
    nenhum plano parcial é produzido.
    """


@dataclass(frozen=True)
class UnknownNodeError(ConfigurationError):
    """
    Uma aresta referencia um nó que não foi declarado.

    Todas as arestas devem ligar nós existentes; o planner não tenta
    inferir nós ausentes.
    """


@dataclass(frozen=True)
class CycleDetectedError(ConfigurationError):
    """
    O grafo de nós contém um ciclo.

    Workflows devem ser acíclicos; nenhum ciclo é quebrado automaticamente.
    """


def classify_node(node_type: str) -> NodeKind:
    if node_type in _JOIN_TYPES:
        return NodeKind.JOIN
    if node_type in _DECISION_TYPES:
        return NodeKind.DECISION
    if node_type in _FORK_TYPES:
        return NodeKind.FORK
    return NodeKind.NORMAL


@dataclass(frozen=True)
class NodeStage:
    """Um nó do plano com suas ligações resolvidas."""
    node: NodeDefinition
    kind: NodeKind
    input_ports: Tuple[str, ...] = ()
    output_ports: Tuple[OutputPort, ...] = ()
    upstream: Tuple[str, ...] = ()

    @property
    def node_id(self) -> str:
        return self.node.id


@dataclass(frozen=True)
class ExecutionPlan:
    """Stages em ordem de dependência."""
    workflow_id: str
    stages: Tuple[NodeStage, ...] = field(default_factory=tuple)

    def order(self) -> List[str]:
        return [s.node_id for s in self.stages]

    def stage(self, node_id: str) -> NodeStage:
        for s in self.stages:
            if s.node_id == node_id:
                return s
        raise KeyError(node_id)


def compile_plan(workflow: WorkflowDefinition, registry: Optional[BehaviorRegistry] = None) -> ExecutionPlan:
    """
    Valida e compila um workflow em um plano de execução determinístico.

    Sempre que múltiplos nós estiverem prontos, a escolha segue a ordem
    de declaração dos nós no workflow.

    Args:
        workflow (WorkflowDefinition): Nós e arestas declarados.
        registry (Optional[BehaviorRegistry]): Quando fornecido, valida que
            todo `type` possui comportamento registrado.

    Returns:
        ExecutionPlan: Stages em ordem topológica.

    Raises:
        ConfigurationError: Se algum nó possuir `id` inválido.
        DuplicateNodeIdError: Se dois nós compartilharem o mesmo `id`.
        UnknownNodeError: Se uma aresta referenciar nó inexistente.
        CycleDetectedError: Se houver ciclo no grafo.
        UnknownNodeTypeError: Se um `type` não estiver no registry.
        UnsupportedFeatureError: Se um nó declarar `onFailure.action: ROUTE`.
    """
    by_id: Dict[str, NodeDefinition] = {}
    position: Dict[str, int] = {}
    for idx, node in enumerate(workflow.nodes):
        nid = node.id
        if not isinstance(nid, str) or not nid.strip():
            raise ConfigurationError("node.id must be a non-empty string")
        if nid in by_id:
            raise DuplicateNodeIdError(f"Duplicate node id: {nid}", details={"node_id": nid})
        by_id[nid] = node
        position[nid] = idx

        if node.on_failure.action == FailureAction.ROUTE:
            raise UnsupportedFeatureError(
                f"Node '{nid}': onFailure.action ROUTE is not supported",
                details={"node_id": nid, "route_to_node": node.on_failure.route_to_node},
                hint="Use STOP, SKIP ou RETRY",
            )
        if registry is not None and node.type not in registry:
            # create() produz o erro tipado com a lista de tipos conhecidos
            registry.create(node.type)

    input_ports: Dict[str, List[str]] = {nid: [] for nid in by_id}
    output_ports: Dict[str, List[OutputPort]] = {nid: [] for nid in by_id}
    upstream: Dict[str, List[str]] = {nid: [] for nid in by_id}
    outgoing: Dict[str, Set[str]] = {nid: set() for nid in by_id}

    for edge in workflow.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in by_id:
                raise UnknownNodeError(
                    f"Edge {edge.source}:{edge.source_port} -> {edge.target}:{edge.target_port} "
                    f"references unknown node '{endpoint}'",
                    details={"node_id": endpoint},
                )
        if edge.source == edge.target:
            raise CycleDetectedError(f"Node '{edge.source}' has an edge to itself", details={"node_id": edge.source})

        if edge.source not in upstream[edge.target]:
            upstream[edge.target].append(edge.source)
        outgoing[edge.source].add(edge.target)

        if edge.control:
            continue
        output_ports[edge.source].append(
            OutputPort(target_node_id=edge.target, source_port=edge.source_port, target_port=edge.target_port)
        )
        if edge.target_port not in input_ports[edge.target]:
            input_ports[edge.target].append(edge.target_port)

    # Kahn's algorithm (deterministic, declaration order)
    incoming_count: Dict[str, int] = {nid: len(upstream[nid]) for nid in by_id}
    ready: List[str] = [nid for nid in by_id if incoming_count[nid] == 0]
    order_ids: List[str] = []

    while ready:
        nid = ready.pop(0)
        order_ids.append(nid)
        for child in sorted(outgoing[nid], key=position.__getitem__):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort(key=position.__getitem__)

    if len(order_ids) != len(by_id):
        remaining = [nid for nid in by_id if nid not in set(order_ids)]
        raise CycleDetectedError(
            "Cycle detected in workflow graph",
            details={"nodes": remaining},
        )

    stages = tuple(
        NodeStage(
            node=by_id[nid],
            kind=classify_node(by_id[nid].type),
            input_ports=tuple(input_ports[nid]),
            output_ports=tuple(output_ports[nid]),
            upstream=tuple(upstream[nid]),
        )
        for nid in order_ids
    )
    return ExecutionPlan(workflow_id=workflow.id, stages=stages)
