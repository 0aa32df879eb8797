# src/routeflow/core/engine/engine.py
"""
Engine de execução de workflows do RouteFlow.

Ciclo de uma execução:
    1. compila o plano (`compile_plan`) — erros estruturais são fatais
    2. valida a configuração de todos os nós antes de qualquer stage
    3. semeia as entradas informadas na porta `in` dos nós de entrada
    4. executa os stages em ordem de plano (bulk-síncrono: cada stage
       drena suas portas e escreve toda a saída antes do próximo)
    5. teardown: remove todos os buffers da execução, inclusive em falha

Políticas:
    - `engine.fail_fast` (default true): após o primeiro nó FAILED, os
      stages restantes não são executados (SKIPPED)
    - `nodes.<id>.enabled: false`: o nó é SKIPPED e suas entradas descartadas
    - nós com dependência FAILED são SKIPPED, e o bloqueio se propaga por
      todo o ramo a jusante
    - `onFailure` SKIP/skipOnError (com `supports_failure_handling`): a falha
      vira SKIPPED com payload de erro e o workflow continua

Falhas:
    - ConfigurationError/UnsupportedFeatureError de plano ou validação são
      levantadas ao chamador (nenhum stage executa)
    - Falhas de stage são convertidas em FlowErrorPayload e anexadas ao
      NodeResult (`payload["error"]`), sem stack trace
    - Perdas de roteamento viram warnings do nó e eventos `routing_loss`
    - Registros deixados em portas que o nó não lê também viram
      `routing_loss` ao fim de um stage bem-sucedido
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from routeflow.core.config.hashing import compute_config_hash
from routeflow.core.errors import (
    CONFIGURATION_ERROR,
    ROW_LEVEL_ERROR,
    SLA_VIOLATION,
    UNSUPPORTED_FEATURE,
    FlowErrorPayload,
    engine_execution_error,
    routing_loss,
    unread_port,
)
from routeflow.core.exceptions import (
    ConfigurationError,
    FlowException,
    RoutingLossWarning,
    RowLevelError,
    SLAViolation,
    UnsupportedFeatureError,
)
from routeflow.core.model import WorkflowDefinition
from routeflow.core.pipeline.context import ExecutionContext
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.node import NodeBehavior
from routeflow.core.pipeline.registry import BehaviorRegistry
from routeflow.core.pipeline.types import NodeMetrics, NodeResult, NodeStatus, Record
from routeflow.core.routing.buffer_store import EdgeBufferStore
from routeflow.core.routing.context import RoutingContext

from .planner import ExecutionPlan, NodeStage, UnknownNodeError, compile_plan
from .stage import run_stage


ENGINE_NODE_ID = "engine"

_ERROR_CODES = (
    (UnsupportedFeatureError, UNSUPPORTED_FEATURE),
    (ConfigurationError, CONFIGURATION_ERROR),
    (RowLevelError, ROW_LEVEL_ERROR),
    (SLAViolation, SLA_VIOLATION),
)


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma execução de workflow."""

    execution_id: str
    workflow_hash: str
    nodes: Dict[str, NodeResult] = field(default_factory=dict)
    metrics: Dict[str, NodeMetrics] = field(default_factory=dict)
    outputs: Dict[str, List[Record]] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    warnings: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(r.status != NodeStatus.FAILED for r in self.nodes.values())

    def status_of(self, node_id: str) -> NodeStatus:
        return self.nodes[node_id].status


class Engine:
    """Engine canônico do RouteFlow (compilador de plano + executor de stages)."""

    def __init__(
        self,
        *,
        workflow: WorkflowDefinition,
        ctx: ExecutionContext,
        registry: Optional[BehaviorRegistry] = None,
        store: Optional[EdgeBufferStore] = None,
    ):
        if registry is None:
            from routeflow.nodes import default_registry

            registry = default_registry()
        self.workflow = workflow
        self.ctx = ctx
        self.registry = registry
        self.store = store if store is not None else EdgeBufferStore()
        self._settings: Dict[str, Any] = {}
        self._metrics: Dict[str, NodeMetrics] = {}

    def _is_enabled(self, node_id: str) -> bool:
        nodes_cfg = (self.ctx.config or {}).get("nodes", {}) or {}
        node_cfg = nodes_cfg.get(node_id, {}) or {}
        return bool(node_cfg.get("enabled", True))

    def _fail_fast(self) -> bool:
        engine_cfg = (self.ctx.config or {}).get("engine", {}) or {}
        return bool(engine_cfg.get("fail_fast", True))

    # ------------------------------------------------------------------
    # Guardrails: exceção -> FlowErrorPayload
    # ------------------------------------------------------------------

    def _exception_to_error(self, exc: Exception, *, node_id: str) -> FlowErrorPayload:
        """Converte exceções em FlowErrorPayload (serializável, acionável)."""
        if isinstance(exc, FlowException):
            code = exc.__class__.__name__
            for exc_type, mapped in _ERROR_CODES:
                if isinstance(exc, exc_type):
                    code = mapped
                    break
            details = dict(exc.details or {})
            details.setdefault("node_id", node_id)
            details.setdefault("exception_class", exc.__class__.__name__)
            return FlowErrorPayload(
                type=code,
                message=str(exc) or "Erro de execução",
                details=details,
                hint=exc.hint,
            )

        return engine_execution_error(
            node=node_id,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc),
        )

    # ------------------------------------------------------------------
    # Preparação
    # ------------------------------------------------------------------

    def _prepare(self, plan: ExecutionPlan) -> Dict[str, NodeBehavior]:
        """Cria e valida o comportamento de todos os nós antes de executar qualquer stage."""
        behaviors: Dict[str, NodeBehavior] = {}
        self._settings = {}
        for stage in plan.stages:
            behavior = self.registry.create(stage.node.type)
            try:
                self._settings[stage.node_id] = behavior.validate(stage.node.config)
            except ConfigurationError as exc:
                self.ctx.log(
                    node_id=stage.node_id,
                    level="error",
                    message=f"invalid configuration: {exc}",
                    event="validation_failed",
                )
                raise
            behaviors[stage.node_id] = behavior
        return behaviors

    def _seed(self, plan: ExecutionPlan, inputs: Mapping[str, Sequence[Record]]) -> None:
        known = set(plan.order())
        for node_id, records in inputs.items():
            if node_id not in known:
                raise UnknownNodeError(f"Input provided for unknown node '{node_id}'", details={"node_id": node_id})
            self.store.add_records(self.ctx.execution_id, node_id, "in", [dict(r) for r in records])

    def _discard_inputs(self, stage: NodeStage) -> None:
        eid = self.ctx.execution_id
        for port in self.store.ports_with_records(eid, stage.node_id):
            self.store.clear_buffer(eid, stage.node_id, port)

    def _on_loss(self, loss: RoutingLossWarning) -> None:
        node_id = loss.node_id or ENGINE_NODE_ID
        self.ctx.warn(
            node_id=node_id,
            message=str(loss),
            event="routing_loss",
            error=routing_loss(node=node_id, route_key=loss.route_key).to_dict(),
        )

    def _report_unread(self, stage: NodeStage) -> None:
        """Descarta, com warning `routing_loss`, portas de entrada que o nó não consumiu."""
        eid = self.ctx.execution_id
        for port in self.store.ports_with_records(eid, stage.node_id):
            leftover = self.store.drain(eid, stage.node_id, port)
            payload = unread_port(node=stage.node_id, port=port, count=len(leftover))
            self.ctx.warn(
                node_id=stage.node_id,
                message=payload.message,
                event="routing_loss",
                error=payload.to_dict(),
            )

    # ------------------------------------------------------------------
    # Resultados
    # ------------------------------------------------------------------

    def _mk_result(
        self,
        *,
        stage: NodeStage,
        status: NodeStatus,
        summary: str,
        metrics: Optional[NodeMetrics] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> NodeResult:
        return NodeResult(
            node_id=stage.node_id,
            node_type=stage.node.type,
            kind=stage.kind,
            status=status,
            summary=summary,
            metrics=metrics.to_dict() if metrics is not None else {},
            warnings=list(self.ctx.warnings.get(stage.node_id, [])),
            payload=dict(payload or {}),
        )

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def _run_node(self, stage: NodeStage, behavior: NodeBehavior) -> NodeResult:
        node_id = stage.node_id
        routing = RoutingContext(
            execution_id=self.ctx.execution_id,
            source_node_id=node_id,
            output_ports=stage.output_ports,
            store=self.store,
            on_loss=self._on_loss,
        )
        execution = NodeExecution(
            node=stage.node,
            ctx=self.ctx,
            settings=self._settings[node_id],
            routing=routing,
        )
        metrics = NodeMetrics(node_id=node_id, node_type=behavior.node_type)
        collect = bool(getattr(behavior, "supports_metrics", False))
        if collect:
            self._metrics[node_id] = metrics

        self.ctx.log(node_id=node_id, level="info", message="stage started", event="stage_started")
        try:
            run_stage(behavior, execution, metrics=metrics)
        except Exception as exc:  # noqa: BLE001
            error = self._exception_to_error(exc, node_id=node_id)
            skip = behavior.supports_failure_handling and stage.node.on_failure.should_skip
            status = NodeStatus.SKIPPED if skip else NodeStatus.FAILED
            metrics.status = status
            metrics.error_count += 1
            self.ctx.log(
                node_id=node_id,
                level="warning" if skip else "error",
                message=error.message,
                event="stage_skipped" if skip else "stage_failed",
                error_type=error.type,
            )
            return self._mk_result(
                stage=stage,
                status=status,
                summary=error.message,
                metrics=metrics if collect else None,
                payload={"error": error.to_dict()},
            )

        metrics.status = NodeStatus.SUCCESS
        self._report_unread(stage)
        self.ctx.log(
            node_id=node_id,
            level="info",
            message="stage finished",
            event="stage_finished",
            read=metrics.read_count,
            written=metrics.write_count,
            dropped=len(routing.dropped),
        )
        return self._mk_result(
            stage=stage,
            status=NodeStatus.SUCCESS,
            summary=f"read={metrics.read_count} written={metrics.write_count}",
            metrics=metrics if collect else None,
        )

    def run(self, inputs: Optional[Mapping[str, Sequence[Record]]] = None) -> RunResult:
        plan = compile_plan(self.workflow, self.registry)
        behaviors = self._prepare(plan)
        workflow_hash = compute_config_hash(self.workflow.to_dict())

        self.ctx.log(
            node_id=ENGINE_NODE_ID,
            level="info",
            message="execution started",
            event="execution_started",
            workflow_id=plan.workflow_id,
            workflow_hash=workflow_hash,
            order=plan.order(),
        )

        results: Dict[str, NodeResult] = {}
        self._metrics = {}
        aborted = False
        blocked: Set[str] = set()
        try:
            self._seed(plan, inputs or {})

            for stage in plan.stages:
                sid = stage.node_id

                if aborted:
                    self._discard_inputs(stage)
                    results[sid] = self._mk_result(
                        stage=stage, status=NodeStatus.SKIPPED, summary="skipped after fail-fast abort"
                    )
                    continue

                if not self._is_enabled(sid):
                    self._discard_inputs(stage)
                    results[sid] = self._mk_result(stage=stage, status=NodeStatus.SKIPPED, summary="skipped by config")
                    continue

                if any(u in blocked for u in stage.upstream):
                    blocked.add(sid)
                    self._discard_inputs(stage)
                    results[sid] = self._mk_result(
                        stage=stage, status=NodeStatus.SKIPPED, summary="skipped due to failed dependency"
                    )
                    continue

                result = self._run_node(stage, behaviors[sid])
                results[sid] = result

                if result.status == NodeStatus.FAILED:
                    blocked.add(sid)
                    if self._fail_fast():
                        aborted = True
        finally:
            removed = self.store.clear_execution(self.ctx.execution_id)
            self.ctx.log(
                node_id=ENGINE_NODE_ID,
                level="info",
                message="execution finished",
                event="execution_finished",
                buffers_cleared=removed,
            )

        return RunResult(
            execution_id=self.ctx.execution_id,
            workflow_hash=workflow_hash,
            nodes=results,
            metrics=dict(self._metrics),
            outputs={k: list(v) for k, v in self.ctx.outputs.items()},
            variables=dict(self.ctx.variables),
            warnings={k: list(v) for k, v in self.ctx.warnings.items()},
        )
