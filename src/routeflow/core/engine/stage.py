# src/routeflow/core/engine/stage.py
"""
Executor de um stage de nó (reader → processor → writer).

`run_stage` é a única implementação do contrato de stage e é usada tanto
pelo Engine (modo roteado) quanto diretamente por chamadores que executam
um nó isolado em modo direto (variáveis de execução como entrada/saída).

Política de processamento:
    - o reader materializa o lote de entrada inteiro
    - o processor é aplicado registro a registro; `None` descarta o registro
    - RowLevelError descarta o registro (warning + métrica), exceto quando
      `onFailure.stopOnError` é verdadeiro: nesse caso o stage é abortado
    - qualquer outra exceção aborta o stage
    - com `onFailure.action: RETRY` (e `supports_failure_handling`), a fase
      de processamento é repetida sobre o mesmo lote materializado
    - o writer recebe o lote processado completo e nunca é repetido
    - `write_count` é o total retornado pelo writer (fan-out escreve mais
      registros do que recebeu); writers que retornam None contam o lote

Invariantes:
    - O reader é chamado exatamente uma vez por stage
    - O writer é chamado no máximo uma vez por stage
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from routeflow.core.exceptions import RowLevelError
from routeflow.core.model import FailureAction
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.node import NodeBehavior
from routeflow.core.pipeline.types import NodeMetrics, Record


def _process_batch(
    behavior: NodeBehavior,
    execution: NodeExecution,
    items: List[Record],
    metrics: NodeMetrics,
) -> List[Record]:
    policy = execution.node.on_failure
    processed: List[Record] = []
    filtered = skipped = errors = 0

    for record in items:
        try:
            result = behavior.process(execution, record)
        except RowLevelError as exc:
            if policy.stop_on_error:
                raise
            errors += 1
            skipped += 1
            execution.warn(f"record dropped: {exc}", event="row_level_error", details=dict(exc.details))
            continue
        if result is None:
            filtered += 1
            continue
        processed.append(result)

    metrics.filtered_count = filtered
    metrics.skip_count = skipped
    metrics.error_count = errors
    return processed


def run_stage(
    behavior: NodeBehavior,
    execution: NodeExecution,
    *,
    metrics: Optional[NodeMetrics] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> NodeMetrics:
    """
    Executa um stage completo de `behavior` sobre `execution`.

    Quando `execution.settings` ainda não foi preenchido, `validate` é
    chamado antes do reader.

    Args:
        behavior (NodeBehavior): Comportamento do nó.
        execution (NodeExecution): Contexto do stage.
        metrics (Optional[NodeMetrics]): Objeto a preencher (criado se None).
        sleep (Callable[[float], None]): Espera entre tentativas (RETRY).

    Returns:
        NodeMetrics: Métricas do stage.

    Raises:
        ConfigurationError: Se a configuração do nó for inválida.
        Exception: Qualquer falha não tratada pelo stage.
    """
    if metrics is None:
        metrics = NodeMetrics(node_id=execution.node_id, node_type=behavior.node_type)

    started = time.monotonic()
    metrics.started_at = datetime.now(timezone.utc).isoformat()
    try:
        if execution.settings is None:
            execution.settings = behavior.validate(execution.node.config)

        items = list(behavior.read(execution))
        metrics.read_count = len(items)

        policy = execution.node.on_failure
        can_retry = behavior.supports_failure_handling and policy.action == FailureAction.RETRY
        attempt = 0
        while True:
            try:
                processed = _process_batch(behavior, execution, items, metrics)
                break
            except Exception as exc:  # noqa: BLE001
                if not can_retry or attempt >= policy.max_retries:
                    raise
                attempt += 1
                metrics.retry_count = attempt
                execution.log(
                    "warning",
                    f"processing failed, retrying ({attempt}/{policy.max_retries}): {exc}",
                    event="retry",
                    exception_class=exc.__class__.__name__,
                )
                sleep(policy.retry_delay_ms / 1000.0)

        written = behavior.write(execution, processed)
        metrics.write_count = len(processed) if written is None else written
    finally:
        metrics.finished_at = datetime.now(timezone.utc).isoformat()
        metrics.duration_ms = (time.monotonic() - started) * 1000.0

    return metrics
