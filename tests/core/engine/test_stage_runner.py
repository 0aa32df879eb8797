# tests/core/engine/test_stage_runner.py
"""
Testes do executor de stage (run_stage) em modo direto.

Os testes asseguram que:
- o reader é chamado uma vez e o writer recebe o lote processado completo
- `None` do processor filtra o registro
- RowLevelError descarta o registro com warning, ou aborta com stopOnError
- RETRY repete apenas a fase de processamento, sobre o mesmo lote
- exceções comuns abortam o stage sem chamar o writer
- `validate` é chamado quando a configuração ainda não foi validada

Decisões arquiteturais:
    - Comportamentos de teste são locais e duck-typed
    - A espera entre tentativas é injetada (nenhum sleep real)
"""

import pytest

from routeflow.core.engine.stage import run_stage
from routeflow.core.exceptions import RowLevelError
from routeflow.core.model import NodeDefinition
from routeflow.core.pipeline.execution import NodeExecution


class _Recorder:
    """Comportamento de teste que registra cada chamada do contrato."""

    node_type = "Recorder"
    supports_metrics = True
    supports_failure_handling = True

    def __init__(self, items, fail_times=0, row_errors=(), drop=()):
        self.items = items
        self.fail_times = fail_times
        self.row_errors = set(row_errors)
        self.drop = set(drop)
        self.calls = {"validate": 0, "read": 0, "process": 0, "write": 0}
        self.written = None

    def validate(self, config):
        self.calls["validate"] += 1
        return {"validated": True}

    def read(self, execution):
        self.calls["read"] += 1
        return list(self.items)

    def process(self, execution, record):
        self.calls["process"] += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("transient")
        if record["id"] in self.row_errors:
            raise RowLevelError("bad row", details={"id": record["id"]}, record=record)
        if record["id"] in self.drop:
            return None
        return dict(record, seen=True)

    def write(self, execution, records):
        self.calls["write"] += 1
        self.written = records


def _execution(ctx, on_failure=None):
    node = NodeDefinition.from_dict({"id": "rec", "type": "Recorder", "onFailure": on_failure})
    return NodeExecution(node=node, ctx=ctx)


def _rows(n):
    return [{"id": i} for i in range(n)]


def test_stage_contract_and_metrics(ctx):
    behavior = _Recorder(_rows(4), drop={2})
    execution = _execution(ctx)

    metrics = run_stage(behavior, execution)

    assert behavior.calls == {"validate": 1, "read": 1, "process": 4, "write": 1}
    assert execution.settings == {"validated": True}
    assert [r["id"] for r in behavior.written] == [0, 1, 3]
    assert metrics.read_count == 4
    assert metrics.write_count == 3
    assert metrics.filtered_count == 1
    assert metrics.duration_ms >= 0
    assert metrics.started_at and metrics.finished_at


def test_validate_skipped_when_settings_present(ctx):
    behavior = _Recorder(_rows(1))
    execution = _execution(ctx)
    execution.settings = {"already": True}

    run_stage(behavior, execution)

    assert behavior.calls["validate"] == 0


def test_row_level_error_drops_record_with_warning(ctx):
    behavior = _Recorder(_rows(3), row_errors={1})

    metrics = run_stage(behavior, _execution(ctx))

    assert [r["id"] for r in behavior.written] == [0, 2]
    assert metrics.error_count == 1
    assert metrics.skip_count == 1
    assert len(ctx.warnings["rec"]) == 1
    assert ctx.events[-1]["event"] == "row_level_error"


def test_row_level_error_with_stop_on_error_aborts(ctx):
    behavior = _Recorder(_rows(3), row_errors={1})

    with pytest.raises(RowLevelError):
        run_stage(behavior, _execution(ctx, {"stopOnError": True}))

    assert behavior.calls["write"] == 0


def test_retry_reprocesses_same_batch(ctx):
    """
    Verifica a política RETRY.

    Invariantes:
        - O reader não é chamado novamente
        - O writer é chamado uma única vez, com o lote completo
        - A espera configurada é respeitada entre tentativas
    """
    behavior = _Recorder(_rows(2), fail_times=1)
    waits = []

    metrics = run_stage(
        behavior,
        _execution(ctx, {"action": "RETRY", "maxRetries": 2, "retryDelayMs": 250}),
        sleep=waits.append,
    )

    assert behavior.calls["read"] == 1
    assert behavior.calls["write"] == 1
    assert [r["id"] for r in behavior.written] == [0, 1]
    assert metrics.retry_count == 1
    assert waits == [0.25]
    assert any(e.get("event") == "retry" for e in ctx.events)


def test_retry_exhausted_raises(ctx):
    behavior = _Recorder(_rows(1), fail_times=10)

    with pytest.raises(RuntimeError):
        run_stage(
            behavior,
            _execution(ctx, {"action": "RETRY", "maxRetries": 2, "retryDelayMs": 0}),
            sleep=lambda _s: None,
        )

    assert behavior.calls["process"] == 3
    assert behavior.calls["write"] == 0


def test_retry_ignored_without_failure_handling(ctx):
    behavior = _Recorder(_rows(1), fail_times=1)
    behavior.supports_failure_handling = False

    with pytest.raises(RuntimeError):
        run_stage(behavior, _execution(ctx, {"action": "RETRY", "retryDelayMs": 0}), sleep=lambda _s: None)

    assert behavior.calls["process"] == 1


def test_plain_exception_aborts_stage(ctx):
    behavior = _Recorder(_rows(2), fail_times=1)

    with pytest.raises(RuntimeError):
        run_stage(behavior, _execution(ctx))

    assert behavior.calls["write"] == 0
