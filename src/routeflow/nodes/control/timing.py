# src/routeflow/nodes/control/timing.py
"""
SLA e Throttle — nós com estado de tempo explícito por stage.

O estado vive em `NodeExecution.state` (criado por stage), nunca em
variáveis de thread ou de módulo.

SLA:
    - maxDurationMs (> 0, obrigatório), action WARN | FAIL_JOB (default)
    - o instante de início é gravado no reader; o writer mede o tempo
      decorrido e registra warning ou levanta SLAViolation
    - é uma medição, não um mecanismo de cancelamento

Throttle:
    - maxRecordsPerSecond (> 0, obrigatório)
    - o processor espaça registros em `1 / taxa` segundos
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional

from routeflow.core.exceptions import SLAViolation
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import Record
from routeflow.nodes._support import ConfigReader, RecordNode


@dataclass(frozen=True)
class SLASettings:
    max_duration_ms: int
    action: str = "FAIL_JOB"


class SLANode(RecordNode):
    node_type = "SLA"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock

    def validate(self, config: Mapping[str, Any]) -> SLASettings:
        cfg = ConfigReader(self.node_type, config)
        return SLASettings(
            max_duration_ms=cfg.integer("maxDurationMs", required=True, minimum=1),
            action=cfg.choice("action", "FAIL_JOB", ("WARN", "FAIL_JOB"), case_sensitive=True),
        )

    def read(self, execution: NodeExecution) -> List[Record]:
        execution.state["started_at"] = self.clock()
        return super().read(execution)

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        settings: SLASettings = execution.settings
        elapsed_ms = (self.clock() - execution.state["started_at"]) * 1000.0
        if elapsed_ms > settings.max_duration_ms:
            message = f"SLA exceeded: {elapsed_ms:.0f}ms > {settings.max_duration_ms}ms"
            if settings.action == "FAIL_JOB":
                raise SLAViolation(
                    message,
                    details={"elapsed_ms": elapsed_ms, "max_duration_ms": settings.max_duration_ms},
                )
            execution.warn(message, event="sla_violation", elapsed_ms=elapsed_ms)
        return execution.emit(records)


@dataclass(frozen=True)
class ThrottleSettings:
    max_records_per_second: int


class ThrottleNode(RecordNode):
    node_type = "Throttle"

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.clock = clock
        self.sleep = sleep

    def validate(self, config: Mapping[str, Any]) -> ThrottleSettings:
        cfg = ConfigReader(self.node_type, config)
        return ThrottleSettings(max_records_per_second=cfg.integer("maxRecordsPerSecond", required=True, minimum=1))

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        interval = 1.0 / execution.settings.max_records_per_second
        last: Optional[float] = execution.state.get("last_emit")
        if last is not None:
            wait = interval - (self.clock() - last)
            if wait > 0:
                self.sleep(wait)
        execution.state["last_emit"] = self.clock()
        return record
