# src/routeflow/core/pipeline/context.py
"""
Contexto de execução compartilhado de um workflow.

Este módulo define o `ExecutionContext`, a estrutura canônica que
acompanha uma execução do início ao teardown.

O ExecutionContext atua como o único meio permitido de:
    - armazenar variáveis com escopo de execução (store plano chave → valor)
    - guardar as saídas de nós terminais
    - registrar logs estruturados de execução
    - coletar warnings não fatais associados a nós

Variáveis de escopo de execução:
    - `outputItems` / `invalidItems` e entradas nomeadas (`inputItems`,
      `leftInputItems`, ...) no modo direto (sem roteamento)
    - marcadores `checkpoint_<id>` (Checkpoint → Resume)
    - flags `jobCondition_<nodeId>`

Princípios fundamentais:
    - Isolamento por execução (cada execução possui seu próprio contexto)
    - Comunicação explícita e rastreável
    - Ausência de estado global compartilhado

Invariantes:
    - Logs sempre incluem `execution_id` e `node_id`
    - Warnings são agrupados por `node_id`
    - Variáveis vivem apenas durante uma execução

Limites explícitos:
    - Não executa nós
    - Não armazena buffers de roteamento (responsabilidade do EdgeBufferStore)
    - Não persiste dados

Este módulo existe para garantir isolamento,
clareza e rastreabilidade na execução de workflows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .types import Record


@dataclass
class ExecutionContext:
    """
    Contexto de uma execução de workflow.

    Decisões arquiteturais:
        - Nós interagem com o estado compartilhado apenas via este contexto
        - Logs são eventos estruturados (dicts), não texto livre
        - Saídas de nós terminais ficam separadas das variáveis

    Limites explícitos:
        - Não decide políticas de execução
        - Não contém estado por stage (ver `NodeExecution.state`)
    """
    execution_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    config: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    variables: Dict[str, Any] = field(default_factory=dict, init=False)
    outputs: Dict[str, List[Record]] = field(default_factory=dict, init=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Variáveis de execução
    # -----------------------------
    def set_variable(self, key: str, value: Any) -> None:
        self.variables[key] = value

    def get_variable(self, key: str, default: Optional[Any] = None) -> Any:
        return self.variables.get(key, default)

    def has_variable(self, key: str) -> bool:
        return key in self.variables

    # -----------------------------
    # Saídas terminais
    # -----------------------------
    def add_outputs(self, node_id: str, records: List[Record]) -> None:
        self.outputs.setdefault(node_id, []).extend(records)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, node_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "execution_id": self.execution_id,
            "node_id": node_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, node_id: str, message: str) -> None:
        if node_id not in self.warnings:
            self.warnings[node_id] = []
        self.warnings[node_id].append(message)

    def warn(self, *, node_id: str, message: str, **extra: Any) -> None:
        """Registra warning do nó e o evento de log correspondente."""
        self.add_warning(node_id=node_id, message=message)
        self.log(node_id=node_id, level="warning", message=message, **extra)
