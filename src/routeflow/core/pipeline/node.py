# src/routeflow/core/pipeline/node.py
"""
Contrato canônico de comportamento de nó do RouteFlow.

Este módulo define o protocolo formal que qualquer comportamento de nó
deve satisfazer para ser executável pelo Engine.

Um comportamento é escolhido pelo `type` do nó e expõe quatro operações
contra o contexto do stage (`NodeExecution`):

    - validate: converte a configuração bruta em configuração tipada;
      chamado uma vez, antes de qualquer stage; falhas são ConfigurationError
    - read: produz a sequência de entrada, finita (portas ou variáveis)
    - process: transforma um registro (`None` descarta o registro)
    - write: recebe o lote processado completo e o entrega (rotas/variáveis)

Flags de capacidade:
    - supports_metrics: o stage participa da coleta de NodeMetrics
    - supports_failure_handling: falhas do stage podem ser repetidas ou
      puladas conforme `onFailure`, em vez de abortar o workflow

Princípios fundamentais:
    - Comportamentos não conhecem o Engine nem o planner
    - Estado entre read/process/write vive em `NodeExecution.state`
    - Conformidade é garantida por duck typing (@runtime_checkable)

Limites explícitos:
    - Não define ordem de execução
    - Não decide políticas de falha (responsabilidade do stage runner)
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

from .execution import NodeExecution
from .types import Record


@runtime_checkable
class NodeBehavior(Protocol):
    """
    Contrato de um comportamento de nó.

    Atributos obrigatórios:
        - node_type: nome do tipo (chave no BehaviorRegistry)
        - supports_metrics: participa da coleta de métricas
        - supports_failure_handling: aceita políticas SKIP/RETRY

    Invariantes:
        - `validate` é chamado exatamente uma vez por nó antes da execução
        - `read`, `process` e `write` pertencem ao mesmo stage e
          compartilham apenas `execution.state`
    """
    node_type: str
    supports_metrics: bool
    supports_failure_handling: bool

    def validate(self, config: Mapping[str, Any]) -> Any:
        """Retorna a configuração tipada ou levanta ConfigurationError."""
        ...

    def read(self, execution: NodeExecution) -> List[Record]:
        ...

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        ...

    def write(self, execution: NodeExecution, records: List[Record]) -> Optional[int]:
        """Entrega os registros processados; retorna quantos foram escritos (None: todos)."""
        ...
