# src/routeflow/__init__.py
"""
RouteFlow — engine de execução de workflows baseados em nós e portas.

Um workflow é um grafo dirigido de nós tipados ligados por portas
nomeadas. Cada nó lê registros de suas portas de entrada, transforma-os e
roteia o resultado para portas de nós seguintes.

Princípios centrais:
    - Execução em estágios (bulk-síncrona): um nó termina por completo
      antes de seus dependentes começarem
    - Roteamento determinístico: ordem de arestas e de chegada preservadas
    - Configuração validada uma única vez, antes de qualquer stage
    - Estado de roteamento local a uma execução e descartado ao final

Arquitetura em alto nível:
    - core.config   → carregamento, merge e hashing de configuração
    - core.pipeline → contrato de nó, contextos de execução e registry
    - core.routing  → buffer store, resolução de portas e adapters
    - core.engine   → compilação do plano e execução de stages
    - nodes         → comportamentos concretos (joins, partição, condicionais)

Limites explícitos:
    - Não é distribuído (todo estado vive em um processo)
    - Não é streaming (cada stage processa um lote finito)
    - Buffers não são duráveis
"""

from .core.engine.engine import Engine, RunResult
from .core.model import Edge, NodeDefinition, WorkflowDefinition
from .core.pipeline.context import ExecutionContext

__all__ = ["Engine", "RunResult", "Edge", "NodeDefinition", "WorkflowDefinition", "ExecutionContext"]
