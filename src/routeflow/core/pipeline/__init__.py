# src/routeflow/core/pipeline/__init__.py
"""
Contratos de execução de nós do RouteFlow.

Este pacote define os tipos e contratos compartilhados entre Engine e
comportamentos de nó:

    - types     → Record, NodeKind, NodeStatus, NodeMetrics, NodeResult
    - context   → ExecutionContext (variáveis, saídas, logs, warnings)
    - execution → NodeExecution (contexto de um stage)
    - node      → protocolo NodeBehavior
    - registry  → BehaviorRegistry imutável
"""
