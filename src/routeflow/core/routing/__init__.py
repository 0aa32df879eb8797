# src/routeflow/core/routing/__init__.py
"""
Camada de roteamento do RouteFlow.

Este pacote concentra o único estado compartilhado entre stages de uma
execução (o buffer store) e os componentes que traduzem decisões de
roteamento em escritas nesse estado.

Componentes:
    - buffer_store → EdgeBufferStore (execução, nó, porta) → registros
    - context      → OutputPort e RoutingContext
    - adapters     → BufferedReader, RoutingWriter, BroadcastWriter
"""
