# src/routeflow/core/__init__.py
"""
Núcleo do RouteFlow.

Contém o modelo de workflow, a camada de configuração, os contratos de
execução de nós, o estado de roteamento por execução e o Engine.

Os nós concretos vivem em `routeflow.nodes` e dependem deste pacote,
nunca o contrário (o Engine apenas importa o registry padrão sob demanda).
"""
