# src/routeflow/core/config/__init__.py
"""
Camada de configuração do RouteFlow.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, validar estruturalmente e identificar configurações de execução
e definições de workflow.

Responsabilidades do pacote:
    - Carregamento de arquivos (defaults + overrides locais, workflows)
    - Resolução de configuração final via deep-merge determinístico
    - Geração de hash canônico para rastreabilidade

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não valida configuração específica de nós
    - Não executa workflows
"""
