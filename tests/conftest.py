# tests/conftest.py
"""
Fixtures compartilhados para testes do RouteFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações de engine mínimas e determinísticas
- contexto de execução controlado (ExecutionContext)
- buffer store isolado por teste
- fábricas para executar um nó isolado (modo direto) ou um workflow
  completo (modo roteado, via Engine)

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - `execution_id` e `created_at` são fixos para garantir determinismo
    - Imports do core são realizados de forma lazy para melhorar a
      clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture realiza I/O
    - Nenhuma fixture compartilha estado entre testes
    - Todas as fixtures são seguras para execução em paralelo

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica de domínio

Este módulo existe como infraestrutura de teste e não
como validação funcional do engine.
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Config Loader fixtures
# =====================================================

@pytest.fixture
def engine_config_defaults_yaml() -> str:
    """
    Fixture que fornece um YAML de configuração padrão (defaults) do engine.

    Representa o conteúdo típico de um `routeflow.defaults.yaml`, base sobre
    a qual overrides locais são aplicados via deep-merge.

    Invariantes:
        - YAML sintaticamente válido
        - Contém as chaves reconhecidas pelo Engine

    Returns:
        str: Conteúdo YAML representando configuração padrão.
    """
    return """\
engine:
  fail_fast: true
nodes:
  enrich:
    enabled: true
  audit:
    enabled: true
"""


@pytest.fixture
def engine_config_local_yaml() -> str:
    """
    Fixture que fornece um YAML de override local.

    Representa apenas overrides: desabilita um nó e o fail-fast.

    Returns:
        str: Conteúdo YAML representando configuração local.
    """
    return """\
engine:
  fail_fast: false
nodes:
  audit:
    enabled: false
"""


@pytest.fixture
def workflow_yaml() -> str:
    """Workflow mínimo Start → Decision → End em formato de editor."""
    return """\
id: pedidos
nodes:
  - id: src
    type: Start
    config:
      records:
        - {id: 1, amount: 50}
        - {id: 2, amount: 500}
  - id: check
    type: Decision
    data:
      config:
        condition: "amount > 100"
  - id: big
    type: End
  - id: small
    type: End
edges:
  - {source: src, target: check}
  - {source: check, sourceHandle: "true", target: big}
  - {source: check, sourceHandle: "false", target: small}
"""


# =====================================================
# Execução
# =====================================================

@pytest.fixture
def engine_config() -> dict:
    """
    Fixture que fornece uma configuração de engine já resolvida.

    Decisões arquiteturais:
        - Config é representada como dicionário já resolvido
        - Apenas chaves efetivamente utilizadas pelo Engine são incluídas

    Returns:
        dict: Configuração mínima e válida.
    """
    return {"engine": {"fail_fast": True}, "nodes": {}}


@pytest.fixture
def ctx(engine_config):
    """
    Fixture que fornece um ExecutionContext determinístico.

    Decisões arquiteturais:
        - O import é lazy para melhorar a legibilidade de erros
        - `execution_id` e `created_at` fixos

    Invariantes:
        - O contexto inicia sem variáveis, saídas, eventos ou warnings

    Returns:
        ExecutionContext: Contexto isolado e previsível.
    """
    from routeflow.core.pipeline.context import ExecutionContext

    return ExecutionContext(
        execution_id="exec-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=engine_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def store():
    """EdgeBufferStore vazio, exclusivo do teste."""
    from routeflow.core.routing.buffer_store import EdgeBufferStore

    return EdgeBufferStore()


@pytest.fixture
def run_direct(ctx):
    """
    Fixture factory que executa um único nó em modo direto.

    A função retornada cria o comportamento pelo registry padrão, popula
    as variáveis de entrada informadas e executa `run_stage` sem
    RoutingContext. As saídas ficam nas variáveis do contexto.

    Usado por:
        - Testes unitários de nós (joins, partição, condicionais, controle)

    Returns:
        Callable: `(node_type, config=None, variables=None, node_id="n1",
        on_failure=None) -> ExecutionContext`
    """
    from routeflow.core.engine.stage import run_stage
    from routeflow.core.model import NodeDefinition
    from routeflow.core.pipeline.execution import NodeExecution
    from routeflow.nodes import default_registry

    registry = default_registry()

    def _run(node_type, config=None, variables=None, node_id="n1", on_failure=None):
        node = NodeDefinition.from_dict(
            {"id": node_id, "type": node_type, "config": config or {}, "onFailure": on_failure}
        )
        for key, value in (variables or {}).items():
            ctx.set_variable(key, value)
        execution = NodeExecution(node=node, ctx=ctx)
        run_stage(registry.create(node_type), execution, sleep=lambda _s: None)
        return ctx

    return _run


@pytest.fixture
def run_workflow(ctx):
    """
    Fixture factory que executa um workflow completo via Engine (modo roteado).

    Returns:
        Callable: `(nodes, edges=(), inputs=None) -> RunResult`
    """
    from routeflow.core.engine.engine import Engine
    from routeflow.core.model import WorkflowDefinition

    def _run(nodes, edges=(), inputs=None):
        workflow = WorkflowDefinition.from_dict({"nodes": list(nodes), "edges": list(edges)})
        return Engine(workflow=workflow, ctx=ctx).run(inputs=inputs)

    return _run
