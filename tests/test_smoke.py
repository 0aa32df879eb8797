# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do RouteFlow.

Garantem apenas que o pacote pode ser importado e que o registry padrão
é construído sem conflitos de tipo.

Limites explícitos:
    - Não testar lógica de nós
    - Não testar fluxo de execução
"""


def test_smoke():
    assert True


def test_smoke_import_package():
    import routeflow
    from routeflow.nodes import default_registry

    assert routeflow.Engine is not None
    assert len(default_registry()) == 23
