# tests/core/config/test_hashing.py
"""
Testes do hashing canônico de configuração.

Cobre:
- hash determinístico e independente da ordem de chaves
- sensibilidade a mudanças de valor
- rejeição de entradas que não são dict
- hash de definições de workflow via `to_dict`
"""

import pytest

from routeflow.core.config.hashing import compute_config_hash
from routeflow.core.model import WorkflowDefinition


def test_hash_is_stable_and_order_independent():
    a = {"engine": {"fail_fast": True}, "nodes": {"x": {"enabled": False}}}
    b = {"nodes": {"x": {"enabled": False}}, "engine": {"fail_fast": True}}

    assert compute_config_hash(a) == compute_config_hash(b)
    assert len(compute_config_hash(a)) == 64


def test_hash_changes_with_values():
    assert compute_config_hash({"a": 1}) != compute_config_hash({"a": 2})


def test_hash_rejects_non_dict():
    with pytest.raises(TypeError):
        compute_config_hash(["a"])


def test_workflow_hash_ignores_edge_field_style():
    canonical = WorkflowDefinition.from_dict({
        "nodes": [{"id": "a", "type": "Start"}, {"id": "b", "type": "End"}],
        "edges": [{"sourceNodeId": "a", "targetNodeId": "b"}],
    })
    editor = WorkflowDefinition.from_dict({
        "nodes": [{"id": "a", "type": "Start"}, {"id": "b", "type": "End"}],
        "edges": [{"source": "a", "sourceHandle": "out", "target": "b", "targetHandle": "in"}],
    })

    assert compute_config_hash(canonical.to_dict()) == compute_config_hash(editor.to_dict())
