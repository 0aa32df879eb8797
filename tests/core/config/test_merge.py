# tests/core/config/test_merge.py
"""
Testes da política de deep-merge de configuração.

Os testes asseguram que:
- valores escalares são sobrescritos corretamente
- dicionários são mesclados de forma recursiva
- listas são sobrescritas integralmente
- None no override limpa o valor
- conflitos de tipo são detectados e rejeitados explicitamente
- objetos de entrada não são mutados durante o merge
"""

from copy import deepcopy

import pytest

from routeflow.core.config.errors import ConfigTypeConflictError
from routeflow.core.config.merge import deep_merge


def test_merge_simple_override():
    base = {"engine": {"fail_fast": True}, "x": 1}
    override = {"x": 2}
    base_before = deepcopy(base)

    out = deep_merge(base, override)

    assert out == {"engine": {"fail_fast": True}, "x": 2}
    assert base == base_before


def test_merge_nested_dicts():
    base = {"nodes": {"a": {"enabled": True}, "b": {"enabled": True}}}
    override = {"nodes": {"b": {"enabled": False}, "c": {"enabled": False}}}

    out = deep_merge(base, override)

    assert out["nodes"] == {
        "a": {"enabled": True},
        "b": {"enabled": False},
        "c": {"enabled": False},
    }


def test_merge_list_overwrite():
    out = deep_merge({"keys": ["id", "name"]}, {"keys": ["id"]})

    assert out == {"keys": ["id"]}


def test_merge_none_clears_value():
    out = deep_merge({"engine": {"fail_fast": True}}, {"engine": {"fail_fast": None}})

    assert out["engine"]["fail_fast"] is None


def test_merge_output_does_not_share_nested_objects():
    override = {"nodes": {"a": {"tags": ["x"]}}}

    out = deep_merge({}, override)
    out["nodes"]["a"]["tags"].append("y")

    assert override["nodes"]["a"]["tags"] == ["x"]


@pytest.mark.parametrize(
    "base, override",
    [
        ({"engine": {"fail_fast": True}}, {"engine": "DEBUG"}),
        ({"engine": {"fail_fast": True}}, {"engine": ["x"]}),
        ({"engine": "x"}, {"engine": {"fail_fast": True}}),
        ({"engine": {"fail_fast": True}}, {"engine": {"fail_fast": "yes"}}),
    ],
)
def test_merge_type_conflict_raises(base, override):
    with pytest.raises(ConfigTypeConflictError):
        deep_merge(base, override)
