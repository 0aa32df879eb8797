# tests/nodes/test_schema_validator.py
"""Testes unitários de SchemaValidator.

Cobre:
- FAIL: `_schema_error` com a mensagem de divergência
- campos reservados ignorados na comparação
- WARN: warning sem invalidar o registro
- AUTO_MAP: projeção nos campos esperados
- validação de `schemaFields` e `onMismatch`
"""

import pytest

from routeflow.core.exceptions import ConfigurationError
from routeflow.nodes.conditional.schema_validator import mismatch_message


SCHEMA = "id:int, name:string"


def test_fail_policy_marks_mismatches(run_direct):
    ctx = run_direct(
        "SchemaValidator",
        config={"schemaFields": SCHEMA},
        variables={"inputItems": [{"id": 1, "name": "a", "_partition": 0}, {"id": 2}]},
    )
    assert ctx.get_variable("outputItems") == [{"id": 1, "name": "a", "_partition": 0}]
    assert ctx.get_variable("invalidItems") == [
        {"id": 2, "_schema_error": "Field mismatch: expected [id, name], got [id]"}
    ]


def test_field_order_does_not_matter():
    assert mismatch_message(["id", "name"], ["name", "id"]) is None


def test_warn_policy_keeps_records(run_direct):
    ctx = run_direct(
        "SchemaValidator",
        config={"schemaFields": SCHEMA, "onMismatch": "WARN"},
        variables={"inputItems": [{"id": 1, "extra": True}]},
    )
    assert ctx.get_variable("outputItems") == [{"id": 1, "extra": True}]
    assert ctx.get_variable("invalidItems") == []
    assert ctx.warnings["n1"] == ["Field mismatch: expected [id, name], got [id, extra]"]


def test_auto_map_projects_records(run_direct):
    ctx = run_direct(
        "SchemaValidator",
        config={"schemaFields": {"id": "int", "name": "string"}, "onMismatch": "AUTO_MAP"},
        variables={"inputItems": [{"id": 1, "extra": 2, "_sequence": 4}]},
    )
    assert ctx.get_variable("outputItems") == [{"id": 1, "name": None, "_sequence": 4}]


@pytest.mark.parametrize(
    "config",
    [{}, {"schemaFields": ""}, {"schemaFields": SCHEMA, "onMismatch": "warn"}, {"schemaFields": SCHEMA, "onMismatch": "DROP"}],
)
def test_invalid_configuration(run_direct, config):
    with pytest.raises(ConfigurationError):
        run_direct("SchemaValidator", config=config)


def test_routed_schema_validator_keeps_arrival_order(run_workflow):
    result = run_workflow(
        nodes=[
            {"id": "src", "type": "Start", "config": {"records": [{"id": 1}, {"id": 2, "name": "b"}, {"x": 3}]}},
            {"id": "schema", "type": "SchemaValidator", "config": {"schemaFields": SCHEMA}},
            {"id": "all", "type": "End"},
        ],
        edges=[
            {"source": "src", "target": "schema"},
            {"source": "schema", "sourceHandle": "out", "target": "all"},
        ],
    )
    out = result.outputs["all"]
    assert [r.get("id") for r in out] == [1, 2, None]
    assert ["_schema_error" in r for r in out] == [True, False, True]
