# tests/core/config/test_workflow_loader.py
"""
Testes do carregamento de definições de workflow (load_workflow / from_dict).

Os testes asseguram que:
- YAML em formato de editor é convertido para o modelo canônico
- portas ausentes assumem `out` (origem) e `in` (destino)
- `onFailure` é convertido para FailurePolicy
- entradas malformadas levantam InvalidWorkflowError
- arquivos ausentes ou ilegíveis como YAML/JSON também levantam InvalidWorkflowError
- flags booleanas de `onFailure` aceitam texto ("false", "yes", ...)
"""

from pathlib import Path

import pytest

from routeflow.core.config.errors import InvalidWorkflowError
from routeflow.core.config.loader import load_workflow
from routeflow.core.model import FailureAction, WorkflowDefinition


def test_load_workflow_from_yaml(tmp_path: Path, workflow_yaml):
    path = tmp_path / "workflow.yaml"
    path.write_text(workflow_yaml, encoding="utf-8")

    wf = load_workflow(str(path))

    assert wf.id == "pedidos"
    assert wf.node_ids() == ["src", "check", "big", "small"]
    assert wf.nodes[1].config == {"condition": "amount > 100"}
    first, second, _ = wf.edges
    assert (first.source, first.source_port, first.target, first.target_port) == ("src", "out", "check", "in")
    assert second.source_port == "true"


def test_on_failure_policy_parsed():
    wf = WorkflowDefinition.from_dict({
        "nodes": [{
            "id": "a",
            "type": "Filter",
            "onFailure": {"action": "retry", "maxRetries": 2, "retryDelayMs": 0, "stopOnError": True},
        }],
    })

    policy = wf.nodes[0].on_failure
    assert policy.action == FailureAction.RETRY
    assert policy.max_retries == 2
    assert policy.retry_delay_ms == 0
    assert policy.stop_on_error is True
    assert policy.should_skip is False


def test_skip_on_error_means_skip():
    wf = WorkflowDefinition.from_dict({"nodes": [{"id": "a", "type": "X", "onFailure": {"skipOnError": True}}]})

    assert wf.nodes[0].on_failure.should_skip is True


@pytest.mark.parametrize(
    "raw, expected",
    [("false", False), ("False", False), ("0", False), ("no", False), ("true", True), ("yes", True), (None, False)],
)
def test_on_failure_flags_parse_text_values(raw, expected):
    on_failure = {"skipOnError": raw, "stopOnError": raw}
    wf = WorkflowDefinition.from_dict({"nodes": [{"id": "a", "type": "X", "onFailure": on_failure}]})

    assert wf.nodes[0].on_failure.skip_on_error is expected
    assert wf.nodes[0].on_failure.stop_on_error is expected


def test_control_edge_flag():
    wf = WorkflowDefinition.from_dict({
        "nodes": [{"id": "a", "type": "X"}, {"id": "b", "type": "X"}],
        "edges": [{"source": "a", "target": "b", "isControl": True}],
    })

    assert wf.edges[0].control is True


@pytest.mark.parametrize(
    "doc",
    [
        {"nodes": "a"},
        {"nodes": [{"id": "", "type": "Start"}]},
        {"nodes": [{"id": "a"}]},
        {"nodes": [{"id": "a", "type": "Start", "config": ["x"]}]},
        {"nodes": [{"id": "a", "type": "Start"}], "edges": [{"source": "a"}]},
        {"nodes": [{"id": "a", "type": "Start", "onFailure": {"action": "EXPLODE"}}]},
        {"nodes": [{"id": "a", "type": "Start", "onFailure": {"maxRetries": -1}}]},
        {"nodes": [{"id": "a", "type": "Start", "onFailure": {"skipOnError": "maybe"}}]},
    ],
)
def test_invalid_workflow_documents(doc):
    with pytest.raises(InvalidWorkflowError):
        WorkflowDefinition.from_dict(doc)


def test_missing_workflow_file_is_invalid_workflow(tmp_path: Path):
    with pytest.raises(InvalidWorkflowError) as exc_info:
        load_workflow(str(tmp_path / "missing.yaml"))

    assert exc_info.value.details["path"].endswith("missing.yaml")


@pytest.mark.parametrize(
    "name, text",
    [
        ("broken.yaml", "nodes: [unclosed\n"),
        ("broken.json", '{"nodes": [}'),
        ("list.yaml", "- a\n- b\n"),
    ],
)
def test_unparseable_workflow_file_is_invalid_workflow(tmp_path: Path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")

    with pytest.raises(InvalidWorkflowError):
        load_workflow(str(path))
