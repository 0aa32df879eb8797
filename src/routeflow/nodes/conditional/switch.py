# src/routeflow/nodes/conditional/switch.py
"""
Switch — roteamento multi-ramo pela primeira regra verdadeira.

Configuração:
    - rules: linhas `condição:porta` (a porta é o trecho após o último `:`)
      ou lista de `{condition, port}`; avaliadas em ordem
    - defaultPort: rótulo quando nenhuma regra é verdadeira (default `default`)
    - failOnError: falha de avaliação aborta o stage; caso contrário a
      regra é ignorada com warning
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from routeflow.core.expressions import CompiledExpression, ExpressionError, is_true
from routeflow.core.pipeline.execution import NodeExecution
from routeflow.core.pipeline.types import ROUTE_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode, strip_quotes


@dataclass(frozen=True)
class SwitchRule:
    condition: CompiledExpression
    port: str


@dataclass(frozen=True)
class SwitchSettings:
    rules: Tuple[SwitchRule, ...]
    default_port: str = "default"
    fail_on_error: bool = False


def _split_rule(cfg: ConfigReader, raw: Any) -> Tuple[str, str]:
    if isinstance(raw, Mapping):
        condition, port = raw.get("condition"), raw.get("port")
    else:
        condition, sep, port = str(raw).rpartition(":")
        if not sep:
            condition, port = None, None
    if not condition or not port or not str(port).strip():
        raise cfg.error("rules", f"invalid rule {raw!r}; expected 'condition:port'")
    return str(condition).strip(), strip_quotes(str(port))


class SwitchNode(RecordNode):
    node_type = "Switch"

    def validate(self, config: Mapping[str, Any]) -> SwitchSettings:
        cfg = ConfigReader(self.node_type, config)
        rules = []
        for raw in cfg.lines("rules", required=True):
            condition, port = _split_rule(cfg, raw)
            rules.append(SwitchRule(condition=cfg.compile("rules", condition), port=port))
        return SwitchSettings(
            rules=tuple(rules),
            default_port=cfg.string("defaultPort", "default"),
            fail_on_error=cfg.boolean("failOnError", False),
        )

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        settings: SwitchSettings = execution.settings
        port = settings.default_port
        for rule in settings.rules:
            try:
                matched = is_true(rule.condition.evaluate(record))
            except ExpressionError as exc:
                if settings.fail_on_error:
                    raise
                execution.warn(f"rule for port '{rule.port}' failed: {exc}", event="condition_error")
                continue
            if matched:
                port = rule.port
                break
        labeled = dict(record)
        labeled[ROUTE_FIELD] = port
        return labeled
