# src/routeflow/nodes/conditional/validate.py
"""
Validate — validação de registros por regras declarativas.

Configuração:
    - rules (obrigatório): linhas `campo:expressão:mensagem` ou lista de
      `{field, expression, message}`

Cada regra é avaliada contra os campos do registro mais `value` (o valor
do campo da regra). Uma regra falha quando o resultado não é `True` ou
quando a avaliação levanta erro.

Registros com falhas recebem:
    - `_validationErrors`: mensagens das regras que falharam
    - `_failedRules`: campos das regras que falharam

Saídas:
    - roteado: `_routePort` = `out` (válido) ou `invalid`
    - direto: variáveis `outputItems` (válidos) e `invalidItems`
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from routeflow.core.expressions import CompiledExpression, ExpressionError, is_true
from routeflow.core.pipeline.execution import INVALID_ITEMS, OUTPUT_ITEMS, NodeExecution
from routeflow.core.pipeline.types import ROUTE_FIELD, Record
from routeflow.nodes._support import ConfigReader, RecordNode, strip_quotes


VALIDATION_ERRORS_FIELD = "_validationErrors"
FAILED_RULES_FIELD = "_failedRules"
VALID_PORT = "out"
INVALID_PORT = "invalid"


@dataclass(frozen=True)
class ValidationRule:
    field: str
    expression: CompiledExpression
    message: str

    def passes(self, record: Record) -> bool:
        scope = dict(record)
        scope["value"] = record.get(self.field)
        try:
            return is_true(self.expression.evaluate(scope))
        except ExpressionError:
            return False


@dataclass(frozen=True)
class ValidateSettings:
    rules: Tuple[ValidationRule, ...]


def _parse_rule(cfg: ConfigReader, raw: Any) -> ValidationRule:
    if isinstance(raw, Mapping):
        parts = [raw.get("field"), raw.get("expression"), raw.get("message")]
    else:
        parts = str(raw).split(":", 2)
    if len(parts) < 3 or not all(p is not None and str(p).strip() for p in parts[:2]):
        raise cfg.error("rules", f"invalid rule {raw!r}; expected 'field:expression:message'")
    field_name, expression, message = (str(p).strip() if p is not None else "" for p in parts)
    return ValidationRule(
        field=field_name,
        expression=cfg.compile("rules", expression),
        message=strip_quotes(message) or f"{field_name} is invalid",
    )


class ValidateNode(RecordNode):
    node_type = "Validate"

    def validate(self, config: Mapping[str, Any]) -> ValidateSettings:
        cfg = ConfigReader(self.node_type, config)
        rules = [_parse_rule(cfg, raw) for raw in cfg.lines("rules", required=True)]
        return ValidateSettings(rules=tuple(rules))

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        errors: List[str] = []
        failed: List[str] = []
        for rule in execution.settings.rules:
            if not rule.passes(record):
                errors.append(rule.message)
                failed.append(rule.field)

        result = dict(record)
        if errors:
            result[VALIDATION_ERRORS_FIELD] = errors
            result[FAILED_RULES_FIELD] = failed
        if execution.is_routing:
            result[ROUTE_FIELD] = INVALID_PORT if errors else VALID_PORT
        return result

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        invalid = [r for r in records if VALIDATION_ERRORS_FIELD in r]
        execution.log("info", f"{len(records) - len(invalid)} valid, {len(invalid)} invalid records")
        if execution.is_routing:
            return execution.emit(records)
        execution.set_variable(OUTPUT_ITEMS, [r for r in records if VALIDATION_ERRORS_FIELD not in r])
        execution.set_variable(INVALID_ITEMS, invalid)
        return len(records)
