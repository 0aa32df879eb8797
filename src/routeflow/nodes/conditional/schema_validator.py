# src/routeflow/nodes/conditional/schema_validator.py
"""
SchemaValidator — comparação do conjunto de campos com um schema esperado.

Configuração:
    - schemaFields (obrigatório): `nome:tipo` (lista ou string separada por
      vírgulas) ou mapeamento `{nome: tipo}`; o tipo é informativo
    - onMismatch: FAIL (default) | WARN | AUTO_MAP

Campos reservados (`_`) são ignorados na comparação.

Políticas:
    - FAIL: registros cujo conjunto de campos difere recebem `_schema_error`
      e seguem para `invalid`
    - WARN: divergências geram warning; o registro segue válido
    - AUTO_MAP: o registro é projetado nos campos esperados (ausentes → None)

Saídas como Validate: `_routePort` out/invalid (roteado) ou
`outputItems`/`invalidItems` (direto).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from routeflow.core.pipeline.execution import INVALID_ITEMS, OUTPUT_ITEMS, NodeExecution
from routeflow.core.pipeline.types import ROUTE_FIELD, Record, is_reserved
from routeflow.nodes._support import ConfigReader, RecordNode

from .validate import INVALID_PORT, VALID_PORT


SCHEMA_ERROR_FIELD = "_schema_error"


@dataclass(frozen=True)
class SchemaSettings:
    fields: Dict[str, str]
    on_mismatch: str = "FAIL"


def _render(names: List[str]) -> str:
    return "[" + ", ".join(names) + "]"


def mismatch_message(expected: List[str], actual: List[str]) -> Optional[str]:
    if set(expected) == set(actual):
        return None
    return f"Field mismatch: expected {_render(expected)}, got {_render(actual)}"


class SchemaValidatorNode(RecordNode):
    node_type = "SchemaValidator"

    def validate(self, config: Mapping[str, Any]) -> SchemaSettings:
        cfg = ConfigReader(self.node_type, config)
        raw = cfg.config.get("schemaFields")
        fields: Dict[str, str] = {}
        if isinstance(raw, Mapping):
            fields = {str(k).strip(): str(v).strip() for k, v in raw.items() if str(k).strip()}
        else:
            for entry in cfg.names("schemaFields"):
                name, _, type_name = entry.partition(":")
                if name.strip():
                    fields[name.strip()] = type_name.strip()
        if not fields:
            raise cfg.error("schemaFields", "'schemaFields' is required")
        return SchemaSettings(
            fields=fields,
            on_mismatch=cfg.choice("onMismatch", "FAIL", ("FAIL", "WARN", "AUTO_MAP"), case_sensitive=True),
        )

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        settings: SchemaSettings = execution.settings
        expected = list(settings.fields)
        actual = [k for k in record if not is_reserved(k)]

        if settings.on_mismatch == "AUTO_MAP":
            result: Record = {name: record.get(name) for name in expected}
            result.update({k: v for k, v in record.items() if is_reserved(k)})
            error = None
        else:
            result = dict(record)
            error = mismatch_message(expected, actual)
            if error is not None and settings.on_mismatch == "WARN":
                execution.warn(error, event="schema_mismatch")
                error = None

        if error is not None:
            result[SCHEMA_ERROR_FIELD] = error
        if execution.is_routing:
            result[ROUTE_FIELD] = INVALID_PORT if error is not None else VALID_PORT
        return result

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        if execution.is_routing:
            return execution.emit(records)
        execution.set_variable(OUTPUT_ITEMS, [r for r in records if SCHEMA_ERROR_FIELD not in r])
        execution.set_variable(INVALID_ITEMS, [r for r in records if SCHEMA_ERROR_FIELD in r])
        return len(records)
