# src/routeflow/nodes/_support.py
"""
Suporte compartilhado pelos comportamentos de nó.

    - leitura tipada de configuração (`ConfigReader`), levantando um único
      ConfigurationError classificado por chave
    - `RecordNode`: implementações padrão do contrato de stage
      (read das portas/variáveis declaradas, process identidade, write padrão)
    - compilação de expressões da configuração durante `validate`
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from routeflow.core.exceptions import ConfigurationError, UnsupportedFeatureError
from routeflow.core.expressions import CompiledExpression, ExpressionError, compile_expression
from routeflow.core.keys import parse_lines, parse_list
from routeflow.core.pipeline.execution import INPUT_ITEMS, NodeExecution
from routeflow.core.pipeline.types import Record


class ConfigReader:
    """Acesso tipado à configuração bruta de um nó."""

    def __init__(self, node_type: str, config: Optional[Mapping[str, Any]]) -> None:
        self.node_type = node_type
        self.config = dict(config or {})

    def error(self, key: str, message: str) -> ConfigurationError:
        return ConfigurationError(
            f"{self.node_type}: {message}",
            details={"node_type": self.node_type, "key": key},
        )

    def has(self, key: str) -> bool:
        value = self.config.get(key)
        return value is not None and value != ""

    def string(self, key: str, default: Optional[str] = None, *, required: bool = False) -> Optional[str]:
        value = self.config.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            if required:
                raise self.error(key, f"'{key}' is required")
            return default
        return str(value).strip()

    def integer(self, key: str, default: Optional[int] = None, *, required: bool = False, minimum: Optional[int] = None) -> Optional[int]:
        value = self.config.get(key)
        if value is None or value == "":
            if required:
                raise self.error(key, f"'{key}' is required")
            return default
        if isinstance(value, bool):
            raise self.error(key, f"'{key}' must be an integer")
        try:
            parsed = int(str(value).strip())
        except ValueError:
            raise self.error(key, f"'{key}' must be an integer, got {value!r}") from None
        if minimum is not None and parsed < minimum:
            raise self.error(key, f"'{key}' must be >= {minimum}, got {parsed}")
        return parsed

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self.config.get(key)
        if value is None or value == "":
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ("true", "1", "yes", "on"):
            return True
        if text in ("false", "0", "no", "off"):
            return False
        raise self.error(key, f"'{key}' must be a boolean, got {value!r}")

    def choice(
        self,
        key: str,
        default: str,
        allowed: Sequence[str],
        *,
        unsupported: Sequence[str] = (),
        case_sensitive: bool = False,
    ) -> str:
        raw = self.string(key, default) or default
        wanted = raw if case_sensitive else raw.lower()
        for option in allowed:
            if wanted == (option if case_sensitive else option.lower()):
                return option
        for option in unsupported:
            if wanted == (option if case_sensitive else option.lower()):
                raise UnsupportedFeatureError(
                    f"{self.node_type}: {key}={raw} is not supported",
                    details={"node_type": self.node_type, "key": key, "value": raw},
                    hint=f"Use one of: {', '.join(allowed)}",
                )
        raise self.error(key, f"'{key}' must be one of {list(allowed)}, got {raw!r}")

    def names(self, key: str, *, required: bool = False) -> List[str]:
        items = parse_list(self.config.get(key))
        if required and not items:
            raise self.error(key, f"'{key}' is required")
        return items

    def lines(self, key: str, *, required: bool = False) -> List[Any]:
        items = parse_lines(self.config.get(key))
        if required and not items:
            raise self.error(key, f"'{key}' is required")
        return items

    def compile(self, key: str, text: Any) -> CompiledExpression:
        """Compila uma expressão da configuração; falhas viram ConfigurationError."""
        try:
            return compile_expression(str(text))
        except ExpressionError as exc:
            raise self.error(key, f"invalid expression {text!r}: {exc}") from exc

    def expression(self, key: str, *, required: bool = False) -> Optional[CompiledExpression]:
        text = self.string(key, required=required)
        if text is None:
            return None
        return self.compile(key, text)


def strip_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


class RecordNode:
    """
    Implementação padrão do contrato de stage.

    Subclasses declaram `node_type` e sobrescrevem apenas o que diferem:
    `validate` para configuração tipada, `process` para transformação por
    registro, `write` quando precisam do lote completo.
    """

    node_type = ""
    supports_metrics = True
    supports_failure_handling = True
    input_ports: Sequence[str] = ("in",)
    input_variables: Sequence[str] = (INPUT_ITEMS,)

    def validate(self, config: Mapping[str, Any]) -> Any:
        return None

    def read(self, execution: NodeExecution) -> List[Record]:
        return execution.read_inputs(self.input_ports, self.input_variables)

    def process(self, execution: NodeExecution, record: Record) -> Optional[Record]:
        return record

    def write(self, execution: NodeExecution, records: List[Record]) -> int:
        return execution.emit(records)
