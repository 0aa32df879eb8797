# src/routeflow/core/keys.py
"""
Chaves compostas e utilitários de conversão compartilhados pelos nós.

Chave composta:
    Valores dos campos-chave convertidos para texto e unidos por `|`.
    Campos ausentes ou nulos viram o literal `"null"`. A conversão segue
    a representação textual histórica dos workflows (booleanos em
    minúsculas, `null` para ausência), garantindo compatibilidade entre
    execuções e com dados já particionados.

Limitação conhecida:
    A chave colide quando valores contêm `|` ou o texto `null`
    (ex.: `{"a": "x|y"}` e `{"a": "x", "b": "y"}`). O comportamento é
    mantido por compatibilidade.

Hash estável:
    `stable_hash` reproduz o hash de string de 32 bits com sinal
    (`h = 31 * h + code_unit`), independente de processo, ao contrário
    de `hash()` do Python (randomizado por PYTHONHASHSEED).
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence


NULL_LITERAL = "null"


def stringify(value: Any) -> str:
    """Representação textual de um valor de campo para chaves e rótulos."""
    if value is None:
        return NULL_LITERAL
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def composite_key(record: Mapping[str, Any], fields: Sequence[str]) -> str:
    """Valores de `fields` em `record`, unidos por `|` (`"null"` para ausentes)."""
    return "|".join(stringify(record.get(f)) for f in fields)


def stable_hash(text: str) -> int:
    """Hash de string de 32 bits com sinal, determinístico entre processos."""
    data = text.encode("utf-16-be")
    h = 0
    for i in range(0, len(data), 2):
        unit = (data[i] << 8) | data[i + 1]
        h = (31 * h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def parse_list(value: Any) -> List[str]:
    """Aceita lista ou string separada por vírgulas; descarta itens vazios."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [stringify(v) for v in value]
    else:
        items = [stringify(value)]
    return [item.strip() for item in items if item.strip()]


def parse_lines(value: Any) -> List[Any]:
    """Aceita lista ou string multi-linha; descarta linhas vazias."""
    if value is None:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def to_long(value: Any) -> Optional[int]:
    """Inteiro a partir de número ou texto; None quando não numérico.

    Números fracionários são truncados. Booleanos não são numéricos.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None
