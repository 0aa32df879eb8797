# src/routeflow/core/config/merge.py
"""
Utilitário canônico de deep-merge de configuração.

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (sem merge elemento a elemento)
    - escalar → sobrescrita direta
    - None no override → limpa o valor
    - dict vs não-dict, ou escalares de tipos distintos → erro estrutural

Invariantes:
    - A mesma entrada sempre produz a mesma saída
    - Nenhum input é mutado
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre dois dicionários de configuração.

    Usado para aplicar a configuração local do Engine (ex.: `engine.fail_fast`,
    `nodes.<id>.enabled`) sobre os defaults, sem mutar nenhum dos inputs.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se uma mesma chave possuir tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, value in override.items():
        current = result.get(key)
        if key not in result or value is None:
            result[key] = deepcopy(value)
        elif isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, dict) or isinstance(value, dict):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key}': "
                f"{type(current).__name__} vs {type(value).__name__}",
                details={"key": key},
            )
        elif isinstance(value, list) or current is None or type(current) is type(value):
            result[key] = deepcopy(value)
        else:
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key}': "
                f"{type(current).__name__} vs {type(value).__name__}",
                details={"key": key},
            )

    return result
