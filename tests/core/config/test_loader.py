# tests/core/config/test_loader.py
"""
Testes do carregador de configuração (load_config).

Os testes asseguram que:
- o arquivo defaults é obrigatório
- o arquivo local é opcional
- formatos não suportados são rejeitados
- estruturas inválidas são detectadas precocemente
- a configuração final é corretamente resolvida

Decisões arquiteturais:
    - Arquivos são criados em `tmp_path`, nunca no repositório
    - Erros são tipados e derivam de ConfigurationError

Este módulo existe para garantir segurança,
previsibilidade e confiabilidade no carregamento de configuração.
"""

import json
from pathlib import Path

import pytest

try:
    from routeflow.core.config.loader import load_config
    from routeflow.core.config.errors import (
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        UnsupportedConfigFormatError,
    )
    from routeflow.core.exceptions import ConfigurationError
except Exception as e:  # noqa: BLE001
    load_config = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Falha imediatamente quando o loader ou suas exceções não podem ser importados.

    Invariantes:
        - Se os módulos existem, a função não produz efeitos colaterais
        - Não tenta fallback nem implementação alternativa
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing loader/errors modules. Implement:\n"
            "- src/routeflow/core/config/loader.py (load_config)\n"
            "- src/routeflow/core/config/errors.py (typed exceptions)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_missing_defaults_raises(tmp_path: Path):
    _require_imports()
    with pytest.raises(DefaultsNotFoundError) as exc_info:
        load_config(defaults_path=str(tmp_path / "defaults.yaml"))

    assert isinstance(exc_info.value, ConfigurationError)


def test_missing_local_is_ok(tmp_path: Path, engine_config_defaults_yaml):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(engine_config_defaults_yaml, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "local.yaml"))

    assert out["engine"]["fail_fast"] is True
    assert out["nodes"]["audit"]["enabled"] is True


def test_local_overrides_defaults(tmp_path: Path, engine_config_defaults_yaml, engine_config_local_yaml):
    """
    Verifica que overrides locais têm prioridade sobre os defaults.

    Invariantes:
        - Chaves sobrescritas refletem o local
        - Chaves não sobrescritas são preservadas
    """
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    local = tmp_path / "local.yml"
    defaults.write_text(engine_config_defaults_yaml, encoding="utf-8")
    local.write_text(engine_config_local_yaml, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(local))

    assert out["engine"]["fail_fast"] is False
    assert out["nodes"]["audit"]["enabled"] is False
    assert out["nodes"]["enrich"]["enabled"] is True


def test_json_defaults_supported(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.json"
    defaults.write_text(json.dumps({"engine": {"fail_fast": False}}), encoding="utf-8")

    assert load_config(defaults_path=str(defaults)) == {"engine": {"fail_fast": False}}


def test_empty_yaml_is_empty_dict(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("", encoding="utf-8")

    assert load_config(defaults_path=str(defaults)) == {}


def test_unsupported_format_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.toml"
    defaults.write_text("[engine]\nfail_fast = true\n", encoding="utf-8")

    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(defaults))


def test_invalid_root_type_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(defaults))
