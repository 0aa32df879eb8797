# src/routeflow/core/config/loader.py
"""
Loader canônico de configuração do RouteFlow.

Este módulo é responsável por carregar, validar estruturalmente e resolver
dois tipos de documento declarativo:

    - a configuração do Engine (defaults obrigatórios + override local opcional)
    - definições de workflow (nós e arestas)

Responsabilidades do módulo:
    - Carregar arquivos em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Resolver a configuração final via deep-merge determinístico
    - Converter documentos de workflow em `WorkflowDefinition`

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - Erros estruturais são tratados como falhas fatais (`ConfigurationError`)
    - A mesma entrada sempre produz a mesma configuração final

Limites explícitos:
    - Não valida configuração específica de tipos de nó
    - Não planeja nem executa workflows

Este módulo existe para garantir resolução previsível,
determinística e segura da configuração.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import json
import yaml  # PyYAML

from routeflow.core.model import WorkflowDefinition

from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidWorkflowError,
    UnsupportedConfigFormatError,
)


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(
            f"Arquivo de configuração não encontrado: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix}",
            details={"path": str(path)},
            hint="Use .yaml, .yml ou .json",
        )

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}",
            details={"path": str(path)},
        )

    return data


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva do Engine.

    Política de resolução:
        - O arquivo de defaults é obrigatório
        - O arquivo local é opcional (ignorado se não existir)
        - Quando presente, o local sempre tem prioridade sobre defaults

    Chaves reconhecidas pelo Engine:
        - engine.fail_fast (bool)
        - nodes.<node_id>.enabled (bool)

    Args:
        defaults_path (str): Caminho para o arquivo de configuração base.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    defaults = _load_file(Path(defaults_path))

    effective = defaults
    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(defaults, _load_file(local_file))

    return effective


def load_workflow(path: str) -> WorkflowDefinition:
    """
    Carrega uma definição de workflow (YAML/JSON) do disco.

    Formato esperado:

        id: pedidos
        nodes:
          - {id: src, type: Start}
          - {id: check, type: Decision, config: {condition: "amount > 100"}}
        edges:
          - {sourceNodeId: src, targetNodeId: check}

    Raises:
        InvalidWorkflowError: Se o arquivo não existir, não puder ser
            interpretado como YAML/JSON ou se a estrutura de nós/arestas
            for inválida.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
    """
    workflow_path = Path(path)
    if not workflow_path.exists():
        raise InvalidWorkflowError(
            f"Arquivo de workflow não encontrado: {workflow_path}",
            details={"path": str(workflow_path)},
        )
    try:
        raw = _load_file(workflow_path)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise InvalidWorkflowError(
            f"Arquivo de workflow malformado: {workflow_path}",
            details={"path": str(workflow_path), "error": str(e)},
        ) from e
    except InvalidConfigRootTypeError as e:
        raise InvalidWorkflowError(
            f"Workflow deve ser um mapeamento: {workflow_path}",
            details={"path": str(workflow_path)},
        ) from e
    return WorkflowDefinition.from_dict(raw)
