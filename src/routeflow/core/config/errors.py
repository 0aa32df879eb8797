# src/routeflow/core/config/errors.py
"""
Exceções canônicas da camada de configuração do RouteFlow.

Este módulo define a hierarquia de exceções levantadas durante o
carregamento de arquivos de configuração, a resolução de overrides e a
leitura de definições de workflow.

Todas as exceções aqui definidas herdam de `ConfigurationError`, de modo
que o Engine as trata exatamente como qualquer outra falha de
configuração: fatais e detectadas antes da execução do primeiro stage.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - `ConfigError` é um `ConfigurationError`
    - Nenhuma exceção representa erro de execução de nó

Limites explícitos:
    - Não executa workflow
    - Não realiza fallback ou recovery
"""

from __future__ import annotations

from dataclasses import dataclass

from routeflow.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class ConfigError(ConfigurationError):
    """
    Exceção base para erros de arquivos e estruturas de configuração.

    Permite captura genérica de falhas de load/merge sem confundi-las
    com erros de validação de nós individuais.
    """


@dataclass(frozen=True)
class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração base (defaults) ou de workflow não encontrado.

    Decisões arquiteturais:
        - O arquivo de defaults é obrigatório
        - Nenhum default implícito é criado
    """


@dataclass(frozen=True)
class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


@dataclass(frozen=True)
class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz do arquivo não é um mapa chave-valor (`dict`)."""


@dataclass(frozen=True)
class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"fail_fast": true}}
        - override: {"engine": "DEBUG"}
    """


@dataclass(frozen=True)
class InvalidWorkflowError(ConfigError):
    """
    Definição de workflow estruturalmente inválida.

    Exemplos:
        - `nodes` ausente ou não-lista
        - nó sem `id` ou `type`
        - aresta sem origem ou destino
    """
