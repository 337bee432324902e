"""
Cargador de configuración con deep merge.

Orden de precedencia (de menor a mayor):
1. Defaults (definidos en los schemas Pydantic)
2. Archivo YAML
3. Variables de entorno
4. Argumentos CLI

El merge es recursivo para preservar las claves anidadas en todos los niveles.
"""

import os
from pathlib import Path
from typing import Any

import yaml

from .schema import AppConfig


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge recursivo de diccionarios.

    Args:
        base: Diccionario base
        override: Diccionario que sobreescribe valores del base

    Returns:
        Nuevo diccionario con valores merged. Override gana en conflictos de hojas.

    Example:
        >>> deep_merge({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"b": 99}, "e": 4})
        {'a': {'b': 99, 'c': 2}, 'd': 3, 'e': 4}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Carga configuración desde archivo YAML.

    Args:
        config_path: Path al archivo YAML, o None para omitir

    Returns:
        Diccionario con la configuración, o dict vacío si no hay archivo

    Raises:
        FileNotFoundError: Si config_path no existe
        ValueError: Si el archivo no contiene un mapping
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")
    return data


def load_env_overrides() -> dict[str, Any]:
    """Carga overrides desde variables de entorno.

    Variables soportadas:
        TAGTREE_VAULT: sobreescribe vault.root
        TAGTREE_LOG_LEVEL: sobreescribe logging.level
        TAGTREE_DEFAULT_VIEW: sobreescribe default_view
    """
    overrides: dict[str, Any] = {}

    if vault := os.environ.get("TAGTREE_VAULT"):
        overrides.setdefault("vault", {})["root"] = vault

    if log_level := os.environ.get("TAGTREE_LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level.lower()

    if default_view := os.environ.get("TAGTREE_DEFAULT_VIEW"):
        overrides["default_view"] = default_view

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Aplica overrides desde argumentos CLI.

    Args:
        config_dict: Configuración base (ya merged con YAML y env)
        cli_args: Diccionario con argumentos CLI

    Returns:
        Configuración con overrides de CLI aplicados
    """
    overrides: dict[str, Any] = {}

    if cli_args.get("vault"):
        overrides.setdefault("vault", {})["root"] = str(cli_args["vault"])

    if cli_args.get("log_level"):
        overrides.setdefault("logging", {})["level"] = cli_args["log_level"]

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = str(cli_args["log_file"])

    if cli_args.get("verbose") is not None:
        overrides.setdefault("logging", {})["verbose"] = cli_args["verbose"]

    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Carga y valida la configuración completa de la aplicación.

    Args:
        config_path: Path al archivo YAML de configuración
        cli_args: Diccionario con argumentos CLI

    Returns:
        AppConfig validado

    Raises:
        FileNotFoundError: Si config_path no existe
        ValidationError: Si la configuración merged es inválida
    """
    cli_args = cli_args or {}

    yaml_config = load_yaml_config(config_path)
    merged = deep_merge(yaml_config, load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args)

    # Pydantic completa los defaults
    return AppConfig(**merged)
