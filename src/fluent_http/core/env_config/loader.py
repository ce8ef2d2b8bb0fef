"""
Загрузка ClientSettings из окружения и из JSON/YAML файлов.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import ClientSettings
from ..exceptions import ConfigurationError
from .validator import ClientConfigFields, ClientEnvSettings

logger = logging.getLogger(__name__)


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> ClientSettings:
    """
    Загрузить ClientSettings из FLUENT_HTTP_* переменных и .env файла.

    Args:
        env_file: Путь к .env файлу (по умолчанию ./.env, если есть)
        **overrides: Значения полей ClientEnvSettings с наивысшим приоритетом

    Raises:
        ConfigurationError: Невалидные значения

    Example:
        >>> settings = load_from_env(retries=2)
        >>> client = HTTPClient("http://api.test", settings=settings)
    """
    kwargs: Dict[str, Any] = dict(overrides)
    if env_file is not None:
        kwargs['_env_file'] = env_file

    try:
        env_settings = ClientEnvSettings(**kwargs)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}")

    return env_settings.to_client_settings()


def _read_file(path: Path) -> Any:
    suffix = path.suffix.lower()
    text = path.read_text(encoding='utf-8')

    if suffix == '.json':
        try:
            return json.loads(text)
        except ValueError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}")

    if suffix in ('.yaml', '.yml'):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

    raise ConfigurationError(f"Unsupported config format '{suffix}' ({path}), use .json/.yaml/.yml")


def load_from_file(path: Union[str, Path]) -> ClientSettings:
    """
    Загрузить ClientSettings из JSON или YAML файла.

    Ключи - те же поля, что и у переменных окружения (без префикса).
    Окружение не учитывается.

    Example config.yaml:
        connect_timeout: 5
        retries: 3
        user_agent: inventory-sync/1.4

    Raises:
        ConfigurationError: Файл не найден, не читается или невалиден
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        data = _read_file(path)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    try:
        fields = ClientConfigFields.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}")

    logger.debug(f"Loaded client settings from {path}")
    return fields.to_client_settings()
