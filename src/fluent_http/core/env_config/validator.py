"""
Pydantic модели для конфигурации из окружения и файлов.

Плоская структура полей: одно поле = одна переменная окружения
``FLUENT_HTTP_<FIELD>`` или один ключ в JSON/YAML файле.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import (
    ClientSettings,
    RetryConfig,
    SecurityConfig,
    TimeoutConfig,
    TLSConfig,
)
from ..logging.config import LoggingConfig, LogFormat, LogLevel
from ..transport import static_proxy


class ClientConfigFields(BaseModel):
    """
    Поля конфигурации клиента.

    Используется напрямую для файлов (неизвестные ключи - ошибка)
    и как основа ClientEnvSettings для окружения.
    """

    model_config = ConfigDict(extra='forbid')

    # Timeouts
    connect_timeout: float = Field(default=60.0, gt=0)
    read_write_timeout: float = Field(default=60.0, gt=0)

    # Retry: 0 - один запуск, N - до N повторов, -1 - до успеха (нужен retry_deadline)
    retries: int = Field(default=0, ge=-1)
    retry_deadline: Optional[float] = Field(default=None, gt=0)
    backoff_base: float = Field(default=0.0, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1.0)
    backoff_max: float = Field(default=60.0, ge=0)
    backoff_jitter: bool = False

    # TLS / proxy
    verify_ssl: bool = True
    ca_bundle: Optional[str] = None
    proxy_url: Optional[str] = None

    # Behaviour
    enable_cookie: bool = False
    gzip: bool = True
    show_debug: bool = False
    dump_body: bool = True
    user_agent: str = ""
    strict_uploads: bool = False
    max_decompressed_size: int = Field(default=500 * 1024 * 1024, gt=0)

    # Logging (структурный логгер включается только при log_enabled)
    log_enabled: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text", "colored"] = "text"
    log_enable_console: bool = True
    log_enable_file: bool = False
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = True

    @model_validator(mode='after')
    def check_dependencies(self):
        """Проверить зависимые поля."""
        if self.retries == -1 and self.retry_deadline is None:
            raise ValueError("retries=-1 requires retry_deadline")
        if self.log_enabled and self.log_enable_file and not self.log_file_path:
            raise ValueError("log_file_path is required when log_enable_file=True")
        return self

    def to_logging_config(self) -> Optional[LoggingConfig]:
        if not self.log_enabled:
            return None
        return LoggingConfig(
            level=LogLevel(self.log_level),
            format=LogFormat(self.log_format),
            enable_console=self.log_enable_console,
            enable_file=self.log_enable_file,
            file_path=self.log_file_path,
            max_bytes=self.log_max_bytes,
            backup_count=self.log_backup_count,
            enable_correlation_id=self.log_enable_correlation_id,
        )

    def to_client_settings(self) -> ClientSettings:
        """Собрать immutable ClientSettings."""
        tls = None
        if self.ca_bundle or not self.verify_ssl:
            tls = TLSConfig(verify=self.ca_bundle or self.verify_ssl)

        return ClientSettings(
            timeout=TimeoutConfig(connect=self.connect_timeout, read_write=self.read_write_timeout),
            tls=tls,
            proxy=static_proxy(self.proxy_url) if self.proxy_url else None,
            enable_cookie=self.enable_cookie,
            gzip=self.gzip,
            show_debug=self.show_debug,
            dump_body=self.dump_body,
            user_agent=self.user_agent,
            retry=RetryConfig.from_count(
                self.retries,
                deadline=self.retry_deadline,
                backoff_base=self.backoff_base,
                backoff_factor=self.backoff_factor,
                backoff_max=self.backoff_max,
                backoff_jitter=self.backoff_jitter,
            ),
            strict_uploads=self.strict_uploads,
            security=SecurityConfig(max_decompressed_size=self.max_decompressed_size),
            logging=self.to_logging_config(),
        )


class ClientEnvSettings(BaseSettings, ClientConfigFields):
    """
    Конфигурация из переменных окружения.

    Приоритет: явные аргументы > FLUENT_HTTP_* > .env файл > значения по умолчанию.

    Example .env file:
        FLUENT_HTTP_CONNECT_TIMEOUT=5
        FLUENT_HTTP_RETRIES=2
        FLUENT_HTTP_USER_AGENT=inventory-sync/1.4
        FLUENT_HTTP_LOG_ENABLED=true
        FLUENT_HTTP_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix='FLUENT_HTTP_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )
