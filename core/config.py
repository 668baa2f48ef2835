"""
Configuration System - Pydantic Settings с .env поддержкой
"""

from typing import Optional, List
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import ValidationError, field_validator, model_validator

from .exceptions import ConfigError, MissingConfigError


class Config(BaseSettings):
    """Конфигурация Piperika"""

    model_config = SettingsConfigDict(
        env_prefix='PIPERIKA_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Обязательно - Pipelines server
    pipelines_url: str
    token: str
    pipelines_source_id: int
    pipeline_name: str

    # Опционально - UI ссылки (по умолчанию тот же хост)
    ui_url: Optional[str] = None

    # Опционально - remote step, который запускает новый run
    trigger_step_name: str = "trigger_all"

    # Опционально - backoff по умолчанию для всех шагов
    backoff_interval: float = 1.0
    backoff_max_retries: int = 30

    # Опционально - ожидание завершения run (10s * 1080 = 3h)
    wait_interval: float = 10.0
    wait_max_retries: int = 1080

    # Время на создание run после trigger
    trigger_grace_period: float = 3.0

    # Общий дедлайн pipeline
    pipeline_timeout: float = 3 * 60 * 60

    http_timeout: float = 30.0

    log_dir: Optional[str] = None
    # JSON строки в файле лога вместо текста
    log_json: bool = False

    @field_validator('pipelines_url', 'ui_url')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate URL format"""
        if v is None:
            return v
        result = urlparse(v)
        if result.scheme not in ('http', 'https') or not result.netloc:
            raise ValueError(f"URL must be http(s) with a host: {v}")
        return v.rstrip('/')

    @field_validator('pipelines_source_id')
    @classmethod
    def validate_source_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("pipelines_source_id must be positive")
        return v

    @field_validator('pipeline_name', 'trigger_step_name')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator('backoff_max_retries', 'wait_max_retries')
    @classmethod
    def validate_retries(cls, v: int) -> int:
        """Validate retries is positive"""
        if v < 1:
            raise ValueError("max retries must be at least 1")
        return v

    @field_validator('backoff_interval', 'wait_interval', 'trigger_grace_period')
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("interval must not be negative")
        return v

    @field_validator('pipeline_timeout', 'http_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @model_validator(mode='after')
    def use_pipelines_url_as_ui_fallback(self) -> 'Config':
        """Use pipelines_url as fallback for ui_url"""
        if self.ui_url is None:
            self.ui_url = self.pipelines_url
        return self

    @property
    def pipeline_names(self) -> List[str]:
        """Список имён pipeline (через запятую в конфиге)"""
        return [name.strip() for name in self.pipeline_name.split(',') if name.strip()]

    def masked_token(self) -> str:
        """Token for display - only the last 4 chars"""
        if len(self.token) <= 4:
            return "****"
        return "*" * 8 + self.token[-4:]


def load_config(env_file: Optional[str] = None) -> Config:
    """Загрузить конфигурацию

    Raises:
        MissingConfigError: обязательное поле не задано
        ConfigError: значение не прошло валидацию
    """
    try:
        if env_file:
            return Config(_env_file=env_file)
        return Config()
    except ValidationError as e:
        missing = [
            "PIPERIKA_" + str(err["loc"][0]).upper()
            for err in e.errors()
            if err["type"] == "missing" and err["loc"]
        ]
        if missing:
            raise MissingConfigError(f"Missing required settings: {', '.join(missing)}") from e
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
