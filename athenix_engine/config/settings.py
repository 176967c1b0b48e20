from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_LOG_LEVELS: tuple[str, ...] = ('TRACE', 'DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL')


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_prefix='ATHENIX_',
        case_sensitive=False,
        extra='ignore',
    )

    min_risk_reward: float = Field(default=3.0, ge=1.0, le=20.0)
    min_total_score: int = Field(default=20, ge=20, le=40)
    engine_version: str = Field(default='1.0.0')

    log_level: str = Field(default='INFO')
    log_json: bool = Field(default=True)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in ALLOWED_LOG_LEVELS:
            raise ValueError(f'log_level invalid: {normalized}. Allowed: {", ".join(ALLOWED_LOG_LEVELS)}')
        return normalized

    @field_validator('engine_version')
    @classmethod
    def validate_engine_version(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('engine_version must not be empty')
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return EngineSettings()
