from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수에서 애플리케이션 설정을 로드"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    environment: Literal["local", "dev", "prod"] = "local"
    version: str = "0.1.0"
    log_level: str = "INFO"
    config_path: str = "mediconnect.yaml"
    duckdb_path: str = "data/telemetry.duckdb"
    telemetry_enabled: bool = True


class AddressLookupConfig(BaseModel):
    """CEP 주소 조회 설정"""

    provider: Literal["mock", "viacep"] = "mock"
    base_url: str = "https://viacep.com.br/ws"
    timeout_seconds: float = 10.0
    latency_seconds: float = 0.5


class PaginationConfig(BaseModel):
    """목록 페이지 설정"""

    default_page_size: int = Field(default=10, gt=0)
    max_page_size: int = Field(default=100, gt=0)


class AppConfig(BaseModel):
    """MediConnect 설정 파일 래퍼"""

    address_lookup: AddressLookupConfig = Field(default_factory=AddressLookupConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    seed_patients: list[dict] = Field(default_factory=list)


@lru_cache
def get_settings() -> Settings:
    """캐시된 설정 인스턴스를 반환"""
    return Settings()


@lru_cache
def load_app_config() -> AppConfig:
    """설정 파일(YAML)에서 애플리케이션 설정 로드

    파일이 없으면 기본값을 사용한다.

    Returns:
        애플리케이션 설정 인스턴스
    """
    settings = get_settings()
    path = Path(settings.config_path)
    if not path.exists():
        return AppConfig()
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return AppConfig(**data)


def reload_app_config() -> AppConfig:
    """설정 캐시를 초기화하고 다시 로드

    Returns:
        애플리케이션 설정 인스턴스
    """
    load_app_config.cache_clear()
    return load_app_config()
