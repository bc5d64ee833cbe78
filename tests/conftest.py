import pytest

from mediconnect.core.config import get_settings, load_app_config
from mediconnect.core.telemetry import TelemetryStore
from mediconnect.repositories.patients import get_patient_repository


def _clear_caches() -> None:
    get_settings.cache_clear()
    load_app_config.cache_clear()
    get_patient_repository.cache_clear()
    TelemetryStore.reset()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """테스트마다 설정 파일과 텔레메트리 DB를 임시 경로로 분리"""
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "mediconnect.yaml"))
    monkeypatch.setenv("DUCKDB_PATH", str(tmp_path / "telemetry.duckdb"))
    monkeypatch.setenv("TELEMETRY_ENABLED", "true")
    _clear_caches()
    yield tmp_path
    _clear_caches()


@pytest.fixture
def ana_payload() -> dict:
    return {
        "full_name": "Ana Lima",
        "cpf": "111.222.333-44",
        "phone_primary": "(11) 99999-8888",
        "birth_date": "1990-05-10",
    }
