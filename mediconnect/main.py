from fastapi import FastAPI

from mediconnect.api.routes import router as api_router
from mediconnect.core.config import get_settings
from mediconnect.core.logging import configure_logging
from mediconnect.repositories.patients import get_patient_repository


def create_app() -> FastAPI:
    """애플리케이션을 생성하고 FastAPI를 설정

    초기 환자 데이터(seed_patients)는 여기서 적재하므로 잘못된 설정은 시작 시점에 실패한다.

    Raises:
        SeedDataError: 초기 환자 데이터가 유효하지 않을 때
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    get_patient_repository()

    app = FastAPI(title="MediConnect", version=settings.version)
    app.include_router(api_router)
    return app


app = create_app()
