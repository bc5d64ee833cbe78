from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from mediconnect.core.config import load_app_config
from mediconnect.core.errors import PatientNotFoundError
from mediconnect.models.patient import (
    PatientCreate,
    PatientOptions,
    PatientPage,
    PatientUpdate,
    PatientView,
)
from mediconnect.repositories.patients import PatientRepository, get_patient_repository

router = APIRouter()


@router.get("/patients", response_model=PatientPage)
async def list_patients(
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    search: str = "",
    repository: PatientRepository = Depends(get_patient_repository),
) -> PatientPage:
    """환자 목록 조회

    Args:
        page: 페이지(1부터)
        page_size: 페이지 크기 (없으면 설정 기본값, 최대값으로 제한)
        search: 이름 또는 CPF 검색어
        repository: 환자 저장소

    Returns:
        목록 조회 결과
    """
    pagination = load_app_config().pagination
    size = min(page_size or pagination.default_page_size, pagination.max_page_size)
    result = await repository.list(page=page, page_size=size, search=search)
    return PatientPage.from_result(result)


@router.get("/patients/options", response_model=PatientOptions)
def patient_options() -> PatientOptions:
    """폼 선택지(성별, 혼인 상태, 민족) 조회"""
    return PatientOptions()


@router.get("/patients/{patient_id}", response_model=PatientView)
async def get_patient(
    patient_id: str,
    repository: PatientRepository = Depends(get_patient_repository),
) -> PatientView:
    """환자 단건 조회

    Raises:
        HTTPException: 환자가 없을 때 404
    """
    patient = await repository.get_by_id(patient_id)
    if patient is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="환자 없음")
    return PatientView.from_record(patient)


@router.post("/patients", response_model=PatientView, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: PatientCreate,
    repository: PatientRepository = Depends(get_patient_repository),
) -> PatientView:
    """환자 생성"""
    return PatientView.from_record(await repository.create(payload))


@router.patch("/patients/{patient_id}", response_model=PatientView)
async def update_patient(
    patient_id: str,
    body: dict = Body(...),
    repository: PatientRepository = Depends(get_patient_repository),
) -> PatientView:
    """환자 부분 수정

    경로의 ID가 본문의 id보다 우선한다.

    Args:
        patient_id: 환자 식별자
        body: 수정할 필드
        repository: 환자 저장소

    Returns:
        병합된 환자 레코드

    Raises:
        HTTPException: 환자가 없을 때 404
    """
    try:
        payload = PatientUpdate(**{**body, "id": patient_id})
    except ValidationError as exc:
        raise RequestValidationError(
            exc.errors(include_url=False, include_context=False)
        ) from exc
    try:
        updated = await repository.update(payload)
    except PatientNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=exc.message
        ) from exc
    return PatientView.from_record(updated)


@router.delete("/patients/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: str,
    repository: PatientRepository = Depends(get_patient_repository),
) -> Response:
    """환자 삭제 (없는 ID도 204)"""
    await repository.delete(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
