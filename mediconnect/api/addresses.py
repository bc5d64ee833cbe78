from fastapi import APIRouter, HTTPException, status

from mediconnect.clients.address_lookup import fetch_address_by_zip_code
from mediconnect.core.errors import AddressLookupError
from mediconnect.models.address import AddressLookupResult
from mediconnect.utils.normalize import mask_cep, only_digits

router = APIRouter()

_STATUS_BY_CODE = {
    "ADDR_INVALID_ZIP": 422,
    "ADDR_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ADDR_PROVIDER_FAILED": status.HTTP_502_BAD_GATEWAY,
}


@router.get("/addresses/{zip_code}", response_model=AddressLookupResult)
async def lookup_address(zip_code: str) -> AddressLookupResult:
    """CEP 주소 조회

    Args:
        zip_code: CEP (마스크 허용)

    Returns:
        주소 데이터와 환자 주소 필드 자동 입력값

    Raises:
        HTTPException: 조회 실패 시
    """
    try:
        address = await fetch_address_by_zip_code(zip_code)
    except AddressLookupError as exc:
        raise HTTPException(
            status_code=_STATUS_BY_CODE.get(exc.code, status.HTTP_502_BAD_GATEWAY),
            detail={"error_code": exc.code, "message": exc.message},
        ) from exc
    return AddressLookupResult(
        **address.model_dump(),
        zip_code=only_digits(zip_code),
        zip_code_masked=mask_cep(zip_code),
        patient_fields=address.to_patient_fields(),
    )
