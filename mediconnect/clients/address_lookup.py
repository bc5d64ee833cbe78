from __future__ import annotations

import asyncio

import httpx

from mediconnect.core.config import AddressLookupConfig, load_app_config
from mediconnect.core.errors import AddressLookupError
from mediconnect.core.logger import log_event
from mediconnect.models.address import AddressData
from mediconnect.utils.normalize import only_digits

MOCK_ADDRESS = AddressData(
    street="Rua das Palmeiras",
    district="Centro",
    city="São Paulo",
    state="SP",
)


async def fetch_address_by_zip_code(
    zip_code: str,
    config: AddressLookupConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AddressData:
    """CEP로 주소를 조회

    Args:
        zip_code: CEP (마스크 허용)
        config: 주소 조회 설정, 없으면 설정 파일 값 사용
        transport: httpx 전송 계층(테스트용)

    Returns:
        주소 데이터

    Raises:
        AddressLookupError: CEP가 8자리가 아니거나 조회 실패 시
    """
    config = config or load_app_config().address_lookup
    cep = only_digits(zip_code)
    if len(cep) != 8:
        raise AddressLookupError("ADDR_INVALID_ZIP", f"CEP는 8자리여야 함: {zip_code}")

    if config.provider == "viacep":
        address = await _fetch_viacep(cep, config, transport)
    else:
        # 외부 API 연동 전 고정 응답
        await asyncio.sleep(config.latency_seconds)
        address = MOCK_ADDRESS.model_copy()

    log_event(
        "address_lookup",
        "INFO",
        None,
        "lookup",
        f"CEP 조회 완료: {cep} ({config.provider})",
    )
    return address


async def _fetch_viacep(
    cep: str,
    config: AddressLookupConfig,
    transport: httpx.AsyncBaseTransport | None,
) -> AddressData:
    """ViaCEP API 조회

    Args:
        cep: 숫자 8자리 CEP
        config: 주소 조회 설정
        transport: httpx 전송 계층

    Returns:
        주소 데이터
    """
    url = f"{config.base_url.rstrip('/')}/{cep}/json/"
    try:
        async with httpx.AsyncClient(
            timeout=config.timeout_seconds, transport=transport
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        log_event(
            "address_lookup_failed",
            "ERROR",
            None,
            "lookup",
            str(exc),
            error_code="ADDR_PROVIDER_FAILED",
        )
        raise AddressLookupError("ADDR_PROVIDER_FAILED", f"CEP 조회 실패: {cep}") from exc

    if not isinstance(data, dict) or data.get("erro"):
        raise AddressLookupError("ADDR_NOT_FOUND", f"존재하지 않는 CEP: {cep}")
    return AddressData(
        street=str(data.get("logradouro", "")),
        district=str(data.get("bairro", "")),
        city=str(data.get("localidade", "")),
        state=str(data.get("uf", "")),
    )
