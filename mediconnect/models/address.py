from pydantic import BaseModel, Field


class AddressData(BaseModel):
    """CEP 조회 결과 주소"""

    street: str = Field(..., description="거리")
    district: str = Field(..., description="구역")
    city: str = Field(..., description="도시")
    state: str = Field(..., description="주(UF)")

    def to_patient_fields(self) -> dict:
        """환자 주소 필드로 변환 (폼 자동 입력용)"""
        return {
            "address_street": self.street,
            "address_district": self.district,
            "address_city": self.city,
            "address_state": self.state,
        }


class AddressLookupResult(AddressData):
    """CEP 조회 응답"""

    zip_code: str = Field(..., description="CEP(숫자만)")
    zip_code_masked: str = Field(..., description="CEP(00000-000)")
    patient_fields: dict[str, str] = Field(..., description="환자 주소 필드 자동 입력값")
