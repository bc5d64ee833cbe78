from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

from mediconnect.core.errors import ParseError
from mediconnect.utils.normalize import (
    blank_to_none,
    digits_or_none,
    mask_cep,
    mask_cpf,
    mask_phone,
    only_digits,
)
from mediconnect.utils.parsing import parse_birth_date

# 폼 선택지 (gender는 레거시 호환을 위해 자유 텍스트로 저장)
GENDERS = ("Masculino", "Feminino", "Outro", "Prefiro não informar")
MARITAL_STATUSES = (
    "Solteiro(a)",
    "Casado(a)",
    "Divorciado(a)",
    "Viúvo(a)",
    "União Estável",
    "Outro",
)
ETHNICITIES = ("Branca", "Preta", "Parda", "Amarela", "Indígena", "Outra")

OPTIONAL_TEXT_FIELDS = (
    "photo_url",
    "social_name",
    "rg",
    "other_document_type",
    "other_document_number",
    "gender",
    "ethnicity",
    "race",
    "nationality",
    "birth_city",
    "birth_state",
    "profession",
    "marital_status",
    "mother_name",
    "father_name",
    "responsible_name",
    "legacy_code",
    "address_street",
    "address_number",
    "address_complement",
    "address_district",
    "address_city",
    "address_state",
    "observations",
)
OPTIONAL_DIGIT_FIELDS = ("phone_secondary", "address_zip_code")
SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})


class PatientFields(BaseModel):
    """환자 선택 항목 (저장 레코드와 입력 스키마 공통)"""

    # 개인 정보
    photo_url: str | None = Field(default=None, description="사진 URL")
    social_name: str | None = Field(default=None, description="사회적 이름")
    rg: str | None = Field(default=None, description="RG 번호")
    other_document_type: str | None = Field(default=None, description="기타 신분증 종류")
    other_document_number: str | None = Field(default=None, description="기타 신분증 번호")
    gender: str | None = Field(default=None, description="성별")
    ethnicity: str | None = Field(default=None, description="민족")
    race: str | None = Field(default=None, description="인종")
    nationality: str | None = Field(default=None, description="국적")
    birth_city: str | None = Field(default=None, description="출생 도시")
    birth_state: str | None = Field(default=None, description="출생 주(UF)")
    profession: str | None = Field(default=None, description="직업")
    marital_status: str | None = Field(default=None, description="혼인 상태")
    mother_name: str | None = Field(default=None, description="모친 이름")
    father_name: str | None = Field(default=None, description="부친 이름")
    responsible_name: str | None = Field(default=None, description="보호자 이름")
    responsible_cpf: str | None = Field(default=None, description="보호자 CPF(11자리)")
    legacy_code: str | None = Field(default=None, description="레거시 시스템 코드")
    # 연락처
    email: str | None = Field(default=None, description="이메일")
    phone_secondary: str | None = Field(default=None, description="보조 전화(숫자만)")
    # 주소
    address_zip_code: str | None = Field(default=None, description="CEP(숫자만)")
    address_street: str | None = Field(default=None, description="거리")
    address_number: str | None = Field(default=None, description="번지")
    address_complement: str | None = Field(default=None, description="상세 주소")
    address_district: str | None = Field(default=None, description="구역")
    address_city: str | None = Field(default=None, description="도시")
    address_state: str | None = Field(default=None, description="주(UF)")
    # 관찰 및 보조 데이터
    observations: str | None = Field(default=None, description="관찰 사항")
    behavior_score: float | None = Field(default=None, description="행동 점수")
    absenteeism_risk_score: float | None = Field(default=None, description="결석 위험 점수")
    communication_preferences: dict[str, bool] | None = Field(
        default=None, description="채널별 수신 동의"
    )


class Patient(PatientFields):
    """저장된 환자 레코드"""

    id: str = Field(..., description="환자 식별자")
    full_name: str = Field(..., description="성명")
    cpf: str = Field(..., description="CPF(숫자 11자리)")
    phone_primary: str = Field(..., description="주 전화(숫자만)")
    birth_date: str = Field(..., description="생년월일(yyyy-MM-dd)")
    created_at: datetime | None = Field(default=None, description="생성 시각(UTC)")
    updated_at: datetime | None = Field(default=None, description="수정 시각(UTC)")


class PatientPayload(PatientFields):
    """입력 검증 규칙 (폼 스키마와 동일)"""

    email: EmailStr | None = Field(default=None, description="이메일")

    @field_validator(*OPTIONAL_TEXT_FIELDS, "email", mode="before")
    @classmethod
    def _blank_text(cls, value: object) -> object:
        if value is None or isinstance(value, str):
            return blank_to_none(value)
        return value

    @field_validator(*OPTIONAL_DIGIT_FIELDS, mode="before")
    @classmethod
    def _optional_digits(cls, value: object) -> str | None:
        return digits_or_none(value)

    @field_validator("responsible_cpf", mode="before")
    @classmethod
    def _responsible_cpf(cls, value: object) -> str | None:
        digits = digits_or_none(value)
        if digits is not None and len(digits) != 11:
            raise ValueError("보호자 CPF는 11자리여야 함")
        return digits

    @field_validator("full_name", mode="before", check_fields=False)
    @classmethod
    def _full_name(cls, value: object) -> str:
        text = blank_to_none(value)
        if text is None:
            raise ValueError("이름이 필요함")
        return text

    @field_validator("cpf", mode="before", check_fields=False)
    @classmethod
    def _cpf(cls, value: object) -> str:
        if value is None:
            raise ValueError("CPF가 필요함")
        digits = only_digits(value)
        if len(digits) != 11:
            raise ValueError("CPF는 11자리여야 함")
        return digits

    @field_validator("phone_primary", mode="before", check_fields=False)
    @classmethod
    def _phone_primary(cls, value: object) -> str:
        if value is None:
            raise ValueError("주 전화번호가 필요함")
        digits = only_digits(value)
        if len(digits) < 10:
            raise ValueError("전화번호가 유효하지 않음")
        return digits

    @field_validator("birth_date", mode="before", check_fields=False)
    @classmethod
    def _birth_date(cls, value: object) -> str:
        try:
            return parse_birth_date(value)
        except ParseError as exc:
            raise ValueError(exc.message) from exc


class PatientCreate(PatientPayload):
    """환자 생성 페이로드 (id와 타임스탬프는 시스템이 부여)"""

    full_name: str
    cpf: str
    phone_primary: str
    birth_date: str


class PatientUpdate(PatientPayload):
    """환자 부분 수정 페이로드

    명시적으로 전달된 필드(model_fields_set)만 병합된다.
    """

    id: str = Field(..., description="수정 대상 환자 식별자")
    full_name: str | None = None
    cpf: str | None = None
    phone_primary: str | None = None
    birth_date: str | None = None

    def changes(self) -> dict:
        """병합할 필드 딕셔너리 (id 제외)"""
        fields = self.model_fields_set - SYSTEM_FIELDS
        return self.model_dump(include=fields)


class ListPatientsParams(BaseModel):
    """목록 조회 파라미터"""

    page: int = Field(default=1, ge=1, description="페이지(1부터)")
    page_size: int = Field(default=10, ge=1, description="페이지 크기")
    search: str = Field(default="", description="이름 또는 CPF 검색어")

    @field_validator("search", mode="before")
    @classmethod
    def _search(cls, value: object) -> str:
        return "" if value is None else str(value)


class ListPatientsResult(BaseModel):
    """목록 조회 결과"""

    records: list[Patient]
    total_count: int
    page: int
    page_size: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_count / self.page_size))


class PatientView(Patient):
    """화면 표시용 환자 레코드 (마스크 필드 포함)"""

    @computed_field
    @property
    def cpf_masked(self) -> str:
        return mask_cpf(self.cpf)

    @computed_field
    @property
    def phone_primary_masked(self) -> str:
        return mask_phone(self.phone_primary)

    @computed_field
    @property
    def phone_secondary_masked(self) -> str | None:
        return mask_phone(self.phone_secondary) if self.phone_secondary else None

    @computed_field
    @property
    def address_zip_code_masked(self) -> str | None:
        return mask_cep(self.address_zip_code) if self.address_zip_code else None

    @classmethod
    def from_record(cls, record: Patient) -> "PatientView":
        return cls(**record.model_dump())


class PatientPage(BaseModel):
    """목록 응답 (표시용 레코드와 페이지 정보)"""

    records: list[PatientView]
    total_count: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def from_result(cls, result: ListPatientsResult) -> "PatientPage":
        return cls(
            records=[PatientView.from_record(record) for record in result.records],
            total_count=result.total_count,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
        )


class PatientOptions(BaseModel):
    """폼 선택지 목록"""

    genders: list[str] = Field(default_factory=lambda: list(GENDERS))
    marital_statuses: list[str] = Field(default_factory=lambda: list(MARITAL_STATUSES))
    ethnicities: list[str] = Field(default_factory=lambda: list(ETHNICITIES))
