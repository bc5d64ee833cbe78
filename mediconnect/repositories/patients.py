"""환자 저장소

메모리 저장소(InMemoryPatientStore)를 주입받아 목록/조회/생성/수정/삭제를 제공한다.
실제 데이터베이스로 교체할 때도 PatientRepository의 계약은 그대로 유지한다.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from functools import lru_cache
from typing import Iterable

from pydantic import ValidationError

from mediconnect.core.config import load_app_config
from mediconnect.core.errors import PatientNotFoundError, SeedDataError
from mediconnect.core.logger import log_event
from mediconnect.models.patient import (
    ListPatientsParams,
    ListPatientsResult,
    Patient,
    PatientCreate,
    PatientUpdate,
)
from mediconnect.utils.normalize import only_digits
from mediconnect.utils.parsing import sort_timestamp, utc_now


class InMemoryPatientStore:
    """프로세스 수명 동안만 유지되는 환자 저장소"""

    def __init__(self) -> None:
        self._records: dict[str, Patient] = {}
        self._issued_ids: set[str] = set()

    def all(self) -> list[Patient]:
        """삽입 순서대로 전체 레코드를 반환"""
        return list(self._records.values())

    def get(self, patient_id: str) -> Patient | None:
        return self._records.get(patient_id)

    def put(self, record: Patient) -> None:
        self._issued_ids.add(record.id)
        self._records[record.id] = record

    def remove(self, patient_id: str) -> bool:
        """레코드 삭제

        Returns:
            삭제 여부
        """
        return self._records.pop(patient_id, None) is not None

    def issue_id(self) -> str:
        """한 번도 발급되지 않은 새 ID를 발급 (삭제된 ID도 재사용하지 않음)"""
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def reserve_id(self, patient_id: str) -> bool:
        """외부에서 지정한 ID를 발급 목록에 등록

        Returns:
            등록 여부 (이미 발급된 ID면 False)
        """
        if patient_id in self._issued_ids:
            return False
        self._issued_ids.add(patient_id)
        return True

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


def matches_search(patient: Patient, term: str) -> bool:
    """이름(대소문자 무시) 또는 CPF(숫자 기준) 부분 일치 여부

    Args:
        patient: 환자 레코드
        term: 검색어

    Returns:
        일치 여부
    """
    if not term:
        return True
    if term.lower() in patient.full_name.lower():
        return True
    digits = only_digits(term)
    # 숫자가 없는 검색어(예: "maria")는 CPF와 비교하지 않는다.
    # 빈 문자열은 모든 CPF의 부분 문자열이므로 비교하면 모든 환자가 일치해 버림
    return bool(digits) and digits in only_digits(patient.cpf)


class PatientRepository:
    """환자 레코드의 유일한 소유자"""

    def __init__(self, store: InMemoryPatientStore | None = None) -> None:
        self.store = store if store is not None else InMemoryPatientStore()

    async def list(
        self, page: int = 1, page_size: int = 10, search: str | None = ""
    ) -> ListPatientsResult:
        """환자 목록을 검색/정렬/페이지 처리하여 조회

        생성 시각 내림차순으로 정렬하며, 생성 시각이 없는 레코드는 가장 오래된 것으로 본다.

        Args:
            page: 페이지(1부터)
            page_size: 페이지 크기
            search: 이름 또는 CPF 검색어

        Returns:
            현재 페이지 레코드와 필터링된 전체 건수
        """
        params = ListPatientsParams(page=page, page_size=page_size, search=search)
        ordered = sorted(
            self.store.all(),
            key=lambda record: sort_timestamp(record.created_at),
            reverse=True,
        )
        # reverse=True도 동일 키의 삽입 순서를 유지함
        filtered = [record for record in ordered if matches_search(record, params.search)]
        start = (params.page - 1) * params.page_size
        return ListPatientsResult(
            records=filtered[start : start + params.page_size],
            total_count=len(filtered),
            page=params.page,
            page_size=params.page_size,
        )

    async def get_by_id(self, patient_id: str) -> Patient | None:
        """ID로 환자를 조회, 없으면 None"""
        return self.store.get(patient_id)

    async def create(self, payload: PatientCreate) -> Patient:
        """환자 생성

        CPF 중복 검사는 하지 않는다 (상위 검증 계층 책임).

        Args:
            payload: 검증된 생성 페이로드

        Returns:
            ID와 타임스탬프가 부여된 저장 레코드
        """
        now = utc_now()
        record = Patient(
            **payload.model_dump(),
            id=self.store.issue_id(),
            created_at=now,
            updated_at=now,
        )
        self.store.put(record)
        log_event("patient_created", "INFO", record.id, "create", "환자 생성")
        return record

    async def update(self, payload: PatientUpdate) -> Patient:
        """전달된 필드만 기존 레코드에 병합

        Args:
            payload: id가 포함된 부분 수정 페이로드

        Returns:
            병합된 저장 레코드

        Raises:
            PatientNotFoundError: 해당 ID의 레코드가 없을 때
        """
        existing = self.store.get(payload.id)
        if existing is None:
            log_event(
                "patient_update_failed",
                "WARNING",
                payload.id,
                "update",
                "수정 대상 환자 없음",
                error_code="PATIENT_NOT_FOUND",
            )
            raise PatientNotFoundError(payload.id)

        changes = payload.changes()
        now = utc_now()
        if existing.updated_at is not None:
            previous = sort_timestamp(existing.updated_at)
            if now <= previous:
                now = previous + timedelta(microseconds=1)
        updated = existing.model_copy(update={**changes, "updated_at": now})
        self.store.put(updated)
        log_event(
            "patient_updated",
            "INFO",
            updated.id,
            "update",
            f"환자 수정: {', '.join(sorted(changes)) or '-'}",
            record_count=len(changes),
        )
        return updated

    async def delete(self, patient_id: str) -> None:
        """환자 삭제 (없는 ID도 오류 없이 무시)"""
        removed = self.store.remove(patient_id)
        if removed:
            log_event("patient_deleted", "INFO", patient_id, "delete", "환자 삭제")

    def seed(self, raw_records: Iterable[dict]) -> list[Patient]:
        """설정 파일의 초기 환자 데이터를 적재

        타임스탬프가 없는 레거시 레코드는 그대로 둔다 (목록에서 가장 오래된 것으로 정렬됨).
        하나라도 유효하지 않으면 아무것도 적재하지 않는다.

        Args:
            raw_records: 원본 환자 페이로드 목록

        Returns:
            적재된 레코드 목록

        Raises:
            SeedDataError: 페이로드 검증 실패, 이미 발급된 ID, updated_at < created_at
        """
        seeded: list[Patient] = []
        for index, raw in enumerate(raw_records):
            try:
                payload = PatientCreate(**raw)
                created_at = raw.get("created_at")
                record = Patient(
                    **payload.model_dump(),
                    id=str(raw.get("id") or self.store.issue_id()),
                    created_at=created_at,
                    updated_at=raw.get("updated_at") or created_at,
                )
            except ValidationError as exc:
                raise SeedDataError(index, str(exc)) from exc
            if raw.get("id") and not self.store.reserve_id(record.id):
                raise SeedDataError(index, f"이미 사용된 ID: {record.id}")
            if record.created_at is not None and record.updated_at is not None:
                if sort_timestamp(record.updated_at) < sort_timestamp(record.created_at):
                    raise SeedDataError(index, "updated_at이 created_at보다 이전임")
            seeded.append(record)

        for record in seeded:
            self.store.put(record)
        if seeded:
            log_event(
                "patients_seeded",
                "INFO",
                None,
                "seed",
                "초기 환자 데이터 적재",
                record_count=len(seeded),
            )
        return seeded


@lru_cache
def get_patient_repository() -> PatientRepository:
    """프로세스 전역 환자 저장소 (설정 파일의 초기 데이터 포함)"""
    repository = PatientRepository()
    repository.seed(load_app_config().seed_patients)
    return repository
