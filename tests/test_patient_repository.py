import math
from datetime import datetime, timedelta, timezone

import pytest

from mediconnect.core.errors import PatientNotFoundError, SeedDataError
from mediconnect.models.patient import PatientCreate, PatientUpdate
from mediconnect.repositories import patients as patients_module
from mediconnect.repositories.patients import (
    InMemoryPatientStore,
    PatientRepository,
    matches_search,
)


def _payload(name: str, cpf: str, **extra) -> PatientCreate:
    return PatientCreate(
        full_name=name,
        cpf=cpf,
        phone_primary="11999998888",
        birth_date="1990-05-10",
        **extra,
    )


@pytest.fixture
def repository() -> PatientRepository:
    return PatientRepository(InMemoryPatientStore())


@pytest.fixture
def fixed_clock(monkeypatch):
    """호출마다 1초씩 증가하는 시계"""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = iter(start + timedelta(seconds=step) for step in range(1000))
    monkeypatch.setattr(patients_module, "utc_now", lambda: next(ticks))
    return start


@pytest.mark.asyncio
async def test_create_assigns_unique_id_and_equal_timestamps(repository):
    first = await repository.create(_payload("Ana Lima", "11122233344"))
    second = await repository.create(_payload("Ana Lima", "11122233344"))
    assert first.id and second.id
    assert first.id != second.id
    assert first.created_at == first.updated_at


@pytest.mark.asyncio
async def test_end_to_end_create_then_update(repository, ana_payload):
    created = await repository.create(PatientCreate(**ana_payload))
    assert created.cpf == "11122233344"
    assert created.phone_primary == "11999998888"
    assert created.birth_date == "1990-05-10"

    updated = await repository.update(
        PatientUpdate(id=created.id, address_city="São Paulo")
    )
    assert updated.address_city == "São Paulo"
    before = created.model_dump(exclude={"address_city", "updated_at"})
    after = updated.model_dump(exclude={"address_city", "updated_at"})
    assert before == after


@pytest.mark.asyncio
async def test_update_merges_and_advances_updated_at(repository):
    created = await repository.create(_payload("Ana Lima", "11122233344", rg="123"))
    await repository.update(PatientUpdate(id=created.id, full_name="X"))

    fetched = await repository.get_by_id(created.id)
    assert fetched is not None
    assert fetched.full_name == "X"
    assert fetched.rg == "123"
    assert fetched.created_at == created.created_at
    assert fetched.updated_at > created.updated_at


@pytest.mark.asyncio
async def test_update_advances_updated_at_with_frozen_clock(repository, monkeypatch):
    frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
    monkeypatch.setattr(patients_module, "utc_now", lambda: frozen)
    created = await repository.create(_payload("Ana Lima", "11122233344"))
    updated = await repository.update(PatientUpdate(id=created.id, full_name="X"))
    assert updated.updated_at > created.updated_at
    assert updated.created_at <= updated.updated_at


@pytest.mark.asyncio
async def test_update_can_clear_optional_field(repository):
    created = await repository.create(_payload("Ana Lima", "11122233344", rg="123"))
    updated = await repository.update(PatientUpdate(id=created.id, rg=None))
    assert updated.rg is None


@pytest.mark.asyncio
async def test_update_unknown_id_raises_and_leaves_store(repository):
    created = await repository.create(_payload("Ana Lima", "11122233344"))
    snapshot = [record.model_dump() for record in repository.store.all()]

    with pytest.raises(PatientNotFoundError) as exc_info:
        await repository.update(PatientUpdate(id="missing", full_name="X"))

    assert exc_info.value.code == "PATIENT_NOT_FOUND"
    assert [record.model_dump() for record in repository.store.all()] == snapshot
    assert (await repository.get_by_id(created.id)).full_name == "Ana Lima"


@pytest.mark.asyncio
async def test_get_by_id_absent_returns_none(repository):
    assert await repository.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_delete_is_idempotent(repository):
    keep = await repository.create(_payload("Ana Lima", "11122233344"))
    gone = await repository.create(_payload("Bruno Costa", "55566677788"))

    await repository.delete(gone.id)
    once = [record.model_dump() for record in repository.store.all()]
    await repository.delete(gone.id)
    twice = [record.model_dump() for record in repository.store.all()]

    assert once == twice
    assert [record["id"] for record in once] == [keep.id]
    await repository.delete("never-existed")


@pytest.mark.asyncio
async def test_deleted_ids_are_not_reissued(repository, monkeypatch):
    created = await repository.create(_payload("Ana Lima", "11122233344"))
    await repository.delete(created.id)
    issued = iter([created.id, "fresh-id"])
    monkeypatch.setattr(patients_module.uuid, "uuid4", lambda: next(issued))
    again = await repository.create(_payload("Ana Lima", "11122233344"))
    assert again.id == "fresh-id"


@pytest.mark.asyncio
async def test_list_sorts_by_created_at_descending(repository, fixed_clock):
    first = await repository.create(_payload("T1", "00000000001"))
    second = await repository.create(_payload("T2", "00000000002"))
    third = await repository.create(_payload("T3", "00000000003"))

    result = await repository.list()
    assert [record.id for record in result.records] == [third.id, second.id, first.id]


@pytest.mark.asyncio
async def test_list_records_without_created_at_sort_last(repository, fixed_clock):
    legacy = repository.seed(
        [
            {
                "full_name": "Legado",
                "cpf": "00000000009",
                "phone_primary": "1133334444",
                "birth_date": "1950-01-01",
            }
        ]
    )[0]
    recent = await repository.create(_payload("Recente", "00000000001"))

    result = await repository.list()
    assert legacy.created_at is None
    assert [record.id for record in result.records] == [recent.id, legacy.id]


@pytest.mark.asyncio
async def test_list_search_by_name_and_cpf(repository):
    maria = await repository.create(_payload("Maria Silva", "12345678901"))
    await repository.create(_payload("João Souza", "55566677788"))

    by_name = await repository.list(search="maria")
    assert [record.id for record in by_name.records] == [maria.id]
    by_cpf = await repository.list(search="12345678901")
    assert [record.id for record in by_cpf.records] == [maria.id]
    masked = await repository.list(search="123.456.789-01")
    assert [record.id for record in masked.records] == [maria.id]
    missing = await repository.list(search="999")
    assert missing.records == []
    assert missing.total_count == 0
    letters_only = await repository.list(search="zzz")
    assert letters_only.records == []
    assert letters_only.total_count == 0


def test_matches_search_text_without_digits_ignores_cpf():
    patient = PatientCreate(
        full_name="Maria Silva",
        cpf="12345678901",
        phone_primary="11999998888",
        birth_date="1990-05-10",
    )
    record = patients_module.Patient(**patient.model_dump(), id="p1")
    assert matches_search(record, "")
    assert not matches_search(record, "zzz")


@pytest.mark.asyncio
@pytest.mark.parametrize("count, page_size", [(0, 10), (7, 3), (9, 3), (10, 10), (23, 10)])
async def test_list_pages_cover_filtered_set(repository, fixed_clock, count, page_size):
    for index in range(count):
        await repository.create(_payload(f"Paciente {index}", f"{index:011d}"))

    full = await repository.list(page=1, page_size=max(count, 1))
    expected_pages = math.ceil(count / page_size)

    collected = []
    for page in range(1, expected_pages + 1):
        result = await repository.list(page=page, page_size=page_size)
        assert result.records
        assert result.total_count == count
        collected.extend(record.id for record in result.records)

    assert collected == [record.id for record in full.records]
    assert len(set(collected)) == count
    beyond = await repository.list(page=expected_pages + 1, page_size=page_size)
    assert beyond.records == []
    assert beyond.total_count == count


@pytest.mark.asyncio
async def test_list_total_count_is_independent_of_page(repository):
    for index in range(5):
        await repository.create(_payload(f"Maria {index}", f"{index:011d}"))
    await repository.create(_payload("Outro", "99999999999"))

    page_one = await repository.list(page=1, page_size=2, search="maria")
    page_three = await repository.list(page=3, page_size=2, search="maria")
    assert page_one.total_count == page_three.total_count == 5
    assert len(page_three.records) == 1
    assert page_one.total_pages == 3


def _seed_raw(name: str, cpf: str, **extra) -> dict:
    return {
        "full_name": name,
        "cpf": cpf,
        "phone_primary": "1133334444",
        "birth_date": "1950-01-01",
        **extra,
    }


def test_seed_rejects_updated_at_before_created_at(repository):
    with pytest.raises(SeedDataError) as exc_info:
        repository.seed(
            [
                _seed_raw(
                    "Legado",
                    "00000000009",
                    created_at="2024-02-01T00:00:00Z",
                    updated_at="2024-01-01T00:00:00Z",
                )
            ]
        )
    assert exc_info.value.code == "SEED_INVALID"
    assert len(repository.store) == 0


def test_seed_keeps_ordered_timestamps(repository):
    record = repository.seed(
        [
            _seed_raw(
                "Legado",
                "00000000009",
                created_at="2024-01-01T00:00:00Z",
                updated_at="2024-02-01T00:00:00Z",
            )
        ]
    )[0]
    assert record.created_at <= record.updated_at


def test_seed_rejects_duplicate_ids_in_batch(repository):
    with pytest.raises(SeedDataError) as exc_info:
        repository.seed(
            [
                _seed_raw("A", "00000000001", id="x"),
                _seed_raw("B", "00000000002", id="x"),
            ]
        )
    assert exc_info.value.index == 1
    assert len(repository.store) == 0


@pytest.mark.asyncio
async def test_seed_rejects_already_issued_id(repository):
    created = await repository.create(_payload("Ana Lima", "11122233344"))
    await repository.delete(created.id)
    with pytest.raises(SeedDataError):
        repository.seed([_seed_raw("A", "00000000001", id=created.id)])
    assert await repository.get_by_id(created.id) is None


def test_seed_rejects_invalid_payload(repository):
    with pytest.raises(SeedDataError):
        repository.seed([_seed_raw("A", "123")])
