class MediConnectError(Exception):
    """MediConnect 예외의 기본 클래스"""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class PatientNotFoundError(MediConnectError):
    """존재하지 않는 환자 ID를 수정하려 할 때 발생"""

    def __init__(self, patient_id: str) -> None:
        super().__init__("PATIENT_NOT_FOUND", f"환자를 찾을 수 없음: {patient_id}")
        self.patient_id = patient_id


class AddressLookupError(MediConnectError):
    """CEP 주소 조회 실패 시 발생"""


class ParseError(MediConnectError):
    """파싱 또는 정규화 실패 시 발생"""

    def __init__(self, field: str, message: str) -> None:
        super().__init__("PARSE_001", f"{field}: {message}")
        self.field = field


class SeedDataError(MediConnectError):
    """초기 환자 데이터가 유효하지 않을 때 발생"""

    def __init__(self, index: int, message: str) -> None:
        super().__init__("SEED_INVALID", f"seed_patients[{index}]: {message}")
        self.index = index
