import logging

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "event=%(event)s patient_id=%(patient_id)s "
    "stage=%(stage)s %(message)s"
)

# extra 필드가 없는 레코드에 채울 기본값
EXTRA_DEFAULTS = {
    "event": "system",
    "patient_id": "-",
    "stage": "-",
}


class EventFormatter(logging.Formatter):
    """이벤트 extra 필드를 항상 포함하는 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        for key, default in EXTRA_DEFAULTS.items():
            if not hasattr(record, key):
                setattr(record, key, default)
        return super().format(record)


def configure_logging(level: str) -> None:
    """애플리케이션 로깅을 설정

    Args:
        level: 로깅 레벨 문자열
    """
    handler = logging.StreamHandler()
    handler.setFormatter(EventFormatter(LOG_FORMAT))

    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    # 요청마다 남는 httpx INFO 로그는 ViaCEP 조회 시 소음이 됨
    logging.getLogger("httpx").setLevel(logging.WARNING)
