"""
    Telegram 알림 전송
"""
import logging

import requests

from ..database.config import get_telegram_config

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class NotifyError(Exception):
    """알림 전송 실패"""


class TelegramNotifier:
    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def notify(self, message: str) -> None:
        """
        메시지 1건 전송 (form-encoded POST)
        - 설정이 없으면 아무것도 보내지 않고 정상 반환
        - 전송 실패, 2xx 외 응답은 NotifyError
        """
        if not self.is_configured:
            logger.warning(f"Telegram 미설정 (TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID 없음), 메시지 건너뛰기: {message}")
            return
        try:
            response = requests.post(
                TELEGRAM_API_URL.format(token=self.bot_token),
                data={"chat_id": self.chat_id, "text": message},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NotifyError(f"Telegram 요청 실패: {e}") from e
        if not 200 <= response.status_code < 300:
            raise NotifyError(f"Telegram sendMessage 실패 - 상태 코드 {response.status_code}")
        logger.info("Telegram 메시지 전송 완료")

    def notify_safely(self, message: str) -> bool:
        """사이클 내부용 - 실패해도 로그만 남기고 계속 진행"""
        try:
            self.notify(message)
            return True
        except NotifyError as e:
            logger.error(f"Telegram 알림 전송 실패: {e}")
            return False


def get_telegram_notifier() -> TelegramNotifier:
    """설정 기반 TelegramNotifier 생성"""
    return TelegramNotifier(**get_telegram_config())
