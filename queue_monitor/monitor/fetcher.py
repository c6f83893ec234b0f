"""
    큐 상태 API 조회기
    - 매 호출마다 새 세션 ID로 프록시 URL 생성 (출구 IP 교체)
    - 실패 시 FetchError, 재시도 없음 (다음 tick이 재시도 역할)
"""
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

import requests

from ..database.config import config, get_proxy_config
from .models import PayloadError, QueueObservation, parse_queue_payload

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "Accept": "application/json, text/html, */*",
    "Accept-Language": "en-US,en;q=0.9",
}


class FetchError(Exception):
    """큐 상태 조회 실패 (네트워크, 비-200 응답, 잘못된 JSON)"""


@dataclass
class ProxyTemplate:
    """username의 %s 자리에 세션 ID가 들어감"""
    username: str = ""
    password: str = ""
    address: str = ""
    port: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.address)

    def random_proxy_url(self, session_id: Optional[int] = None) -> str:
        if session_id is None:
            session_id = random.randrange(1000000)
        username = self.username.replace("%s", str(session_id))
        return f"http://{username}:{self.password}@{self.address}:{self.port}"


def mask_proxy_url(proxy_url: str) -> str:
    """로그용 - 비밀번호를 ***로 가림"""
    try:
        parts = urlsplit(proxy_url)
        if parts.password is None:
            return proxy_url
        netloc = f"{parts.username}:***@{parts.hostname}"
        if parts.port:
            netloc += f":{parts.port}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))
    except ValueError:
        return "invalid-proxy-url"


class QueueFetcher:
    def __init__(self, url: str, proxy: ProxyTemplate, timeout: float = 30):
        self.url = url
        self.proxy = proxy
        self.timeout = timeout

    def _proxies(self) -> Optional[Dict[str, str]]:
        if not self.proxy.is_configured:
            return None
        proxy_url = self.proxy.random_proxy_url()
        logger.info(f"프록시 사용: {mask_proxy_url(proxy_url)}")
        return {"http": proxy_url, "https": proxy_url}

    def fetch(self) -> Dict[str, List[QueueObservation]]:
        """큐 상태 조회 -> {location: [QueueObservation, ...]}"""
        try:
            response = requests.get(
                self.url,
                headers=REQUEST_HEADERS,
                proxies=self._proxies(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise FetchError(f"요청 실패: {e}") from e

        if response.status_code != 200:
            raise FetchError(f"예상하지 못한 상태 코드: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"JSON 디코딩 실패: {e}") from e

        try:
            return parse_queue_payload(payload)
        except PayloadError as e:
            raise FetchError(f"응답 형식 오류: {e}") from e


def get_queue_fetcher() -> QueueFetcher:
    """설정 기반 QueueFetcher 생성"""
    return QueueFetcher(
        url=config.QUEUE_STATUS_URL,
        proxy=ProxyTemplate(**get_proxy_config()),
        timeout=config.FETCH_TIMEOUT,
    )
