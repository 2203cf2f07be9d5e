"""
Telegram Login Widget 데이터 검증.
https://core.telegram.org/widgets/login#checking-authorization
"""

import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 86400


def build_data_check_string(data: Mapping[str, Any]) -> str:
    """hash 제외 필드를 키 이름(바이트 순) 정렬 후 key=value 줄바꿈 결합. 값이 None인 필드는 생략(빈 문자열은 유지)."""
    return "\n".join(
        f"{key}={data[key]}"
        for key in sorted(data, key=lambda k: k.encode())
        if key != "hash" and data[key] is not None
    )


def compute_telegram_hash(data: Mapping[str, Any], bot_token: str) -> str:
    """HMAC-SHA256(data_check_string, SHA256(bot_token)) hex."""
    secret_key = hashlib.sha256(bot_token.encode()).digest()
    return hmac.new(
        secret_key,
        build_data_check_string(data).encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_telegram_auth(
    data: Mapping[str, Any],
    bot_token: str,
    max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
    *,
    now: float | None = None,
) -> bool:
    """
    서명 일치 + auth_date 신선도(now - auth_date <= max_age_seconds) 모두 만족 시 True.
    실패는 예외 대신 False. 호출자가 인증 거부로 변환.
    """
    received_hash = data.get("hash")
    if not isinstance(received_hash, str) or not received_hash:
        logger.warning("Telegram auth rejected: missing hash")
        return False

    expected_hash = compute_telegram_hash(data, bot_token)
    # str 비교는 비ASCII 입력에서 TypeError. bytes로 비교.
    if not hmac.compare_digest(expected_hash.encode(), received_hash.encode()):
        logger.warning("Telegram auth rejected: hash mismatch (id=%s)", data.get("id"))
        return False

    try:
        auth_date = int(data["auth_date"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Telegram auth rejected: invalid auth_date")
        return False

    current = time.time() if now is None else now
    if current - auth_date > max_age_seconds:
        logger.warning(
            "Telegram auth rejected: stale auth_date (id=%s, age=%ds)",
            data.get("id"),
            int(current - auth_date),
        )
        return False
    return True
