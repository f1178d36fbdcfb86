"""
토큰 발급/검증 및 비밀번호 해시
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from taskflow.core.config import Settings
from taskflow.core.exceptions import BusinessException, ErrorCode

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str, app_settings: Settings) -> str:
    salt = bcrypt.gensalt(rounds=app_settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # 저장된 해시 형식이 잘못된 경우
        return False


def generate_tokens(user_id: str, app_settings: Settings, remember_me: bool = False) -> Dict[str, str]:
    """access / refresh 토큰 쌍 발급"""
    now = datetime.now(timezone.utc)

    access_minutes = (
        app_settings.REMEMBER_ME_ACCESS_TOKEN_EXPIRE_MINUTES
        if remember_me
        else app_settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    refresh_days = (
        app_settings.REMEMBER_ME_REFRESH_TOKEN_EXPIRE_DAYS
        if remember_me
        else app_settings.REFRESH_TOKEN_EXPIRE_DAYS
    )

    access_token = jwt.encode(
        {
            "userId": user_id,
            "type": ACCESS_TOKEN,
            "iat": now,
            "exp": now + timedelta(minutes=access_minutes),
            "iss": app_settings.JWT_ISSUER,
            "aud": app_settings.JWT_AUDIENCE,
        },
        app_settings.SECRET_KEY,
        algorithm=app_settings.ALGORITHM,
    )
    refresh_token = jwt.encode(
        {
            "userId": user_id,
            "type": REFRESH_TOKEN,
            "iat": now,
            "exp": now + timedelta(days=refresh_days),
            "iss": app_settings.JWT_ISSUER,
        },
        app_settings.REFRESH_SECRET_KEY,
        algorithm=app_settings.ALGORITHM,
    )
    return {"access_token": access_token, "refresh_token": refresh_token}


def decode_token(token: str, app_settings: Settings, token_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
    """
    토큰 검증 후 payload 반환

    Raises:
        BusinessException: 만료(AUTH_TOKEN_EXPIRED) 또는 위조/형식 오류(AUTH_TOKEN_INVALID)
    """
    if token_type == REFRESH_TOKEN:
        secret = app_settings.REFRESH_SECRET_KEY
        options: Dict[str, Any] = {"verify_aud": False}
        audience = None
    else:
        secret = app_settings.SECRET_KEY
        options = {}
        audience = app_settings.JWT_AUDIENCE

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[app_settings.ALGORITHM],
            issuer=app_settings.JWT_ISSUER,
            audience=audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise BusinessException(ErrorCode.AUTH_TOKEN_EXPIRED)
    except jwt.InvalidTokenError:
        raise BusinessException(ErrorCode.AUTH_TOKEN_INVALID)

    if payload.get("type") != token_type or not payload.get("userId"):
        raise BusinessException(ErrorCode.AUTH_TOKEN_INVALID)
    return payload
