"""
인증 요청 제한 (클라이언트 IP 기준)
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from taskflow.core.config import settings

limiter = Limiter(key_func=get_remote_address)

# register / login 이 같은 카운터를 사용
auth_rate_limit = limiter.shared_limit(settings.AUTH_RATE_LIMIT, scope="auth")
