"""
会话与认证信息
提供凭据模型、会话模型、会话存储以及凭据优先级解析
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from common.exceptions import AuthError


def has_secret(value: Optional[str]) -> bool:
    """空字符串或纯空白视为未提供"""
    return value is not None and bool(str(value).strip())


class Credentials(BaseModel):
    """用户名 + 密码 或 用户名 + passhash，二者只能选其一"""
    model_config = ConfigDict(frozen=True)

    username: str
    password: Optional[str] = None
    passhash: Optional[str] = None

    @field_validator('password', 'passhash', mode='before')
    @classmethod
    def blank_as_missing(cls, value: Optional[str]) -> Optional[str]:
        return value if has_secret(value) else None

    @model_validator(mode='after')
    def check_secret(self) -> 'Credentials':
        if not self.username or not self.username.strip():
            raise AuthError("认证信息缺少用户名")
        if self.password is None and self.passhash is None:
            raise AuthError(f"用户 {self.username} 未提供 password 或 passhash")
        if self.password is not None and self.passhash is not None:
            raise AuthError(f"用户 {self.username} 不能同时提供 password 和 passhash")
        return self

    def as_params(self) -> Dict[str, str]:
        """转换为请求参数"""
        if self.passhash is not None:
            return {"username": self.username, "passhash": self.passhash}
        return {"username": self.username, "password": self.password}

    def __repr__(self) -> str:
        secret = "passhash" if self.passhash is not None else "password"
        return f"Credentials(username={self.username!r}, {secret}='***')"

    __str__ = __repr__


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str
    credentials: Optional[Credentials] = None

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip('/')


class SessionStore:
    """持久化会话的显式容器，由调用方持有并传入客户端"""

    def __init__(self, session: Optional[Session] = None):
        self._session = session

    def save(self, session: Session) -> None:
        self._session = session

    def get(self) -> Optional[Session]:
        return self._session

    def clear(self) -> None:
        self._session = None

    def has_session(self) -> bool:
        return self._session is not None


def build_credentials(username: Optional[str] = None, password: Optional[str] = None,
                      passhash: Optional[str] = None) -> Optional[Credentials]:
    """根据显式参数构造凭据，三个参数都未提供时返回None"""
    if username is None and password is None and passhash is None:
        return None
    return Credentials(username=username or "", password=password, passhash=passhash)


def resolve_credentials(explicit: Optional[Credentials] = None,
                        session: Optional[Session] = None,
                        stored: Optional[Session] = None) -> Credentials:
    """
    按优先级解析凭据：显式参数 > 传入会话 > 已持久化会话
    :raises AuthError: 三处都没有可用凭据
    """
    if explicit is not None:
        return explicit
    if session is not None and session.credentials is not None:
        return session.credentials
    if stored is not None and stored.credentials is not None:
        return stored.credentials
    raise AuthError("未提供认证信息，请传入用户名和密码/passhash，或先创建持久化会话")
