from typing import Optional


class PRTGError(Exception):
    """客户端异常基类"""


class ConfigError(PRTGError):
    """缺少服务器地址或接口名称"""


class AuthError(PRTGError):
    """没有可用的认证信息"""


class HttpError(PRTGError):
    """HTTP状态码非200或网络传输失败"""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ResponseParseError(PRTGError):
    """响应中缺少预期的数据"""
