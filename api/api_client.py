from typing import Dict, Optional, Any

import requests
from bs4 import BeautifulSoup
from fake_useragent import UserAgent
from loguru import logger

from api.parser import parse_document, extract_record
from api.session import Credentials, Session, SessionStore, build_credentials, has_secret, resolve_credentials
from common.config import ConfigManager
from common.decorators import log_execution, mask_secrets, redact_secrets
from common.exceptions import AuthError, ConfigError, HttpError

PROBE_ENDPOINT = "getstatus.xml"
AUTH_KEYS = ("username", "password", "passhash")


class PRTGClient:
    """监控服务器HTTP管理接口客户端"""

    def __init__(self, session_store: Optional[SessionStore] = None, timeout: float = 30,
                 verify_ssl: bool = True, user_agent: Optional[str] = None):
        self.session_store = session_store if session_store is not None else SessionStore()
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.http = requests.Session()
        self.http.headers.update({
            'Accept': 'application/xml, text/xml, text/html, */*',
            'User-Agent': user_agent or UserAgent().random
        })

    @classmethod
    def from_config(cls, config: ConfigManager, session_store: Optional[SessionStore] = None) -> 'PRTGClient':
        """根据配置创建客户端，配置完整时直接保存会话（不发送探测请求）"""
        client = cls(
            session_store=session_store,
            timeout=config.get('prtg.timeout', 30),
            verify_ssl=config.get('prtg.verify_ssl', True),
        )

        url = config.get('prtg.url')
        username = config.get('prtg.username')
        password = config.get('prtg.password')
        passhash = config.get('prtg.passhash')
        if url and username and (has_secret(password) or has_secret(passhash)):
            # 同时配置时优先使用passhash
            credentials = Credentials(username=username, password=None if has_secret(passhash) else password,
                                      passhash=passhash)
            client.session_store.save(Session(base_url=url, credentials=credentials))
            logger.info(f"已从配置加载会话: {url}, 用户: {username}")
        return client

    def _build_request(self, endpoint: str, params: Optional[Dict[str, Any]], session: Optional[Session],
                       explicit: Optional[Credentials]) -> tuple[str, Dict[str, Any]]:
        if not endpoint or not endpoint.strip():
            raise ConfigError("未指定接口名称")

        stored = self.session_store.get()
        base_url = session.base_url if session is not None else (stored.base_url if stored else None)
        if not base_url:
            raise ConfigError("未指定服务器地址，请传入会话或先创建持久化会话")

        credentials = resolve_credentials(explicit, session, stored)

        # 认证字段只来自解析出的凭据
        request_params = {k: v for k, v in (params or {}).items() if v is not None and k not in AUTH_KEYS}
        request_params.update(credentials.as_params())

        url = f"{base_url}/api/{endpoint.strip().lstrip('/')}"
        return url, request_params

    def invoke_raw(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
                   session: Optional[Session] = None, username: Optional[str] = None,
                   password: Optional[str] = None, passhash: Optional[str] = None) -> requests.Response:
        """发送GET请求并返回原始响应"""
        explicit = build_credentials(username, password, passhash)
        url, request_params = self._build_request(endpoint, params, session, explicit)

        try:
            logger.info(f"请求API: {endpoint}, 参数: {mask_secrets(request_params)}")
            response = self.http.get(url, params=request_params, timeout=self.timeout, verify=self.verify_ssl)
        except requests.exceptions.RequestException as e:
            error = redact_secrets(str(e))
            logger.error(f"网络请求失败: {endpoint}, 错误: {error}")
            raise HttpError(f"网络请求失败: {endpoint}, 错误: {error}", url=url) from e

        if response.status_code != 200:
            logger.error(f"API调用失败: {endpoint}, 状态码: {response.status_code}")
            raise HttpError(f"API调用失败: {endpoint}, 状态码: {response.status_code}",
                            status_code=response.status_code, url=url)

        return response

    def invoke(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
               session: Optional[Session] = None, username: Optional[str] = None,
               password: Optional[str] = None, passhash: Optional[str] = None) -> BeautifulSoup:
        """
        发送认证GET请求并解析响应
        :param endpoint: 接口名称，如 table.xml
        :param params: 查询参数
        :param session: 会话，未提供时使用已持久化会话
        :param username: 显式用户名，优先级最高
        :param password: 显式密码
        :param passhash: 显式passhash
        :return: 解析后的文档
        """
        response = self.invoke_raw(endpoint, params, session, username, password, passhash)
        return parse_document(response.text)

    @log_execution()
    def create_session(self, url: str, username: str, password: Optional[str] = None,
                       passhash: Optional[str] = None, persist: bool = False) -> Session:
        """创建会话，发送探测请求验证，persist为True时保存到会话存储"""
        if not url or not url.strip():
            raise ConfigError("未指定服务器地址")

        session = Session(base_url=url, credentials=Credentials(username=username, password=password,
                                                                passhash=passhash))
        self.invoke(PROBE_ENDPOINT, session=session)

        if persist:
            self.session_store.save(session)
            logger.info(f"会话已持久化: {session.base_url}, 用户: {username}")
        return session

    def get_status(self, session: Optional[Session] = None) -> Dict[str, str]:
        """获取服务器状态"""
        doc = self.invoke(PROBE_ENDPOINT, session=session)
        return extract_record(doc, "status")

    def get_passhash(self, session: Optional[Session] = None, username: Optional[str] = None,
                     password: Optional[str] = None) -> str:
        """用密码换取passhash，只接受 用户名 + 密码 的凭据"""
        explicit = build_credentials(username, password)
        credentials = resolve_credentials(explicit, session, self.session_store.get())
        if credentials.password is None:
            raise AuthError(f"用户 {credentials.username} 未提供密码，无法换取passhash")

        response = self.invoke_raw("getpasshash.htm", session=session, username=credentials.username,
                                   password=credentials.password)
        return response.text.strip()

    def close(self):
        """关闭会话"""
        if self.http:
            self.http.close()

    def __enter__(self) -> 'PRTGClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
