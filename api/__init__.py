"""
API模块
提供与监控服务器HTTP管理接口的交互
"""

from .api_client import PRTGClient
from .session import Credentials, Session, SessionStore, resolve_credentials

__all__ = ['PRTGClient', 'Credentials', 'Session', 'SessionStore', 'resolve_credentials']
