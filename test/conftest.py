from unittest.mock import MagicMock

import pytest

from api.api_client import PRTGClient
from api.session import Credentials, Session, SessionStore
from fakes import make_response


@pytest.fixture
def credentials():
    return Credentials(username="prtgadmin", passhash="123456789")


@pytest.fixture
def session(credentials):
    return Session(base_url="https://prtg.example.com/", credentials=credentials)


@pytest.fixture
def client():
    c = PRTGClient(session_store=SessionStore(), user_agent="pytest")
    c.http.get = MagicMock(return_value=make_response())
    yield c
    c.close()
