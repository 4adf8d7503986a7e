"""
Shared pytest fixtures — FastAPI TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from recordscan.main import app


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c
