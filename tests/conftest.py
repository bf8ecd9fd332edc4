"""공통 fixture - 인메모리 Supabase 클라이언트 + Database"""
import pytest

from fake_supabase import FakeSupabase
from study_tracker.database import Database


@pytest.fixture
def client():
    return FakeSupabase()


@pytest.fixture
def db(client):
    return Database(client)
