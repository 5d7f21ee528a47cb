from __future__ import annotations

import pytest

from core.config import Settings
from helpers import FakeCompletion, FakeReplyAdapter, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def reply_adapter() -> FakeReplyAdapter:
    return FakeReplyAdapter()
