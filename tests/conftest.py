"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake 주입 (HTTP 세션, AI 분류기)

금지:
- 실제 벤더 사이트 호출
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fakes import FakeClassifier, FakeSession  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


@pytest.fixture
def fake_session_factory():
    """FakeSession과 HttpExecutor용 session_factory를 함께 반환"""

    def _make(handler=None):
        session = FakeSession(handler)
        return session, (lambda: session)

    return _make


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()
