# tests/knowledge/conftest.py
"""
Фикстуры для тестов пакета `src/startup_advisor/knowledge`.
"""

import pytest

from src.startup_advisor.knowledge.service import KnowledgeService


@pytest.fixture
def service(kb_catalog, settings):
    """Пустой сервис базы знаний в памяти, привязанный к тестовому каталогу."""
    svc = KnowledgeService(db_path=":memory:", kb_path=kb_catalog, settings=settings)
    yield svc
    svc.close()


@pytest.fixture
def seeded_service(service):
    """Сервис, заполненный тестовым каталогом."""
    service.seed_if_empty()
    return service
