# tests/core/conftest.py
"""
Общие фикстуры для тестов модулей ядра (`src/startup_advisor/core`).

Ядро работает с любым объектом, у которого есть `find_entry`, поэтому
вместо реальной БД здесь используется небольшой поддельный сервис.
"""

import pytest
from typing import Dict, Optional

from src.startup_advisor.core.scanner import SOURCE_PROCESS, SOURCE_REGISTRY_RUN, StartupCandidate
from src.startup_advisor.knowledge.models import KnowledgeCategory, KnowledgeEntry, SafetyLevel


class FakeKnowledgeService:
    """Сопоставляет кандидатов только по точному имени."""

    def __init__(self, entries: Dict[str, KnowledgeEntry]):
        self.entries = entries
        self.calls = []

    def find_entry(self, name: Optional[str], executable: Optional[str], publisher: Optional[str]):
        self.calls.append((name, executable, publisher))
        return self.entries.get(name)


@pytest.fixture
def steam_entry() -> KnowledgeEntry:
    return KnowledgeEntry(
        id=1,
        name="Steam Client Bootstrapper",
        short_description="Client de jeux Steam.",
        short_description_en="Steam gaming client.",
        category=KnowledgeCategory.Gaming,
        safety_level=SafetyLevel.Safe,
    )


@pytest.fixture
def booster_entry() -> KnowledgeEntry:
    return KnowledgeEntry(
        id=2,
        name="Driver Booster",
        short_description="Logiciel indésirable.",
        short_description_en="Unwanted software.",
        category=KnowledgeCategory.PUP,
        safety_level=SafetyLevel.ShouldRemove,
    )


@pytest.fixture
def fake_service(steam_entry, booster_entry) -> FakeKnowledgeService:
    return FakeKnowledgeService({"Steam": steam_entry, "DriverBooster": booster_entry})


@pytest.fixture
def candidates():
    return [
        StartupCandidate(name="Steam", executable="C:\\Users\\bob\\Steam\\steam.exe", source=SOURCE_REGISTRY_RUN),
        StartupCandidate(name="DriverBooster", executable="C:\\Program Files\\IObit\\DriverBooster.exe",
                         publisher="IObit", source=SOURCE_PROCESS),
        StartupCandidate(name="Mystery", executable="C:\\Users\\bob\\AppData\\mystery.exe"),
    ]
