# src/startup_advisor/knowledge/models.py
"""
Модели данных базы знаний: запись каталога, категория и уровень безопасности.

Числовые значения перечислений сохраняются в SQLite, поэтому порядок
элементов менять нельзя, новые значения добавляются только в конец.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import List, Optional


class KnowledgeCategory(IntEnum):
    """Категория записи базы знаний."""
    WindowsSystem = 0
    WindowsSecurity = 1
    Hardware = 2
    Security = 3
    Gaming = 4
    Productivity = 5
    Communication = 6
    CloudStorage = 7
    Media = 8
    Browser = 9
    Utility = 10
    Bloatware = 11
    PUP = 12
    Malware = 13
    Other = 14


class SafetyLevel(IntEnum):
    """Насколько безопасно отключать элемент автозагрузки."""
    Critical = 0            # никогда не отключать
    Important = 1           # отключать с осторожностью
    Safe = 2                # можно отключить, если не используется
    RecommendedDisable = 3  # bloatware или ненужное ПО
    ShouldRemove = 4        # PUP или вредоносное ПО


def split_list(value: Optional[str]) -> List[str]:
    """Разбирает строку вида "a, b,c" из БД в список без пустых элементов."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def join_list(values: List[str]) -> Optional[str]:
    """Обратная операция к split_list; пустой список хранится как NULL."""
    cleaned = [v.strip() for v in values if v and v.strip()]
    return ",".join(cleaned) if cleaned else None


@dataclass
class KnowledgeEntry:
    """
    Запись каталога, описывающая одно известное приложение, службу или задачу
    и рекомендации по ее автозагрузке.

    Французские тексты являются основными, английские хранятся в полях
    с суффиксом `_en`.
    """
    name: str
    short_description: str
    category: KnowledgeCategory = KnowledgeCategory.Other
    safety_level: SafetyLevel = SafetyLevel.Safe
    id: Optional[int] = None
    aliases: List[str] = field(default_factory=list)
    publisher: Optional[str] = None
    executable_names: List[str] = field(default_factory=list)
    short_description_en: Optional[str] = None
    full_description: Optional[str] = None
    full_description_en: Optional[str] = None
    disable_impact: Optional[str] = None
    disable_impact_en: Optional[str] = None
    performance_impact: Optional[str] = None
    performance_impact_en: Optional[str] = None
    recommendation: Optional[str] = None
    recommendation_en: Optional[str] = None
    info_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        # Значения из YAML и БД приходят как int/str
        self.category = KnowledgeCategory(self.category)
        self.safety_level = SafetyLevel(self.safety_level)
        self.executable_names = [exe.lower() for exe in self.executable_names]

    # --- Локализованный доступ к текстам ---

    def _localized(self, french: Optional[str], english: Optional[str], language: str) -> Optional[str]:
        if language == "en" and english:
            return english
        return french

    def get_short_description(self, language: str) -> str:
        return self._localized(self.short_description, self.short_description_en, language)

    def get_full_description(self, language: str) -> Optional[str]:
        return self._localized(self.full_description, self.full_description_en, language)

    def get_disable_impact(self, language: str) -> Optional[str]:
        return self._localized(self.disable_impact, self.disable_impact_en, language)

    def get_performance_impact(self, language: str) -> Optional[str]:
        return self._localized(self.performance_impact, self.performance_impact_en, language)

    def get_recommendation(self, language: str) -> Optional[str]:
        return self._localized(self.recommendation, self.recommendation_en, language)
