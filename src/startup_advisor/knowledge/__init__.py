# src/startup_advisor/knowledge/__init__.py
"""
Этот пакет содержит базу знаний об элементах автозагрузки:
модели записей, хранилище SQLite с поиском соответствий,
первичное заполнение каталогом и локализацию текстов.
"""

from .models import KnowledgeCategory, KnowledgeEntry, SafetyLevel
from .localization import LocalizedKnowledgeEntry
from .seeder import KnowledgeSeeder
from .service import KnowledgeService

__all__ = [
    "KnowledgeCategory",
    "KnowledgeEntry",
    "SafetyLevel",
    "LocalizedKnowledgeEntry",
    "KnowledgeSeeder",
    "KnowledgeService",
]
