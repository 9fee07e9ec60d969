# src/startup_advisor/knowledge/localization.py
"""
Обертка над KnowledgeEntry, отдающая тексты на текущем языке.
"""
import logging
from typing import Optional

from .models import KnowledgeCategory, KnowledgeEntry, SafetyLevel
from ..config import DEFAULT_KNOWLEDGE_CONFIG

logger = logging.getLogger(__name__)

SAFETY_LABELS = {
    "fr": {
        SafetyLevel.Critical: "Critique - ne jamais désactiver",
        SafetyLevel.Important: "Important - désactiver avec prudence",
        SafetyLevel.Safe: "Sûr - peut être désactivé",
        SafetyLevel.RecommendedDisable: "Désactivation recommandée",
        SafetyLevel.ShouldRemove: "À supprimer",
    },
    "en": {
        SafetyLevel.Critical: "Critical - never disable",
        SafetyLevel.Important: "Important - disable with caution",
        SafetyLevel.Safe: "Safe - can be disabled",
        SafetyLevel.RecommendedDisable: "Recommended to disable",
        SafetyLevel.ShouldRemove: "Should be removed",
    },
}

CATEGORY_LABELS = {
    "fr": {
        KnowledgeCategory.WindowsSystem: "Composant Windows",
        KnowledgeCategory.WindowsSecurity: "Sécurité Windows",
        KnowledgeCategory.Hardware: "Matériel / pilote",
        KnowledgeCategory.Security: "Antivirus / sécurité",
        KnowledgeCategory.Gaming: "Jeux",
        KnowledgeCategory.Productivity: "Productivité",
        KnowledgeCategory.Communication: "Communication",
        KnowledgeCategory.CloudStorage: "Stockage cloud",
        KnowledgeCategory.Media: "Multimédia",
        KnowledgeCategory.Browser: "Navigateur",
        KnowledgeCategory.Utility: "Utilitaire",
        KnowledgeCategory.Bloatware: "Logiciel préinstallé",
        KnowledgeCategory.PUP: "Programme potentiellement indésirable",
        KnowledgeCategory.Malware: "Logiciel malveillant",
        KnowledgeCategory.Other: "Autre",
    },
    "en": {
        KnowledgeCategory.WindowsSystem: "Windows component",
        KnowledgeCategory.WindowsSecurity: "Windows security",
        KnowledgeCategory.Hardware: "Hardware / driver",
        KnowledgeCategory.Security: "Antivirus / security",
        KnowledgeCategory.Gaming: "Gaming",
        KnowledgeCategory.Productivity: "Productivity",
        KnowledgeCategory.Communication: "Communication",
        KnowledgeCategory.CloudStorage: "Cloud storage",
        KnowledgeCategory.Media: "Media",
        KnowledgeCategory.Browser: "Browser",
        KnowledgeCategory.Utility: "Utility",
        KnowledgeCategory.Bloatware: "Bloatware",
        KnowledgeCategory.PUP: "Potentially unwanted program",
        KnowledgeCategory.Malware: "Malware",
        KnowledgeCategory.Other: "Other",
    },
}


def normalize_language(language: Optional[str], default: Optional[str] = None) -> str:
    """Приводит код языка к поддерживаемому ("fr-FR" -> "fr"), иначе возвращает язык по умолчанию."""
    fallback = default or DEFAULT_KNOWLEDGE_CONFIG["default_language"]
    if not language:
        return fallback
    code = language.strip().lower().replace("_", "-").split("-")[0]
    if code in DEFAULT_KNOWLEDGE_CONFIG["supported_languages"]:
        return code
    logger.warning(f"Язык '{language}' не поддерживается, используется '{fallback}'.")
    return fallback


class LocalizedKnowledgeEntry:
    """Представление записи базы знаний на выбранном языке."""

    def __init__(self, entry: KnowledgeEntry, language: str = "fr"):
        self._entry = entry
        self.language = normalize_language(language)

    @property
    def entry(self) -> KnowledgeEntry:
        return self._entry

    @property
    def name(self) -> str:
        return self._entry.name

    @property
    def publisher(self) -> Optional[str]:
        return self._entry.publisher

    @property
    def category(self) -> KnowledgeCategory:
        return self._entry.category

    @property
    def safety_level(self) -> SafetyLevel:
        return self._entry.safety_level

    @property
    def info_url(self) -> Optional[str]:
        return self._entry.info_url

    @property
    def category_label(self) -> str:
        return CATEGORY_LABELS[self.language][self._entry.category]

    @property
    def safety_label(self) -> str:
        return SAFETY_LABELS[self.language][self._entry.safety_level]

    @property
    def short_description(self) -> str:
        return self._entry.get_short_description(self.language)

    @property
    def full_description(self) -> Optional[str]:
        return self._entry.get_full_description(self.language)

    @property
    def disable_impact(self) -> Optional[str]:
        return self._entry.get_disable_impact(self.language)

    @property
    def performance_impact(self) -> Optional[str]:
        return self._entry.get_performance_impact(self.language)

    @property
    def recommendation(self) -> Optional[str]:
        return self._entry.get_recommendation(self.language)
