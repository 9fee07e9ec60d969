# src/startup_advisor/core/export.py
"""
Экспорт результатов сопоставления в JSON и CSV.
"""
import io
import os
import re
import csv
import json
import logging
import getpass
import platform
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .scanner import Advice

logger = logging.getLogger(__name__)

_USER_PROFILE_RE = re.compile(r"([A-Za-z]:\\Users\\)[^\\]+", re.IGNORECASE)

BASE_CSV_HEADERS = ["Name", "Source", "Publisher", "Executable", "SafetyLevel"]
KNOWLEDGE_CSV_HEADERS = ["HasDescription", "KnowledgeMatch", "KnowledgeDescription"]


@dataclass
class ExportOptions:
    """Параметры экспорта."""
    include_knowledge_info: bool = True
    anonymize: bool = False
    language: str = "fr"


class ExportService:
    """
    Формирует отчеты по найденным элементам автозагрузки.

    Args:
        finder: Необязательная функция `(name, executable, publisher) -> entry`
                для элементов, которые еще не были сопоставлены.
    """

    def __init__(self, finder: Optional[Callable[[Optional[str], Optional[str], Optional[str]], Any]] = None):
        self._finder = finder

    def export_to_json(self, advices: List[Advice], options: ExportOptions) -> str:
        entries = [self._create_export_entry(a, options) for a in advices]
        document = {
            "ExportDate": datetime.now(timezone.utc).isoformat(),
            "MachineName": "[MACHINE]" if options.anonymize else platform.node(),
            "UserName": "[USER]" if options.anonymize else _current_user(),
            "TotalEntries": len(entries),
            "Entries": entries,
        }
        logger.info(f"Экспорт в JSON: {len(entries)} элементов.")
        return json.dumps(document, ensure_ascii=False, indent=2)

    def export_to_csv(self, advices: List[Advice], options: ExportOptions) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        headers = list(BASE_CSV_HEADERS)
        if options.include_knowledge_info:
            headers.extend(KNOWLEDGE_CSV_HEADERS)
        writer.writerow(headers)

        for advice in advices:
            candidate = advice.candidate
            entry = self._resolve_entry(advice)
            executable = candidate.executable or ""
            row = [
                candidate.name,
                candidate.source,
                candidate.publisher or "",
                anonymize_path(executable) if options.anonymize else executable,
                entry.safety_level.name if entry else "",
            ]
            if options.include_knowledge_info:
                has_description, match_name, description = self._knowledge_info(entry, options.language)
                row.extend(["Yes" if has_description else "No", match_name, description])
            writer.writerow(row)

        logger.info(f"Экспорт в CSV: {len(advices)} элементов.")
        return buffer.getvalue()

    def _create_export_entry(self, advice: Advice, options: ExportOptions) -> Dict[str, Any]:
        candidate = advice.candidate
        entry = self._resolve_entry(advice)
        executable = candidate.executable
        if executable and options.anonymize:
            executable = anonymize_path(executable)

        data: Dict[str, Any] = {
            "Name": candidate.name,
            "Source": candidate.source,
            "Publisher": candidate.publisher,
            "Executable": executable,
        }
        if options.include_knowledge_info:
            has_description, match_name, description = self._knowledge_info(entry, options.language)
            data["HasKnowledgeEntry"] = has_description
            data["KnowledgeMatch"] = match_name if has_description else None
            data["KnowledgeDescription"] = description if has_description else None
            data["SafetyLevel"] = entry.safety_level.name if entry else None
            data["Category"] = entry.category.name if entry else None
        # Пустые поля не попадают в отчет
        return {key: value for key, value in data.items() if value is not None}

    def _resolve_entry(self, advice: Advice):
        if advice.entry is not None or self._finder is None:
            return advice.entry
        candidate = advice.candidate
        return self._finder(candidate.name, candidate.executable, candidate.publisher)

    @staticmethod
    def _knowledge_info(entry, language: str) -> Tuple[bool, str, str]:
        if entry is None:
            return False, "", ""
        return True, entry.name, entry.get_short_description(language) or ""


def anonymize_path(path: str) -> str:
    """Заменяет имя пользователя в пути профиля: C:\\Users\\bob\\x -> C:\\Users\\[USER]\\x."""
    return _USER_PROFILE_RE.sub(r"\1[USER]", path)


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.getenv("USERNAME", "")
