# src/startup_advisor/core/scanner.py
"""
Модуль для сбора элементов автозагрузки на текущей машине и сопоставления
их с базой знаний.

Источники кандидатов:
- запущенные процессы (psutil);
- значения ключей `Run` реестра Windows (winreg, только в Windows).
"""
import sys
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

import psutil

from ..knowledge.localization import LocalizedKnowledgeEntry, normalize_language
from ..knowledge.models import KnowledgeEntry

logger = logging.getLogger(__name__)

SOURCE_PROCESS = "process"
SOURCE_REGISTRY_RUN = "registry_run"

# Ключи реестра с программами автозагрузки
RUN_KEYS = [
    ("HKEY_CURRENT_USER", r"Software\Microsoft\Windows\CurrentVersion\Run"),
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Microsoft\Windows\CurrentVersion\Run"),
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Wow6432Node\Microsoft\Windows\CurrentVersion\Run"),
]


@dataclass(frozen=True)
class StartupCandidate:
    """Элемент, обнаруженный на машине, для которого нужна рекомендация."""
    name: str
    executable: Optional[str] = None
    publisher: Optional[str] = None
    source: str = SOURCE_PROCESS


@dataclass
class Advice:
    """Результат сопоставления кандидата с базой знаний."""
    candidate: StartupCandidate
    entry: Optional[KnowledgeEntry] = None
    localized: Optional[LocalizedKnowledgeEntry] = None

    @property
    def matched(self) -> bool:
        return self.entry is not None


class StartupScanner:
    """
    Собирает кандидатов из всех источников параллельно.
    Ошибка одного источника не прерывает сбор из остальных.
    """

    # Критические системные процессы, которые не имеет смысла сопоставлять
    CRITICAL_PROCESSES: Set[str] = {
        'system idle process', 'system', 'registry', 'smss.exe',
        'csrss.exe', 'wininit.exe', 'services.exe', 'lsass.exe',
        'winlogon.exe', 'fontdrvhost.exe', 'dwm.exe', 'svchost.exe'
    }

    def __init__(self, include_processes: bool = True, include_registry: bool = True):
        logger.info("Инициализация StartupScanner...")
        self.include_processes = include_processes
        self.include_registry = include_registry

    async def collect_candidates(self) -> List[StartupCandidate]:
        """Запускает все включенные источники и объединяет результаты."""
        logger.info("Начало сбора элементов автозагрузки.")

        collectors = {}
        if self.include_processes:
            collectors[SOURCE_PROCESS] = asyncio.to_thread(self._collect_processes)
        if self.include_registry:
            collectors[SOURCE_REGISTRY_RUN] = asyncio.to_thread(self._collect_registry_run_entries)

        results = await asyncio.gather(*collectors.values(), return_exceptions=True)

        candidates: List[StartupCandidate] = []
        for source, result in zip(collectors.keys(), results):
            if isinstance(result, Exception):
                logger.error(f"Ошибка при сборе данных из источника '{source}': {result}")
                continue
            logger.debug(f"Источник '{source}': {len(result)} элементов.")
            candidates.extend(result)

        logger.info(f"Сбор завершен. Найдено элементов: {len(candidates)}.")
        return candidates

    def _collect_processes(self) -> List[StartupCandidate]:
        """
        Синхронная функция для обхода запущенных процессов.
        Предназначена для запуска через `asyncio.to_thread`.
        """
        collected: List[StartupCandidate] = []
        seen_paths: Set[str] = set()

        for proc in psutil.process_iter(attrs=['pid', 'name', 'exe'], ad_value=None):
            try:
                info = proc.info
                name = info.get('name')
                exe = info.get('exe')
                if not exe or not name or name.lower() in self.CRITICAL_PROCESSES:
                    continue

                key = exe.lower()
                if key in seen_paths:
                    continue
                seen_paths.add(key)

                collected.append(StartupCandidate(name=name, executable=exe, source=SOURCE_PROCESS))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                # Ожидаемо при сканировании, просто пропускаем процесс
                continue

        return collected

    def _collect_registry_run_entries(self) -> List[StartupCandidate]:
        """Читает значения ключей `Run` реестра. Вне Windows возвращает пустой список."""
        if sys.platform != "win32":
            logger.debug("Реестр Windows недоступен на этой платформе, источник пропущен.")
            return []

        import winreg

        collected: List[StartupCandidate] = []
        for hive_name, path in RUN_KEYS:
            hive = getattr(winreg, hive_name)
            try:
                with winreg.OpenKey(hive, path, 0, winreg.KEY_READ) as key:
                    value_count = winreg.QueryInfoKey(key)[1]
                    for i in range(value_count):
                        try:
                            value_name, command, _ = winreg.EnumValue(key, i)
                        except OSError:
                            continue
                        collected.append(StartupCandidate(
                            name=value_name,
                            executable=extract_executable(str(command)),
                            source=SOURCE_REGISTRY_RUN,
                        ))
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Не удалось прочитать ключ '{hive_name}\\{path}': {e}")

        return collected


def extract_executable(command: str) -> Optional[str]:
    """
    Извлекает путь к исполняемому файлу из командной строки,
    учитывая возможные кавычки: '"C:\\a b\\x.exe" --flag' -> 'C:\\a b\\x.exe'.
    """
    command = command.strip()
    if not command:
        return None
    if command.startswith('"'):
        parts = command.split('"')
        return parts[1] if len(parts) > 1 and parts[1] else None

    lowered = command.lower()
    index = lowered.find(".exe")
    if index != -1:
        return command[:index + 4]
    return command.split(" ")[0]


class StartupAdvisor:
    """
    Сопоставляет кандидатов с базой знаний и формирует рекомендации.

    Args:
        service: Объект с методом `find_entry(name, executable, publisher)`,
                 обычно KnowledgeService.
        language: Язык текстов рекомендаций.
    """

    def __init__(self, service: Any, language: str = "fr"):
        self.service = service
        self.language = normalize_language(language)

    def advise(self, candidates: List[StartupCandidate]) -> List[Advice]:
        advices: List[Advice] = []
        for candidate in candidates:
            entry = self.service.find_entry(candidate.name, candidate.executable, candidate.publisher)
            localized = LocalizedKnowledgeEntry(entry, self.language) if entry else None
            advices.append(Advice(candidate=candidate, entry=entry, localized=localized))

        matched = sum(1 for a in advices if a.matched)
        logger.info(f"Сопоставлено {matched} из {len(advices)} элементов с базой знаний.")
        return advices

    @staticmethod
    def summarize(advices: List[Advice]) -> Dict[str, Any]:
        """Считает найденные и ненайденные элементы и распределение по уровням безопасности."""
        by_safety = Counter(a.entry.safety_level.name for a in advices if a.entry)
        matched = sum(by_safety.values())
        return {
            "total": len(advices),
            "matched": matched,
            "unmatched": len(advices) - matched,
            "by_safety_level": dict(by_safety),
        }
