# src/startup_advisor/knowledge/seeder.py
"""
Первичное заполнение базы знаний.

Каталог хранится декларативно в YAML-файлах `data/knowledge_base/*.yaml`,
по одному файлу на раздел каталога. Сидер читает их в фиксированном
порядке, проверяет качество данных и передает каждую запись в `save`.
"""
import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .models import KnowledgeCategory, KnowledgeEntry, SafetyLevel

logger = logging.getLogger(__name__)

DEFAULT_KB_PATH = Path(__file__).resolve().parent.parent / "data" / "knowledge_base"

# Двуязычные поля YAML -> (поле на французском, поле на английском)
LOCALIZED_FIELDS = {
    "short": ("short_description", "short_description_en"),
    "full": ("full_description", "full_description_en"),
    "disable_impact": ("disable_impact", "disable_impact_en"),
    "performance_impact": ("performance_impact", "performance_impact_en"),
    "recommendation": ("recommendation", "recommendation_en"),
}


class KnowledgeSeeder:
    """
    Строит все записи каталога и сохраняет их по одной.

    Args:
        save: Приемник записей, обычно `KnowledgeService.save_entry`.
        kb_path: Каталог с YAML-файлами; по умолчанию встроенный каталог пакета.
    """

    def __init__(self, save: Callable[[KnowledgeEntry], Any], kb_path: Optional[Path] = None):
        self._save = save
        self.kb_path = Path(kb_path) if kb_path else DEFAULT_KB_PATH

    def seed(self, entries: Optional[List[KnowledgeEntry]] = None) -> int:
        """
        Загружает, проверяет и сохраняет весь каталог.

        Args:
            entries: Уже загруженные записи; если не заданы, каталог читается из `kb_path`.

        Returns:
            Количество сохраненных записей.
        """
        if entries is None:
            entries = self.load_catalog()
        self.validate_catalog(entries)

        timestamp = datetime.now()
        for entry in entries:
            entry.last_updated = timestamp
            self._save(entry)

        logger.info(f"База знаний заполнена: сохранено {len(entries)} записей из {self.kb_path}.")
        return len(entries)

    def load_catalog(self) -> List[KnowledgeEntry]:
        """Читает все YAML-файлы каталога и превращает их в список записей."""
        try:
            raw_sections = self._read_sections()
        except (FileNotFoundError, yaml.YAMLError) as e:
            logger.critical(f"Не удалось загрузить каталог базы знаний: {e}", exc_info=True)
            raise RuntimeError(f"Не удалось загрузить или прочитать файлы каталога: {e}") from e

        entries: List[KnowledgeEntry] = []
        for section, items in raw_sections.items():
            for index, item in enumerate(items):
                try:
                    entries.append(build_entry(item))
                except (KeyError, TypeError, ValueError) as e:
                    raise ValueError(f"Раздел '{section}', запись #{index + 1}: {e}") from e
            logger.debug(f"Раздел '{section}': {len(items)} записей.")
        return entries

    def _read_sections(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self.kb_path.is_dir():
            raise FileNotFoundError(f"Директория каталога не найдена по пути: {self.kb_path}")

        sections: Dict[str, List[Dict[str, Any]]] = {}
        for yaml_file in sorted(self.kb_path.glob("*.yaml")):
            with open(yaml_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            if not isinstance(data, list):
                raise yaml.YAMLError(f"Файл {yaml_file.name} должен содержать список записей.")
            sections[yaml_file.stem] = data

        if not sections:
            raise FileNotFoundError(f"В директории {self.kb_path} не найдено ни одного .yaml файла.")
        return sections

    @staticmethod
    def validate_catalog(entries: List[KnowledgeEntry]) -> None:
        """
        Проверяет качество данных каталога.

        Raises:
            ValueError: Со списком всех найденных проблем.
        """
        problems: List[str] = []
        seen: Dict[KnowledgeCategory, set] = defaultdict(set)

        for entry in entries:
            name = (entry.name or "").strip()
            if not name:
                problems.append(f"Запись без имени в категории {entry.category.name}.")
                continue

            key = name.lower()
            if key in seen[entry.category]:
                problems.append(f"Дубликат '{name}' в категории {entry.category.name}.")
            seen[entry.category].add(key)

            for fr_field, en_field in LOCALIZED_FIELDS.values():
                french = getattr(entry, fr_field)
                english = getattr(entry, en_field)
                if fr_field == "short_description" and not french:
                    problems.append(f"'{name}': отсутствует краткое описание (fr).")
                if french and not english:
                    problems.append(f"'{name}': поле {en_field} не заполнено.")

        if problems:
            for problem in problems:
                logger.error(problem)
            raise ValueError(f"Каталог содержит {len(problems)} ошибок: " + "; ".join(problems))


def build_entry(item: Dict[str, Any]) -> KnowledgeEntry:
    """Строит KnowledgeEntry из словаря YAML."""
    if not isinstance(item, dict):
        raise TypeError(f"ожидался словарь, получено {type(item).__name__}")

    kwargs: Dict[str, Any] = {
        "name": _clean(item["name"]) or "",
        "aliases": list(item.get("aliases") or []),
        "publisher": item.get("publisher"),
        "executable_names": list(item.get("executables") or []),
        "category": _parse_enum(KnowledgeCategory, item["category"]),
        "safety_level": _parse_enum(SafetyLevel, item["safety"]),
        "info_url": item.get("info_url"),
        "tags": list(item.get("tags") or []),
    }

    for yaml_key, (fr_field, en_field) in LOCALIZED_FIELDS.items():
        texts = item.get(yaml_key) or {}
        if isinstance(texts, str):
            texts = {"fr": texts}
        kwargs[fr_field] = _clean(texts.get("fr"))
        kwargs[en_field] = _clean(texts.get("en"))

    if not kwargs["short_description"]:
        raise ValueError(f"'{item['name']}': отсутствует краткое описание")
    return KnowledgeEntry(**kwargs)


def _parse_enum(enum_cls, value):
    try:
        return enum_cls[value]
    except KeyError:
        raise ValueError(f"неизвестное значение {enum_cls.__name__}: {value!r}") from None


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = " ".join(str(text).split())
    return text or None
