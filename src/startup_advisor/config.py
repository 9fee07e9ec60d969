# src/startup_advisor/config.py
"""
Файл с резервной (fallback) конфигурацией приложения.

Эти значения используются, если соответствующие ключи отсутствуют
в секции `settings` файла `settings.yaml` и не заданы переменными окружения.
Порядок приоритета: переменная окружения > settings.yaml > этот файл.
"""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# ===================================================================
# Резервная конфигурация базы знаний
# ===================================================================
DEFAULT_KNOWLEDGE_CONFIG: Dict[str, Any] = {
    # Имя файла БД внутри каталога данных приложения
    "db_file_name": "knowledge.db",
    "app_data_dir_name": "StartupAdvisor",

    # Язык интерфейса по умолчанию и поддерживаемые языки
    "default_language": "fr",
    "supported_languages": ["fr", "en"],

    # Лимит результатов для поиска по ключевому слову
    "search_limit": 20,

    # Издатели, по которым не имеет смысла искать совпадения
    "generic_publishers": ["N/A"],
    "excluded_publisher_fragments": ["Microsoft Windows"],
}

# Переменные окружения, которые переопределяют настройки
ENV_DB_PATH = "STARTUP_ADVISOR_DB"
ENV_LANGUAGE = "STARTUP_ADVISOR_LANG"


def get_common_app_data_dir() -> Path:
    """
    Возвращает общий каталог данных приложений (%PROGRAMDATA% в Windows).
    На других системах используется домашняя папка пользователя.
    """
    program_data = os.getenv("PROGRAMDATA")
    if program_data:
        return Path(program_data)
    return Path.home() / ".local" / "share"


def load_settings(settings_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Объединяет резервную конфигурацию с секцией `settings` из YAML-файла
    и переменными окружения.

    Raises:
        RuntimeError: Если файл настроек существует, но не читается как YAML-словарь.
    """
    settings = dict(DEFAULT_KNOWLEDGE_CONFIG)

    if settings_path and settings_path.is_file():
        try:
            with open(settings_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise yaml.YAMLError(f"Файл {settings_path.name} должен содержать словарь.")
            overrides = data.get("settings") or {}
            if not isinstance(overrides, dict):
                raise yaml.YAMLError(f"Секция settings в {settings_path.name} должна быть словарем.")
        except yaml.YAMLError as e:
            logger.critical(f"Не удалось прочитать файл настроек {settings_path}: {e}", exc_info=True)
            raise RuntimeError(f"Не удалось прочитать файл настроек: {e}") from e
        settings.update(overrides)
        logger.debug(f"Применены настройки из {settings_path}: {sorted(overrides)}")

    if db_path := os.getenv(ENV_DB_PATH):
        settings["db_path"] = db_path
    if language := os.getenv(ENV_LANGUAGE):
        settings["default_language"] = language.lower()

    return settings


def resolve_db_path(settings: Dict[str, Any]) -> str:
    """Определяет путь к файлу БД, создавая каталог при необходимости."""
    explicit = settings.get("db_path")
    if explicit:
        return str(explicit)

    directory = get_common_app_data_dir() / settings["app_data_dir_name"]
    directory.mkdir(parents=True, exist_ok=True)
    return str(directory / settings["db_file_name"])
