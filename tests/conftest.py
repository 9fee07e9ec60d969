# tests/conftest.py
"""
Общие фикстуры для всех тестов.

Здесь создается небольшой тестовый каталог базы знаний во временной
директории, чтобы тесты не зависели от содержимого встроенного каталога.
"""

import pytest
from pathlib import Path

from src.startup_advisor.config import DEFAULT_KNOWLEDGE_CONFIG

SYSTEM_SECTION = """
- name: Windows Explorer
  aliases: [explorer]
  publisher: Microsoft Windows
  executables: [explorer.exe]
  category: WindowsSystem
  safety: Critical
  short:
    fr: "Explorateur de fichiers et bureau Windows."
    en: "Windows file explorer and desktop shell."
  recommendation:
    fr: "Ne jamais désactiver."
    en: "Never disable."
  tags: [shell, bureau]
"""

APPS_SECTION = """
- name: Steam Client Bootstrapper
  aliases: [Steam]
  publisher: Valve Corporation
  executables: [steam.exe]
  category: Gaming
  safety: Safe
  short:
    fr: "Client de jeux Steam."
    en: "Steam gaming client."
  tags: [jeux, gaming]

- name: Brave Software Update
  aliases: [BraveSoftwareUpdate]
  publisher: Brave Software Inc.
  executables: [braveupdate.exe]
  category: Browser
  safety: Safe
  short:
    fr: "Mise à jour du navigateur Brave."
    en: "Brave browser updater."

- name: uBlock Origin
  aliases: [cjpalhdlnbpafiamejdnhcphjbkeiagm, uBlock0@raymondhill.net]
  publisher: Raymond Hill
  category: Browser
  safety: Safe
  short:
    fr: "Bloqueur de publicités."
    en: "Ad blocker."

- name: Notion
  aliases: [electron.app.Notion]
  publisher: Notion Labs, Inc.
  executables: [notion.exe]
  category: Productivity
  safety: Safe
  short:
    fr: "Application de prise de notes."
    en: "Note-taking application."

- name: Driver Booster
  publisher: IObit
  executables: [driverbooster.exe]
  category: PUP
  safety: ShouldRemove
  short:
    fr: "Logiciel de mise à jour de pilotes indésirable."
    en: "Unwanted driver updater."
  disable_impact:
    fr: "Aucun impact négatif."
    en: "No negative impact."
"""

# Число записей в тестовом каталоге
CATALOG_SIZE = 6


@pytest.fixture
def kb_catalog(tmp_path: Path) -> Path:
    """Создает временный каталог базы знаний из двух разделов."""
    kb_path = tmp_path / "knowledge_base"
    kb_path.mkdir()
    (kb_path / "01_system.yaml").write_text(SYSTEM_SECTION, encoding="utf-8")
    (kb_path / "02_apps.yaml").write_text(APPS_SECTION, encoding="utf-8")
    return kb_path


@pytest.fixture
def settings() -> dict:
    """Копия резервной конфигурации, которую тест может менять."""
    return dict(DEFAULT_KNOWLEDGE_CONFIG)


@pytest.fixture
def catalog_size() -> int:
    return CATALOG_SIZE
