# src/startup_advisor/__init__.py
"""
Инициализация пакета Startup Advisor.

Этот файл определяет основные метаданные приложения и делает их
доступными для импорта из других частей программы.
"""

__version__ = "1.1.0"
__author__ = "CLC corporation"

APP_NAME = "Startup Advisor"
APP_VERSION = __version__
ORG_NAME = __author__

__all__ = [
    "__version__",
    "__author__",
    "APP_NAME",
    "APP_VERSION",
    "ORG_NAME",
]
