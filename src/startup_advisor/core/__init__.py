# src/startup_advisor/core/__init__.py
"""
Этот пакет содержит логику работы с текущей машиной: сбор элементов
автозагрузки, сопоставление их с базой знаний и экспорт отчетов.

Он не зависит от интерфейса командной строки.
"""

from .scanner import Advice, StartupAdvisor, StartupCandidate, StartupScanner
from .export import ExportOptions, ExportService

__all__ = [
    "Advice",
    "StartupAdvisor",
    "StartupCandidate",
    "StartupScanner",
    "ExportOptions",
    "ExportService",
]
