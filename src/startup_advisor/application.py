# src/startup_advisor/application.py
"""
Основной модуль приложения Startup Advisor.
Содержит класс Application, который инкапсулирует настройку окружения
и выполнение команд командной строки.
"""
import sys
import os
import asyncio
import logging
import argparse
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

from . import APP_NAME, APP_VERSION
from .config import load_settings
from .core import ExportOptions, ExportService, StartupAdvisor, StartupScanner
from .knowledge import KnowledgeCategory, KnowledgeSeeder, KnowledgeService, LocalizedKnowledgeEntry
from .knowledge.localization import normalize_language

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="startup-advisor",
        description=f"{APP_NAME}: рекомендации по элементам автозагрузки Windows.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("--db", help="Путь к файлу базы знаний (по умолчанию %%PROGRAMDATA%%\\StartupAdvisor).")
    parser.add_argument("--lang", help="Язык описаний: fr или en.")

    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Заполнить базу знаний каталогом.")
    seed.add_argument("--force", action="store_true", help="Перезаписать записи, даже если база уже заполнена.")

    lookup = sub.add_parser("lookup", help="Найти рекомендацию для одного элемента.")
    lookup.add_argument("--name")
    lookup.add_argument("--exe", help="Путь или имя исполняемого файла.")
    lookup.add_argument("--publisher")

    search = sub.add_parser("search", help="Поиск по ключевому слову.")
    search.add_argument("keyword")
    search.add_argument("--limit", type=int)

    category = sub.add_parser("category", help="Все записи категории.")
    category.add_argument("name", choices=[c.name for c in KnowledgeCategory])

    sub.add_parser("stats", help="Статистика базы знаний.")

    scan = sub.add_parser("scan", help="Просканировать машину и выдать рекомендации.")
    scan.add_argument("--no-processes", action="store_true", help="Не учитывать запущенные процессы.")
    scan.add_argument("--no-registry", action="store_true", help="Не читать ключи Run реестра.")
    scan.add_argument("--format", choices=["text", "json", "csv"], default="text")
    scan.add_argument("--output", type=Path, help="Файл для сохранения отчета.")
    scan.add_argument("--anonymize", action="store_true", help="Скрыть имя машины и пользователя.")
    scan.add_argument("--all", action="store_true", help="Показывать и несопоставленные элементы.")

    return parser


class Application:
    """
    Класс, инкапсулирующий жизненный цикл приложения Startup Advisor.
    """
    def __init__(self, app_paths: Dict[str, Path], argv: Optional[List[str]] = None):
        self.app_paths = app_paths
        self.args = build_parser().parse_args(argv)
        self.settings = load_settings(app_paths.get("settings"))
        # Неподдерживаемый --lang откатывается к языку из настроек, а не к встроенному
        default_language = normalize_language(self.settings.get("default_language"))
        self.language = normalize_language(self.args.lang, default=default_language)
        self.service: Optional[KnowledgeService] = None
        self.log_file_path: Optional[Path] = None

        self._setup_exception_hook()

    def initialize(self) -> bool:
        """Выполняет всю предварительную настройку приложения."""
        self._setup_logging()
        self._initialize_knowledge_base()
        return True

    def exec(self) -> int:
        """Выполняет выбранную команду и возвращает код выхода."""
        if not self.service:
            logger.critical("Попытка запуска без предварительной инициализации.")
            return 1

        handlers = {
            "seed": self._cmd_seed,
            "lookup": self._cmd_lookup,
            "search": self._cmd_search,
            "category": self._cmd_category,
            "stats": self._cmd_stats,
            "scan": self._cmd_scan,
        }
        try:
            return handlers[self.args.command]()
        finally:
            self.service.close()

    def _setup_logging(self):
        log_dir = self.app_paths["logs"]
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file_path = log_dir / 'startup_advisor.log'

        log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, log_level_str, logging.INFO)

        file_handler = RotatingFileHandler(self.log_file_path, maxBytes=5*1024*1024, backupCount=3, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'))

        # Консоль занята выводом команд, поэтому туда идут только предупреждения
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        if root_logger.hasHandlers():
            root_logger.handlers.clear()
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)
        logger.info(f"Система логирования для {APP_NAME} v{APP_VERSION} инициализирована. Уровень: {log_level_str}")

    def _setup_exception_hook(self):
        self.original_hook = sys.excepthook
        sys.excepthook = self._handle_exception

    def _handle_exception(self, exc_type, exc, tb):
        logger.critical("Перехвачено необработанное исключение:", exc_info=(exc_type, exc, tb))
        print(f"Произошла непредвиденная ошибка: {exc}\nПодробности в файле startup_advisor.log.", file=sys.stderr)

    def _initialize_knowledge_base(self):
        logger.info("Инициализация базы знаний...")
        self.service = KnowledgeService(
            db_path=self.args.db,
            kb_path=self.app_paths.get("kb_path"),
            settings=self.settings,
        )
        # Команда seed сама решает, как заполнять базу
        if self.args.command != "seed":
            self.service.seed_if_empty()

    # --- Команды ---

    def _cmd_seed(self) -> int:
        if self.args.force:
            seeder = KnowledgeSeeder(self.service.save_entry, kb_path=self.app_paths.get("kb_path"))
            saved = seeder.seed()
        else:
            saved = self.service.seed_if_empty()
        print(f"Сохранено записей: {saved}. Всего в базе: {self.service.get_count()}.")
        return 0

    def _cmd_lookup(self) -> int:
        entry = self.service.find_entry(self.args.name, self.args.exe, self.args.publisher)
        if entry is None:
            print("Элемент не найден в базе знаний.")
            return 2
        self._print_entry(LocalizedKnowledgeEntry(entry, self.language), detailed=True)
        return 0

    def _cmd_search(self) -> int:
        entries = self.service.search(self.args.keyword, self.args.limit)
        for entry in entries:
            self._print_entry(LocalizedKnowledgeEntry(entry, self.language))
        print(f"Найдено: {len(entries)}.")
        return 0

    def _cmd_category(self) -> int:
        entries = self.service.get_by_category(KnowledgeCategory[self.args.name])
        for entry in entries:
            self._print_entry(LocalizedKnowledgeEntry(entry, self.language))
        print(f"Записей в категории: {len(entries)}.")
        return 0

    def _cmd_stats(self) -> int:
        stats = self.service.get_statistics()
        print(f"Всего записей: {stats['total']}")
        for name, count in stats["by_category"].items():
            print(f"  {name}: {count}")
        for name, count in stats["by_safety_level"].items():
            print(f"  [{name}] {count}")
        return 0

    def _cmd_scan(self) -> int:
        scanner = StartupScanner(
            include_processes=not self.args.no_processes,
            include_registry=not self.args.no_registry,
        )
        candidates = asyncio.run(scanner.collect_candidates())
        advisor = StartupAdvisor(self.service, self.language)
        advices = advisor.advise(candidates)

        if self.args.format == "text":
            for advice in advices:
                if advice.localized:
                    print(f"{advice.candidate.name} ({advice.candidate.source})")
                    self._print_entry(advice.localized)
                elif self.args.all:
                    print(f"{advice.candidate.name} ({advice.candidate.source}): нет данных")
            summary = advisor.summarize(advices)
            print(f"Сопоставлено {summary['matched']} из {summary['total']}.")
            return 0

        options = ExportOptions(anonymize=self.args.anonymize, language=self.language)
        exporter = ExportService(self.service.find_entry)
        if self.args.format == "json":
            report = exporter.export_to_json(advices, options)
        else:
            report = exporter.export_to_csv(advices, options)

        if self.args.output:
            self.args.output.write_text(report, encoding="utf-8")
            logger.info(f"Отчет сохранен: {self.args.output}")
            print(f"Отчет сохранен: {self.args.output}")
        else:
            print(report)
        return 0

    @staticmethod
    def _print_entry(item: LocalizedKnowledgeEntry, detailed: bool = False):
        print(f"- {item.name} [{item.category_label}] {item.safety_label}")
        print(f"  {item.short_description}")
        if not detailed:
            return
        for text in (item.full_description, item.disable_impact, item.performance_impact, item.recommendation):
            if text:
                print(f"  {text}")
        if item.info_url:
            print(f"  {item.info_url}")


# --- Точка входа ---
def main(app_paths: Dict[str, Path], argv: Optional[List[str]] = None) -> int:
    """
    Создает и запускает экземпляр приложения.
    """
    app_instance = Application(app_paths, argv)
    if app_instance.initialize():
        return app_instance.exec()
    return 1
