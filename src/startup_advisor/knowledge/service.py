# src/startup_advisor/knowledge/service.py
"""
Сервис базы знаний: хранение записей каталога в SQLite и поиск записи,
соответствующей найденному элементу автозагрузки.

Поиск выполняется несколькими стратегиями в порядке убывания надежности:
ID расширения браузера -> имя исполняемого файла -> точное имя ->
псевдонимы -> базовое имя без GUID/версий -> издатель.
"""
import re
import sqlite3
import logging
from datetime import datetime
from pathlib import Path, PureWindowsPath
from typing import Any, Dict, List, Optional

from .models import KnowledgeCategory, KnowledgeEntry, SafetyLevel, join_list, split_list
from .seeder import KnowledgeSeeder
from ..config import DEFAULT_KNOWLEDGE_CONFIG, load_settings, resolve_db_path

logger = logging.getLogger(__name__)

# Колонки с английскими переводами, добавленные после первой версии схемы
ENGLISH_COLUMNS = (
    "ShortDescriptionEn", "FullDescriptionEn", "DisableImpactEn",
    "PerformanceImpactEn", "RecommendationEn",
)

_GUID_RE = re.compile(r"\{[a-fA-F0-9\-]+\}")
_VERSION_RE = re.compile(r"\d+\.\d+\.\d+\.\d+")
_SUFFIX_RE = re.compile(r"(Task|Machine|Core|System|Logon|Service)+\s*$", re.IGNORECASE)
_CHROME_EXTENSION_ID_RE = re.compile(r"^[a-p]{32}$")
_BASE_NAME_PREFIXES = ("electron.app.", "com.todesktop.")

_ENTRY_COLUMNS = """
    Name, Aliases, Publisher, ExecutableNames, Category, SafetyLevel,
    ShortDescription, ShortDescriptionEn, FullDescription, FullDescriptionEn,
    DisableImpact, DisableImpactEn, PerformanceImpact, PerformanceImpactEn,
    Recommendation, RecommendationEn, InfoUrl, Tags, LastUpdated
"""


class KnowledgeService:
    """
    Доступ к базе знаний об элементах автозагрузки.

    Экземпляр владеет одним SQLite-соединением; используйте его как
    контекстный менеджер или вызывайте `close()` явно.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        kb_path: Optional[Path] = None,
        settings: Optional[Dict[str, Any]] = None,
    ):
        self.settings = settings or load_settings()
        self.db_path = db_path or resolve_db_path(self.settings)
        self.kb_path = kb_path
        logger.info(f"Открытие базы знаний: {self.db_path}")
        self._connection = sqlite3.connect(self.db_path)
        self._connection.row_factory = sqlite3.Row
        self._closed = False
        self._ensure_database()

    # --- Жизненный цикл ---

    def close(self) -> None:
        if not self._closed:
            self._connection.close()
            self._closed = True
            logger.debug("Соединение с базой знаний закрыто.")

    def __enter__(self) -> "KnowledgeService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- Схема ---

    def _ensure_database(self) -> None:
        self._connection.executescript("""
            CREATE TABLE IF NOT EXISTS KnowledgeEntries (
                Id INTEGER PRIMARY KEY AUTOINCREMENT,
                Name TEXT NOT NULL,
                Aliases TEXT,
                Publisher TEXT,
                ExecutableNames TEXT,
                Category INTEGER NOT NULL,
                SafetyLevel INTEGER NOT NULL,
                ShortDescription TEXT NOT NULL,
                ShortDescriptionEn TEXT,
                FullDescription TEXT,
                FullDescriptionEn TEXT,
                DisableImpact TEXT,
                DisableImpactEn TEXT,
                PerformanceImpact TEXT,
                PerformanceImpactEn TEXT,
                Recommendation TEXT,
                RecommendationEn TEXT,
                InfoUrl TEXT,
                Tags TEXT,
                LastUpdated TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_name ON KnowledgeEntries(Name);
            CREATE INDEX IF NOT EXISTS idx_publisher ON KnowledgeEntries(Publisher);
            CREATE INDEX IF NOT EXISTS idx_executables ON KnowledgeEntries(ExecutableNames);
        """)
        self._migrate_database()
        self._connection.commit()

    def _migrate_database(self) -> None:
        """Добавляет английские колонки в БД, созданные старыми версиями."""
        for column in ENGLISH_COLUMNS:
            try:
                self._connection.execute(f"ALTER TABLE KnowledgeEntries ADD COLUMN {column} TEXT")
                logger.info(f"Миграция БД: добавлена колонка {column}.")
            except sqlite3.OperationalError:
                pass  # Колонка уже существует

    # --- Поиск соответствия ---

    def find_entry(
        self,
        name: Optional[str],
        executable: Optional[str],
        publisher: Optional[str],
    ) -> Optional[KnowledgeEntry]:
        """
        Ищет запись базы знаний по имени, исполняемому файлу или издателю.

        Args:
            name: Отображаемое имя элемента автозагрузки.
            executable: Путь к исполняемому файлу или его имя.
            publisher: Издатель.

        Returns:
            Первая найденная запись или None.
        """
        if not _has_text(name) and not _has_text(executable) and not _has_text(publisher):
            return None

        # 0. ID расширения браузера (путь содержит ...\Extensions\<id>\...)
        extension_id = extract_browser_extension_id(executable)
        if extension_id:
            entry = self._query_one(
                "SELECT * FROM KnowledgeEntries WHERE Aliases LIKE ? LIMIT 1",
                (f"%{extension_id}%",),
            )
            if entry:
                logger.debug(f"Совпадение по ID расширения '{extension_id}': {entry.name}")
                return entry

        # 1. Имя исполняемого файла (самый надежный признак)
        if _has_text(executable):
            exe_name = PureWindowsPath(executable.strip()).name.lower()
            if len(exe_name) > 4:
                entry = self._query_one(
                    "SELECT * FROM KnowledgeEntries WHERE ExecutableNames LIKE ? LIMIT 1",
                    (f"%{exe_name}%",),
                )
                if entry:
                    logger.debug(f"Совпадение по исполняемому файлу '{exe_name}': {entry.name}")
                    return entry

        if _has_text(name):
            # 2. Точное имя
            entry = self._query_one(
                "SELECT * FROM KnowledgeEntries WHERE Name = ? COLLATE NOCASE LIMIT 1",
                (name,),
            )
            if entry:
                return entry

            # 3. Имя среди псевдонимов
            entry = self._query_one(
                "SELECT * FROM KnowledgeEntries WHERE Aliases LIKE ? LIMIT 1",
                (f"%{name}%",),
            )
            if entry:
                return entry

            # 4. Базовое имя для имен с GUID и версиями ("BraveSoftwareUpdate{GUID}")
            base_name = extract_base_name(name)
            if base_name and len(base_name) >= 4 and base_name != name:
                entry = self._query_one(
                    "SELECT * FROM KnowledgeEntries WHERE Name LIKE ? OR Aliases LIKE ? LIMIT 1",
                    (f"%{base_name}%", f"%{base_name}%"),
                )
                if entry:
                    logger.debug(f"Совпадение по базовому имени '{base_name}': {entry.name}")
                    return entry

        # 5. Издатель (наименее надежно, общие издатели пропускаются)
        if _has_text(publisher) and not self._is_generic_publisher(publisher):
            return self._query_one(
                "SELECT * FROM KnowledgeEntries WHERE Publisher LIKE ? LIMIT 1",
                (f"%{publisher}%",),
            )

        return None

    def _is_generic_publisher(self, publisher: str) -> bool:
        generic = self.settings.get("generic_publishers", DEFAULT_KNOWLEDGE_CONFIG["generic_publishers"])
        fragments = self.settings.get(
            "excluded_publisher_fragments", DEFAULT_KNOWLEDGE_CONFIG["excluded_publisher_fragments"]
        )
        lowered = publisher.strip().lower()
        if any(lowered == g.lower() for g in generic):
            return True
        return any(f.lower() in lowered for f in fragments)

    # --- Запросы ---

    def search(self, keyword: str, limit: Optional[int] = None) -> List[KnowledgeEntry]:
        """Ищет записи по ключевому слову в имени, псевдонимах, издателе, описаниях и тегах."""
        if limit is None:
            limit = self.settings.get("search_limit", 20)
        pattern = f"%{keyword}%"
        rows = self._connection.execute(
            """
            SELECT * FROM KnowledgeEntries
            WHERE Name LIKE :p
               OR Aliases LIKE :p
               OR Publisher LIKE :p
               OR ShortDescription LIKE :p
               OR ShortDescriptionEn LIKE :p
               OR Tags LIKE :p
            ORDER BY Name
            LIMIT :limit
            """,
            {"p": pattern, "limit": limit},
        ).fetchall()
        return [self._map_entry(row) for row in rows]

    def get_by_category(self, category: KnowledgeCategory) -> List[KnowledgeEntry]:
        rows = self._connection.execute(
            "SELECT * FROM KnowledgeEntries WHERE Category = ? ORDER BY Name",
            (int(category),),
        ).fetchall()
        return [self._map_entry(row) for row in rows]

    def get_count(self) -> int:
        return self._connection.execute("SELECT COUNT(*) FROM KnowledgeEntries").fetchone()[0]

    def get_statistics(self) -> Dict[str, Any]:
        """Возвращает общее число записей и разбивку по категориям и уровням безопасности."""
        by_category = {
            KnowledgeCategory(row[0]).name: row[1]
            for row in self._connection.execute(
                "SELECT Category, COUNT(*) FROM KnowledgeEntries GROUP BY Category ORDER BY Category"
            )
        }
        by_safety = {
            SafetyLevel(row[0]).name: row[1]
            for row in self._connection.execute(
                "SELECT SafetyLevel, COUNT(*) FROM KnowledgeEntries GROUP BY SafetyLevel ORDER BY SafetyLevel"
            )
        }
        return {"total": self.get_count(), "by_category": by_category, "by_safety_level": by_safety}

    # --- Запись ---

    def save_entry(self, entry: KnowledgeEntry) -> int:
        """
        Добавляет или обновляет запись.

        Запись без `id`, у которой совпадают имя (без учета регистра) и категория
        с уже существующей, обновляет ее, поэтому повторное заполнение
        не создает дубликатов.

        Returns:
            Идентификатор строки; он же присваивается `entry.id`.
        """
        if not entry.name or not entry.name.strip():
            raise ValueError("Имя записи базы знаний не может быть пустым.")
        if not entry.short_description:
            raise ValueError(f"Запись '{entry.name}' не содержит краткого описания.")

        name = entry.name.strip()
        entry_id = entry.id
        if entry_id is None:
            existing = self._connection.execute(
                "SELECT Id FROM KnowledgeEntries WHERE Name = ? COLLATE NOCASE AND Category = ? LIMIT 1",
                (name, int(entry.category)),
            ).fetchone()
            if existing:
                entry_id = existing["Id"]

        params = self._entry_params(entry)
        if entry_id is None:
            cursor = self._connection.execute(
                f"INSERT INTO KnowledgeEntries ({_ENTRY_COLUMNS}) VALUES ({', '.join('?' * len(params))})",
                params,
            )
            entry_id = cursor.lastrowid
        else:
            assignments = ", ".join(f"{col.strip()} = ?" for col in _ENTRY_COLUMNS.split(","))
            self._connection.execute(
                f"UPDATE KnowledgeEntries SET {assignments} WHERE Id = ?",
                (*params, entry_id),
            )

        self._connection.commit()
        entry.id = entry_id
        return entry_id

    @staticmethod
    def _entry_params(entry: KnowledgeEntry) -> tuple:
        return (
            entry.name.strip(),
            join_list(entry.aliases),
            entry.publisher,
            join_list(entry.executable_names),
            int(entry.category),
            int(entry.safety_level),
            entry.short_description,
            entry.short_description_en,
            entry.full_description,
            entry.full_description_en,
            entry.disable_impact,
            entry.disable_impact_en,
            entry.performance_impact,
            entry.performance_impact_en,
            entry.recommendation,
            entry.recommendation_en,
            entry.info_url,
            join_list(entry.tags),
            entry.last_updated.isoformat(),
        )

    # --- Заполнение ---

    def seed_if_empty(self) -> int:
        """
        Заполняет базу каталогом, если она пуста или содержит записи без
        английских переводов (в этом случае база очищается и заполняется заново).

        Returns:
            Число сохраненных записей, 0 если заполнение не потребовалось.
        """
        count = self.get_count()
        if count == 0:
            logger.info("База знаний пуста, выполняется первичное заполнение.")
            return self._seed()

        if self._needs_english_translations_update():
            logger.info(f"В базе знаний ({count} записей) отсутствуют переводы, выполняется перезаполнение.")
            return self._seed(replace_existing=True)

        logger.debug(f"База знаний актуальна ({count} записей), заполнение не требуется.")
        return 0

    def _seed(self, replace_existing: bool = False) -> int:
        seeder = KnowledgeSeeder(self.save_entry, kb_path=self.kb_path)
        # Каталог проверяется до очистки, чтобы ошибка в нем не оставила базу пустой
        entries = seeder.load_catalog()
        seeder.validate_catalog(entries)
        if replace_existing:
            self._connection.execute("DELETE FROM KnowledgeEntries")
            self._connection.commit()
        return seeder.seed(entries)

    def _needs_english_translations_update(self) -> bool:
        missing = self._connection.execute(
            "SELECT COUNT(*) FROM KnowledgeEntries WHERE ShortDescriptionEn IS NULL OR ShortDescriptionEn = ''"
        ).fetchone()[0]
        return missing > 0

    # --- Чтение строк ---

    def _query_one(self, sql: str, params: tuple) -> Optional[KnowledgeEntry]:
        row = self._connection.execute(sql, params).fetchone()
        return self._map_entry(row) if row else None

    @staticmethod
    def _map_entry(row: sqlite3.Row) -> KnowledgeEntry:
        return KnowledgeEntry(
            id=row["Id"],
            name=row["Name"],
            aliases=split_list(row["Aliases"]),
            publisher=row["Publisher"],
            executable_names=split_list(row["ExecutableNames"]),
            category=KnowledgeCategory(row["Category"]),
            safety_level=SafetyLevel(row["SafetyLevel"]),
            short_description=row["ShortDescription"],
            short_description_en=row["ShortDescriptionEn"],
            full_description=row["FullDescription"],
            full_description_en=row["FullDescriptionEn"],
            disable_impact=row["DisableImpact"],
            disable_impact_en=row["DisableImpactEn"],
            performance_impact=row["PerformanceImpact"],
            performance_impact_en=row["PerformanceImpactEn"],
            recommendation=row["Recommendation"],
            recommendation_en=row["RecommendationEn"],
            info_url=row["InfoUrl"],
            tags=split_list(row["Tags"]),
            last_updated=datetime.fromisoformat(row["LastUpdated"]),
        )


# --- Вспомогательные функции разбора имен ---

def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def extract_base_name(name: str) -> str:
    """
    Извлекает базовое имя из отображаемых имен с GUID и номерами версий.

    "BraveSoftwareUpdateTaskMachineCore{GUID}" -> "BraveSoftwareUpdate"
    "GoogleUpdaterTaskSystem144.0.7547.0{GUID}" -> "GoogleUpdater"
    """
    if not name or not name.strip():
        return name

    result = _GUID_RE.sub("", name)
    result = _VERSION_RE.sub("", result)
    result = _SUFFIX_RE.sub("", result)

    for prefix in _BASE_NAME_PREFIXES:
        if result.lower().startswith(prefix):
            result = result[len(prefix):]

    return result.strip(" .-_")


def extract_browser_extension_id(path: Optional[str]) -> Optional[str]:
    """
    Извлекает ID расширения браузера из пути к нему.

    "C:\\Users\\u\\...\\Extensions\\cjpalhdlnbpafiamejdnhcphjbkeiagm\\1.51.0_0"
    -> "cjpalhdlnbpafiamejdnhcphjbkeiagm"
    """
    if not _has_text(path):
        return None

    index = path.lower().find("extensions")
    if index == -1:
        return None

    after = path[index + len("extensions"):]
    parts = [p for p in re.split(r"[\\/]", after) if p]
    if not parts:
        return None

    candidate = parts[0]
    # ID Chrome/Edge/Brave: 32 символа a-p
    if _CHROME_EXTENSION_ID_RE.match(candidate):
        return candidate
    # ID Firefox: {guid} или name@domain
    if candidate.startswith("{") and candidate.endswith("}"):
        return candidate
    if "@" in candidate:
        return candidate
    return None
