# tests/knowledge/test_service_matching.py
"""
Тесты для поиска записи базы знаний, соответствующей элементу автозагрузки.
"""
import pytest

from src.startup_advisor.knowledge.service import extract_base_name, extract_browser_extension_id

CHROME_EXTENSION_PATH = (
    "C:\\Users\\bob\\AppData\\Local\\Google\\Chrome\\User Data\\Default\\Extensions\\"
    "cjpalhdlnbpafiamejdnhcphjbkeiagm\\1.51.0_0"
)


class TestFindEntryStrategies:
    """Каждая стратегия сопоставления по отдельности."""

    def test_match_by_executable_path(self, seeded_service):
        # GIVEN
        exe = "C:\\Program Files (x86)\\Steam\\Steam.exe"

        # WHEN
        entry = seeded_service.find_entry(None, exe, None)

        # THEN
        assert entry is not None
        assert entry.name == "Steam Client Bootstrapper"

    def test_short_executable_name_is_ignored(self, seeded_service):
        """Имя файла из 4 символов и меньше не используется: 'm.ex' совпало бы с 'steam.exe'."""
        assert seeded_service.find_entry(None, "C:\\tmp\\m.ex", None) is None

    def test_match_by_exact_name_ignores_case(self, seeded_service):
        entry = seeded_service.find_entry("WINDOWS explorer", None, None)
        assert entry.name == "Windows Explorer"

    def test_match_by_alias(self, seeded_service):
        entry = seeded_service.find_entry("Steam", None, None)
        assert entry.name == "Steam Client Bootstrapper"

    def test_match_by_base_name_with_guid_and_suffixes(self, seeded_service):
        # GIVEN
        name = "BraveSoftwareUpdateTaskMachineCore{1A2B3C4D-0000-1111-2222-333344445555}"

        # WHEN
        entry = seeded_service.find_entry(name, None, None)

        # THEN
        assert entry.name == "Brave Software Update"

    def test_match_by_base_name_with_packaging_prefix(self, seeded_service):
        entry = seeded_service.find_entry("com.todesktop.Notion", None, None)
        assert entry.name == "Notion"

    def test_match_by_chrome_extension_id(self, seeded_service):
        entry = seeded_service.find_entry("Unknown extension", CHROME_EXTENSION_PATH, None)
        assert entry.name == "uBlock Origin"

    def test_match_by_firefox_extension_id(self, seeded_service):
        path = "C:\\Users\\bob\\AppData\\Roaming\\Mozilla\\Firefox\\Profiles\\x.default\\extensions\\uBlock0@raymondhill.net"
        entry = seeded_service.find_entry(None, path, None)
        assert entry.name == "uBlock Origin"

    def test_match_by_publisher(self, seeded_service):
        entry = seeded_service.find_entry("Some Unknown Tool", None, "IObit")
        assert entry.name == "Driver Booster"

    def test_unknown_item_returns_none(self, seeded_service):
        assert seeded_service.find_entry("Totally Unknown", "C:\\x\\unknown.exe", "Nobody Ltd") is None


class TestFindEntryPrecedence:
    """Более надежная стратегия выигрывает у менее надежной."""

    def test_executable_wins_over_name(self, seeded_service):
        entry = seeded_service.find_entry("Notion", "C:\\Games\\steam.exe", None)
        assert entry.name == "Steam Client Bootstrapper"

    def test_name_wins_over_publisher(self, seeded_service):
        entry = seeded_service.find_entry("Notion", None, "IObit")
        assert entry.name == "Notion"

    def test_extension_id_wins_over_name(self, seeded_service):
        entry = seeded_service.find_entry("Notion", CHROME_EXTENSION_PATH, None)
        assert entry.name == "uBlock Origin"

    def test_falls_through_to_name_when_executable_unknown(self, seeded_service):
        entry = seeded_service.find_entry("Windows Explorer", "C:\\x\\unknown.exe", None)
        assert entry.name == "Windows Explorer"


class TestFindEntryInputs:

    @pytest.mark.parametrize("name, exe, publisher", [
        (None, None, None),
        ("", "", ""),
        ("   ", " ", "\t"),
    ])
    def test_empty_input_returns_none(self, seeded_service, name, exe, publisher):
        assert seeded_service.find_entry(name, exe, publisher) is None

    @pytest.mark.parametrize("publisher", ["N/A", "n/a", "Microsoft Windows", "Microsoft Windows Publisher"])
    def test_generic_publisher_is_not_used(self, seeded_service, publisher):
        """Издатель 'Microsoft Windows' есть в каталоге, но слишком общий для сопоставления."""
        assert seeded_service.find_entry("Unknown Service", None, publisher) is None

    def test_generic_publishers_come_from_settings(self, seeded_service):
        # GIVEN
        seeded_service.settings["generic_publishers"] = ["IObit"]

        # WHEN / THEN
        assert seeded_service.find_entry("Unknown", None, "IObit") is None

    def test_empty_database_returns_none(self, service):
        assert service.find_entry("Steam", "steam.exe", "Valve Corporation") is None


class TestNameHelpers:

    @pytest.mark.parametrize("raw, expected", [
        ("BraveSoftwareUpdateTaskMachineCore{1A2B3C4D-0000-1111-2222-333344445555}", "BraveSoftwareUpdate"),
        ("GoogleUpdaterTaskSystem144.0.7547.0{ABCDEF01-2345-6789-ABCD-EF0123456789}", "GoogleUpdater"),
        ("electron.app.Notion", "Notion"),
        ("com.todesktop.Notion", "Notion"),
        ("Spotify", "Spotify"),
        ("", ""),
    ])
    def test_extract_base_name(self, raw, expected):
        assert extract_base_name(raw) == expected

    @pytest.mark.parametrize("path, expected", [
        (CHROME_EXTENSION_PATH, "cjpalhdlnbpafiamejdnhcphjbkeiagm"),
        ("C:\\Profile\\extensions\\{d10d0bf8-f5b5-c8b4-a8b2-2b9879e08c5d}", "{d10d0bf8-f5b5-c8b4-a8b2-2b9879e08c5d}"),
        ("/home/u/.mozilla/extensions/uBlock0@raymondhill.net", "uBlock0@raymondhill.net"),
        ("C:\\Profile\\Extensions\\not-an-id\\1.0", None),
        ("C:\\Program Files\\Steam\\steam.exe", None),
        ("C:\\Profile\\Extensions", None),
        (None, None),
    ])
    def test_extract_browser_extension_id(self, path, expected):
        assert extract_browser_extension_id(path) == expected
