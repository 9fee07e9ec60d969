# tests/core/test_scanner.py
"""
Тесты для сбора элементов автозагрузки и формирования рекомендаций.
"""
import pytest
import psutil
from unittest.mock import MagicMock, PropertyMock

from src.startup_advisor.core.scanner import (
    SOURCE_PROCESS, SOURCE_REGISTRY_RUN, StartupAdvisor, StartupCandidate,
    StartupScanner, extract_executable,
)


def make_process(name, exe):
    proc = MagicMock()
    proc.info = {"pid": 100, "name": name, "exe": exe}
    return proc


class TestProcessCollection:

    def test_collects_unique_non_critical_processes(self, mocker):
        # GIVEN
        processes = [
            make_process("steam.exe", "C:\\Steam\\steam.exe"),
            make_process("steam.exe", "C:\\STEAM\\Steam.exe"),  # дубликат пути
            make_process("svchost.exe", "C:\\Windows\\System32\\svchost.exe"),
            make_process("System", None),
            make_process("Discord.exe", "C:\\Users\\bob\\Discord\\Discord.exe"),
        ]
        mocker.patch("psutil.process_iter", return_value=processes)

        # WHEN
        collected = StartupScanner()._collect_processes()

        # THEN
        assert [c.name for c in collected] == ["steam.exe", "Discord.exe"]
        assert all(c.source == SOURCE_PROCESS for c in collected)

    def test_vanished_process_is_skipped(self, mocker):
        # GIVEN
        gone = MagicMock()
        type(gone).info = PropertyMock(side_effect=psutil.NoSuchProcess(pid=42))
        mocker.patch("psutil.process_iter", return_value=[gone, make_process("zoom.exe", "C:\\Zoom\\zoom.exe")])

        # WHEN
        collected = StartupScanner()._collect_processes()

        # THEN
        assert [c.name for c in collected] == ["zoom.exe"]


class TestRegistryCollection:

    def test_registry_is_skipped_outside_windows(self, mocker):
        mocker.patch("sys.platform", "linux")
        assert StartupScanner()._collect_registry_run_entries() == []


@pytest.mark.asyncio
class TestCollectCandidates:

    async def test_results_from_all_sources_are_merged(self, mocker):
        # GIVEN
        process = StartupCandidate(name="steam.exe", executable="C:\\Steam\\steam.exe")
        run_entry = StartupCandidate(name="Discord", executable="C:\\Discord\\Update.exe", source=SOURCE_REGISTRY_RUN)
        mocker.patch.object(StartupScanner, "_collect_processes", return_value=[process])
        mocker.patch.object(StartupScanner, "_collect_registry_run_entries", return_value=[run_entry])

        # WHEN
        result = await StartupScanner().collect_candidates()

        # THEN
        assert result == [process, run_entry]

    async def test_failing_source_does_not_stop_others(self, mocker):
        # GIVEN
        run_entry = StartupCandidate(name="Discord", source=SOURCE_REGISTRY_RUN)
        mocker.patch.object(StartupScanner, "_collect_processes", side_effect=RuntimeError("boom"))
        mocker.patch.object(StartupScanner, "_collect_registry_run_entries", return_value=[run_entry])

        # WHEN
        result = await StartupScanner().collect_candidates()

        # THEN
        assert result == [run_entry]

    async def test_disabled_sources_are_not_called(self, mocker):
        # GIVEN
        processes = mocker.patch.object(StartupScanner, "_collect_processes", return_value=[])
        registry = mocker.patch.object(StartupScanner, "_collect_registry_run_entries", return_value=[])

        # WHEN
        result = await StartupScanner(include_processes=False, include_registry=False).collect_candidates()

        # THEN
        assert result == []
        processes.assert_not_called()
        registry.assert_not_called()


class TestExtractExecutable:

    @pytest.mark.parametrize("command, expected", [
        ('"C:\\Program Files\\Steam\\steam.exe" -silent', "C:\\Program Files\\Steam\\steam.exe"),
        ("C:\\Program Files\\Zoom\\bin\\Zoom.exe --autostart", "C:\\Program Files\\Zoom\\bin\\Zoom.exe"),
        ("C:\\Tools\\run.bat /quiet", "C:\\Tools\\run.bat"),
        ("   ", None),
        ('""', None),
    ])
    def test_extract(self, command, expected):
        assert extract_executable(command) == expected


class TestStartupAdvisor:

    def test_advise_matches_and_localizes(self, fake_service, candidates):
        # WHEN
        advices = StartupAdvisor(fake_service, language="en").advise(candidates)

        # THEN
        assert [a.matched for a in advices] == [True, True, False]
        assert advices[0].localized.short_description == "Steam gaming client."
        assert advices[2].localized is None
        assert fake_service.calls[1] == ("DriverBooster", "C:\\Program Files\\IObit\\DriverBooster.exe", "IObit")

    def test_unsupported_language_falls_back_to_french(self, fake_service, candidates):
        advices = StartupAdvisor(fake_service, language="de").advise(candidates[:1])
        assert advices[0].localized.short_description == "Client de jeux Steam."

    def test_summarize(self, fake_service, candidates):
        advices = StartupAdvisor(fake_service).advise(candidates)

        summary = StartupAdvisor.summarize(advices)

        assert summary == {
            "total": 3,
            "matched": 2,
            "unmatched": 1,
            "by_safety_level": {"Safe": 1, "ShouldRemove": 1},
        }
