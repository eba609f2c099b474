"""Tests for the multi-region policy and file analysis."""

import gzip
import logging

import pytest

from kforge.core.errors import EmptyScanError, PathError
from kforge.core.messages import WarningCode
from kforge.core.policy import ScanState, analyze_file, plan_regions, scan_state
from kforge.core.regions import CandidateRegion


LOGGER = logging.getLogger("kforge.tests")


def _warnings(caplog):
    return [r for r in caplog.records if r.levelno == logging.WARNING]


def _errors(caplog):
    return [r for r in caplog.records if r.levelno == logging.ERROR]


class TestScanState:

    def test_counts(self):
        region = CandidateRegion("gzip", 0, 10)
        assert scan_state([]) is ScanState.EMPTY
        assert scan_state([region]) is ScanState.SINGLE
        assert scan_state([region, region]) is ScanState.MULTIPLE


class TestPlanRegions:

    def test_empty_scan_is_fatal(self, caplog):
        with pytest.raises(EmptyScanError) as ei:
            plan_regions([], "/fw", "vmlinuz", LOGGER)
        assert "vmlinuz" in str(ei.value)

    def test_single_region_no_warning(self, caplog):
        caplog.set_level(logging.DEBUG)
        result = plan_regions([CandidateRegion("xz", 0x40, 0x1000)], "/fw", "vmlinuz", LOGGER)
        assert result.ok
        assert len(result.blueprints) == 1
        assert result.warnings == []
        assert _warnings(caplog) == []

    @pytest.mark.parametrize("count", [2, 3, 7])
    def test_multiple_regions_warn_once(self, caplog, count):
        caplog.set_level(logging.DEBUG)
        regions = [CandidateRegion("gzip", i * 0x1000, 0x100 + i) for i in range(count)]
        result = plan_regions(regions, "/fw", "vmlinuz", LOGGER)

        assert result.ok
        assert len(result.blueprints) == count
        assert len(_warnings(caplog)) == 1
        assert [w.code for w in result.warnings] == [WarningCode.W_AMBIGUOUS_REGIONS]

    def test_each_blueprint_uses_its_own_region(self):
        regions = [
            CandidateRegion("lzma", 0x2000, 0x300),
            CandidateRegion("gzip", 0x10, 0x50),
        ]
        result = plan_regions(regions, "/fw", "vmlinuz", LOGGER)

        first, second = result.blueprints
        assert first.region == regions[0]
        assert "skip=$[0x2000] count=$[0x300]" in first.steps[0].command_text
        assert "0x10]" not in first.steps[0].command_text
        assert "skip=$[0x10] count=$[0x50]" in second.steps[0].command_text
        assert all("0x2000" not in step.command_text for step in second.steps)

    def test_unknown_tag_only_suppresses_its_own_blueprint(self, caplog):
        caplog.set_level(logging.DEBUG)
        regions = [
            CandidateRegion("gzip", 0x100, 0x20),
            CandidateRegion("foo", 0x200, 0x20),
            CandidateRegion("bzip2", 0x300, 0x20),
        ]
        result = plan_regions(regions, "/fw", "vmlinuz", LOGGER)

        assert not result.ok
        assert [b.region.format_tag for b in result.blueprints] == ["gzip", "bzip2"]
        assert [e.code for e in result.errors] == [WarningCode.E_UNKNOWN_FORMAT]
        assert len(_errors(caplog)) == 1
        assert "'foo'" in _errors(caplog)[0].getMessage()

    def test_single_unknown_tag_gives_no_blueprint(self):
        result = plan_regions([CandidateRegion("foo", 0, 1)], "/fw", "vmlinuz", LOGGER)
        assert not result.ok
        assert result.blueprints == []

    def test_summary_reports_failures(self):
        result = plan_regions([CandidateRegion("foo", 0, 1)], "/fw", "vmlinuz", LOGGER)
        summary = result.to_summary()
        assert summary.startswith("[FAILED] /fw/vmlinuz")
        assert "'foo'" in summary


class TestAnalyzeFile:

    def test_missing_path(self, tmp_path):
        with pytest.raises(PathError):
            analyze_file(tmp_path / "nope.bin", lambda data: [], LOGGER)

    def test_directory_is_rejected(self, tmp_path):
        with pytest.raises(PathError):
            analyze_file(tmp_path, lambda data: [], LOGGER)

    def test_scanner_called_once_with_full_contents(self, tmp_path):
        image = tmp_path / "vmlinuz"
        payload = b"\x00" * 64 + gzip.compress(b"kernel" * 100, mtime=0)
        image.write_bytes(payload)
        seen = []

        def scanner(data):
            seen.append(data)
            return [CandidateRegion("gzip", 64, len(payload) - 64)]

        result = analyze_file(image, scanner, LOGGER)

        assert seen == [payload]
        assert result.ok
        assert result.source == f"{tmp_path}/vmlinuz"
        assert f"$ cd {tmp_path}" in result.blueprints[0].steps[0].command_text

    def test_empty_scan_propagates(self, tmp_path):
        image = tmp_path / "blank.bin"
        image.write_bytes(b"\x00" * 32)
        with pytest.raises(EmptyScanError):
            analyze_file(image, lambda data: [], LOGGER)
