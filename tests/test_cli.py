"""End-to-end tests for the command line interface."""

import io
import json
import pytest
from mutagen.id3 import ID3, TIT2, TXXX, WOAR

from scrubtag import __version__
from scrubtag.cli import main, read_paths
from scrubtag.legacy import LegacyTagLocation, locate
from scrubtag.utils import (
    EXIT_CODE_SUCCESS,
    EXIT_CODE_ERROR,
    EXIT_CODE_USAGE,
    EXIT_CODE_NO_FILES,
)


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    """Keep the rotating log file out of the working directory."""
    monkeypatch.setenv('SCRUBTAG_LOG_DIR', str(tmp_path / "logs"))


@pytest.fixture
def dirty_file(mp3_factory):
    return mp3_factory("Artist - Song.mp3", frames=[
        TIT2(encoding=3, text=["Song www.promo.example"]),
        WOAR(url='http://promo.example/'),
        TXXX(encoding=3, desc='replaygain_track_gain', text=["-3 dB"]),
    ], legacy='tail')


def run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


class TestClean:

    def test_clean_file(self, dirty_file, word_file, capsys):
        assert run([str(dirty_file), "--forbidden", str(word_file)]) == EXIT_CODE_SUCCESS

        tags = ID3(dirty_file)
        assert tags['TIT2'].text == ["Song"]
        assert tags.getall('WOAR') == []
        out = capsys.readouterr().out
        assert "Updating TIT2: Song" in out
        assert "Removing frame WOAR" in out
        assert "ID3v1 at tail: removed" in out

    def test_forbidden_from_env(self, dirty_file, word_file, monkeypatch):
        monkeypatch.setenv('SCRUBTAG_FORBIDDEN', str(word_file))
        assert run([str(dirty_file)]) == EXIT_CODE_SUCCESS
        assert ID3(dirty_file)['TIT2'].text == ["Song"]

    def test_dry_run(self, dirty_file, word_file, capsys):
        before = dirty_file.read_bytes()
        assert run([str(dirty_file), "--forbidden", str(word_file), "--dry-run"]) == EXIT_CODE_SUCCESS
        assert dirty_file.read_bytes() == before
        assert "Disabled write to file for dry run" in capsys.readouterr().out

    def test_enhance_flag(self, tmp_path, word_file):
        path = tmp_path / "Artist - Song.mp3"
        path.write_bytes(b'\xFF\xFB\x90\x00' * 100)
        assert run([str(path), "--forbidden", str(word_file), "--enhance"]) == EXIT_CODE_SUCCESS
        tags = ID3(path)
        assert tags['TPE1'].text == ["Artist"]
        assert tags['TIT2'].text == ["Song"]

    def test_missing_word_list(self, dirty_file, tmp_path):
        assert run([str(dirty_file), "--forbidden", str(tmp_path / "none.txt")]) == EXIT_CODE_ERROR

    def test_paths_from_stdin(self, dirty_file, word_file, monkeypatch):
        monkeypatch.setattr('sys.stdin', io.StringIO(f"{dirty_file}\n\n/ignored/after/blank.mp3\n"))
        assert run(["--forbidden", str(word_file)]) == EXIT_CODE_SUCCESS
        assert ID3(dirty_file)['TIT2'].text == ["Song"]

    def test_failed_file_sets_exit_code(self, dirty_file, malformed_mp3, word_file, capsys):
        code = run([str(dirty_file), str(malformed_mp3), "--forbidden", str(word_file)])
        assert code == EXIT_CODE_ERROR
        # The healthy file is still cleaned
        assert ID3(dirty_file)['TIT2'].text == ["Song"]
        assert "Failed: 1" in capsys.readouterr().out

    def test_json_report(self, dirty_file, word_file, tmp_path):
        report_path = tmp_path / "report.json"
        run([str(dirty_file), "--forbidden", str(word_file), "--json-report", str(report_path)])

        report = json.loads(report_path.read_text(encoding='utf-8'))
        assert report["summary"] == {"total": 1, "success": 1, "failed": 0, "changed": 1}
        record = report["files"][0]
        assert record["path"] == str(dirty_file)
        assert record["saved"] is True
        assert record["legacy"] == "tail"
        assert record["legacy_removed"] is True


class TestOperations:

    def test_ungain(self, dirty_file):
        assert run([str(dirty_file), "--operation", "ungain"]) == EXIT_CODE_SUCCESS
        tags = ID3(dirty_file)
        assert tags.getall('TXXX') == []
        # ungain leaves everything else alone
        assert tags['TIT2'].text == ["Song www.promo.example"]

    def test_add_and_check_cover(self, dirty_file, cover_png, capsys):
        assert run([str(dirty_file), "--operation", "add-cover", "--cover", str(cover_png)]) == EXIT_CODE_SUCCESS
        capsys.readouterr()
        assert run([str(dirty_file), "--operation", "check-cover"]) == EXIT_CODE_SUCCESS
        assert "Cover: present" in capsys.readouterr().out

    def test_strip_legacy(self, dirty_file):
        assert run([str(dirty_file), "--operation", "strip-legacy"]) == EXIT_CODE_SUCCESS
        assert locate(dirty_file) is LegacyTagLocation.NONE


class TestArguments:

    def test_version(self, capsys):
        assert run(["--version"]) == EXIT_CODE_SUCCESS
        assert __version__ in capsys.readouterr().out

    def test_missing_path(self, tmp_path):
        assert run([str(tmp_path / "nope.mp3"), "--operation", "strip-legacy"]) == EXIT_CODE_USAGE

    def test_add_cover_without_cover(self, dirty_file):
        assert run([str(dirty_file), "--operation", "add-cover"]) == EXIT_CODE_USAGE

    def test_enhance_with_other_operation(self, dirty_file):
        assert run([str(dirty_file), "--operation", "ungain", "--enhance"]) == EXIT_CODE_USAGE

    def test_bad_threads(self, dirty_file):
        assert run([str(dirty_file), "--operation", "ungain", "--threads", "0"]) == EXIT_CODE_USAGE

    def test_unknown_operation(self, dirty_file):
        assert run([str(dirty_file), "--operation", "explode"]) == EXIT_CODE_USAGE

    def test_no_files(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert run([str(empty), "--operation", "strip-legacy"]) == EXIT_CODE_NO_FILES


class TestReadPaths:

    def test_stops_at_blank_line(self):
        stream = io.StringIO("a.mp3\r\nb c.mp3\n\nd.mp3\n")
        assert read_paths(stream) == ["a.mp3", "b c.mp3"]

    def test_empty_input(self):
        assert read_paths(io.StringIO("")) == []
