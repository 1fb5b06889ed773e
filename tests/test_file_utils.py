import os
from pathlib import Path

import file_utils


def touch(path: Path, content: str = "", mtime: int = None) -> Path:
    path.write_text(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def test_matching_files_newest_first(tmp_path: Path):
    touch(tmp_path / "old.log", mtime=1_700_000_000)
    touch(tmp_path / "new.txt", mtime=1_700_000_100)
    touch(tmp_path / "ignored.csv", mtime=1_700_000_200)

    files = file_utils.get_all_matching_files(str(tmp_path), r".*\.(log|txt)$")

    assert [os.path.basename(f) for f in files] == ["new.txt", "old.log"]
    assert file_utils.get_most_recent_file(str(tmp_path), r".*\.log$").endswith("old.log")


def test_missing_directory(tmp_path: Path):
    assert file_utils.get_all_matching_files(str(tmp_path / "missing"), r".*") == []
    assert file_utils.get_most_recent_file(str(tmp_path / "missing"), r".*") is None


def test_resolve_log_files_expands_directories(tmp_path: Path):
    nested = tmp_path / "nested"
    nested.mkdir()
    first = touch(tmp_path / "a.log", mtime=1_700_000_000)
    second = touch(nested / "b.log", mtime=1_700_000_100)
    touch(tmp_path / "c.txt")

    assert file_utils.resolve_log_files([tmp_path], "*.log") == [first, second]
    # files given twice are processed once
    assert file_utils.resolve_log_files([tmp_path, first], "*.log") == [first, second]
    assert file_utils.resolve_log_files([tmp_path], "*.log", latest_only=True) == [second]


def test_sha256_text_is_stable():
    assert file_utils.sha256_text("abc") == file_utils.sha256_text("abc")
    assert file_utils.sha256_text("abc") != file_utils.sha256_text("abd")


def test_describe_file(tmp_path: Path):
    assert file_utils.describe_file(tmp_path / "session.log") == "session.log"
    assert file_utils.describe_file(None) is None
