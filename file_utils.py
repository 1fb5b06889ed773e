import hashlib
import os
import re
from pathlib import Path
from typing import List, Optional


def get_most_recent_file(directory, pattern):
    files = get_all_matching_files(directory, pattern)
    return files[0] if files else None


def get_all_matching_files(directory, pattern):
    """Log files in directory whose names match the regex pattern, newest first."""
    if not os.path.isdir(directory):
        return []
    files_with_paths = [
        os.path.join(directory, f) for f in os.listdir(directory)
        if re.match(pattern, f) and os.path.isfile(os.path.join(directory, f))
    ]
    files_with_paths.sort(key=os.path.getmtime, reverse=True)
    return files_with_paths


def discover_log_files(input_dir: Path, glob_pattern: str) -> List[Path]:
    if not input_dir.exists():
        return []
    return [path for path in sorted(input_dir.rglob(glob_pattern)) if path.is_file()]


def resolve_log_files(inputs: List[Path], glob_pattern: str, latest_only: bool = False) -> List[Path]:
    """Expands directories with glob_pattern; files are taken as given."""
    log_files: List[Path] = []
    for path in inputs:
        if path.is_file():
            log_files.append(path)
            continue
        log_files.extend(discover_log_files(path, glob_pattern))

    if not log_files:
        return []

    log_files = sorted(set(log_files))
    if latest_only:
        return [max(log_files, key=lambda p: p.stat().st_mtime)]
    return log_files


def read_log_text(path) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as log_file:
        return log_file.read()


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def describe_file(path) -> Optional[str]:
    """Short run description for a log file: its name without the directory."""
    return os.path.basename(str(path)) if path else None
