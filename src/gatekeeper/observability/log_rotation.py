"""Log rotation — size-based rotation into numbered files, daily rolling files and cleanup."""

import logging
import re
import time
from collections.abc import Callable
from datetime import date
from pathlib import Path

DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024  # 100 MB
DEFAULT_MAX_FILES = 5
DEFAULT_LOG_DIR = Path("/tmp/gatekeeper")
LOG_PREFIX = "gatekeeper"
LOG_SUFFIX = ".log"
MAX_LOG_AGE_SECONDS = 24 * 60 * 60

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB)$", re.IGNORECASE)
_MULTIPLIERS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}

logger = logging.getLogger(__name__)


def parse_file_size(size: str) -> int:
    """Parse a size such as "100MB", "1.5gb" or "512 KB" to bytes; invalid input gives the default."""
    match = _SIZE_RE.match(size.strip()) if isinstance(size, str) else None
    if not match:
        return DEFAULT_MAX_FILE_SIZE
    return int(float(match.group(1)) * _MULTIPLIERS[match.group(2).upper()])


def get_rotated_path(base_path: Path | str, index: int) -> Path:
    """gatekeeper-2026-01-30.log, 2 -> gatekeeper-2026-01-30.2.log"""
    base_path = Path(base_path)
    return base_path.with_name(f"{base_path.stem}.{index}{base_path.suffix}")


def latest_rotation_index(base_path: Path | str) -> int:
    """Highest N among existing ``<stem>.<N><suffix>`` files, 0 if none."""
    base_path = Path(base_path)
    if not base_path.parent.exists():
        return 0
    pattern = re.compile(rf"^{re.escape(base_path.stem)}\.(\d+){re.escape(base_path.suffix)}$")
    indexes = [
        int(match.group(1))
        for match in (pattern.match(p.name) for p in base_path.parent.iterdir())
        if match
    ]
    return max(indexes, default=0)


def rolling_path_for(log_dir: Path | str, day: date, prefix: str = LOG_PREFIX) -> Path:
    """/tmp/gatekeeper, 2026-01-30 -> /tmp/gatekeeper/gatekeeper-2026-01-30.log"""
    return Path(log_dir) / f"{prefix}-{day.isoformat()}{LOG_SUFFIX}"


def prune_old_rolling_logs(
    log_dir: Path | str,
    prefix: str = LOG_PREFIX,
    max_age_seconds: float = MAX_LOG_AGE_SECONDS,
    now: float | None = None,
) -> list[Path]:
    """Delete dated logs (and their rotations) not modified within max_age_seconds."""
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        return []
    cutoff = (time.time() if now is None else now) - max_age_seconds
    removed = []
    for path in log_dir.iterdir():
        if not (path.name.startswith(f"{prefix}-") and path.name.endswith(LOG_SUFFIX)):
            continue
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink(missing_ok=True)
                removed.append(path)
        except OSError as e:
            logger.debug("Could not prune old log %s: %s", path, e)
    return removed


class RotatingLogFileHandler(logging.Handler):
    """
    File handler that rolls over to ``<stem>.<N><suffix>`` once the current
    file would exceed max_bytes. After max_files rollovers the last file
    fills up and further records are dropped, so disk use stays bounded.

    A new handler on an existing set of files resumes writing to the newest
    rotated file.
    """

    def __init__(
        self,
        log_file: Path | str,
        max_bytes: int = DEFAULT_MAX_FILE_SIZE,
        max_files: int = DEFAULT_MAX_FILES,
    ):
        super().__init__()
        self.max_bytes = max_bytes
        self.max_files = max_files
        self._open(Path(log_file))

    def _open(self, base_file: Path) -> None:
        base_file.parent.mkdir(parents=True, exist_ok=True)
        self.base_file = base_file
        self.rotation_index = latest_rotation_index(base_file)
        self.current_file = (
            get_rotated_path(base_file, self.rotation_index) if self.rotation_index else base_file
        )
        self.current_size = self.current_file.stat().st_size if self.current_file.exists() else 0

    @property
    def is_full(self) -> bool:
        return self.rotation_index >= self.max_files and self.current_size > self.max_bytes

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record) + "\n"
            size = len(line.encode("utf-8"))

            if self.current_size + size > self.max_bytes and self.rotation_index < self.max_files:
                self.rotation_index += 1
                self.current_file = get_rotated_path(self.base_file, self.rotation_index)
                self.current_size = 0

            if self.is_full:
                return

            with open(self.current_file, "a", encoding="utf-8") as f:
                f.write(line)
            self.current_size += size
        except Exception:
            self.handleError(record)

    def get_status(self) -> dict:
        return {
            "log_file": str(self.base_file),
            "current_file": str(self.current_file),
            "current_size_bytes": self.current_size,
            "max_size_bytes": self.max_bytes,
            "rotation_index": self.rotation_index,
            "max_files": self.max_files,
            "full": self.is_full,
        }


class DailyRotatingLogFileHandler(RotatingLogFileHandler):
    """
    Writes to ``<prefix>-YYYY-MM-DD.log`` in log_dir and moves to a new
    dated file when the local date changes, so the max_files cap applies
    per day. Dated logs older than a day are pruned at startup and on
    every date change.
    """

    def __init__(
        self,
        log_dir: Path | str = DEFAULT_LOG_DIR,
        max_bytes: int = DEFAULT_MAX_FILE_SIZE,
        max_files: int = DEFAULT_MAX_FILES,
        prefix: str = LOG_PREFIX,
        today: Callable[[], date] = date.today,
    ):
        self.log_dir = Path(log_dir)
        self.prefix = prefix
        self._today = today
        self.day = today()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        prune_old_rolling_logs(self.log_dir, prefix)
        super().__init__(rolling_path_for(self.log_dir, self.day, prefix), max_bytes, max_files)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            day = self._today()
            if day != self.day:
                self.day = day
                self._open(rolling_path_for(self.log_dir, day, self.prefix))
                prune_old_rolling_logs(self.log_dir, self.prefix)
        except Exception:
            self.handleError(record)
            return
        super().emit(record)

    def get_status(self) -> dict:
        status = super().get_status()
        status["day"] = self.day.isoformat()
        return status
