"""
File-based tracer that writes finished root runs to local JSONL files.
"""

import asyncio
import gzip
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Optional

from ..core.run import Run
from ..core.tracer import BaseTracer
from ..utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class FileTracer(BaseTracer):
    """
    Tracer that appends each finished root run as one JSON line.

    Files are named ``runs_<timestamp>_<counter>.jsonl`` and rotated once
    they reach ``max_file_size_mb``. When more than ``max_files`` exist the
    oldest are compressed (or deleted).
    """

    name = "file_tracer"

    def __init__(
        self,
        directory: str = "./runs",
        max_file_size_mb: float = 100,
        max_files: int = 10,
        compress_old_files: bool = True,
    ):
        super().__init__()
        self.directory = Path(directory)
        self.max_file_size_mb = max_file_size_mb
        self.max_files = max_files
        self.compress_old_files = compress_old_files

        self._current_file: Optional[IO[str]] = None
        self._current_path: Optional[Path] = None
        self._current_file_size = 0
        self._file_counter = 0
        self._lock = threading.Lock()

    @property
    def current_path(self) -> Optional[Path]:
        return self._current_path

    async def persist_run(self, run: Run) -> None:
        line = json.dumps(run.to_dict(), default=str) + "\n"
        await asyncio.to_thread(self._write_line, line)

    def _write_line(self, line: str) -> None:
        with self._lock:
            try:
                if self._should_rotate_file():
                    self._rotate_file()
                if self._current_file is None:
                    raise PersistenceError("No run file is open for writing")
                self._current_file.write(line)
                self._current_file.flush()
                self._current_file_size += len(line.encode("utf-8"))
            except OSError as e:
                logger.error(f"Failed to write run to file: {e}")
                raise PersistenceError(f"File write failed: {e}") from e

    def _should_rotate_file(self) -> bool:
        if self._current_file is None:
            return True
        max_size_bytes = self.max_file_size_mb * 1024 * 1024
        return self._current_file_size >= max_size_bytes

    def _rotate_file(self) -> None:
        if self._current_file is not None:
            self._current_file.close()

        self.directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        path = self.directory / f"runs_{timestamp}_{self._file_counter:04d}.jsonl"

        self._current_file = open(path, "a", encoding="utf-8")
        self._current_path = path
        self._current_file_size = 0
        self._file_counter += 1
        logger.info(f"Rotated to new run file: {path}")

        self._cleanup_old_files()

    def _cleanup_old_files(self) -> None:
        try:
            run_files = sorted(
                self.directory.glob("runs_*.jsonl"), key=lambda f: (f.stat().st_mtime, f.name)
            )
            run_files = [f for f in run_files if f != self._current_path]
            excess = len(run_files) + 1 - self.max_files
            for old_file in run_files[: max(excess, 0)]:
                if self.compress_old_files:
                    self._compress_file(old_file)
                else:
                    old_file.unlink()
                    logger.info(f"Deleted old run file: {old_file}")
        except OSError as e:
            logger.warning(f"Failed to clean up old run files: {e}")

    def _compress_file(self, file_path: Path) -> None:
        compressed_path = file_path.with_suffix(file_path.suffix + ".gz")
        with open(file_path, "rb") as f_in, gzip.open(compressed_path, "wb") as f_out:
            f_out.writelines(f_in)
        file_path.unlink()
        logger.info(f"Compressed {file_path} -> {compressed_path}")

    def close(self) -> None:
        with self._lock:
            if self._current_file is not None:
                self._current_file.close()
                self._current_file = None

    def get_stats(self) -> dict[str, Any]:
        run_files = list(self.directory.glob("runs_*.jsonl")) if self.directory.exists() else []
        total_size = sum(f.stat().st_size for f in run_files)
        return {
            "name": self.name,
            "directory": str(self.directory.absolute()),
            "file_count": len(run_files),
            "total_size_bytes": total_size,
            "current_file_size_bytes": self._current_file_size,
            "live_runs": len(self.run_map),
        }


__all__ = ["FileTracer"]
