"""Session-scoped engine state.

A session owns the master table (loaded once, read-only afterwards) and
the data derived from the currently loaded file. Loading a new file
replaces the previous derived data wholesale.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, Sequence

from pvpr_engine.core.errors import MasterLoadError
from pvpr_engine.core.grouping import GroupingResult, classify_matrix
from pvpr_engine.core.merge import MergeResult, merge_tables
from pvpr_engine.core.metrics import PRDataset, compute_daily_pr
from pvpr_engine.core.schemas import EngineConfig, FileProcessingWarning, MasterEntry
from pvpr_engine.io.decode import decode_bytes
from pvpr_engine.io.formats import parse_csv_matrix, parse_csv_records
from pvpr_engine.io.master import load_master_table

logger = logging.getLogger(__name__)


class PRSession:
    """Engine entry point holding the master table and the loaded dataset."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.master: Optional[dict[str, MasterEntry]] = None
        self.dataset: Optional[PRDataset] = None
        self.grouping: Optional[GroupingResult] = None
        self.merge_result: Optional[MergeResult] = None

    # --- master table ---

    @property
    def master_loaded(self) -> bool:
        return self.master is not None

    def load_master(self, source: Optional[str | Path | BinaryIO] = None) -> dict[str, MasterEntry]:
        """Load the master table, once per session.

        Args:
            source: Workbook path or file object (defaults to config.master_path)

        Returns:
            Master lookup

        Raises:
            MasterLoadError: If no source is configured or loading fails
        """
        if self.master is not None:
            return self.master

        source = source if source is not None else self.config.master_path
        if source is None:
            raise MasterLoadError("No master table configured.")

        self.master = load_master_table(source)
        return self.master

    def clear_master(self) -> None:
        self.master = None

    # --- loaded data ---

    def decode(self, data: bytes) -> str:
        return decode_bytes(data, self.config.primary_encoding, self.config.fallback_encoding)

    def clear(self) -> None:
        """Drop everything derived from the loaded file(s)."""
        self.dataset = None
        self.grouping = None
        self.merge_result = None

    def analyze_bytes(self, data: bytes) -> PRDataset:
        """Decode, parse, validate and compute PR for one file's content.

        Raises:
            ParseError, SchemaError, NoDeviceColumnsError, RowDataError
        """
        self.clear()
        table = parse_csv_records(self.decode(data))
        self.dataset = compute_daily_pr(table.headers, table.rows, self.config)
        return self.dataset

    def analyze_file(self, path: str | Path) -> PRDataset:
        return self.analyze_bytes(Path(path).read_bytes())

    def classify_bytes(self, data: bytes, source: str = "<input>") -> GroupingResult:
        """Group a file's PCS columns by master panel count.

        Raises:
            MasterLoadError: If the master table has not been loaded
            ParseError, RowDataError, SchemaError, NoDeviceColumnsError
        """
        if self.master is None:
            raise MasterLoadError("マスタデータが読み込まれていないため処理できません。")

        self.clear()
        matrix = parse_csv_matrix(self.decode(data))
        self.grouping = classify_matrix(matrix, self.master, source=source)
        return self.grouping

    def classify_file(self, path: str | Path) -> GroupingResult:
        path = Path(path)
        return self.classify_bytes(path.read_bytes(), source=path.name)

    def merge_files(self, paths: Sequence[str | Path]) -> MergeResult:
        """Merge several raw exports by row position.

        Unreadable files are skipped with a warning like unparsable ones.

        Raises:
            MergeError: If no file could be processed
        """
        self.clear()
        sources = []
        skipped: list[FileProcessingWarning] = []
        for path in paths:
            path = Path(path)
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning("%s: failed to read (%s)", path.name, e)
                skipped.append(
                    FileProcessingWarning(
                        source=path.name, kind="file_skipped", message=f"Failed to read: {e}"
                    )
                )
                continue
            logger.info("Loaded: %s (%d bytes)", path.name, len(data))
            sources.append((path.name, self.decode(data)))

        self.merge_result = merge_tables(sources, warnings=skipped)
        return self.merge_result
