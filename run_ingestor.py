import logging
from dataclasses import dataclass
from typing import List, Optional

import file_utils
import log_patterns
from config import Config
from dialect_registry import DialectRegistry
from parsed_run import ParsedRun
from run_store import RunStore

LOGGER = logging.getLogger(__name__)


@dataclass
class IngestResult:
    run_id: Optional[int]
    strategy_name: str
    run_name: Optional[str]
    net_pnl: float
    total_trades: Optional[int]
    trading_days: int
    source: Optional[str] = None
    duplicate: bool = False

    def summary(self) -> dict:
        return {
            "run_id": self.run_id,
            "strategy": self.strategy_name,
            "run_name": self.run_name,
            "net_pnl": self.net_pnl,
            "total_trades": self.total_trades,
            "trading_days": self.trading_days,
            "source": self.source,
            "duplicate": self.duplicate,
        }


class RunIngestor:
    """
    Parses raw log text with the dialect registry and writes the result to the store.
    The point value comes from the log's Instrument line via Config.
    """

    def __init__(self, config: Config, store: Optional[RunStore], registry: DialectRegistry):
        self.config = config
        self.store = store
        self.registry = registry

    def resolve_point_value(self, raw_text: str) -> float:
        instrument = log_patterns.extract_instrument(raw_text)
        point_value = self.config.get_point_value(instrument)
        LOGGER.debug("Point value %s for instrument %s", point_value, instrument or "(none)")
        return point_value

    def parse_text(self, raw_text: str) -> Optional[ParsedRun]:
        return self.registry.parse(raw_text, self.resolve_point_value(raw_text))

    def ingest_text(
        self,
        raw_text: str,
        run_description: Optional[str] = None,
        force: bool = False,
        dry_run: bool = False,
        source: Optional[str] = None,
    ) -> Optional[IngestResult]:
        """
        Parses and stores one log dump.

        Returns:
            IngestResult, or None when no dialect could parse the text. Text whose
            sha256 is already stored is not parsed again unless force is set; the
            result then points at the stored run and has duplicate=True.
        """
        digest = file_utils.sha256_text(raw_text)
        if self.store is not None and not force:
            existing_id = self.store.find_run_by_sha256(digest)
            if existing_id is not None:
                existing = self.store.get_run(existing_id)
                LOGGER.info("Log already ingested as run %s; skipping", existing_id)
                return IngestResult(
                    run_id=existing_id,
                    strategy_name=existing["strategy_name"],
                    run_name=existing["run_name"],
                    net_pnl=existing["net_pnl"],
                    total_trades=existing["total_trades"],
                    trading_days=len(self.store.get_daily_buckets(existing_id)),
                    source=source,
                    duplicate=True,
                )

        parsed = self.parse_text(raw_text)
        if parsed is None:
            LOGGER.warning("Could not parse log %s", source or "(text)")
            return None
        if run_description:
            parsed.run_description = run_description

        run_id = None
        if not dry_run and self.store is not None:
            run_id = self.store.save_parsed_run(parsed, raw_data=raw_text, source_sha256=digest)

        return IngestResult(
            run_id=run_id,
            strategy_name=parsed.strategy_name,
            run_name=parsed.run_name,
            net_pnl=parsed.net_pnl,
            total_trades=parsed.total_trades,
            trading_days=len(parsed.daily_pnl),
            source=source,
        )

    def ingest_files(self, paths, run_description: Optional[str] = None, force: bool = False,
                     dry_run: bool = False) -> List[Optional[IngestResult]]:
        """One result per path, in order; None marks an unparseable file."""
        results = []
        for path in paths:
            raw_text = file_utils.read_log_text(path)
            results.append(self.ingest_text(
                raw_text,
                run_description=run_description or file_utils.describe_file(path),
                force=force,
                dry_run=dry_run,
                source=str(path),
            ))
        return results
