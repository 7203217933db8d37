"""CSV audit trail of every filter decision, rotated daily."""

from __future__ import annotations

import csv
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Callable, Optional

from rugfilter.filter_types import (
    AUDIT_COLUMNS,
    AggregatedFilterResult,
    FilterAuditRecord,
    FilterContext,
    FilterSettings,
)

log = logging.getLogger(__name__)


def _local_date() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_millis(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class FilterLogger:
    """Appends one CSV row per filter module result to ``filter_audit_<date>.csv``."""

    def __init__(
        self,
        settings: Optional[FilterSettings] = None,
        today: Callable[[], str] = _local_date,
        utcnow: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = settings or FilterSettings()
        self._today = today
        self._utcnow = utcnow
        self._file: Optional[IO[str]] = None
        self._writer: Any = None
        self._current_date: Optional[str] = None
        self._lock = threading.RLock()

    def __enter__(self) -> FilterLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _open(self, date: str) -> None:
        log_dir = self.settings.filter_log_dir
        try:
            os.makedirs(log_dir, exist_ok=True)
        except OSError as exc:
            log.error("[FILTER_LOG] Failed to create log dir '%s': %s", log_dir, exc)
            return
        path = Path(log_dir) / f"filter_audit_{date}.csv"
        is_new = not path.exists()
        try:
            handle = open(path, "a", newline="", encoding="utf-8")
        except OSError as exc:
            log.error("[FILTER_LOG] Failed to open '%s': %s", path, exc)
            return
        writer = csv.writer(handle, lineterminator="\n")
        if is_new:
            writer.writerow(AUDIT_COLUMNS)
            handle.flush()
        log.info("[FILTER_LOG] Logging to: %s", path)
        self._file = handle
        self._writer = writer

    def _close_file(self) -> None:
        if self._file is not None:
            self._file.flush()
            self._file.close()
        self._file = None
        self._writer = None

    def _maybe_rotate(self) -> None:
        today = self._today()
        if today == self._current_date:
            return
        if self._current_date is not None:
            log.info(
                "[FILTER_LOG] Day changed %s -> %s — rotating log file",
                self._current_date, today,
            )
        self._close_file()
        self._open(today)
        self._current_date = today

    def write_record(self, record: FilterAuditRecord) -> None:
        """Write one audit row, rotating to a new file when the day changes."""
        if not self.settings.filter_log_enabled:
            return
        with self._lock:
            self._maybe_rotate()
            if self._writer is not None and self._file is not None:
                self._writer.writerow(record.as_row())
                self._file.flush()

    def log(self, ctx: FilterContext, aggregated: AggregatedFilterResult) -> None:
        """Write one row per module result of an aggregated decision."""
        if not self.settings.filter_log_enabled:
            return
        timestamp = _iso_millis(self._utcnow())
        decision = "BUY" if aggregated.should_buy else "SKIP"
        with self._lock:
            for result in aggregated.results:
                self.write_record(
                    FilterAuditRecord(
                        timestamp=timestamp,
                        mint=str(ctx.mint),
                        creator=str(ctx.creator),
                        token_name=ctx.name,
                        token_symbol=ctx.symbol,
                        module_name=result.module_name,
                        passed=result.passed,
                        risk_score=result.risk_score,
                        reason=result.reason,
                        total_risk_score=aggregated.total_risk_score,
                        final_decision=decision,
                        buy_multiplier=aggregated.buy_amount_multiplier,
                    )
                )

    def close(self) -> None:
        """Flush and close the current log file."""
        with self._lock:
            self._close_file()
            self._current_date = None