import csv
from datetime import datetime, timezone

from rugfilter.filter_logger import FilterLogger
from rugfilter.filter_types import (
    AUDIT_COLUMNS,
    AggregatedFilterResult,
    FilterContext,
    FilterResult,
    FilterSettings,
)

FIXED = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


def make_ctx():
    return FilterContext(mint="MintAddr", creator="CreatorAddr", name="Token", symbol="TKN")


def make_aggregated(should_buy=True):
    return AggregatedFilterResult(
        should_buy=should_buy,
        total_risk_score=20.0,
        buy_amount_multiplier=0.5,
        results=[
            FilterResult.passed_ok("METADATA_CHECKER"),
            FilterResult.warn("WALLET_PROFILER", "Low TX history", 20.0),
        ],
    )


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


class Day:
    def __init__(self, value):
        self.value = value

    def __call__(self):
        return self.value


def test_writes_header_and_one_row_per_result(tmp_path):
    settings = FilterSettings(filter_log_dir=str(tmp_path))
    with FilterLogger(settings, today=Day("2024-01-02"), utcnow=lambda: FIXED) as logger:
        logger.log(make_ctx(), make_aggregated())
    rows = read_rows(tmp_path / "filter_audit_2024-01-02.csv")
    assert rows[0] == list(AUDIT_COLUMNS)
    assert len(rows) == 3
    record = dict(zip(rows[0], rows[2]))
    assert record["timestamp"] == "2024-01-02T03:04:05.678Z"
    assert record["mint"] == "MintAddr"
    assert record["module_name"] == "WALLET_PROFILER"
    assert record["passed"] == "true"
    assert record["reason"] == "Low TX history"
    assert float(record["risk_score"]) == 20.0
    assert float(record["buy_multiplier"]) == 0.5
    assert record["final_decision"] == "BUY"


def test_skip_decision_recorded(tmp_path):
    settings = FilterSettings(filter_log_dir=str(tmp_path))
    with FilterLogger(settings, today=Day("2024-01-02"), utcnow=lambda: FIXED) as logger:
        logger.log(make_ctx(), make_aggregated(should_buy=False))
    rows = read_rows(tmp_path / "filter_audit_2024-01-02.csv")
    assert {row[AUDIT_COLUMNS.index("final_decision")] for row in rows[1:]} == {"SKIP"}


def test_existing_file_gets_no_second_header(tmp_path):
    settings = FilterSettings(filter_log_dir=str(tmp_path))
    for _ in range(2):
        with FilterLogger(settings, today=Day("2024-01-02"), utcnow=lambda: FIXED) as logger:
            logger.log(make_ctx(), make_aggregated())
    rows = read_rows(tmp_path / "filter_audit_2024-01-02.csv")
    assert rows.count(list(AUDIT_COLUMNS)) == 1
    assert len(rows) == 5


def test_rotates_when_day_changes(tmp_path):
    settings = FilterSettings(filter_log_dir=str(tmp_path))
    day = Day("2024-01-02")
    with FilterLogger(settings, today=day, utcnow=lambda: FIXED) as logger:
        logger.log(make_ctx(), make_aggregated())
        day.value = "2024-01-03"
        logger.log(make_ctx(), make_aggregated())
    first = read_rows(tmp_path / "filter_audit_2024-01-02.csv")
    second = read_rows(tmp_path / "filter_audit_2024-01-03.csv")
    assert len(first) == len(second)
    assert second[0] == list(AUDIT_COLUMNS)


def test_disabled_logger_writes_nothing(tmp_path):
    log_dir = tmp_path / "audit"
    settings = FilterSettings(filter_log_enabled=False, filter_log_dir=str(log_dir))
    with FilterLogger(settings, today=Day("2024-01-02"), utcnow=lambda: FIXED) as logger:
        logger.log(make_ctx(), make_aggregated())
    assert not log_dir.exists()


def test_unusable_directory_is_tolerated(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    settings = FilterSettings(filter_log_dir=str(blocker / "sub"))
    with FilterLogger(settings, today=Day("2024-01-02"), utcnow=lambda: FIXED) as logger:
        logger.log(make_ctx(), make_aggregated())
    assert blocker.read_text() == "x"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["blocker"]