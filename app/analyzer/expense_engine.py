"""Expense Bridge — Expense Engine.

Aggregates processed records into the figures the dashboard charts:
totals per category, per day, and per action. Field names follow the
bitable expense table (日期 / 金额 / 分类 / 备注).
"""

from collections import Counter, defaultdict
from typing import Any, Dict, Iterable, List, Optional

from app.connectors.bitable.normalizer import parse_date
from app.core.logging import get_logger

logger = get_logger("analyzer.expense")

DATE_FIELD = "日期"
AMOUNT_FIELD = "金额"
CATEGORY_FIELD = "分类"
REMARK_FIELD = "备注"

EXPORT_COLUMNS = ["id", "date", "amount", "category", "remark", "action", "updated_at"]


def _fields(record: Dict[str, Any]) -> Dict[str, Any]:
    fields = record.get("fields")
    return fields if isinstance(fields, dict) else {}


def parse_amount(value: Any) -> float:
    """Coerce an amount field to float; unparseable values count as 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def record_day(record: Dict[str, Any]) -> Optional[str]:
    """YYYY-MM-DD of the record's date field, if it has a readable one."""
    value = _fields(record).get(DATE_FIELD)
    if not isinstance(value, str) or not value:
        return None
    parsed = parse_date(value)
    return parsed.strftime("%Y-%m-%d") if parsed else None


def filter_records(
    records: Iterable[Dict[str, Any]],
    category: Optional[str] = None,
    action: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Keep records matching every supplied criterion."""
    selected = []
    for record in records:
        fields = _fields(record)
        if category and fields.get(CATEGORY_FIELD) != category:
            continue
        if action and record.get("action") != action:
            continue
        amount = parse_amount(fields.get(AMOUNT_FIELD))
        if min_amount is not None and amount < min_amount:
            continue
        if max_amount is not None and amount > max_amount:
            continue
        selected.append(record)
    return selected


def compute_summary(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals by category, by day, and counts by action."""
    by_category: Dict[str, float] = defaultdict(float)
    category_counts: Dict[str, int] = defaultdict(int)
    by_date: Dict[str, float] = defaultdict(float)
    actions: Counter = Counter()
    total = 0.0

    for record in records:
        actions[str(record.get("action", ""))] += 1
        fields = _fields(record)
        if AMOUNT_FIELD not in fields:
            continue
        amount = parse_amount(fields[AMOUNT_FIELD])
        total += amount

        category = fields.get(CATEGORY_FIELD)
        if category:
            by_category[str(category)] += amount
            category_counts[str(category)] += 1

        day = record_day(record)
        if day:
            by_date[day] += amount

    logger.debug(f"Summarised {len(records)} records into {len(by_category)} categories")
    return {
        "total_records": len(records),
        "total_amount": round(total, 2),
        "action_counts": dict(actions),
        "by_category": [
            {
                "category": name,
                "amount": round(amount, 2),
                "count": category_counts[name],
            }
            for name, amount in sorted(by_category.items(), key=lambda kv: -kv[1])
        ],
        "by_date": [
            {"date": day, "amount": round(by_date[day], 2)} for day in sorted(by_date)
        ],
    }


def export_rows(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten records into rows keyed by EXPORT_COLUMNS."""
    rows = []
    for record in records:
        fields = _fields(record)
        rows.append(
            {
                "id": record.get("id", ""),
                "date": record_day(record) or "",
                "amount": fields.get(AMOUNT_FIELD, ""),
                "category": fields.get(CATEGORY_FIELD, ""),
                "remark": fields.get(REMARK_FIELD, ""),
                "action": record.get("action", ""),
                "updated_at": record.get("updated_at", ""),
            }
        )
    return rows
