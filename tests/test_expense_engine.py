from app.analyzer.expense_engine import (
    compute_summary,
    export_rows,
    filter_records,
    parse_amount,
)

RECORDS = [
    {"id": "1", "action": "create", "updated_at": "u1",
     "fields": {"日期": "2024-01-01T00:00:00.000Z", "金额": 50, "分类": "food", "备注": "lunch"}},
    {"id": "2", "action": "create", "updated_at": "u2",
     "fields": {"日期": "2024-01-01T00:00:00.000Z", "金额": "20.5", "分类": "transport"}},
    {"id": "3", "action": "update", "updated_at": "u3",
     "fields": {"日期": "2024-01-02T00:00:00.000Z", "金额": 30, "分类": "food"}},
    {"id": "4", "action": "custom_data", "updated_at": "u4", "fields": {"note": "no amount"}},
]


def test_parse_amount():
    assert parse_amount(3) == 3.0
    assert parse_amount("4.25") == 4.25
    assert parse_amount("abc") == 0.0
    assert parse_amount(None) == 0.0
    assert parse_amount(True) == 0.0


def test_summary_totals():
    summary = compute_summary(RECORDS)
    assert summary["total_records"] == 4
    assert summary["total_amount"] == 100.5
    assert summary["action_counts"] == {"create": 2, "update": 1, "custom_data": 1}
    assert summary["by_category"] == [
        {"category": "food", "amount": 80.0, "count": 2},
        {"category": "transport", "amount": 20.5, "count": 1},
    ]
    assert summary["by_date"] == [
        {"date": "2024-01-01", "amount": 70.5},
        {"date": "2024-01-02", "amount": 30.0},
    ]


def test_summary_of_nothing():
    summary = compute_summary([])
    assert summary["total_amount"] == 0
    assert summary["by_category"] == []


def test_filter_records():
    assert [r["id"] for r in filter_records(RECORDS, category="food")] == ["1", "3"]
    assert [r["id"] for r in filter_records(RECORDS, action="create")] == ["1", "2"]
    assert [r["id"] for r in filter_records(RECORDS, min_amount=25)] == ["1", "3"]
    assert [r["id"] for r in filter_records(RECORDS, max_amount=25)] == ["2", "4"]
    assert filter_records(RECORDS) == RECORDS


def test_export_rows():
    rows = export_rows(RECORDS[:1])
    assert rows == [
        {"id": "1", "date": "2024-01-01", "amount": 50, "category": "food",
         "remark": "lunch", "action": "create", "updated_at": "u1"}
    ]
