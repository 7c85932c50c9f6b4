import re

from app.connectors.bitable.transformer import (
    convert_to_standard_format,
    determine_action,
    process_record,
)

ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def test_falsy_record_yields_none():
    assert process_record(None) is None
    assert process_record({}) is None


def test_supplied_id_is_kept():
    record = process_record({"id": "rec_1", "fields": {"金额": 10}})
    assert record.id == "rec_1"
    assert record.raw_id == "rec_1"
    assert record.fields == {"金额": 10}


def test_generated_id_when_missing():
    record = process_record({"fields": {"金额": 10}})
    assert re.match(r"^record_\d+$", record.id)
    assert record.raw_id is None
    assert record.action == "create"


def test_explicit_action_wins():
    record = process_record({"action": "update", "is_deleted": True})
    assert record.action == "update"


def test_action_inference_order():
    assert determine_action({"fields": {}}) == "create"
    assert determine_action({"id": "r", "deleted": True, "updated_at": "x"}) == "delete"
    assert determine_action({"id": "r", "is_deleted": 1}) == "delete"
    assert determine_action({"id": "r", "modified_time": 1700000000}) == "update"
    assert determine_action({"id": "r", "updated_at": "2024-01-01"}) == "update"
    assert determine_action({"id": "r"}) == "read"


def test_timestamps_and_metadata():
    record = process_record(
        {"id": "r", "created_at": "2023-05-01T00:00:00Z", "updated_at": "2020-01-01", "table_id": "tbl_web_ui"}
    )
    assert record.created_at == "2023-05-01T00:00:00Z"
    assert record.updated_at != "2020-01-01"
    assert ISO_RE.match(record.updated_at)
    assert record.metadata.source == "feishu"
    assert record.metadata.table_id == "tbl_web_ui"
    assert record.metadata.app_id == "unknown"


def test_created_at_defaults_to_processing_time():
    record = process_record({"fields": {"a": 1}})
    assert ISO_RE.match(record.created_at)


def test_standard_payload_returned_unchanged():
    payload = {"records": [{"fields": {"a": 1}}]}
    result = convert_to_standard_format(payload)
    assert result is payload
    assert result["records"] is payload["records"]


def test_non_standard_payload_wrapped():
    payload = {"a": 1}
    result = convert_to_standard_format(payload)
    assert len(result["records"]) == 1
    wrapped = result["records"][0]
    assert re.match(r"^converted_\d+$", wrapped["id"])
    assert wrapped["fields"] == {"a": 1}
    assert wrapped["action"] == "custom_data"
    assert ISO_RE.match(wrapped["created_at"])


def test_converted_record_processes_as_custom_data():
    wrapped = convert_to_standard_format({"amount": 3})["records"][0]
    record = process_record(wrapped)
    assert record.action == "custom_data"
    assert record.id == wrapped["id"]


def test_unrepresentable_date_does_not_drop_record():
    record = process_record({"fields": {"日期": "0001-01-01T00:00:00+01:00", "金额": 3}})
    assert record is not None
    assert record.fields["日期"] == "0001-01-01T00:00:00+01:00"
