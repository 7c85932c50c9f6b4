from app.connectors.bitable.validator import EMPTY_DATA, NO_RECORDS_ARRAY, validate_payload


def test_empty_payload_is_invalid():
    for payload in ({}, None):
        result = validate_payload(payload)
        assert result.valid is False
        assert EMPTY_DATA in result.errors


def test_standard_payload_is_valid():
    result = validate_payload({"records": [{"fields": {"x": 1}}]})
    assert result.valid is True
    assert result.errors == []
    assert result.warnings == []


def test_missing_records_array_only_warns():
    result = validate_payload({"amount": 5})
    assert result.valid is True
    assert result.warnings == [NO_RECORDS_ARRAY]


def test_records_without_fields_or_id_are_indexed():
    result = validate_payload({"records": [{"id": "a"}, {"action": "create"}, {"fields": {"x": 1}}, 7]})
    assert result.valid is False
    assert len(result.errors) == 2
    assert "record 2" in result.errors[0]
    assert "record 4" in result.errors[1]


def test_falsy_non_mapping_fields_count_as_missing():
    result = validate_payload(
        {"records": [{"fields": ""}, {"fields": 0}, {"fields": False}, {"fields": {}}, {"fields": "", "id": "r"}]}
    )
    assert result.valid is False
    assert len(result.errors) == 3
    assert [e.split(" is ")[0] for e in result.errors] == ["record 1", "record 2", "record 3"]
