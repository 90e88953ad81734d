import json
import math

import pytest

from signalscope.ingest import (
    EnvelopeShape,
    LegacyNestedShape,
    MalformedPayload,
    NoDataForDate,
    UnexpectedResponseFormat,
    classify_response,
    parse_chunks,
    parse_payload,
)


def envelope(*chunks):
    return {"status": "success", "data": list(chunks)}


def test_global_anchor_spans_chunks():
    body = envelope({"t": 1000, "values": [1, 2, 3]}, {"t": 5000, "values": [4, 5, 6]})
    ds = parse_payload(body)
    assert list(ds.times) == [1000, 1002, 1004, 1006, 1008, 1010]
    assert ds.values.tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]


def test_uneven_chunks_use_flattened_index():
    ds = parse_chunks([{"t": 0, "values": [1]}, {"t": 99, "values": [2, 3, 4]}])
    assert list(ds.times) == [0, 2, 4, 6]


def test_iso_anchor():
    body = envelope({"t": "1970-01-01T00:00:01Z", "values": [0.5, 0.25]})
    ds = parse_payload(body)
    assert list(ds.times) == [1000, 1002]


def test_null_and_nan_become_zero():
    ds = parse_chunks([{"t": 0, "values": [None, float("nan"), 3.5]}])
    assert ds.values.tolist() == [0.0, 0.0, 3.5]


def test_nan_in_json_text():
    chunk = json.loads('{"t": 0, "values": [NaN, 1]}')
    ds = parse_chunks([chunk])
    assert ds.values.tolist() == [0.0, 1.0]


@pytest.mark.parametrize("chunks", [[], [{"t": 0, "values": []}], [{"values": []}]])
def test_empty_payload_is_empty_dataset(chunks):
    ds = parse_chunks(chunks)
    assert len(ds) == 0


def test_empty_envelope_data():
    assert len(parse_payload(envelope())) == 0


def test_clock_format_uses_fixed_offset():
    # 1 ms before midnight UTC, rendered at +7h
    ds = parse_chunks(
        [{"t": 86_399_999, "values": [1, 2]}],
        time_format="clock",
        tz_offset_hours=7,
    )
    assert list(ds.times) == ["06:59:59.999", "07:00:00.001"]


def test_legacy_nested_string_chunks():
    body = {
        "sensor-1": {
            "2024-05-01": [
                json.dumps({"t": 0, "values": [1, 2]}),
                {"t": 4, "values": [3]},
            ]
        }
    }
    ds = parse_payload(body, date="2024-05-01", tz_offset_hours=0)
    assert list(ds.times) == ["00:00:00.000", "00:00:00.002", "00:00:00.004"]
    assert ds.values.tolist() == [1.0, 2.0, 3.0]


def test_legacy_nested_epoch_override():
    body = {"s": {"2024-05-01": [{"t": 10, "values": [1, 2]}]}}
    ds = parse_payload(body, date="2024-05-01", time_format="epoch")
    assert list(ds.times) == [10, 12]


def test_legacy_nested_latest_date_when_unspecified():
    body = {
        "s": {
            "2024-05-01": [{"t": 0, "values": [1]}],
            "2024-05-02": [{"t": 0, "values": [7, 8]}],
        }
    }
    ds = parse_payload(body, time_format="epoch")
    assert ds.values.tolist() == [7.0, 8.0]


def test_legacy_nested_push_key_map():
    body = {"s": {"2024-05-01": {"-b": {"t": 2, "values": [2]}, "-a": {"t": 0, "values": [1]}}}}
    ds = parse_payload(body, date="2024-05-01", time_format="epoch")
    assert ds.values.tolist() == [1.0, 2.0]
    assert list(ds.times) == [0, 2]


def test_legacy_nested_missing_date():
    body = {"s": {"2024-05-01": []}}
    with pytest.raises(NoDataForDate) as excinfo:
        parse_payload(body, date="2024-05-02")
    assert excinfo.value.date == "2024-05-02"


def test_legacy_nested_missing_source():
    body = {"s": {"2024-05-01": []}}
    with pytest.raises(NoDataForDate):
        parse_payload(body, date="2024-05-01", source_id="other")


def test_classify_response():
    assert isinstance(classify_response(envelope()), EnvelopeShape)
    assert isinstance(classify_response({"s": {}}), LegacyNestedShape)
    for body in ([], {}, {"s": [1, 2]}, "text", None):
        with pytest.raises(UnexpectedResponseFormat, match="envelope, legacy_nested"):
            classify_response(body)


def test_envelope_failure_status():
    with pytest.raises(UnexpectedResponseFormat):
        parse_payload({"status": "error", "data": []})


def test_envelope_null_data():
    with pytest.raises(NoDataForDate):
        parse_payload({"status": "success", "data": None}, date="2024-01-01")


@pytest.mark.parametrize(
    "chunk, index",
    [
        ("not json", 0),
        (42, 0),
        ({"t": 0}, 0),
        ({"t": 0, "values": "abc"}, 0),
        ({"t": 0, "values": ["x"]}, 0),
        ({"t": 0, "values": [True]}, 0),
        ({"t": "yesterday", "values": [1]}, 0),
        ({"t": "inf", "values": [1]}, 0),
        ({"t": "Infinity", "values": [1]}, 0),
        ({"t": "1e999", "values": [1]}, 0),
    ],
)
def test_malformed_chunks(chunk, index):
    with pytest.raises(MalformedPayload) as excinfo:
        parse_chunks([chunk])
    assert excinfo.value.chunk == index


def test_malformed_chunk_reports_position():
    with pytest.raises(MalformedPayload) as excinfo:
        parse_chunks([{"t": 0, "values": [1]}, {"values": None}])
    assert excinfo.value.chunk == 1
    assert "chunk 1" in str(excinfo.value)


def test_fractional_interval():
    ds = parse_chunks([{"t": 0, "values": [1, 2, 3]}], interval_ms=0.5)
    assert all(math.isclose(a, b) for a, b in zip(ds.times, [0.0, 0.5, 1.0]))
