"""Tests for the miner_getstat1 reply decoder."""

import pytest

from claymore_exporter.collector.reply_decoder import (
    decode_reply,
    encode_reply,
    parse_number,
    split_field,
)
from claymore_exporter.errors import FieldParseFailure, MalformedReply
from claymore_exporter.mock.generator import MockRig

# Captured from a six-card rig running Claymore 9.3
SAMPLE_REPLY = [
    "9.3 - ETH",
    "21",
    "182724;51;0",
    "30502;30457;30297;30481;30479;30505",
    "0;0;0",
    "off;off;off;off;off;off",
    "53;71;57;67;61;72;55;70;59;71;61;70",
    "eth-eu1.nanopool.org:9999",
    "0;0;0;0",
]


def test_decodes_short_reply_with_temps():
    stats = decode_reply(["v", "5", "120;10;2", "100;200", "fan", "x", "0;50;1;60"])

    assert stats.uptime_minutes == 5
    assert stats.total_hash_rate == 120
    assert stats.shares_found == 10
    assert stats.shares_rejected == 2
    assert [g.hash_rate for g in stats.gpus] == [100, 200]
    assert [g.temperature for g in stats.gpus] == [0, 1]
    assert [g.fan_speed for g in stats.gpus] == [50, 60]
    assert stats.parse_failures == []


def test_decodes_full_reply():
    stats = decode_reply(SAMPLE_REPLY)

    assert stats.version == "9.3 - ETH"
    assert stats.uptime_minutes == 21
    assert stats.total_hash_rate == 182724
    assert stats.shares_found == 51
    assert stats.shares_rejected == 0
    assert len(stats.gpus) == 6
    assert stats.gpus[0].hash_rate == 30502
    assert stats.gpus[5].temperature == 61
    assert stats.gpus[5].fan_speed == 70


def test_gpu_names_follow_position():
    stats = decode_reply(SAMPLE_REPLY)
    assert [g.name for g in stats.gpus] == ["GPU0", "GPU1", "GPU2", "GPU3", "GPU4", "GPU5"]


@pytest.mark.parametrize("reply", [
    [],
    ["v"],
    ["v", "5"],
    ["v", "5", "120;10;2"],
])
def test_too_short_reply_is_malformed(reply):
    with pytest.raises(MalformedReply):
        decode_reply(reply)


def test_totals_missing_subfields_is_malformed():
    with pytest.raises(MalformedReply):
        decode_reply(["v", "5", "120;10", "100"])


def test_temp_fan_count_mismatch_is_malformed():
    # Two GPUs but only one temp/fan pair
    with pytest.raises(MalformedReply):
        decode_reply(["v", "5", "120;10;2", "100;200", "", "", "60;50"])


def test_odd_temp_fan_entries_is_malformed():
    with pytest.raises(MalformedReply):
        decode_reply(["v", "5", "120;10;2", "100;200", "", "", "60;50;61"])


def test_four_field_reply_has_zero_temps():
    stats = decode_reply(["v", "5", "120;10;2", "100;200"])

    assert len(stats.gpus) == 2
    assert all(g.temperature == 0.0 and g.fan_speed == 0.0 for g in stats.gpus)


def test_empty_temp_field_treated_as_absent():
    stats = decode_reply(["v", "5", "120;10;2", "100;200", "", "", ""])
    assert [g.temperature for g in stats.gpus] == [0.0, 0.0]


def test_empty_hash_rate_field_means_no_gpus():
    stats = decode_reply(["v", "5", "120;10;2", "", "0;0;0", "", ""])

    assert stats.gpus == []
    assert stats.total_hash_rate == 120


def test_non_numeric_gpu_rate_zeroes_only_that_entry():
    stats = decode_reply(["v", "5", "120;10;2", "100;abc;300"])

    assert [g.hash_rate for g in stats.gpus] == [100, 0.0, 300]
    assert stats.parse_failures == ["gpu_hash_rate"]


def test_non_numeric_uptime_is_zeroed_and_recorded():
    stats = decode_reply(["v", "off", "120;10;2", "100"])

    assert stats.uptime_minutes == 0.0
    assert stats.total_hash_rate == 120
    assert "uptime" in stats.parse_failures


def test_extra_trailing_fields_ignored():
    stats = decode_reply(SAMPLE_REPLY + ["something", "new"])
    assert stats.total_hash_rate == 182724


@pytest.mark.parametrize("reply", [
    SAMPLE_REPLY,
    *(MockRig(seed=seed).reply() for seed in (1, 7, 42, 1234)),
    MockRig(seed=3, gpu_count=1).reply(),
    ["v", "5", "120;10;2", ""],
    ["v", "5", "120;10;2", "100;200"],
    ["v", "5", "120.5;10;2", "100.25;200", "0;0;0", "off;off", "60;50;61;55"],
])
def test_decode_is_idempotent(reply):
    first = decode_reply(reply)
    second = decode_reply(encode_reply(first))
    assert second == first


def test_encode_keeps_positional_layout():
    reply = encode_reply(decode_reply(SAMPLE_REPLY))

    assert len(reply) == 9
    assert reply[2] == "182724;51;0"
    assert reply[3] == "30502;30457;30297;30481;30479;30505"
    assert reply[6] == "53;71;57;67;61;72;55;70;59;71;61;70"


def test_split_field_strips_whitespace():
    assert split_field(" 1; 2 ;3 ") == ["1", "2", "3"]
    assert split_field("") == []


@pytest.mark.parametrize("raw", ["off", "", "nan", "inf", "1.2.3"])
def test_parse_number_rejects_garbage(raw):
    with pytest.raises(FieldParseFailure):
        parse_number("field", raw)


def test_parse_number_accepts_decimals():
    assert parse_number("field", "29.85") == 29.85
