from datetime import datetime, timezone

import pytest

from registry.errors import MalformedArtifact
from registry.models import CachedArtifact, ContractDescriptor, parse_timestamp


def test_parse_timestamp_handles_zulu_and_microseconds():
    parsed = parse_timestamp("2023-09-11T06:33:36.605626Z")

    assert parsed == datetime(2023, 9, 11, 6, 33, 36, 605626, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("value", "micros"),
    [
        ("2023-09-11T06:33:36.60562Z", 605620),
        ("2023-09-11T06:33:36.6Z", 600000),
        ("2023-09-11T06:33:36.6056261Z", 605626),
    ],
)
def test_parse_timestamp_accepts_any_fraction_width(value, micros):
    assert parse_timestamp(value) == datetime(2023, 9, 11, 6, 33, 36, micros, tzinfo=timezone.utc)


def test_parse_timestamp_treats_naive_values_as_utc():
    assert parse_timestamp("2023-01-01T00:00:00") == parse_timestamp("2023-01-01T00:00:00+00:00")


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")
    with pytest.raises(ValueError):
        parse_timestamp(None)


def test_version_signal_follows_mode():
    descriptor = ContractDescriptor(name="Foo", address="0xabc", date="2023-01-01T00:00:00Z", abi=[])

    assert descriptor.version_signal("timestamp") == "2023-01-01T00:00:00Z"
    assert descriptor.version_signal("address") == "0xabc"


def test_artifact_serialises_in_canonical_key_order():
    descriptor = ContractDescriptor(name="PKP Helper", address="0xabc", date="d", abi=[{"type": "event"}])
    artifact = CachedArtifact.from_descriptor(descriptor)

    assert list(artifact.to_json()) == ["date", "address", "contractName", "abi"]
    assert artifact.contract_name == "PKPHelper"
    assert artifact.dumps() == (
        "{\n"
        '  "date": "d",\n'
        '  "address": "0xabc",\n'
        '  "contractName": "PKPHelper",\n'
        '  "abi": [\n'
        "    {\n"
        '      "type": "event"\n'
        "    }\n"
        "  ]\n"
        "}"
    )


def test_artifact_round_trips_through_disk(tmp_path):
    artifact = CachedArtifact(date="d", address="0x1", contract_name="Foo", abi=[])
    path = tmp_path / "Foo.json"
    path.write_text(artifact.dumps(), encoding="utf-8")

    assert CachedArtifact.from_file(path) == artifact


@pytest.mark.parametrize("content", ["not json", "[]", '{"date": "d"}'])
def test_unreadable_artifacts_are_reported(tmp_path, content):
    path = tmp_path / "Foo.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(MalformedArtifact) as excinfo:
        CachedArtifact.from_file(path)

    assert excinfo.value.contract == "Foo"
    assert "[compare] Foo:" in str(excinfo.value)
