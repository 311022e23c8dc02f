from pysniff.core.schema import MESSAGE_SCHEMA
from pysniff.core.simple_match_engine import SimpleMatchEngine


def _matches(text, record) -> bool:
    engine = SimpleMatchEngine()
    predicate = engine.parse(text)
    engine.check(predicate, MESSAGE_SCHEMA)
    return engine.evaluate(predicate, record.fields())


def test_key_value_match_is_case_insensitive(record_factory) -> None:
    assert _matches("Direction: RECV", record_factory(direction="recv"))
    assert not _matches("direction: recv", record_factory(direction="send"))


def test_numeric_field_compared_as_text(record_factory) -> None:
    assert _matches("stream_id: 4", record_factory(stream_id=4))


def test_unknown_key_falls_back_to_substring(record_factory) -> None:
    record = record_factory(method="/helloworld.Greeter/SayHello")

    assert _matches("sayhello", record)
    assert _matches("HelloRequest", record)
    assert not _matches("nosuchkey: x", record)


def test_absent_optional_key_falls_back_to_substring(record_factory) -> None:
    assert not _matches("error: boom", record_factory())


def test_quick_filter_roundtrip(record_factory) -> None:
    record = record_factory(peer_address="127.0.0.1:50312")
    engine = SimpleMatchEngine()

    text = engine.quick_filter("peer_address", record.peer_address)

    assert text == "peer_address: 127.0.0.1:50312"
    assert _matches(text, record)


def test_quick_filter_roundtrip_ignores_surrounding_whitespace(record_factory) -> None:
    record = record_factory(error="  deadline exceeded \t")
    engine = SimpleMatchEngine()

    text = engine.quick_filter("error", record.error)

    assert _matches(text, record)
