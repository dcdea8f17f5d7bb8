import json

import pytest

from crab_alert.decoder import DecodeError, parse_incoming_message
from crab_alert.models import Contact


def test_parse_minimal_frame(frame):
    message = parse_incoming_message(frame)

    assert message.id == "42"
    assert message.from_ == Contact(email="a@x.com")
    assert message.to == []
    assert message.subject == "Hi"
    assert message.time == 1
    assert message.opened is False
    assert message.has_html is True
    assert message.body is None
    assert not message.is_enriched


def test_parse_accepts_bytes(frame):
    assert parse_incoming_message(frame.encode("utf-8")).id == "42"


def test_parse_full_contacts_and_attachments(payload):
    payload["from"] = {"name": "CrabAlert", "email": "no-reply@yellowred.blue"}
    payload["to"] = [{"name": None, "email": "karl@yellowred.blue"}, {"email": "b@x.com"}]
    payload["attachments"] = ["att-1", "att-2"]

    message = parse_incoming_message(json.dumps(payload))

    assert message.from_.name == "CrabAlert"
    assert [c.email for c in message.to] == ["karl@yellowred.blue", "b@x.com"]
    assert message.to[0].name is None
    assert message.attachments == ["att-1", "att-2"]


def test_unknown_fields_are_ignored(payload):
    payload["spam_score"] = 0.1
    payload["from"]["avatar"] = "x.png"
    assert parse_incoming_message(json.dumps(payload)).subject == "Hi"


@pytest.mark.parametrize(
    "field",
    ["id", "from", "to", "subject", "time", "date", "size", "opened", "has_html", "has_plain", "attachments"],
)
def test_missing_required_field(payload, field):
    del payload[field]
    with pytest.raises(DecodeError, match=field):
        parse_incoming_message(json.dumps(payload))


@pytest.mark.parametrize(
    "field,value",
    [
        ("id", 42),
        ("opened", 0),
        ("opened", "false"),
        ("has_html", None),
        ("time", True),
        ("time", "1"),
        ("subject", ["Hi"]),
        ("to", {"email": "a@x.com"}),
        ("attachments", [1, 2]),
        ("from", "a@x.com"),
    ],
)
def test_wrong_types_are_rejected(payload, field, value):
    payload[field] = value
    with pytest.raises(DecodeError):
        parse_incoming_message(json.dumps(payload))


def test_contact_without_email_is_rejected(payload):
    payload["to"] = [{"name": "Nobody"}]
    with pytest.raises(DecodeError, match="to\\[0\\]"):
        parse_incoming_message(json.dumps(payload))


def test_contact_name_must_be_string(payload):
    payload["from"]["name"] = 7
    with pytest.raises(DecodeError):
        parse_incoming_message(json.dumps(payload))


def test_truncated_payload(frame):
    with pytest.raises(DecodeError, match="JSON"):
        parse_incoming_message(frame[: len(frame) // 2])


def test_non_object_payload():
    with pytest.raises(DecodeError, match="object"):
        parse_incoming_message("[1, 2, 3]")


def test_invalid_utf8():
    with pytest.raises(DecodeError, match="UTF-8"):
        parse_incoming_message(b"\xff\xfe{}")


def test_decode_error_is_a_value_error():
    assert issubclass(DecodeError, ValueError)


def test_reencode_matches_wire_payload(payload):
    payload["from"] = {"name": "Karl", "email": "karl@yellowred.blue"}
    payload["to"] = [{"email": "a@x.com"}]
    payload["attachments"] = ["a1"]

    message = parse_incoming_message(json.dumps(payload))

    assert message.to_dict() == payload


def test_enrichment_adds_body_only(payload, frame):
    message = parse_incoming_message(frame).with_body("Body text")

    encoded = message.to_dict()
    assert encoded.pop("body") == "Body text"
    assert encoded == payload
