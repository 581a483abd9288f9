"""Tests for record (dataclass) serialization and deserialization."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from models import Account, Active, Address, Author, Guest, Node, Post, Session, User
from surreal_codec import (
    ABSENT,
    CodecConfig,
    CodecRegistry,
    ExpectedAnArray,
    ExpectedAnArrayWith1ItemToDeserializeToObject,
    ExpectedAnObject,
    Link,
    MissingValue,
    ParsingFieldFailed,
    SerializeError,
    Thing,
    UnexpectedValue,
)


@pytest.fixture
def registry():
    return CodecRegistry(CodecConfig(use_camel_case=False, enable_log=False))


@pytest.fixture
def camel_registry():
    return CodecRegistry(CodecConfig(use_camel_case=True, enable_log=False))


ADDRESS = Address(street="123 Main St", city="Tech City", country="Codeland")
ADDRESS_WIRE = {"street": "123 Main St", "city": "Tech City", "country": "Codeland"}


@dataclass
class Shipment:
    address: Address


class TestRecordSerialize:
    def test_fields_in_declaration_order(self, registry):
        """Keys appear in field declaration order."""
        wire = registry.serialize(ADDRESS)
        assert list(wire.items()) == list(ADDRESS_WIRE.items())

    def test_deterministic(self, registry):
        """The same value always serializes to the same object."""
        assert list(registry.serialize(ADDRESS)) == list(registry.serialize(ADDRESS))

    def test_nested_record(self, registry):
        """A record field serializes to a nested object."""
        user = User(name="ann", user_type=Guest(), status=Active(), tags=["a", "b"])
        assert registry.serialize(user) == {
            "name": "ann",
            "user_type": "guest",
            "status": "active",
            "tags": ["a", "b"],
            "nickname": None,
        }

    def test_camel_case_wire_names(self, camel_registry):
        """camelCase naming applies to every field key."""
        user = User(name="ann", user_type=Guest(), status=Active(), nickname="A")
        assert list(camel_registry.serialize(user)) == ["name", "userType", "status", "tags", "nickname"]

    def test_wrong_host_type(self, registry):
        codec = registry.codec_for(Address)
        with pytest.raises(SerializeError):
            codec.serialize(Author(name="x"))

    def test_wrong_field_type(self, registry):
        """A field holding the wrong host type fails to serialize."""
        with pytest.raises(SerializeError):
            registry.serialize(Address(street=1, city="a", country="b"))


class TestRecordDeserialize:
    def test_object(self, registry):
        assert registry.deserialize(Address, ADDRESS_WIRE) == ADDRESS

    def test_key_order_does_not_matter(self, registry):
        wire = dict(reversed(list(ADDRESS_WIRE.items())))
        assert registry.deserialize(Address, wire) == ADDRESS

    def test_extra_keys_ignored(self, registry):
        """Keys with no matching field are ignored."""
        wire = dict(ADDRESS_WIRE, id=Thing("address", 1))
        assert registry.deserialize(Address, wire) == ADDRESS

    def test_single_row_array(self, registry):
        """A query result of one row deserializes like the row itself."""
        assert registry.deserialize(Address, [ADDRESS_WIRE]) == ADDRESS

    @pytest.mark.parametrize("wire", [[], [ADDRESS_WIRE, ADDRESS_WIRE], ["x"]])
    def test_bad_array_wrapper(self, registry, wire):
        """Only an array holding exactly one object is unwrapped."""
        with pytest.raises(ExpectedAnArrayWith1ItemToDeserializeToObject):
            registry.deserialize(Address, wire)

    @pytest.mark.parametrize("wire", ["street", 5, True])
    def test_not_an_object(self, registry, wire):
        """Scalars cannot become records."""
        with pytest.raises(ExpectedAnObject):
            registry.deserialize(Address, wire)

    @pytest.mark.parametrize("wire", [None, ABSENT])
    def test_no_value_is_not_an_object(self, registry, wire):
        """At the top level there is no field to report as missing."""
        with pytest.raises(ExpectedAnObject):
            registry.deserialize(Address, wire)

    @pytest.mark.parametrize("wire", [{}, {"address": None}])
    def test_missing_nested_record(self, registry, wire):
        """A missing or none record field is reported as missing under its key."""
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Shipment, wire)
        assert exc_info.value.field_name == "address"
        assert isinstance(exc_info.value.cause, MissingValue)

    def test_missing_required_field(self, registry):
        """A missing required key fails with that key's name."""
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Address, {"street": "a", "city": "b"})
        assert exc_info.value.field_name == "country"
        assert isinstance(exc_info.value.cause, MissingValue)

    def test_required_field_with_none_marker(self, registry):
        """An explicit none marker on a required field fails like a missing key."""
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Address, {"street": "a", "city": "b", "country": None})
        assert exc_info.value.field_name == "country"
        assert isinstance(exc_info.value.cause, MissingValue)

    def test_wrong_leaf_type(self, registry):
        """A leaf of the wrong kind reports what was expected."""
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Address, {"street": "a", "city": 5, "country": "c"})
        assert isinstance(exc_info.value.cause, UnexpectedValue)
        assert exc_info.value.cause.expected == "a string"

    def test_nested_failure_path(self, registry):
        """The error path leads through variants and records to the bad leaf."""
        wire = {
            "name": "ann",
            "user_type": {"type": "premium", "value": {"level": 3, "subscription_type": "gold",
                                                       "address": {"street": "a", "city": 5, "country": "c"}}},
            "status": "active",
            "tags": [],
        }
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(User, wire)
        assert exc_info.value.path == ("user_type", "address", "city")
        assert isinstance(exc_info.value.root_cause, UnexpectedValue)

    def test_camel_case_round_trip(self, camel_registry):
        user = User(name="ann", user_type=Guest(), status=Active(), nickname="A")
        wire = camel_registry.serialize(user)
        assert camel_registry.deserialize(User, wire) == user


class TestOptionalFields:
    def test_absent_optional(self, registry):
        """A missing optional key becomes None."""
        wire = {"name": "ann", "user_type": "guest", "status": "active", "tags": []}
        assert registry.deserialize(User, wire).nickname is None

    def test_none_marker_same_as_absent(self, registry):
        base = {"name": "ann", "user_type": "guest", "status": "active", "tags": []}
        absent = registry.deserialize(User, base)
        marked = registry.deserialize(User, dict(base, nickname=None))
        assert absent == marked

    def test_present_optional(self, registry):
        wire = {"name": "ann", "user_type": "guest", "status": "active", "tags": [], "nickname": "A"}
        assert registry.deserialize(User, wire).nickname == "A"

    def test_round_trip_empty_optional(self, registry):
        """An empty optional is written as the none marker and read back as None."""
        user = User(name="ann", user_type=Guest(), status=Active())
        assert registry.serialize(user)["nickname"] is None
        assert registry.deserialize(User, registry.serialize(user)) == user


class TestSequenceFields:
    def test_empty_sequence_round_trip(self, registry):
        """An empty list survives a round trip."""
        user = User(name="ann", user_type=Guest(), status=Active(), tags=[])
        assert registry.deserialize(User, registry.serialize(user)).tags == []

    def test_order_preserved(self, registry):
        user = User(name="ann", user_type=Guest(), status=Active(), tags=["c", "a", "b"])
        assert registry.deserialize(User, registry.serialize(user)).tags == ["c", "a", "b"]

    def test_not_an_array(self, registry):
        """A sequence field rejects non-array values."""
        wire = {"name": "ann", "user_type": "guest", "status": "active", "tags": "a"}
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(User, wire)
        assert isinstance(exc_info.value.cause, ExpectedAnArray)

    def test_missing_sequence(self, registry):
        """A missing sequence key is not silently an empty list."""
        wire = {"name": "ann", "user_type": "guest", "status": "active"}
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(User, wire)
        assert exc_info.value.field_name == "tags"
        assert isinstance(exc_info.value.cause, MissingValue)

    def test_bad_element_path(self, registry):
        """A bad element is reported by its index under the field name."""
        wire = {"name": "ann", "user_type": "guest", "status": "active", "tags": ["a", 2]}
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(User, wire)
        assert exc_info.value.path == ("tags", "1")

    def test_self_referential_record(self, registry):
        """A record holding a list of itself round-trips."""
        tree = Node(name="root", children=[Node(name="a", parent_name="root"), Node(name="b")])
        wire = registry.serialize(tree)
        assert wire["children"][0] == {"name": "a", "children": [], "parent_name": "root"}
        assert registry.deserialize(Node, wire) == tree


class TestFieldOptions:
    def test_rename_and_skip_serializing(self, registry):
        """Renamed fields use their wire name; skipped ones are left out."""
        account = Account(account_id="a1", display_name="Ann", password="secret",
                          session_token="tok", login_count=3)
        assert registry.serialize(account) == {
            "id": "a1",
            "display_name": "Ann",
            "session_token": "tok",
            "login_count": 3,
        }

    def test_round_trip_resets_skipped_fields(self, registry):
        """Fields skipped in either direction come back as their defaults."""
        account = Account(account_id="a1", display_name="Ann", password="secret",
                          session_token="tok", login_count=3)
        back = registry.deserialize(Account, registry.serialize(account))
        assert back == Account(account_id="a1", display_name="Ann", password="",
                               session_token="", login_count=3)

    def test_skip_deserializing_ignores_wire_value(self, registry):
        """A wire value for a skip_deserializing field is ignored."""
        wire = {"id": "a1", "display_name": "Ann", "session_token": "tok", "login_count": 1}
        assert registry.deserialize(Account, wire).session_token == ""

    def test_default_on_absent(self, registry):
        """A missing key takes the field default."""
        wire = {"id": "a1", "display_name": "Ann"}
        assert registry.deserialize(Account, wire).login_count == 0

    def test_default_on_absent_does_not_hide_bad_values(self, registry):
        """A present but invalid value still fails."""
        wire = {"id": "a1", "display_name": "Ann", "login_count": "many"}
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Account, wire)
        assert exc_info.value.field_name == "login_count"

    def test_renamed_field_read_by_wire_name(self, registry):
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Account, {"account_id": "a1"})
        assert exc_info.value.field_name == "id"


class TestLeafBoundaries:
    def test_session_round_trip(self, registry):
        """Record ids, timestamps, durations, mappings and tuples round-trip."""
        session = Session(
            owner=Thing("user", "ann"),
            started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            ttl=timedelta(hours=1, minutes=30),
            scores={"math": 9.5},
            history=(1, 2, 3),
        )
        wire = registry.serialize(session)
        assert wire["owner"] == Thing("user", "ann")
        assert wire["history"] == [1, 2, 3]
        assert registry.deserialize(Session, wire) == session

    def test_text_forms(self, registry):
        """Record ids, timestamps and durations are also read from text."""
        wire = {
            "owner": "user:ann",
            "started_at": "2024-01-01T00:00:00Z",
            "ttl": "1h30m",
            "scores": {"math": 9},
            "history": [],
        }
        session = registry.deserialize(Session, wire)
        assert session.owner == Thing("user", "ann")
        assert session.started_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert session.ttl == timedelta(hours=1, minutes=30)
        assert session.scores == {"math": 9.0}
        assert session.history == ()

    def test_bad_duration_text(self, registry):
        wire = {"owner": "user:ann", "started_at": "2024-01-01T00:00:00Z", "ttl": "soon"}
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Session, wire)
        assert exc_info.value.field_name == "ttl"

    def test_negative_duration_rejected(self, registry):
        """The store has no negative durations, so neither direction accepts one."""
        with pytest.raises(SerializeError):
            registry.serialize(timedelta(seconds=-5), timedelta)
        with pytest.raises(UnexpectedValue):
            registry.deserialize(timedelta, timedelta(seconds=-5))

    def test_int_rejects_bool(self, registry):
        """bool is an int subclass but not an integer on the wire."""
        with pytest.raises(UnexpectedValue):
            registry.deserialize(int, True)

    def test_float_accepts_int(self, registry):
        """Whole numbers are read into float fields as floats."""
        assert registry.deserialize(float, 3) == 3.0

    def test_mapping_rejects_array(self, registry):
        with pytest.raises(ExpectedAnObject):
            registry.deserialize(dict[str, float], [1.0])


class TestLinks:
    def test_id_link(self, registry):
        """An identity link is written as the record id."""
        post = Post(title="t", author=Link.to("user", "Devlog"))
        wire = registry.serialize(post)
        assert wire["author"] == Thing("user", "Devlog")
        assert registry.deserialize(Post, wire) == post

    def test_id_link_from_text(self, registry):
        """A "table:key" string reads as an identity link."""
        post = registry.deserialize(Post, {"title": "t", "author": "user:Devlog"})
        assert post.author.is_id
        assert post.author.id == Thing("user", "Devlog")

    def test_object_link(self, registry):
        """An embedded record is written and read through the target codec."""
        post = Post(title="t", author=Link(record=Author(name="Devlog")),
                    reviewers=[Link.to("user", "x"), Link(record=Author(name="y"))])
        wire = registry.serialize(post)
        assert wire["author"] == {"name": "Devlog"}
        assert wire["reviewers"] == [Thing("user", "x"), {"name": "y"}]
        assert registry.deserialize(Post, wire) == post

    def test_bad_link(self, registry):
        """Values that are neither an id nor an object are rejected."""
        with pytest.raises(ParsingFieldFailed) as exc_info:
            registry.deserialize(Post, {"title": "t", "author": 5})
        assert isinstance(exc_info.value.cause, UnexpectedValue)

    def test_link_needs_one_target(self):
        """A link holds either an id or a record, never both or neither."""
        with pytest.raises(ValueError):
            Link()
        with pytest.raises(ValueError):
            Link(id=Thing("user", "a"), record=Author(name="a"))
