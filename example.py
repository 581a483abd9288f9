"""Example usage of the surreal_codec library."""

from __future__ import annotations

from dataclasses import dataclass, field

from surreal_codec import CodecConfig, CodecRegistry, SumType, Thing, render, wire_field


@dataclass
class Address:
    street: str
    city: str
    country: str


# Tagged sum type: non-unit variants become {"type": ..., "value": ...}
class UserType(SumType, tag="type"):
    pass


@dataclass
class Guest(UserType):
    pass


@dataclass
class Basic(UserType, shape="tuple"):
    level: int
    plan: str


@dataclass
class Premium(UserType):
    level: int
    subscription_type: str
    address: Address


@dataclass
class User:
    user_id: Thing = wire_field(rename="id")
    name: str = ""
    user_type: UserType = field(default_factory=Guest)
    tags: list[str] = field(default_factory=list)
    nickname: str | None = None


registry = CodecRegistry(CodecConfig(use_camel_case=False))

users = [
    User(Thing("user", "alice"), "Alice", Guest()),
    User(Thing("user", "bob"), "Bob", Basic(1, "team"), tags=["beta"]),
    User(
        Thing("user", "carol"),
        "Carol",
        Premium(3, "gold", Address("123 Main St", "Tech City", "Codeland")),
        nickname="C",
    ),
]

print("Serialized users:")
for user in users:
    wire = registry.serialize(user)
    print(f"  {render(wire)}")
    assert registry.deserialize(User, wire) == user

# A single-row query result deserializes like the row itself
row = [{"id": Thing("user", "dave"), "name": "Dave", "user_type": "guest", "tags": []}]
print(f"\nFrom a query result: {registry.deserialize(User, row)}")

print("\nWith camelCase wire names:")
camel = CodecRegistry(CodecConfig(use_camel_case=True))
print(f"  {render(camel.serialize(users[2]))}")
