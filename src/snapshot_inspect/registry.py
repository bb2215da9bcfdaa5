from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

__all__ = [
    "CONSUL_RECORD_TYPES",
    "DEFAULT_REGISTRY",
    "RecordTypeRegistry",
    "REGISTRY_SOURCE_HINT",
]

# Mirrors the MessageType constants in Consul's agent/structs/structs.go.
# The tag byte of a record is the index into this table.
CONSUL_RECORD_TYPES: tuple[str, ...] = (
    "Register",
    "Deregister",
    "KVS",
    "Session",
    "ACL (Deprecated)",
    "Tombstone",
    "CoordinateBatchUpdate",
    "PreparedQuery",
    "Txn",
    "Autopilot",
    "Area",
    "ACLBootstrap",
    "Intention",
    "ConnectCA",
    "ConnectCAProviderState",
    "ConnectCAConfig",
    "Index",
    "ACLTokenSet",
    "ACLTokenDelete",
    "ACLPolicySet",
    "ACLPolicyDelete",
    "ConnectCALeafRequestType",
    "ConfigEntryRequestType",
    "ACLRoleSetRequestType",
    "ACLRoleDeleteRequestType",
    "ACLBindingRuleSetRequestType",
    "ACLBindingRuleDeleteRequestType",
    "ACLAuthMethodSetRequestType",
    "ACLAuthMethodDeleteRequestType",
    "ChunkingStateType",
    "FederationStateRequestType",
    "SystemMetadataRequestType",
)

REGISTRY_SOURCE_HINT = "https://github.com/hashicorp/consul/blob/main/agent/structs/structs.go"


@dataclass(frozen=True)
class RecordTypeRegistry:
    """Immutable tag -> display name table."""

    names: tuple[str, ...]

    @classmethod
    def from_names(cls, names: Sequence[str]) -> RecordTypeRegistry:
        if len(names) > 256:
            raise ValueError("a one-byte tag addresses at most 256 record types")
        if len(set(names)) != len(names):
            raise ValueError("record type names must be unique")
        return cls(names=tuple(names))

    def __len__(self) -> int:
        return len(self.names)

    def is_known(self, tag: int) -> bool:
        return 0 <= tag < len(self.names)

    def lookup(self, tag: int) -> str | None:
        if not self.is_known(tag):
            return None
        return self.names[tag]

    def tag_for(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"unknown record type: {name}") from None

    @staticmethod
    def placeholder_name(tag: int) -> str:
        return f"Unknown({tag})"


DEFAULT_REGISTRY = RecordTypeRegistry.from_names(CONSUL_RECORD_TYPES)
