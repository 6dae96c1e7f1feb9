"""Test data factories for deterministic test data generation."""

from tests.factories.communities import (
    make_group_memberships,
    make_groups,
    make_identity_payload,
    make_stream_message,
    make_trait_payload,
    make_v3_response,
)

__all__ = [
    "make_group_memberships",
    "make_groups",
    "make_identity_payload",
    "make_stream_message",
    "make_trait_payload",
    "make_v3_response",
]
