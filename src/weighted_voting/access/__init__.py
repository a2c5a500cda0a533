"""Identity and access control."""

from weighted_voting.access.control import AccessControl, canonical_identity

__all__ = ["AccessControl", "canonical_identity"]
