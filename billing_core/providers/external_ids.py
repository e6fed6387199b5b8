"""Mapping between internal identifiers and a provider's own identifiers."""
from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Protocol, Union

InternalId = Union[str, int]


class ExternalIdMapper(Protocol):
    """Bidirectional, batched id mapping scoped by entity type and provider."""

    def store(self, type_: str, provider: str, mapping: Mapping[InternalId, str]) -> None:
        ...

    def get_external_id(self, type_: str, provider: str, internal_id: InternalId) -> Optional[str]:
        ...

    def get_external_ids(
        self, type_: str, provider: str, internal_ids: Iterable[InternalId]
    ) -> Dict[InternalId, Optional[str]]:
        ...

    def get_internal_id(self, type_: str, provider: str, external_id: str) -> Optional[InternalId]:
        ...

    def get_internal_ids(
        self, type_: str, provider: str, external_ids: Iterable[str]
    ) -> Dict[str, Optional[InternalId]]:
        ...


class MemoryExternalIdMapper(ExternalIdMapper):
    def __init__(self) -> None:
        self._external: Dict[str, Dict[str, Dict[InternalId, str]]] = {}
        self._internal: Dict[str, Dict[str, Dict[str, InternalId]]] = {}

    def store(self, type_: str, provider: str, mapping: Mapping[InternalId, str]) -> None:
        forward = self._external.setdefault(type_, {}).setdefault(provider, {})
        backward = self._internal.setdefault(type_, {}).setdefault(provider, {})
        for internal_id, external_id in mapping.items():
            previous = forward.get(internal_id)
            if previous is not None:
                backward.pop(previous, None)
            owner = backward.get(external_id)
            if owner is not None and owner != internal_id:
                forward.pop(owner, None)
            forward[internal_id] = external_id
            backward[external_id] = internal_id

    def get_external_id(self, type_: str, provider: str, internal_id: InternalId) -> Optional[str]:
        return self._external.get(type_, {}).get(provider, {}).get(internal_id)

    def get_external_ids(
        self, type_: str, provider: str, internal_ids: Iterable[InternalId]
    ) -> Dict[InternalId, Optional[str]]:
        return {internal_id: self.get_external_id(type_, provider, internal_id) for internal_id in internal_ids}

    def get_internal_id(self, type_: str, provider: str, external_id: str) -> Optional[InternalId]:
        return self._internal.get(type_, {}).get(provider, {}).get(external_id)

    def get_internal_ids(
        self, type_: str, provider: str, external_ids: Iterable[str]
    ) -> Dict[str, Optional[InternalId]]:
        return {external_id: self.get_internal_id(type_, provider, external_id) for external_id in external_ids}


__all__ = ["ExternalIdMapper", "InternalId", "MemoryExternalIdMapper"]
