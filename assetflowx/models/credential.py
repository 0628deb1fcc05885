from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from typing import Any

from assetflowx.models.order import ChainId


class CredType(enum.StrEnum):
    OPEN_BADGE = "OPEN_BADGE"  # off-chain Open Badges v2 assertion
    VC = "VC"  # off-chain W3C Verifiable Credential
    ERC1155 = "ERC1155"  # on-chain ERC-1155 token
    SBT = "SBT"  # on-chain soulbound token (non-transferable)

    @property
    def is_onchain(self) -> bool:
        return self in (CredType.ERC1155, CredType.SBT)


OFFCHAIN_TYPES = frozenset({CredType.OPEN_BADGE, CredType.VC})
ONCHAIN_TYPES = frozenset({CredType.ERC1155, CredType.SBT})


@dataclass(frozen=True, slots=True)
class TokenAttribute:
    trait_type: str
    value: str


@dataclass(frozen=True, slots=True)
class TokenMetadata:
    """tokenURI metadata for an on-chain credential."""

    name: str
    description: str
    image: str
    attributes: tuple[TokenAttribute, ...] = ()

    def has_attribute(self, trait_type: str, value: str) -> bool:
        return any(
            a.trait_type == trait_type and a.value == value for a in self.attributes
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class OffChainCredential:
    """Open Badge or Verifiable Credential: an assertion plus a verify URL."""

    id: str
    user_id: str
    course_id: str
    course_name: str
    type: CredType
    issued_at: datetime.datetime
    issuer: str
    recipient: str
    skills: tuple[str, ...]
    verify_url: str
    assertion: dict[str, Any]

    def __post_init__(self) -> None:
        if self.type not in OFFCHAIN_TYPES:
            raise ValueError(f"{self.type} is not an off-chain credential type")


@dataclass(frozen=True, slots=True, kw_only=True)
class OnChainCredential:
    """ERC-1155 or SBT: a minted token record, no assertion payload."""

    id: str
    user_id: str
    course_id: str
    course_name: str
    type: CredType
    issued_at: datetime.datetime
    issuer: str
    recipient: str
    skills: tuple[str, ...]
    chain: ChainId
    contract: str
    token_id: str
    tx_hash: str
    metadata: TokenMetadata

    def __post_init__(self) -> None:
        if self.type not in ONCHAIN_TYPES:
            raise ValueError(f"{self.type} is not an on-chain credential type")


Credential = OffChainCredential | OnChainCredential
