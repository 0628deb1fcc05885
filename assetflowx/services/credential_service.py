"""Credential issuance and verification.

Two credential shapes, chosen by type:

  OPEN_BADGE, VC   off-chain: an assertion document plus a verify URL
                   {verify_base_url}/{type slug}/{credential id}
  ERC1155, SBT     on-chain: a (simulated) minted token with contract,
                   token id, tx hash and tokenURI-style metadata.  SBTs
                   carry a Non-Transferable attribute.

Verification accepts exactly one locator, tried in this order:
credential id, verify URL, contract + token id (optionally with the
holder's wallet).  An unknown credential is a normal ``valid: false``
result, not an error; only a request with no locator at all is rejected.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any

from assetflowx.core.clock import Clock, epoch_ms, isoformat_z, utcnow
from assetflowx.core.config import SETTINGS
from assetflowx.core.errors import BadRequestError, NotFoundError
from assetflowx.core.metrics import CREDENTIAL_VERIFICATIONS, CREDENTIALS_ISSUED
from assetflowx.models.course import Course, User
from assetflowx.models.credential import (
    Credential,
    CredType,
    OffChainCredential,
    OnChainCredential,
    TokenAttribute,
    TokenMetadata,
)
from assetflowx.models.order import ChainId
from assetflowx.repos.credential_repo import CredentialRepo, InMemoryCredentialRepo
from assetflowx.repos.reference_repo import ReferenceRepo, reference_data
from assetflowx.services.idempotency import IdempotencyGate, idempotency_store
from assetflowx.services.ids import new_credential_id, random_base36, to_base36
from assetflowx.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page, paginate

logger = logging.getLogger(__name__)

ACADEMY_ISSUER = "AssetFlowX Academy"
DID_ISSUER = "did:web:assetflowx.example"
ASSET_BASE_URL = "https://assetflowx.example"
MINT_CHAIN = ChainId.BASE_SEPOLIA
DEFAULT_SKILLS = ("Mock Skill 1", "Mock Skill 2", "Mock Skill 3")

# .../{typeSlug}/{credentialId} at the end of the URL
_VERIFY_URL_RE = re.compile(r"/([^/]+)/([^/]+)$")


@dataclass(frozen=True, slots=True)
class CredentialFilters:
    types: frozenset[CredType] | None = None
    chain: ChainId | None = None
    course_id: str | None = None

    def matches(self, credential: Credential) -> bool:
        if self.types and credential.type not in self.types:
            return False
        if self.chain is not None:
            if not isinstance(credential, OnChainCredential) or credential.chain != self.chain:
                return False
        if self.course_id is not None and credential.course_id != self.course_id:
            return False
        return True


@dataclass(frozen=True, slots=True)
class VerificationResult:
    valid: bool
    type: CredType
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "type": self.type.value, "details": self.details}


def _unknown(cred_type: CredType) -> VerificationResult:
    return VerificationResult(
        valid=False,
        type=cred_type,
        details={
            "issuer": "Unknown",
            "recipient": "Unknown",
            "issuedAt": "",
            "courseName": "Unknown",
            "skills": [],
        },
    )


def _base_details(credential: Credential) -> dict[str, Any]:
    return {
        "issuer": credential.issuer,
        "recipient": credential.recipient,
        "issuedAt": isoformat_z(credential.issued_at),
        "courseName": credential.course_name,
        "skills": list(credential.skills),
    }


def _onchain_details(credential: OnChainCredential) -> dict[str, Any]:
    details = _base_details(credential)
    details.update(
        owner=credential.recipient,
        chain=credential.chain.value,
        txHash=credential.tx_hash,
    )
    return details


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


def credential_summary(credential: Credential) -> dict[str, Any]:
    """List-view projection: no issuer/recipient/skills, no assertion/metadata."""
    data: dict[str, Any] = {
        "id": credential.id,
        "userId": credential.user_id,
        "courseId": credential.course_id,
        "courseName": credential.course_name,
        "type": credential.type.value,
        "issuedAt": isoformat_z(credential.issued_at),
    }
    if isinstance(credential, OffChainCredential):
        data["verifyUrl"] = credential.verify_url
    else:
        data.update(
            chain=credential.chain.value,
            contract=credential.contract,
            tokenId=credential.token_id,
            txHash=credential.tx_hash,
        )
    return data


def credential_detail(credential: Credential) -> dict[str, Any]:
    data = credential_summary(credential)
    data.update(
        issuer=credential.issuer,
        recipient=credential.recipient,
        skills=list(credential.skills),
    )
    if isinstance(credential, OffChainCredential):
        data["assertion"] = credential.assertion
    else:
        meta = credential.metadata
        data["metadata"] = {
            "name": meta.name,
            "description": meta.description,
            "image": meta.image,
            "attributes": [
                {"trait_type": a.trait_type, "value": a.value} for a in meta.attributes
            ],
        }
    return data


# ---------------------------------------------------------------------------
# Assertion documents
# ---------------------------------------------------------------------------


def open_badge_assertion(
    credential_id: str, course: Course, user_id: str, issued_on: str
) -> dict[str, Any]:
    """Open Badges v2 Assertion skeleton."""
    return {
        "@context": "https://w3id.org/openbadges/v2",
        "type": "Assertion",
        "id": f"{ASSET_BASE_URL}/assertions/{credential_id}",
        "badge": {
            "type": "BadgeClass",
            "name": f"{course.name} Certificate",
            "description": f"Completed {course.name} with excellence",
            "image": f"{ASSET_BASE_URL}/badges/{course.id}.png",
            "criteria": "Complete all modules and pass final assessment",
            "issuer": ACADEMY_ISSUER,
        },
        "recipient": {"identity": user_id},
        "issuedOn": issued_on,
    }


def verifiable_credential(course: Course, user_id: str, issued_on: str) -> dict[str, Any]:
    """W3C Verifiable Credential (v1 data model) skeleton."""
    return {
        "@context": ["https://www.w3.org/2018/credentials/v1"],
        "type": ["VerifiableCredential", "CourseCompletionCredential"],
        "issuer": DID_ISSUER,
        "issuanceDate": issued_on,
        "credentialSubject": {
            "id": user_id,
            "courseName": course.name,
            "completionDate": issued_on,
            "grade": "A",
        },
    }


class CredentialService:
    def __init__(
        self,
        *,
        credentials: CredentialRepo,
        reference: ReferenceRepo,
        idempotency: IdempotencyGate,
        clock: Clock = utcnow,
        verify_base_url: str = "https://verify.assetflowx.example",
        rng: random.Random | None = None,
    ) -> None:
        self.credentials = credentials
        self.reference = reference
        self.idempotency = idempotency
        self.clock = clock
        self.verify_base_url = verify_base_url.rstrip("/")
        self.rng = rng or random.SystemRandom()
        self._lock = asyncio.Lock()

    async def issue_credential(
        self,
        user_id: str,
        course_id: str,
        mode: CredType,
        *,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        async with self._lock:
            return await self.idempotency.run(
                "credentials.issue",
                idempotency_key,
                lambda: self._issue(user_id, course_id, mode),
            )

    def get_credential(self, credential_id: str) -> Credential:
        credential = self.credentials.get(credential_id)
        if credential is None:
            raise NotFoundError("Credential not found")
        return credential

    def list_credentials(
        self,
        filters: CredentialFilters | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Credential]:
        filters = filters or CredentialFilters()
        matching = [c for c in self.credentials.list_all() if filters.matches(c)]
        matching.sort(key=lambda c: c.issued_at, reverse=True)
        return paginate(matching, page, limit)

    def verify_credential(
        self,
        *,
        credential_id: str | None = None,
        url: str | None = None,
        contract: str | None = None,
        token_id: str | None = None,
        wallet: str | None = None,
    ) -> VerificationResult:
        if credential_id:
            method, result = "id", self._verify_by_id(credential_id)
        elif url:
            method, result = "url", self._verify_by_url(url)
        elif contract and token_id:
            method, result = "onchain", self._verify_onchain(contract, token_id, wallet)
        else:
            raise BadRequestError("Must provide credentialId, url, or contract+tokenId")

        CREDENTIAL_VERIFICATIONS.labels(
            method=method, result="valid" if result.valid else "invalid"
        ).inc()
        logger.info("Credential verification method=%s valid=%s", method, result.valid)
        return result

    def reset(self) -> None:
        self.credentials.clear()

    # -- verification paths -------------------------------------------------

    def _verify_by_id(self, credential_id: str) -> VerificationResult:
        credential = self.credentials.get(credential_id)
        if credential is None:
            return _unknown(CredType.OPEN_BADGE)
        if isinstance(credential, OnChainCredential):
            details = _onchain_details(credential)
        else:
            details = _base_details(credential)
        return VerificationResult(valid=True, type=credential.type, details=details)

    def _verify_by_url(self, url: str) -> VerificationResult:
        match = _VERIFY_URL_RE.search(url)
        if match is None:
            return _unknown(CredType.OPEN_BADGE)

        type_slug, credential_id = match.groups()
        credential = self.credentials.get(credential_id)
        if (
            credential is None
            or not isinstance(credential, OffChainCredential)
            or credential_id not in credential.verify_url
        ):
            try:
                slug_type = CredType(type_slug.upper())
            except ValueError:
                slug_type = CredType.OPEN_BADGE
            return _unknown(slug_type)

        return VerificationResult(
            valid=True, type=credential.type, details=_base_details(credential)
        )

    def _verify_onchain(
        self, contract: str, token_id: str, wallet: str | None
    ) -> VerificationResult:
        credential = self.credentials.find_onchain(contract, token_id)
        if credential is None:
            return _unknown(CredType.ERC1155)

        owner_match = True
        if wallet:
            owner_match = credential.recipient.lower() == wallet.lower()
            if not owner_match:
                logger.warning(
                    "Ownership mismatch for contract=%s token=%s",
                    contract,
                    token_id,
                    extra={"credential_id": credential.id},
                )

        return VerificationResult(
            valid=owner_match, type=credential.type, details=_onchain_details(credential)
        )

    # -- issuance (called with the lock held) -------------------------------

    def _issue(self, user_id: str, course_id: str, mode: CredType) -> dict[str, Any]:
        course = self.reference.get_course_by_id(course_id)
        if course is None:
            logger.warning("Issuance rejected: unknown course=%s", course_id)
            raise NotFoundError("Course not found")
        user = self.reference.get_user_by_id(user_id)
        if user is None:
            logger.warning("Issuance rejected: unknown user=%s", user_id)
            raise NotFoundError("User not found")

        now = self.clock()
        credential_id = new_credential_id(mode.value, now, self.rng)

        credential: Credential
        if mode.is_onchain:
            credential = self._mint(credential_id, course, user, mode)
            response = {
                "credentialId": credential.id,
                "type": mode.value,
                "contract": credential.contract,
                "tokenId": credential.token_id,
                "txHash": credential.tx_hash,
            }
        else:
            credential = self._assert(credential_id, course, user, mode)
            response = {
                "credentialId": credential.id,
                "type": mode.value,
                "verifyUrl": credential.verify_url,
            }

        self.credentials.add(credential)
        CREDENTIALS_ISSUED.labels(type=mode.value).inc()
        logger.info(
            "Issued %s credential to user=%s for course=%s",
            mode,
            user.id,
            course.id,
            extra={"credential_id": credential.id},
        )
        return response

    def _assert(
        self, credential_id: str, course: Course, user: User, mode: CredType
    ) -> OffChainCredential:
        now = self.clock()
        issued_on = isoformat_z(now)
        if mode is CredType.VC:
            issuer = DID_ISSUER
            assertion = verifiable_credential(course, user.id, issued_on)
        else:
            issuer = ACADEMY_ISSUER
            assertion = open_badge_assertion(credential_id, course, user.id, issued_on)

        return OffChainCredential(
            id=credential_id,
            user_id=user.id,
            course_id=course.id,
            course_name=course.name,
            type=mode,
            issued_at=now,
            issuer=issuer,
            recipient=user.name,
            skills=DEFAULT_SKILLS,
            verify_url=f"{self.verify_base_url}/{mode.value.lower()}/{credential_id}",
            assertion=assertion,
        )

    def _mint(
        self, credential_id: str, course: Course, user: User, mode: CredType
    ) -> OnChainCredential:
        now = self.clock()
        token_id = str(self.rng.randrange(1000))
        tx_hash = (
            f"0xfakemint{mode.value.lower()}{to_base36(epoch_ms(now))}"
            f"{random_base36(self.rng, 9)}"
        )
        attributes = [
            TokenAttribute("Course", course.name),
            TokenAttribute("Level", "Advanced"),
            TokenAttribute("Grade", "A"),
            TokenAttribute("Completion Date", now.date().isoformat()),
        ]
        if mode is CredType.SBT:
            attributes.append(TokenAttribute("Non-Transferable", "true"))

        return OnChainCredential(
            id=credential_id,
            user_id=user.id,
            course_id=course.id,
            course_name=course.name,
            type=mode,
            issued_at=now,
            issuer=ACADEMY_ISSUER,
            recipient=user.wallet or user.name,
            skills=DEFAULT_SKILLS,
            chain=MINT_CHAIN,
            contract=f"0xMock{mode.value}Contract{random_base36(self.rng, 9)}",
            token_id=token_id,
            tx_hash=tx_hash,
            metadata=TokenMetadata(
                name=f"{course.name} Certificate",
                description=f"{mode.value} credential for completing {course.name}",
                image=f"{ASSET_BASE_URL}/nft-metadata/{token_id}.png",
                attributes=tuple(attributes),
            ),
        )


credential_service = CredentialService(
    credentials=InMemoryCredentialRepo(),
    reference=reference_data,
    idempotency=IdempotencyGate(
        idempotency_store, ttl_seconds=SETTINGS.idempotency_ttl_seconds
    ),
    verify_base_url=SETTINGS.verify_base_url,
)
