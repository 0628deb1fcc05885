from __future__ import annotations

import asyncio
import datetime
import random

import pytest

from assetflowx.core.clock import FrozenClock
from assetflowx.core.errors import BadRequestError, NotFoundError
from assetflowx.models.credential import CredType, OffChainCredential, OnChainCredential
from assetflowx.models.order import ChainId
from assetflowx.repos.credential_repo import InMemoryCredentialRepo
from assetflowx.repos.reference_repo import reference_data
from assetflowx.services.credential_service import (
    CredentialFilters,
    CredentialService,
    credential_detail,
    credential_summary,
)
from assetflowx.services.idempotency import IdempotencyGate, InMemoryIdempotencyStore

START = datetime.datetime(2025, 10, 19, 9, 30, tzinfo=datetime.UTC)
VERIFY = "https://verify.test"


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def service(clock: FrozenClock) -> CredentialService:
    return CredentialService(
        credentials=InMemoryCredentialRepo(),
        reference=reference_data,
        idempotency=IdempotencyGate(
            InMemoryIdempotencyStore(), ttl_seconds=86400, clock=clock
        ),
        clock=clock,
        verify_base_url=VERIFY + "/",
        rng=random.Random(42),
    )


def _issue(
    service: CredentialService,
    mode: CredType,
    user_id: str = "u_alice",
    course_id: str = "course_web3_101",
    **kwargs,
) -> dict:
    return asyncio.run(service.issue_credential(user_id, course_id, mode, **kwargs))


# ---- issuance ----


def test_open_badge_is_off_chain_with_verify_url(service: CredentialService) -> None:
    issued = _issue(service, CredType.OPEN_BADGE)
    credential = service.get_credential(issued["credentialId"])

    assert set(issued) == {"credentialId", "type", "verifyUrl"}
    assert issued["type"] == "OPEN_BADGE"
    assert issued["verifyUrl"] == f"{VERIFY}/open_badge/{issued['credentialId']}"
    assert issued["credentialId"].startswith("cred_openbadge_")
    assert isinstance(credential, OffChainCredential)
    assert credential.issuer == "AssetFlowX Academy"
    assert credential.recipient == "Alice Johnson"
    assert credential.assertion["type"] == "Assertion"
    assert credential.assertion["badge"]["name"] == "Web3 Fundamentals Certificate"


def test_vc_uses_did_issuer(service: CredentialService) -> None:
    issued = _issue(service, CredType.VC, user_id="u_bob")
    credential = service.get_credential(issued["credentialId"])

    assert issued["credentialId"].startswith("cred_vc_")
    assert credential.issuer == "did:web:assetflowx.example"
    assert credential.assertion["credentialSubject"] == {
        "id": "u_bob",
        "courseName": "Web3 Fundamentals",
        "completionDate": "2025-10-19T09:30:00.000Z",
        "grade": "A",
    }


@pytest.mark.parametrize("mode", [CredType.ERC1155, CredType.SBT])
def test_onchain_issue_mints_token(service: CredentialService, mode: CredType) -> None:
    issued = _issue(service, mode)
    credential = service.get_credential(issued["credentialId"])

    assert set(issued) == {"credentialId", "type", "contract", "tokenId", "txHash"}
    assert isinstance(credential, OnChainCredential)
    assert credential.chain == ChainId.BASE_SEPOLIA
    assert credential.recipient == "0xAlice1234567890abcdef"
    assert 0 <= int(issued["tokenId"]) <= 999
    assert issued["contract"].startswith(f"0xMock{mode.value}Contract")
    assert issued["txHash"].startswith(f"0xfakemint{mode.value.lower()}")


def test_sbt_is_marked_non_transferable(service: CredentialService) -> None:
    issued = _issue(service, CredType.SBT)
    metadata = service.get_credential(issued["credentialId"]).metadata
    assert metadata.has_attribute("Non-Transferable", "true")


def test_erc1155_is_never_marked_non_transferable(service: CredentialService) -> None:
    for _ in range(5):
        issued = _issue(service, CredType.ERC1155)
        metadata = service.get_credential(issued["credentialId"]).metadata
        assert not any(a.trait_type == "Non-Transferable" for a in metadata.attributes)


def test_course_checked_before_user(service: CredentialService) -> None:
    with pytest.raises(NotFoundError, match="Course not found"):
        _issue(service, CredType.VC, user_id="u_nobody", course_id="course_nope")
    with pytest.raises(NotFoundError, match="User not found"):
        _issue(service, CredType.VC, user_id="u_nobody")
    assert service.credentials.list_all() == []


def test_idempotent_issue_mints_once(service: CredentialService) -> None:
    first = _issue(service, CredType.SBT, idempotency_key="issue-1")
    second = _issue(service, CredType.SBT, idempotency_key="issue-1")
    assert first == second
    assert len(service.credentials.list_all()) == 1


# ---- projections and queries ----


def test_summary_hides_document_fields(service: CredentialService) -> None:
    issued = _issue(service, CredType.SBT)
    credential = service.get_credential(issued["credentialId"])

    summary = credential_summary(credential)
    for hidden in ("issuer", "recipient", "skills", "assertion", "metadata"):
        assert hidden not in summary

    detail = credential_detail(credential)
    assert detail["issuer"] == "AssetFlowX Academy"
    assert {"trait_type": "Non-Transferable", "value": "true"} in detail["metadata"]["attributes"]


def test_get_unknown_credential(service: CredentialService) -> None:
    with pytest.raises(NotFoundError, match="Credential not found"):
        service.get_credential("cred_missing")


def test_list_credentials_filters_and_sorts(
    service: CredentialService, clock: FrozenClock
) -> None:
    badge = _issue(service, CredType.OPEN_BADGE)["credentialId"]
    clock.advance(minutes=1)
    sbt = _issue(service, CredType.SBT, course_id="course_solidity_adv")["credentialId"]
    clock.advance(minutes=1)
    vc = _issue(service, CredType.VC)["credentialId"]

    assert [c.id for c in service.list_credentials().data] == [vc, sbt, badge]

    offchain = service.list_credentials(
        CredentialFilters(types=frozenset({CredType.OPEN_BADGE, CredType.VC}))
    )
    assert [c.id for c in offchain.data] == [vc, badge]

    on_base = service.list_credentials(CredentialFilters(chain=ChainId.BASE_SEPOLIA))
    assert [c.id for c in on_base.data] == [sbt]

    by_course = service.list_credentials(CredentialFilters(course_id="course_web3_101"))
    assert by_course.total == 2


# ---- verification ----


def test_verify_by_id(service: CredentialService) -> None:
    issued = _issue(service, CredType.VC)
    result = service.verify_credential(credential_id=issued["credentialId"])
    assert result.valid
    assert result.type == CredType.VC
    assert result.details["courseName"] == "Web3 Fundamentals"
    assert result.details["issuedAt"] == "2025-10-19T09:30:00.000Z"


def test_verify_unknown_id_is_invalid_not_an_error(service: CredentialService) -> None:
    result = service.verify_credential(credential_id="cred_badge_999")
    assert result.to_dict() == {
        "valid": False,
        "type": "OPEN_BADGE",
        "details": {
            "issuer": "Unknown",
            "recipient": "Unknown",
            "issuedAt": "",
            "courseName": "Unknown",
            "skills": [],
        },
    }


def test_verify_by_url(service: CredentialService) -> None:
    issued = _issue(service, CredType.OPEN_BADGE)
    result = service.verify_credential(url=issued["verifyUrl"])
    assert result.valid
    assert result.type == CredType.OPEN_BADGE


def test_verify_url_for_unknown_id_uses_slug_type(service: CredentialService) -> None:
    result = service.verify_credential(url=f"{VERIFY}/vc/cred_vc_missing")
    assert not result.valid
    assert result.type == CredType.VC

    result = service.verify_credential(url=f"{VERIFY}/badge/cred_missing")
    assert result.type == CredType.OPEN_BADGE


def test_verify_url_must_point_at_an_off_chain_credential(service: CredentialService) -> None:
    issued = _issue(service, CredType.SBT)
    result = service.verify_credential(url=f"{VERIFY}/sbt/{issued['credentialId']}")
    assert not result.valid
    assert result.type == CredType.SBT


def test_verify_malformed_url(service: CredentialService) -> None:
    result = service.verify_credential(url="not-a-url")
    assert not result.valid
    assert result.type == CredType.OPEN_BADGE


def test_verify_onchain_with_matching_wallet(service: CredentialService) -> None:
    issued = _issue(service, CredType.SBT)
    result = service.verify_credential(
        contract=issued["contract"].upper(),
        token_id=issued["tokenId"],
        wallet="0xALICE1234567890ABCDEF",
    )
    assert result.valid
    assert result.type == CredType.SBT
    assert result.details["owner"] == "0xAlice1234567890abcdef"
    assert result.details["chain"] == "base-sepolia"
    assert result.details["txHash"] == issued["txHash"]


def test_verify_onchain_wallet_mismatch_is_invalid(service: CredentialService) -> None:
    issued = _issue(service, CredType.ERC1155)
    result = service.verify_credential(
        contract=issued["contract"], token_id=issued["tokenId"], wallet="0xBob1234567890abcdef"
    )
    assert not result.valid
    assert result.details["owner"] == "0xAlice1234567890abcdef"


def test_verify_onchain_without_wallet_only_checks_existence(service: CredentialService) -> None:
    issued = _issue(service, CredType.ERC1155)
    assert service.verify_credential(contract=issued["contract"], token_id=issued["tokenId"]).valid


def test_verify_onchain_unknown_token(service: CredentialService) -> None:
    result = service.verify_credential(contract="0xNope", token_id="1")
    assert not result.valid
    assert result.type == CredType.ERC1155


def test_verify_id_takes_priority_over_url(service: CredentialService) -> None:
    issued = _issue(service, CredType.VC)
    result = service.verify_credential(
        credential_id=issued["credentialId"], url="https://elsewhere/badge/cred_nope"
    )
    assert result.valid


@pytest.mark.parametrize(
    "kwargs",
    [{}, {"contract": "0xabc"}, {"token_id": "7"}, {"wallet": "0xAlice"}],
)
def test_verify_without_a_locator_is_rejected(service: CredentialService, kwargs: dict) -> None:
    with pytest.raises(BadRequestError, match="Must provide credentialId, url, or contract"):
        service.verify_credential(**kwargs)
