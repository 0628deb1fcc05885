"""Demo ledger: a spread of orders in every status, one credential of
each kind, and the settlements for the settled orders.

Timestamps are relative to ``now`` so the two PENDING orders are still
payable right after startup.
"""

from __future__ import annotations

import datetime
import logging

from assetflowx.core.clock import isoformat_z, utcnow
from assetflowx.models.credential import (
    CredType,
    OffChainCredential,
    OnChainCredential,
    TokenAttribute,
    TokenMetadata,
)
from assetflowx.models.order import ChainId, Order, OrderStatus, Settlement, TokenType
from assetflowx.services.credential_service import (
    ACADEMY_ISSUER,
    DID_ISSUER,
    CredentialService,
)
from assetflowx.services.order_service import OrderService
from assetflowx.services.settlement import compute_fee_split

logger = logging.getLogger(__name__)

_MIN = datetime.timedelta(minutes=1)
_HOUR = datetime.timedelta(hours=1)
_DAY = datetime.timedelta(days=1)

# id, course, user, chain, token, price, status, tx, created ago, updated ago, expires in
_ORDERS = (
    ("ord_pending_1", "course_web3_101", "u_alice", ChainId.BASE_SEPOLIA, TokenType.USDC, "99.00",
     OrderStatus.PENDING, None, 5 * _MIN, 5 * _MIN, 10 * _MIN),
    ("ord_pending_2", "course_nft_art", "u_bob", ChainId.POLYGON_AMOY, TokenType.USDT, "149.00",
     OrderStatus.PENDING, None, 3 * _MIN, 3 * _MIN, 12 * _MIN),
    ("ord_paid_1", "course_solidity_adv", "u_alice", ChainId.BASE_SEPOLIA, TokenType.USDC, "199.00",
     OrderStatus.PAID, "0xfakepaid1234567890abcdef1234567890abcdef1234567890abcdef1234567890",
     2 * _DAY, 2 * _DAY, None),
    ("ord_paid_2", "course_defi_master", "u_bob", ChainId.POLYGON_AMOY, TokenType.ETH, "299.00",
     OrderStatus.PAID, "0xfakepaid2abcdefabcdefabcdefabcdefabcdefabcdefabcdefabcdefabcdefabcd",
     _DAY, _DAY, None),
    ("ord_paid_3", "course_web3_101", "u_charlie", ChainId.BASE_SEPOLIA, TokenType.USDC, "99.00",
     OrderStatus.PAID, "0xfakepaid3xyz123xyz123xyz123xyz123xyz123xyz123xyz123xyz123xyz123xyz1",
     12 * _HOUR, 12 * _HOUR, None),
    ("ord_settled_1", "course_dao_governance", "u_alice", ChainId.POLYGON_AMOY, TokenType.USDC, "179.00",
     OrderStatus.SETTLED, "0xfakesettled1abc123abc123abc123abc123abc123abc123abc123abc123abc123abc1",
     7 * _DAY, 5 * _DAY, None),
    ("ord_settled_2", "course_nft_art", "u_charlie", ChainId.BASE_SEPOLIA, TokenType.ETH, "149.00",
     OrderStatus.SETTLED, "0xfakesettled2def456def456def456def456def456def456def456def456def456def4",
     10 * _DAY, 8 * _DAY, None),
    ("ord_refunded_1", "course_solidity_adv", "u_bob", ChainId.BASE_SEPOLIA, TokenType.USDC, "199.00",
     OrderStatus.REFUNDED, "0xfakerefund1ghi789ghi789ghi789ghi789ghi789ghi789ghi789ghi789ghi789gh",
     14 * _DAY, 12 * _DAY, None),
    ("ord_refunded_2", "course_defi_master", "u_charlie", ChainId.POLYGON_AMOY, TokenType.USDT, "299.00",
     OrderStatus.REFUNDED, "0xfakerefund2jkl012jkl012jkl012jkl012jkl012jkl012jkl012jkl012jkl012jk",
     20 * _DAY, 18 * _DAY, None),
    ("ord_expired_1", "course_web3_101", "u_bob", ChainId.SOLANA_DEVNET, TokenType.USDC, "99.00",
     OrderStatus.EXPIRED, None, _DAY, _DAY - 15 * _MIN, -(_DAY - 15 * _MIN)),
)


def _seed_orders(orders: OrderService, now: datetime.datetime) -> None:
    for (order_id, course_id, user_id, chain, token, price, status, tx,
         created_ago, updated_ago, expires_in) in _ORDERS:
        order = Order(
            id=order_id,
            course_id=course_id,
            user_id=user_id,
            chain=chain,
            token=token,
            price=price,
            platform_fee_bps=1000,
            status=status,
            onchain_tx=tx,
            created_at=now - created_ago,
            updated_at=now - updated_ago,
            expires_at=now + expires_in if expires_in is not None else None,
        )
        orders.orders.add(order)
        if status is OrderStatus.SETTLED:
            split = compute_fee_split(price, order.platform_fee_bps)
            orders.settlements.add(
                Settlement(
                    order_id=order_id,
                    platform_share=split.platform_share,
                    instructor_share=split.instructor_share,
                    released_at=order.updated_at,
                )
            )


def _attrs(course: str, level: str, grade: str, date: str, *extra: TokenAttribute):
    return (
        TokenAttribute("Course", course),
        TokenAttribute("Level", level),
        TokenAttribute("Grade", grade),
        TokenAttribute("Completion Date", date),
        *extra,
    )


def _seed_credentials(credentials: CredentialService, now: datetime.datetime) -> None:
    badge_at = now - 5 * _DAY
    vc_at = now - 8 * _DAY
    verify = credentials.verify_base_url

    seeded = [
        OffChainCredential(
            id="cred_badge_001",
            user_id="u_alice",
            course_id="course_dao_governance",
            course_name="DAO Governance",
            type=CredType.OPEN_BADGE,
            issued_at=badge_at,
            issuer=ACADEMY_ISSUER,
            recipient="Alice Johnson",
            skills=("DAO Structure", "Voting Mechanisms", "Treasury Management"),
            verify_url=f"{verify}/badge/cred_badge_001",
            assertion={
                "@context": "https://w3id.org/openbadges/v2",
                "type": "Assertion",
                "id": "https://assetflowx.example/assertions/cred_badge_001",
                "badge": {
                    "type": "BadgeClass",
                    "name": "DAO Governance Specialist",
                    "description": "Completed DAO Governance course with excellence",
                    "image": "https://assetflowx.example/badges/dao.png",
                    "criteria": "Complete all modules and pass final assessment",
                    "issuer": ACADEMY_ISSUER,
                },
                "recipient": {"identity": "u_alice"},
                "issuedOn": isoformat_z(badge_at),
            },
        ),
        OffChainCredential(
            id="cred_vc_002",
            user_id="u_bob",
            course_id="course_defi_master",
            course_name="DeFi Mastery",
            type=CredType.VC,
            issued_at=vc_at,
            issuer=DID_ISSUER,
            recipient="Bob Smith",
            skills=("Liquidity Pools", "Yield Farming", "Flash Loans", "DEX Architecture"),
            verify_url=f"{verify}/vc/cred_vc_002",
            assertion={
                "@context": ["https://www.w3.org/2018/credentials/v1"],
                "type": ["VerifiableCredential", "CourseCompletionCredential"],
                "issuer": DID_ISSUER,
                "issuanceDate": isoformat_z(vc_at),
                "credentialSubject": {
                    "id": "u_bob",
                    "courseName": "DeFi Mastery",
                    "completionDate": isoformat_z(vc_at),
                    "grade": "A+",
                },
            },
        ),
        OnChainCredential(
            id="cred_erc1155_003",
            user_id="u_charlie",
            course_id="course_nft_art",
            course_name="NFT Art & Marketplaces",
            type=CredType.ERC1155,
            issued_at=now - 8 * _DAY,
            issuer=ACADEMY_ISSUER,
            recipient="0xCharlie1234567890abcdef",
            skills=("NFT Standards", "IPFS", "Smart Contract Design", "Marketplace Integration"),
            chain=ChainId.BASE_SEPOLIA,
            contract="0xFakeERC1155Contract1234567890abcdef1234567890",
            token_id="42",
            tx_hash="0xfakemint1155abc123abc123abc123abc123abc123abc123abc123abc123abc123abc",
            metadata=TokenMetadata(
                name="NFT Art & Marketplaces Graduate",
                description=(
                    "Completed comprehensive NFT course covering ERC-721, "
                    "ERC-1155, and marketplace development"
                ),
                image="https://assetflowx.example/nft-metadata/42.png",
                attributes=_attrs("NFT Art & Marketplaces", "Advanced", "A", "2025-10-09"),
            ),
        ),
        OnChainCredential(
            id="cred_erc1155_004",
            user_id="u_alice",
            course_id="course_web3_101",
            course_name="Web3 Fundamentals",
            type=CredType.ERC1155,
            issued_at=now - 15 * _DAY,
            issuer=ACADEMY_ISSUER,
            recipient="0xAlice1234567890abcdef",
            skills=("Blockchain Basics", "Wallets", "dApps", "Smart Contracts Intro"),
            chain=ChainId.POLYGON_AMOY,
            contract="0xFakeERC1155Contract9876543210fedcba9876543210",
            token_id="101",
            tx_hash="0xfakemint1155def456def456def456def456def456def456def456def456def456def",
            metadata=TokenMetadata(
                name="Web3 Fundamentals Certificate",
                description="Entry-level Web3 knowledge certification",
                image="https://assetflowx.example/nft-metadata/101.png",
                attributes=_attrs("Web3 Fundamentals", "Beginner", "B+", "2025-10-02"),
            ),
        ),
        OnChainCredential(
            id="cred_sbt_005",
            user_id="u_bob",
            course_id="course_solidity_adv",
            course_name="Advanced Solidity",
            type=CredType.SBT,
            issued_at=now - 3 * _DAY,
            issuer=ACADEMY_ISSUER,
            recipient="0xBob1234567890abcdef",
            skills=("Advanced Patterns", "Gas Optimization", "Security Best Practices", "Upgradability"),
            chain=ChainId.BASE_SEPOLIA,
            contract="0xFakeSBTContract1234567890abcdef1234567890abcd",
            token_id="7",
            tx_hash="0xfakemintsbtghi789ghi789ghi789ghi789ghi789ghi789ghi789ghi789ghi789gh",
            metadata=TokenMetadata(
                name="Advanced Solidity Master",
                description="Soulbound token certifying mastery of advanced Solidity development",
                image="https://assetflowx.example/sbt-metadata/7.png",
                attributes=_attrs(
                    "Advanced Solidity", "Expert", "A+", "2025-10-14",
                    TokenAttribute("Non-Transferable", "true"),
                ),
            ),
        ),
    ]
    for credential in seeded:
        credentials.credentials.add(credential)


def seed_demo_data(
    orders: OrderService,
    credentials: CredentialService,
    now: datetime.datetime | None = None,
) -> None:
    """Replace the ledgers' contents with the demo fixtures."""
    now = now or utcnow()
    orders.reset()
    credentials.reset()
    _seed_orders(orders, now)
    _seed_credentials(credentials, now)
    logger.info(
        "Seeded demo data: %d orders, %d credentials",
        len(orders.orders.list_all()),
        len(credentials.credentials.list_all()),
    )
