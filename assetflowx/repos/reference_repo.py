"""Reference data lookup: the course catalog and the user directory.

Static in this service.  Order creation reads course prices from here and
credential issuance reads course names, user names and wallets.
"""

from __future__ import annotations

from typing import Protocol

from assetflowx.models.course import Course, User

_COURSES: tuple[Course, ...] = (
    Course(id="course_web3_101", name="Web3 Fundamentals", price="99.00"),
    Course(id="course_solidity_adv", name="Advanced Solidity", price="199.00"),
    Course(id="course_defi_master", name="DeFi Mastery", price="299.00"),
    Course(id="course_nft_art", name="NFT Art & Marketplaces", price="149.00"),
    Course(id="course_dao_governance", name="DAO Governance", price="179.00"),
)

_USERS: tuple[User, ...] = (
    User(id="u_alice", name="Alice Johnson", wallet="0xAlice1234567890abcdef"),
    User(id="u_bob", name="Bob Smith", wallet="0xBob1234567890abcdef"),
    User(id="u_charlie", name="Charlie Davis", wallet="0xCharlie1234567890abcdef"),
)


class ReferenceRepo(Protocol):
    def get_course_by_id(self, course_id: str) -> Course | None: ...
    def get_user_by_id(self, user_id: str) -> User | None: ...
    def list_courses(self) -> list[Course]: ...


class StaticReferenceRepo:
    def __init__(
        self,
        courses: tuple[Course, ...] = _COURSES,
        users: tuple[User, ...] = _USERS,
    ) -> None:
        self._courses = {c.id: c for c in courses}
        self._users = {u.id: u for u in users}

    def get_course_by_id(self, course_id: str) -> Course | None:
        return self._courses.get(course_id)

    def get_user_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def list_courses(self) -> list[Course]:
        return list(self._courses.values())


reference_data: ReferenceRepo = StaticReferenceRepo()
