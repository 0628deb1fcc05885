from __future__ import annotations

from typing import Protocol

from assetflowx.models.credential import Credential, OnChainCredential


class CredentialRepo(Protocol):
    def get(self, credential_id: str) -> Credential | None: ...
    def add(self, credential: Credential) -> None: ...
    def list_all(self) -> list[Credential]: ...
    def find_onchain(self, contract: str, token_id: str) -> OnChainCredential | None: ...
    def clear(self) -> None: ...


class InMemoryCredentialRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Credential] = {}

    def get(self, credential_id: str) -> Credential | None:
        return self._by_id.get(credential_id)

    def add(self, credential: Credential) -> None:
        if credential.id in self._by_id:
            raise ValueError(f"credential {credential.id} already exists")
        self._by_id[credential.id] = credential

    def list_all(self) -> list[Credential]:
        return list(self._by_id.values())

    def find_onchain(self, contract: str, token_id: str) -> OnChainCredential | None:
        """Linear scan; contract addresses compare case-insensitively."""
        wanted = contract.lower()
        for credential in self._by_id.values():
            if (
                isinstance(credential, OnChainCredential)
                and credential.contract.lower() == wanted
                and credential.token_id == token_id
            ):
                return credential
        return None

    def clear(self) -> None:
        self._by_id.clear()
