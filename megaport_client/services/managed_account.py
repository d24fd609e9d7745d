"""Partner managed accounts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from megaport_client._payload import coerce_mapping_list, coerce_str, require_mapping
from megaport_client.errors import MegaportLookupError
from megaport_client.services.base import BaseService

MANAGED_ACCOUNTS_PATH = "/v2/managedCompanies"


@dataclass(frozen=True, slots=True)
class ManagedAccount:
    account_ref: str
    account_name: str
    company_uid: str


@dataclass(frozen=True, slots=True)
class ManagedAccountRequest:
    account_name: str
    account_ref: str

    def to_payload(self) -> dict[str, Any]:
        return {"accountName": self.account_name, "accountRef": self.account_ref}


class ManagedAccountService(BaseService):
    def list_managed_accounts(self) -> list[ManagedAccount]:
        envelope = self._client.call("GET", MANAGED_ACCOUNTS_PATH)
        return [parse_managed_account(item) for item in coerce_mapping_list(envelope.data)]

    def create_managed_account(self, request: ManagedAccountRequest) -> ManagedAccount:
        envelope = self._client.call("POST", MANAGED_ACCOUNTS_PATH, json_body=request.to_payload())
        return parse_managed_account(require_mapping(envelope.data, context="managed account"))

    def update_managed_account(
        self,
        company_uid: str,
        request: ManagedAccountRequest,
    ) -> ManagedAccount:
        envelope = self._client.call(
            "PUT",
            f"{MANAGED_ACCOUNTS_PATH}/{company_uid}",
            json_body=request.to_payload(),
        )
        return parse_managed_account(require_mapping(envelope.data, context="managed account"))

    def get_managed_account(self, account_name: str) -> ManagedAccount:
        for account in self.list_managed_accounts():
            if account.account_name == account_name:
                return account
        raise MegaportLookupError(f"managed account {account_name!r} not found")


def parse_managed_account(payload: Mapping[str, Any]) -> ManagedAccount:
    return ManagedAccount(
        account_ref=coerce_str(payload.get("accountRef")),
        account_name=coerce_str(payload.get("accountName")),
        company_uid=coerce_str(payload.get("companyUid")),
    )
