"""
Account topology of the project.

The main contract lives on the master wallet account, the token and HTLC
contracts on fixed subaccounts of it.
"""

import re
from dataclasses import dataclass
from typing import Iterator, Tuple

from deploy_errors import InvalidAccountReference

# Subaccount prefixes
TOKEN_PREFIX = "token"
HTLC_PREFIX = "htlc"

# NEAR account id rules: 2-64 chars, lowercase alphanumerics split by - _ or .
ACCOUNT_ID_RE = re.compile(r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$")
MIN_ACCOUNT_ID_LEN = 2
MAX_ACCOUNT_ID_LEN = 64


@dataclass(frozen=True)
class AccountSet:
    main: str
    token: str
    htlc: str

    def all(self) -> Iterator[Tuple[str, str]]:
        """Yield (role, account) pairs in deployment order."""
        yield "main", self.main
        yield "token", self.token
        yield "htlc", self.htlc


def subaccount(prefix: str, master: str) -> str:
    return f"{prefix}.{master}"


def derive(wallet_identity: str) -> AccountSet:
    """Derive the three contract accounts from the master wallet."""
    return AccountSet(
        main=wallet_identity,
        token=subaccount(TOKEN_PREFIX, wallet_identity),
        htlc=subaccount(HTLC_PREFIX, wallet_identity),
    )


def validate_account_id(value) -> str:
    """Return the stripped account id, or raise InvalidAccountReference."""
    if not isinstance(value, str):
        raise InvalidAccountReference(value)
    account = value.strip()
    if not MIN_ACCOUNT_ID_LEN <= len(account) <= MAX_ACCOUNT_ID_LEN:
        raise InvalidAccountReference(value)
    if not ACCOUNT_ID_RE.match(account):
        raise InvalidAccountReference(value)
    return account
