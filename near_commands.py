"""
Argument lists for the NEAR command line tools, and the one place they run.

Builders are pure: the same account and config always give the same list.
"""

import logging
import subprocess
from typing import Iterable, List, Optional

from deploy_config import ResolvedConfig
from deploy_errors import ExternalCommandFailed

logger = logging.getLogger(__name__)

NEAR_CLI = "near"
CARGO = "cargo"

INIT_METHOD = "new"
INIT_ARGS = "{}"
SUBACCOUNT_INITIAL_BALANCE = "5"
SEED_PHRASE_HD_PATH = "m/44'/397'/0'"

REDACTED = "***"


def build_create_subaccount(account: str, config: ResolvedConfig) -> List[str]:
    """Create `account` under the master wallet, signing with the local key."""
    return [
        NEAR_CLI, "create-account", account,
        "--masterAccount", config.wallet_identity,
        "--initialBalance", SUBACCOUNT_INITIAL_BALANCE,
        "--useLedgerKey", "false",
        "--networkId", config.network,
    ]


def build_deploy_with_init(account: str, config: ResolvedConfig) -> List[str]:
    """Build the contract, deploy it to `account` and call its initializer."""
    return [
        CARGO, "near", "deploy", "build-non-reproducible-wasm", account,
        "with-init-call", INIT_METHOD,
        "text-args", INIT_ARGS,
        "prepaid-gas", config.gas_budget,
        "attached-deposit", config.deposit_amount,
        "network-config", config.network,
        "sign-with-seed-phrase", config.seed_credential,
        "--seed-phrase-hd-path", SEED_PHRASE_HD_PATH,
        "send",
    ]


def build_query_state(account: str, config: ResolvedConfig) -> List[str]:
    return [NEAR_CLI, "state", account, "--networkId", config.network]


def build_login(config: ResolvedConfig) -> List[str]:
    return [
        NEAR_CLI, "login",
        "--networkId", config.network,
        "--walletUrl", config.wallet_ui_endpoint,
    ]


def redact(cmd: List[str], secrets: Iterable[str] = ()) -> str:
    """Render a command for logging with secret arguments masked."""
    hidden = {s for s in secrets if s}
    return " ".join(REDACTED if arg in hidden else arg for arg in cmd)


def run_command(cmd: List[str], operation: str, account: Optional[str] = None,
                secrets: Iterable[str] = ()) -> None:
    """
    Run one external command with inherited stdio and wait for it.

    Raises:
        ExternalCommandFailed: if the command exits non-zero or cannot start.
    """
    logger.info(f"Running: {redact(cmd, secrets)}")
    try:
        result = subprocess.run(cmd)
    except OSError as e:
        raise ExternalCommandFailed(operation, account, reason=f"could not start {cmd[0]}: {e.strerror or e}")

    logger.debug(f"{cmd[0]} exited with code {result.returncode}")
    if result.returncode != 0:
        raise ExternalCommandFailed(operation, account, returncode=result.returncode)
