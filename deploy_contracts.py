#!/usr/bin/env python3
"""
Deploy the main, token and HTLC contracts to their NEAR accounts.

The main contract goes to the master wallet account; the token and HTLC
contracts go to the `token.` and `htlc.` subaccounts, which must be created
before their first deployment.

Usage:
    python deploy_contracts.py create-subaccounts
    python deploy_contracts.py deploy-all
    python deploy_contracts.py state-all
"""

import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional

from check_rpc import check_rpc_health
from deploy_config import (
    DEPOSIT_VAR,
    GAS_VAR,
    NETWORK_VAR,
    WALLET_URL_VAR,
    WALLET_VAR,
    ResolvedConfig,
    resolve,
)
from deploy_errors import DeployError, ExternalCommandFailed
from near_accounts import AccountSet, derive, validate_account_id
from near_commands import (
    build_create_subaccount,
    build_deploy_with_init,
    build_login,
    build_query_state,
    run_command,
)

logger = logging.getLogger(__name__)

Runner = Callable[..., None]


class Deployer:
    """Runs the deployment operations for one resolved configuration."""

    def __init__(self, config: ResolvedConfig, runner: Runner = run_command,
                 rpc_checker: Optional[Callable[[str], bool]] = None):
        self.config = config
        self.accounts: AccountSet = derive(config.wallet_identity)
        self._runner = runner
        self._rpc_checker = rpc_checker

    def _run(self, cmd: List[str], operation: str, account: Optional[str]) -> None:
        self._runner(cmd, operation, account, secrets=(self.config.seed_credential,))

    def _target(self, account_id: Optional[str]) -> str:
        if account_id is None:
            return self.accounts.main
        return validate_account_id(account_id)

    def _deploy(self, account: str) -> None:
        logger.info(f"🚀 Deploying to {account} on {self.config.network}...")
        self._run(build_deploy_with_init(account, self.config), "deploy", account)
        logger.info(f"✅ Deployed to {account}")
        if self.config.explorer_url:
            logger.info(f"   Explorer: {self.config.explorer_url}/address/{account}")

    def _query(self, account: str) -> None:
        self._run(build_query_state(account, self.config), "state", account)

    def login(self) -> None:
        logger.info(f"🔑 Logging in on {self.config.network} via {self.config.wallet_ui_endpoint}")
        self._run(build_login(self.config), "login", None)

    def deploy_default(self, account_id: Optional[str] = None) -> None:
        """Build and deploy the contract to `account_id` (main account if omitted), then call `new`."""
        self._deploy(self._target(account_id))

    def deploy_main(self) -> None:
        self._deploy(self.accounts.main)

    def deploy_token(self) -> None:
        self._deploy(self.accounts.token)

    def deploy_htlc(self) -> None:
        self._deploy(self.accounts.htlc)

    def deploy_all(self) -> None:
        """Deploy main, token and htlc in order, stopping at the first failure."""
        for role, account in self.accounts.all():
            logger.info(f"=== Processing {role} ===")
            self._deploy(account)
        logger.info("✅ All contracts deployed successfully!")

    def create_subaccounts(self) -> None:
        """
        Create the token subaccount, then the htlc one.

        Stops at the first failure; the htlc subaccount is never attempted
        when the token subaccount could not be created.
        """
        for account in (self.accounts.token, self.accounts.htlc):
            logger.info(f"📦 Creating {account} under {self.config.wallet_identity}...")
            self._run(build_create_subaccount(account, self.config), "create-account", account)
            logger.info(f"✅ Created {account}")

    def query_state(self, account_id: Optional[str] = None) -> None:
        self._query(self._target(account_id))

    def query_all_states(self) -> Dict[str, Optional[ExternalCommandFailed]]:
        """
        Query the state of main, token and htlc.

        Every account is queried even when an earlier query fails.

        Returns:
            Dict mapping each account to None on success or the failure.
        """
        results: Dict[str, Optional[ExternalCommandFailed]] = {}
        for role, account in self.accounts.all():
            logger.info(f"=== {role}: {account} ===")
            try:
                self._query(account)
                results[account] = None
            except ExternalCommandFailed as e:
                logger.error(f"❌ {e}")
                results[account] = e
        return results

    def check_rpc(self) -> bool:
        rpc_url = self.config.rpc_url
        if rpc_url is None:
            raise DeployError(f"No RPC endpoint known for network '{self.config.network}'")
        checker = self._rpc_checker or check_rpc_health
        return checker(rpc_url)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Deploy the main, token and HTLC contracts to NEAR')
    parser.add_argument('--config', help='Override file (default: $NEAR_DEPLOY_CONFIG or local.toml)')
    parser.add_argument('--wallet', help='Master wallet account (overrides NEAR_WALLET)')
    parser.add_argument('--network', help='Network to deploy to (overrides NEAR_NETWORK)')
    parser.add_argument('--gas', help='Prepaid gas, e.g. "100.0 Tgas" (overrides NEAR_GAS)')
    parser.add_argument('--deposit', help='Attached deposit, e.g. "1 NEAR" (overrides NEAR_DEPOSIT)')
    parser.add_argument('--wallet-url', help='Wallet UI used by login (overrides NEAR_WALLET_URL)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('login', help='Authenticate the near CLI through the wallet UI')
    deploy = subparsers.add_parser('deploy', help='Deploy to an account (main account by default)')
    deploy.add_argument('--account', help='Target account id')
    subparsers.add_parser('deploy-main', help='Deploy to the master wallet account')
    subparsers.add_parser('deploy-token', help='Deploy to the token subaccount')
    subparsers.add_parser('deploy-htlc', help='Deploy to the htlc subaccount')
    subparsers.add_parser('deploy-all', help='Deploy main, token and htlc in order')
    subparsers.add_parser('create-subaccounts', help='Create the token and htlc subaccounts')
    state = subparsers.add_parser('state', help='Show the state of an account (main account by default)')
    state.add_argument('--account', help='Target account id')
    subparsers.add_parser('state-all', help='Show the state of main, token and htlc')
    subparsers.add_parser('accounts', help='Print the derived account ids')
    subparsers.add_parser('check-rpc', help='Check the RPC endpoint of the configured network')
    return parser


def run(args: argparse.Namespace, deployer: Deployer) -> int:
    command = args.command
    if command == 'login':
        deployer.login()
    elif command == 'deploy':
        deployer.deploy_default(args.account)
    elif command == 'deploy-main':
        deployer.deploy_main()
    elif command == 'deploy-token':
        deployer.deploy_token()
    elif command == 'deploy-htlc':
        deployer.deploy_htlc()
    elif command == 'deploy-all':
        deployer.deploy_all()
    elif command == 'create-subaccounts':
        deployer.create_subaccounts()
    elif command == 'state':
        deployer.query_state(args.account)
    elif command == 'state-all':
        results = deployer.query_all_states()
        failed = [account for account, error in results.items() if error is not None]
        if failed:
            logger.error(f"❌ State query failed for: {', '.join(failed)}")
            return 1
    elif command == 'accounts':
        for role, account in deployer.accounts.all():
            print(f"{role}: {account}")
    elif command == 'check-rpc':
        if not deployer.check_rpc():
            return 1
    return 0


def main(argv: Optional[List[str]] = None, runner: Runner = run_command) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    overrides = {
        WALLET_VAR: args.wallet,
        NETWORK_VAR: args.network,
        GAS_VAR: args.gas,
        DEPOSIT_VAR: args.deposit,
        WALLET_URL_VAR: args.wallet_url,
    }

    try:
        config = resolve(overrides=overrides, config_path=args.config)
        logger.info(f"ℹ️  Using network: {config.network}, wallet: {config.wallet_identity}")
        return run(args, Deployer(config, runner=runner))
    except DeployError as e:
        logger.error(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
