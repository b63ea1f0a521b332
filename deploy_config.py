"""
Deployment configuration.

Settings come from these sources, highest precedence first:

1. command line flags
2. the process environment
3. the project ``.env`` file
4. the optional local override file (TOML, ``local.toml`` by default)
5. built-in defaults

The first three form the explicit layer handed to merge().

This is the only module that reads the environment. Everything downstream
receives a ResolvedConfig.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

import toml
from dotenv import dotenv_values

from deploy_errors import InvalidConfigFile, MissingRequiredConfig
from near_accounts import validate_account_id

logger = logging.getLogger(__name__)

# Environment variable names
WALLET_VAR = "NEAR_WALLET"
SEED_VAR = "NEAR_WALLET_SEED"
NETWORK_VAR = "NEAR_NETWORK"
GAS_VAR = "NEAR_GAS"
DEPOSIT_VAR = "NEAR_DEPOSIT"
WALLET_URL_VAR = "NEAR_WALLET_URL"
CONFIG_PATH_VAR = "NEAR_DEPLOY_CONFIG"

REQUIRED_SETTINGS = (WALLET_VAR, SEED_VAR)

DEFAULTS = {
    NETWORK_VAR: "testnet",
    GAS_VAR: "100.0 Tgas",
    DEPOSIT_VAR: "1 NEAR",
    WALLET_URL_VAR: "https://testnet.mynearwallet.com",
}

KNOWN_SETTINGS = REQUIRED_SETTINGS + tuple(DEFAULTS)

DEFAULT_OVERRIDE_FILE = "local.toml"
DEFAULT_DOTENV_FILE = ".env"

# Network configurations
NETWORK_CONFIGS = {
    "testnet": {
        "rpc_url": "https://rpc.testnet.near.org",
        "explorer_url": "https://testnet.nearblocks.io",
    },
    "mainnet": {
        "rpc_url": "https://rpc.mainnet.near.org",
        "explorer_url": "https://nearblocks.io",
    },
}


@dataclass(frozen=True)
class ResolvedConfig:
    wallet_identity: str
    seed_credential: str = field(repr=False)
    network: str = DEFAULTS[NETWORK_VAR]
    gas_budget: str = DEFAULTS[GAS_VAR]
    deposit_amount: str = DEFAULTS[DEPOSIT_VAR]
    wallet_ui_endpoint: str = DEFAULTS[WALLET_URL_VAR]

    @property
    def rpc_url(self) -> Optional[str]:
        return NETWORK_CONFIGS.get(self.network, {}).get("rpc_url")

    @property
    def explorer_url(self) -> Optional[str]:
        return NETWORK_CONFIGS.get(self.network, {}).get("explorer_url")


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _pick(name: str, *layers: Mapping[str, str]) -> Optional[str]:
    for layer in layers:
        value = _clean(layer.get(name))
        if value is not None:
            return value
    return None


def merge(explicit: Mapping[str, str], override: Mapping[str, str],
          defaults: Mapping[str, str] = DEFAULTS) -> ResolvedConfig:
    """
    Merge the three setting layers into a ResolvedConfig.

    A layer only counts for a setting when it holds a non-empty value for it.

    Raises:
        MissingRequiredConfig: if the wallet or the seed phrase is missing
            from every layer.
        InvalidAccountReference: if the wallet is not a valid account id.
    """
    values = {name: _pick(name, explicit, override, defaults) for name in KNOWN_SETTINGS}

    for name in REQUIRED_SETTINGS:
        if values[name] is None:
            raise MissingRequiredConfig(name)

    return ResolvedConfig(
        wallet_identity=validate_account_id(values[WALLET_VAR]),
        seed_credential=values[SEED_VAR],
        network=values[NETWORK_VAR],
        gas_budget=values[GAS_VAR],
        deposit_amount=values[DEPOSIT_VAR],
        wallet_ui_endpoint=values[WALLET_URL_VAR],
    )


def load_override_file(path, required: bool = False) -> Dict[str, str]:
    """Load settings from a TOML override file. A missing file is fine unless required."""
    path = Path(path)
    if not path.exists():
        if required:
            raise InvalidConfigFile(str(path), "file not found")
        logger.debug(f"No override file at {path}")
        return {}

    try:
        data = toml.load(str(path))
    except (ValueError, OSError) as e:
        raise InvalidConfigFile(str(path), str(e))

    settings = {}
    for key, value in data.items():
        if key not in KNOWN_SETTINGS:
            logger.warning(f"Ignoring unknown setting '{key}' in {path}")
            continue
        if isinstance(value, (dict, list)):
            raise InvalidConfigFile(str(path), f"setting '{key}' must be a single value")
        settings[key] = str(value)

    logger.info(f"ℹ️  Loaded {len(settings)} setting(s) from {path}")
    return settings


def load_dotenv_file(path=DEFAULT_DOTENV_FILE) -> Dict[str, str]:
    """Read a .env file without touching os.environ. A missing file gives no settings."""
    path = Path(path)
    if not path.is_file():
        logger.debug(f"No .env file at {path}")
        return {}

    settings = {key: value for key, value in dotenv_values(path).items()
                if key in KNOWN_SETTINGS and value is not None}
    logger.info(f"ℹ️  Loaded {len(settings)} setting(s) from {path}")
    return settings


def resolve(environ: Optional[Mapping[str, str]] = None,
            overrides: Optional[Mapping[str, Optional[str]]] = None,
            config_path=None,
            dotenv_path=DEFAULT_DOTENV_FILE) -> ResolvedConfig:
    """
    Build the ResolvedConfig for one run.

    Args:
        environ: Environment mapping, os.environ when omitted
        overrides: Values given on the command line, keyed by env var name
        config_path: Override file to read. Falls back to $NEAR_DEPLOY_CONFIG,
            then to local.toml in the working directory.
        dotenv_path: .env file read below the environment
    """
    if environ is None:
        environ = os.environ

    explicit: Dict[str, str] = {}
    for layer in (load_dotenv_file(dotenv_path), environ, overrides or {}):
        for name, value in layer.items():
            if _clean(value) is not None:
                explicit[name] = value

    required = True
    if config_path is None:
        config_path = _clean(environ.get(CONFIG_PATH_VAR))
    if config_path is None:
        config_path = DEFAULT_OVERRIDE_FILE
        required = False

    override = load_override_file(config_path, required=required)
    return merge(explicit, override, DEFAULTS)
