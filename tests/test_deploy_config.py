import os

import pytest

from deploy_config import (
    DEFAULTS,
    ResolvedConfig,
    load_dotenv_file,
    load_override_file,
    merge,
    resolve,
)
from deploy_errors import InvalidAccountReference, InvalidConfigFile, MissingRequiredConfig

from conftest import SEED

REQUIRED = {"NEAR_WALLET": "alice.testnet", "NEAR_WALLET_SEED": SEED}


def test_defaults_apply_when_optional_settings_unset(clean_env):
    config = resolve(environ=REQUIRED)
    assert config.wallet_identity == "alice.testnet"
    assert config.seed_credential == SEED
    assert config.network == "testnet"
    assert config.gas_budget == "100.0 Tgas"
    assert config.deposit_amount == "1 NEAR"
    assert config.wallet_ui_endpoint == DEFAULTS["NEAR_WALLET_URL"]


@pytest.mark.parametrize("name,field,value", [
    ("NEAR_NETWORK", "network", "mainnet"),
    ("NEAR_GAS", "gas_budget", "300.0 Tgas"),
    ("NEAR_DEPOSIT", "deposit_amount", "0 NEAR"),
    ("NEAR_WALLET_URL", "wallet_ui_endpoint", "https://app.mynearwallet.com"),
])
def test_explicit_value_overrides_default(clean_env, name, field, value):
    config = resolve(environ={**REQUIRED, name: value})
    assert getattr(config, field) == value


def test_empty_value_falls_back_to_default(clean_env):
    config = resolve(environ={**REQUIRED, "NEAR_NETWORK": "", "NEAR_GAS": "   "})
    assert config.network == "testnet"
    assert config.gas_budget == "100.0 Tgas"


@pytest.mark.parametrize("missing", ["NEAR_WALLET", "NEAR_WALLET_SEED"])
def test_missing_required_setting(clean_env, missing):
    environ = dict(REQUIRED)
    del environ[missing]
    with pytest.raises(MissingRequiredConfig) as exc_info:
        resolve(environ=environ)
    assert exc_info.value.name == missing


def test_blank_required_setting_is_missing(clean_env):
    with pytest.raises(MissingRequiredConfig):
        resolve(environ={**REQUIRED, "NEAR_WALLET": "  "})


def test_merge_precedence():
    explicit = {"NEAR_WALLET": "alice.testnet", "NEAR_GAS": "50.0 Tgas"}
    override = {"NEAR_WALLET": "bob.testnet", "NEAR_WALLET_SEED": SEED, "NEAR_GAS": "70.0 Tgas",
                "NEAR_DEPOSIT": "2 NEAR"}
    config = merge(explicit, override, DEFAULTS)
    assert config.wallet_identity == "alice.testnet"
    assert config.seed_credential == SEED
    assert config.gas_budget == "50.0 Tgas"
    assert config.deposit_amount == "2 NEAR"
    assert config.network == "testnet"


def test_override_file_supplies_settings(clean_env):
    (clean_env / "local.toml").write_text(
        'NEAR_WALLET = "bob.testnet"\n'
        'NEAR_WALLET_SEED = "from file"\n'
        'NEAR_DEPOSIT = "3 NEAR"\n'
    )
    config = resolve(environ={"NEAR_DEPOSIT": "", "NEAR_NETWORK": "mainnet"})
    assert config.wallet_identity == "bob.testnet"
    assert config.seed_credential == "from file"
    assert config.deposit_amount == "3 NEAR"
    assert config.network == "mainnet"


def test_environment_beats_override_file(clean_env):
    (clean_env / "local.toml").write_text('NEAR_GAS = "10.0 Tgas"\n')
    config = resolve(environ={**REQUIRED, "NEAR_GAS": "20.0 Tgas"})
    assert config.gas_budget == "20.0 Tgas"


def test_command_line_overrides_beat_environment(clean_env):
    config = resolve(environ=REQUIRED, overrides={"NEAR_WALLET": "carol.testnet", "NEAR_GAS": None})
    assert config.wallet_identity == "carol.testnet"
    assert config.gas_budget == "100.0 Tgas"


def test_config_path_from_environment(clean_env):
    path = clean_env / "custom.toml"
    path.write_text('NEAR_NETWORK = "mainnet"\n')
    config = resolve(environ={**REQUIRED, "NEAR_DEPLOY_CONFIG": str(path)})
    assert config.network == "mainnet"


def test_explicit_config_path_must_exist(clean_env):
    with pytest.raises(InvalidConfigFile):
        resolve(environ=REQUIRED, config_path=str(clean_env / "missing.toml"))


def test_missing_default_override_file_is_fine(clean_env):
    assert load_override_file(clean_env / "local.toml") == {}


def test_malformed_override_file(clean_env):
    path = clean_env / "local.toml"
    path.write_text("NEAR_WALLET = \"unterminated\n")
    with pytest.raises(InvalidConfigFile):
        load_override_file(path)


def test_override_file_ignores_unknown_keys_and_stringifies(clean_env):
    path = clean_env / "local.toml"
    path.write_text('NEAR_DEPOSIT = 2\nSOMETHING_ELSE = "x"\n')
    assert load_override_file(path) == {"NEAR_DEPOSIT": "2"}


def test_override_file_rejects_tables(clean_env):
    path = clean_env / "local.toml"
    path.write_text('[NEAR_GAS]\namount = "1"\n')
    with pytest.raises(InvalidConfigFile):
        load_override_file(path)


def test_seed_not_in_repr():
    config = ResolvedConfig(wallet_identity="alice.testnet", seed_credential=SEED)
    assert SEED not in repr(config)
    assert "alice.testnet" in repr(config)


def test_rpc_url_for_known_and_unknown_network():
    assert ResolvedConfig("a.testnet", SEED).rpc_url == "https://rpc.testnet.near.org"
    assert ResolvedConfig("a.testnet", SEED, network="localnet").rpc_url is None


def test_explorer_url_per_network():
    assert ResolvedConfig("a.testnet", SEED).explorer_url == "https://testnet.nearblocks.io"
    assert ResolvedConfig("a.near", SEED, network="mainnet").explorer_url == "https://nearblocks.io"
    assert ResolvedConfig("a.testnet", SEED, network="localnet").explorer_url is None


@pytest.mark.parametrize("wallet", ["Alice.testnet", "alice..testnet", "alice testnet"])
def test_invalid_wallet_rejected_at_resolve(clean_env, wallet):
    with pytest.raises(InvalidAccountReference):
        resolve(environ={**REQUIRED, "NEAR_WALLET": wallet})


def test_wallet_is_stripped(clean_env):
    config = resolve(environ={**REQUIRED, "NEAR_WALLET": "  alice.testnet "})
    assert config.wallet_identity == "alice.testnet"


def test_dotenv_supplies_settings(clean_env):
    (clean_env / ".env").write_text(
        'NEAR_WALLET=dave.testnet\n'
        'NEAR_WALLET_SEED="seed from dotenv"\n'
        'NEAR_GAS=40.0 Tgas\n'
        'UNRELATED=1\n'
    )
    config = resolve(environ={})
    assert config.wallet_identity == "dave.testnet"
    assert config.seed_credential == "seed from dotenv"
    assert config.gas_budget == "40.0 Tgas"


def test_environment_beats_dotenv(clean_env):
    (clean_env / ".env").write_text("NEAR_WALLET=dave.testnet\nNEAR_GAS=40.0 Tgas\n")
    config = resolve(environ={**REQUIRED, "NEAR_GAS": ""})
    assert config.wallet_identity == "alice.testnet"
    assert config.gas_budget == "40.0 Tgas"


def test_dotenv_beats_override_file(clean_env):
    (clean_env / ".env").write_text("NEAR_DEPOSIT=2 NEAR\n")
    (clean_env / "local.toml").write_text('NEAR_DEPOSIT = "3 NEAR"\nNEAR_NETWORK = "mainnet"\n')
    config = resolve(environ=REQUIRED)
    assert config.deposit_amount == "2 NEAR"
    assert config.network == "mainnet"


def test_dotenv_leaves_environment_untouched(clean_env):
    (clean_env / ".env").write_text("NEAR_NETWORK=mainnet\n")
    resolve(environ=REQUIRED)
    assert "NEAR_NETWORK" not in os.environ


def test_custom_dotenv_path(clean_env):
    path = clean_env / "deploy.env"
    path.write_text("NEAR_NETWORK=mainnet\n")
    assert resolve(environ=REQUIRED, dotenv_path=path).network == "mainnet"


def test_missing_dotenv_is_fine(clean_env):
    assert load_dotenv_file(clean_env / ".env") == {}
