import pytest

from deploy_config import ResolvedConfig
from deploy_errors import ExternalCommandFailed

SETTING_VARS = (
    "NEAR_WALLET",
    "NEAR_WALLET_SEED",
    "NEAR_NETWORK",
    "NEAR_GAS",
    "NEAR_DEPOSIT",
    "NEAR_WALLET_URL",
    "NEAR_DEPLOY_CONFIG",
)

SEED = "word1 word2 word3 word4 word5 word6 word7 word8 word9 word10 word11 word12"


class RecordingRunner:
    """Stands in for run_command; records calls and fails for chosen accounts."""

    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    def __call__(self, cmd, operation, account=None, secrets=()):
        self.calls.append((list(cmd), operation, account))
        if account in self.fail_for:
            raise ExternalCommandFailed(operation, account, returncode=1)

    @property
    def accounts(self):
        return [account for _, _, account in self.calls]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in SETTING_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def config():
    return ResolvedConfig(wallet_identity="alice.testnet", seed_credential=SEED)


@pytest.fixture
def runner():
    return RecordingRunner()
