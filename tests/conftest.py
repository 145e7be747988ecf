import pytest

from core.config import load_settings


VALID_ENV = {
    "HEDERA_NETWORK": "testnet",
    "HEDERA_OPERATOR_ID": "0.0.1001",
    "HEDERA_OPERATOR_KEY": "302e020100300506032b657004220420" + "11" * 32,
    "SAUCERSWAP_API_URL": "https://api.saucerswap.finance",
    "SAUCERSWAP_ROUTER_ADDRESS": "0x" + "00" * 19 + "3c",
    "JWT_SECRET": "j" * 32,
    "ENCRYPTION_KEY": "e" * 32,
}


@pytest.fixture
def valid_env():
    return dict(VALID_ENV)


@pytest.fixture
def settings():
    return load_settings(dict(VALID_ENV))
