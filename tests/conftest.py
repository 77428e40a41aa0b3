import os
import sys

import pytest
from eth_account import Account

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import Settings  # noqa: E402

OWNER_KEY = "0x" + "4c" * 32
RECIPIENT_1 = "0x1111111111111111111111111111111111111111"
RECIPIENT_2 = "0x2222222222222222222222222222222222222222"
ACCOUNT_ADDRESS = "0x3333333333333333333333333333333333333333"


@pytest.fixture
def signer():
    return Account.from_key(OWNER_KEY)


@pytest.fixture
def settings():
    return Settings(private_key=OWNER_KEY, pimlico_api_key="pim_test")
