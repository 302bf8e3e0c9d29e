"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from tests.fakes import ROOT_TOKEN, VAULT_ADDR, FakeVault
from vault_config_client.client import VaultClient
from vault_config_client.core.config import VaultSettings, get_settings_for_testing


@pytest.fixture
def fake_vault() -> FakeVault:
    """Fresh in-memory Vault server."""
    return FakeVault()


@pytest.fixture
def test_settings() -> VaultSettings:
    """Client settings authenticating with the root token."""
    return get_settings_for_testing(
        url=VAULT_ADDR,
        auth={"type": "token", "token": ROOT_TOKEN},
    )


@pytest_asyncio.fixture
async def vault_client(
    test_settings: VaultSettings, fake_vault: FakeVault
) -> AsyncGenerator[VaultClient, None]:
    """Started client backed by the fake Vault."""
    client = VaultClient(test_settings, transport=fake_vault)
    await client.start()
    yield client
    await client.close()
