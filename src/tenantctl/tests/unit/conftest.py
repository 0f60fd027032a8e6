"""Unit test fixtures with mocked dependencies."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession


@pytest.fixture
def db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password=SecretStr("testpass"),
    )


@pytest.fixture
def provisioning_settings(tmp_path):
    """Provide provisioning settings pointing at empty migration directories."""
    from infrastructure.settings import ProvisioningSettings

    master_dir = tmp_path / "master"
    tenant_dir = tmp_path / "tenant"
    master_dir.mkdir()
    tenant_dir.mkdir()
    return ProvisioningSettings(
        master_migrations_dir=master_dir,
        tenant_migrations_dir=tenant_dir,
    )


@pytest.fixture
def mock_session():
    """Mock AsyncSession whose begin() works as an async context manager."""
    session = Mock(spec=AsyncSession)

    ctx_manager = AsyncMock()
    ctx_manager.__aenter__ = AsyncMock(return_value=None)
    ctx_manager.__aexit__ = AsyncMock(return_value=None)

    session.begin = Mock(return_value=ctx_manager)
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    return session


@pytest.fixture
def mock_connection_factory(mock_session):
    """Mock ConnectionFactory handing out mock_session for every scope."""
    from infrastructure.database import ConnectionFactory

    factory = Mock(spec=ConnectionFactory)

    @asynccontextmanager
    async def session(scope):
        yield mock_session

    factory.session = Mock(side_effect=session)
    factory.dispose = AsyncMock()
    return factory
