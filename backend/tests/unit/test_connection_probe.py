"""Unit tests for the database host reachability probe."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg

from app.services.connection_probe import (
    AuthenticationError,
    ConnectionProbe,
    ConnectionTimeoutError,
    DatabaseConnectionError,
    DatabaseNotFoundError,
    HostUnreachableError,
    ProbeParams,
    get_connection_probe,
)


class TestProbeParams:
    """Tests for the ProbeParams Pydantic model."""

    def test_valid_params_with_defaults(self):
        """Test creating params with default values."""
        params = ProbeParams(host="localhost", username="admin")

        assert params.host == "localhost"
        assert params.port == 5432  # default
        assert params.username == "admin"
        assert params.password == ""

    def test_invalid_port_too_low(self):
        """Test that port validation rejects values below 1."""
        with pytest.raises(ValueError):
            ProbeParams(host="localhost", port=0, username="admin")

    def test_invalid_port_too_high(self):
        """Test that port validation rejects values above 65535."""
        with pytest.raises(ValueError):
            ProbeParams(host="localhost", port=70000, username="admin")


class TestConnectionProbe:
    """Tests for the ConnectionProbe class."""

    @pytest.fixture
    def probe(self):
        return ConnectionProbe(timeout=3.0, database="postgres")

    @pytest.fixture
    def params(self):
        return ProbeParams(host="db.internal", port=5432, username="admin", password="s3cret")

    @pytest.fixture
    def mock_connection(self):
        connection = MagicMock()
        connection.fetchval = AsyncMock(return_value=1)
        connection.close = AsyncMock()
        return connection

    @pytest.mark.asyncio
    async def test_check_success(self, probe, params, mock_connection):
        """Test a successful probe runs SELECT 1 and closes the connection."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            await probe.check(params)

            mock_connect.assert_called_once_with(
                host="db.internal",
                port=5432,
                database="postgres",
                user="admin",
                password="s3cret",
                timeout=3.0,
            )
            mock_connection.fetchval.assert_called_once_with("SELECT 1", timeout=3.0)
            mock_connection.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_check_closes_connection_when_query_fails(self, probe, params, mock_connection):
        """Test the connection is released even if the test query fails."""
        mock_connection.fetchval = AsyncMock(
            side_effect=asyncpg.InsufficientPrivilegeError("permission denied")
        )

        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            with pytest.raises(DatabaseConnectionError) as exc_info:
                await probe.check(params)

            assert "rejected the test query" in str(exc_info.value)
            mock_connection.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_check_query_timeout(self, probe, params, mock_connection):
        """Test a server that stalls after the handshake is reported as a timeout."""
        mock_connection.fetchval = AsyncMock(side_effect=TimeoutError())

        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            with pytest.raises(ConnectionTimeoutError):
                await probe.check(params)

            mock_connection.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_check_network_error_during_query(self, probe, params, mock_connection):
        """Test a socket error while running the test query means the host is unreachable."""
        mock_connection.fetchval = AsyncMock(side_effect=ConnectionResetError("Connection reset by peer"))

        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            with pytest.raises(HostUnreachableError):
                await probe.check(params)

            mock_connection.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_check_connection_lost_during_query(self, probe, params, mock_connection):
        """Test a connection dropped mid-query is reported as unreachable."""
        mock_connection.fetchval = AsyncMock(
            side_effect=asyncpg.ConnectionDoesNotExistError("connection was closed in the middle of operation")
        )

        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.return_value = mock_connection

            with pytest.raises(HostUnreachableError):
                await probe.check(params)

            mock_connection.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_check_invalid_password(self, probe, params):
        """Test that an invalid password raises AuthenticationError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = asyncpg.InvalidPasswordError("Invalid password")

            with pytest.raises(AuthenticationError) as exc_info:
                await probe.check(params)

            assert "Authentication failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_check_invalid_authorization(self, probe, params):
        """Test that an unknown role raises AuthenticationError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = asyncpg.InvalidAuthorizationSpecificationError("Invalid auth")

            with pytest.raises(AuthenticationError):
                await probe.check(params)

    @pytest.mark.asyncio
    async def test_check_database_not_found(self, probe, params):
        """Test that a missing probe database raises DatabaseNotFoundError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = asyncpg.InvalidCatalogNameError("Database not found")

            with pytest.raises(DatabaseNotFoundError) as exc_info:
                await probe.check(params)

            assert exc_info.value.database_name == "postgres"

    @pytest.mark.asyncio
    async def test_check_host_unreachable(self, probe, params):
        """Test that a connection error raises HostUnreachableError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = asyncpg.PostgresConnectionError("Connection refused")

            with pytest.raises(HostUnreachableError):
                await probe.check(params)

    @pytest.mark.asyncio
    async def test_check_timeout(self, probe, params):
        """Test that a timeout raises ConnectionTimeoutError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = TimeoutError("Connection timed out")

            with pytest.raises(ConnectionTimeoutError):
                await probe.check(params)

    @pytest.mark.asyncio
    async def test_check_os_error_timeout(self, probe, params):
        """Test that an OSError mentioning a timeout raises ConnectionTimeoutError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = OSError("Connection timed out")

            with pytest.raises(ConnectionTimeoutError):
                await probe.check(params)

    @pytest.mark.asyncio
    async def test_check_os_error_network(self, probe, params):
        """Test that other network errors raise HostUnreachableError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = OSError("Network is unreachable")

            with pytest.raises(HostUnreachableError):
                await probe.check(params)

    @pytest.mark.asyncio
    async def test_check_unexpected_error(self, probe, params):
        """Test that unexpected errors are wrapped in DatabaseConnectionError."""
        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = RuntimeError("boom")

            with pytest.raises(DatabaseConnectionError) as exc_info:
                await probe.check(params)

            assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_each_check_opens_its_own_connection(self, probe, params):
        """Test that no connection is reused between probes."""
        first, second = MagicMock(), MagicMock()
        for connection in (first, second):
            connection.fetchval = AsyncMock(return_value=1)
            connection.close = AsyncMock()

        with patch("asyncpg.connect", new_callable=AsyncMock) as mock_connect:
            mock_connect.side_effect = [first, second]

            await probe.check(params)
            await probe.check(params)

            assert mock_connect.call_count == 2
            first.close.assert_called_once()
            second.close.assert_called_once()


def test_get_connection_probe_uses_settings():
    """Test the dependency provider reads timeout and database from settings."""
    settings = MagicMock()
    settings.probe_timeout_seconds = 7.5
    settings.probe_database = "template1"

    with patch("app.services.connection_probe.get_settings", return_value=settings):
        probe = get_connection_probe()

    assert probe.timeout == 7.5
    assert probe.database == "template1"
