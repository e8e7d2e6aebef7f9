"""Shared fixtures for integration tests.

Provides:
- mysql_container: Session-scoped MySQL container
- admin_connection: Function-scoped root connection used to flip read_only
- make_failover_client: Factory for FailoverClient instances pointed at the container
- test_orders table: Created fresh for every test
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import pytest
from pydantic import SecretStr

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from mysql.connector.abstracts import MySQLConnectionAbstract

    from aurora_failover import FailoverClient

MYSQL_IMAGE = "mysql:8.0"
ROOT_PASSWORD = "root_password"


class MySQLContainerProtocol(Protocol):
    """Protocol for MySQL container interface."""

    def get_exposed_port(self, port: int) -> int: ...
    def get_container_host_ip(self) -> str: ...
    def start(self) -> MySQLContainerProtocol: ...
    def stop(self) -> None: ...


def _check_docker_available() -> bool:
    """Check if Docker is available using docker client.

    Tries multiple socket locations for compatibility with:
    - Standard Linux Docker (/var/run/docker.sock)
    - macOS Docker Desktop (~/.docker/run/docker.sock)
    - Custom DOCKER_HOST environment variable

    Returns:
        True if Docker daemon is accessible, False otherwise.
    """
    try:
        from pathlib import Path

        from docker import DockerClient  # type: ignore[import-untyped]
        from docker.errors import DockerException  # type: ignore[import-untyped]

        socket_locations = [
            None,
            "unix:///var/run/docker.sock",
            f"unix://{Path.home()}/.docker/run/docker.sock",
        ]

        for socket_url in socket_locations:
            try:
                if socket_url is None:
                    from docker import from_env  # type: ignore[import-untyped]

                    client = from_env()
                else:
                    client = DockerClient(base_url=socket_url)

                client.ping()
                return True
            except DockerException:
                continue

        return False
    except ImportError:
        return False


def _configure_docker_environment() -> None:
    """Set DOCKER_HOST to the macOS Docker Desktop socket when it exists and nothing else is configured."""
    import os
    from pathlib import Path

    if os.environ.get("DOCKER_HOST"):
        return

    macos_socket = Path.home() / ".docker" / "run" / "docker.sock"
    if macos_socket.exists():
        os.environ["DOCKER_HOST"] = f"unix://{macos_socket}"


def _create_mysql_container() -> MySQLContainerProtocol:
    """Create a MySQL container with an unprivileged application user.

    ``test_user`` only has grants on ``test_db`` (no SUPER), so
    ``SET GLOBAL read_only = ON`` makes its writes fail the way a demoted
    Aurora writer does.

    Raises:
        ImportError: If testcontainers is not installed.
    """
    from typing import cast

    from testcontainers.mysql import MySqlContainer  # type: ignore[import-untyped]

    container = MySqlContainer(
        MYSQL_IMAGE,
        username="test_user",
        password="test_password",
        dbname="test_db",
        root_password=ROOT_PASSWORD,
    )
    return cast(MySQLContainerProtocol, container)


@pytest.fixture(scope="session")
def mysql_container() -> Iterator[MySQLContainerProtocol]:
    """Provide session-scoped MySQL container.

    Skips:
        If Docker daemon is not available.

    Yields:
        Running MySQL container instance.
    """
    _configure_docker_environment()

    if not _check_docker_available():
        pytest.skip(
            "Docker daemon not available. "
            "Install Docker Desktop (macOS) or Docker Engine (Linux) to run integration tests."
        )

    try:
        container = _create_mysql_container()
    except ImportError as e:
        pytest.skip(f"testcontainers not installed: {e}")

    container.start()

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture
def admin_connection(mysql_container: MySQLContainerProtocol) -> Iterator[MySQLConnectionAbstract]:
    """Root connection that controls the server's read_only flag.

    Resets the flag and recreates ``test_orders`` before each test.
    """
    import mysql.connector

    connection = mysql.connector.connect(
        host=mysql_container.get_container_host_ip(),
        port=mysql_container.get_exposed_port(3306),
        user="root",
        password=ROOT_PASSWORD,
        database="test_db",
        autocommit=True,
    )
    cursor = connection.cursor()
    cursor.execute("SET GLOBAL read_only = OFF")
    cursor.execute("DROP TABLE IF EXISTS test_orders")
    cursor.execute(
        """
        CREATE TABLE test_orders (
            id INT AUTO_INCREMENT PRIMARY KEY,
            sku VARCHAR(64) NOT NULL,
            created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cursor.close()

    try:
        yield connection
    finally:
        cursor = connection.cursor()
        cursor.execute("SET GLOBAL read_only = OFF")
        cursor.close()
        connection.close()


@pytest.fixture
def make_failover_client(mysql_container: MySQLContainerProtocol) -> Iterator[Callable[..., FailoverClient]]:
    """Factory for clients connected as ``test_user``.

    Keyword arguments go to `FailoverSettings` except ``sleep`` and
    ``before_sleep``, which go to the client. Read-only state is checked
    through ``read_only`` because ``innodb_read_only`` cannot be changed
    at runtime.
    """
    from aurora_failover import (
        FailoverClient,
        FailoverClientConfig,
        FailoverSettings,
        MySQLConnectionSettings,
        SessionSettings,
    )

    created: list[FailoverClient] = []

    def _make(**kwargs: Any) -> FailoverClient:
        client_kwargs = {key: kwargs.pop(key) for key in ("sleep", "before_sleep") if key in kwargs}
        failover: dict[str, Any] = {"max_retry": 5, "read_only_variable": "read_only"}
        failover.update(kwargs)

        config = FailoverClientConfig(
            connection=MySQLConnectionSettings(
                host=mysql_container.get_container_host_ip(),
                port=mysql_container.get_exposed_port(3306),
                database="test_db",
                user="test_user",
                password=SecretStr("test_password"),
            ),
            session=SessionSettings(autocommit=True),
            failover=FailoverSettings(**failover),
        )
        client = FailoverClient(config, **client_kwargs)
        created.append(client)
        return client

    try:
        yield _make
    finally:
        for client in created:
            client.close()
