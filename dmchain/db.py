from neo4j import Driver, GraphDatabase

from dmchain.config import Settings


class DatabaseManager:
    """Manager for the Neo4j connection that persists the event log.

    Attributes:
        _driver: The Neo4j driver instance, created lazily
        _uri: URI of the Neo4j database
        _auth: Tuple of username and password for authentication
        _database: Name of the Neo4j database to connect to
    """

    def __init__(self, settings: Settings) -> None:
        self._driver: Driver | None = None
        self._uri: str = settings.neo4j_uri
        self._auth: tuple[str, str] = (settings.neo4j_user, settings.neo4j_password)
        self._database: str = settings.neo4j_database

    def verify_connectivity(self) -> None:
        """Verify the database is reachable with the configured credentials.

        Raises:
            neo4j.exceptions.ServiceUnavailable: If database is not reachable
            neo4j.exceptions.AuthError: If credentials are invalid
        """
        self.driver.verify_connectivity()

    @property
    def driver(self) -> Driver:
        """Get or create the Neo4j driver instance."""
        if not self._driver:
            self._driver = GraphDatabase.driver(
                self._uri,
                auth=self._auth,
                max_connection_pool_size=10,
                connection_timeout=30,
            )
        return self._driver

    @property
    def database(self) -> str:
        return self._database

    def close(self) -> None:
        """Close the driver. A no-op when no connection was opened."""
        if self._driver:
            self._driver.close()
            self._driver = None
