# Connections to Neo4j and Elasticsearch
# Both are explicitly constructed and owned; nothing is shared implicitly.

from typing import Optional

from neo4j import Driver, GraphDatabase

from graphsync.clients.search_client import SearchClient

from .config import Config, Settings
from .observability import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Manages connections to Neo4j and Elasticsearch"""

    def __init__(self, settings: Settings, config: Optional[Config] = None):
        self.settings = settings
        self.config = config or Config()
        self._neo4j_driver: Optional[Driver] = None
        self._search_client: Optional[SearchClient] = None

    # Neo4j
    def get_neo4j_driver(self) -> Driver:
        """Get or create Neo4j driver"""
        if self._neo4j_driver is None:
            logger.info(
                "Initializing Neo4j driver",
                uri=self.settings.neo4j_uri,
                user=self.settings.neo4j_user,
            )
            self._neo4j_driver = GraphDatabase.driver(
                self.settings.neo4j_uri,
                auth=(self.settings.neo4j_user, self.settings.neo4j_password),
                max_connection_lifetime=3600,
                max_connection_pool_size=50,
                connection_acquisition_timeout=60,
            )
            self._neo4j_driver.verify_connectivity()
            logger.info("Neo4j driver initialized successfully")
        return self._neo4j_driver

    def close_neo4j(self) -> None:
        """Close Neo4j driver"""
        if self._neo4j_driver:
            logger.info("Closing Neo4j driver")
            self._neo4j_driver.close()
            self._neo4j_driver = None

    # Elasticsearch
    def get_search_client(self, url: Optional[str] = None) -> SearchClient:
        """Get or create the bulk search client"""
        if self._search_client is None:
            self._search_client = SearchClient.from_url(
                url or self.settings.elasticsearch_url,
                api_key=self.settings.elasticsearch_api_key,
                username=self.settings.elasticsearch_user,
                password=self.settings.elasticsearch_password,
                request_timeout=self.config.search.request_timeout,
                verify_certs=self.config.search.verify_certs,
                max_workers=self.config.dispatch.max_workers,
            )
            logger.info("Elasticsearch client initialized successfully")
        return self._search_client

    def close_search_client(self) -> None:
        """Close the search client, waiting for in-flight bulk requests"""
        if self._search_client:
            logger.info("Closing Elasticsearch client")
            self._search_client.close()
            self._search_client = None

    def close_all(self) -> None:
        """Close all connections gracefully"""
        logger.info("Closing all connections")
        self.close_search_client()
        self.close_neo4j()
        logger.info("All connections closed")

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close_all()
