"""
Motor connection to the Atlas cluster holding the movies collection.
The connection object is created per run and handed to the search backend
and the index manager.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError

from movie_search.config.settings import settings
from movie_search.exceptions import ConnectionError
from movie_search.utils.logger import LoggerMixin
from .base import IDatabaseConnection


class MongoDBConnection(IDatabaseConnection, LoggerMixin):
    """
    Owns one AsyncIOMotorClient for the lifetime of a run.

    Driver-level read retries are switched off: a failed aggregate surfaces
    to the caller instead of being replayed.
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        database_name: Optional[str] = None,
        server_selection_timeout_ms: int = 10000,
        socket_timeout_ms: int = 30000
    ):
        self.connection_string = connection_string or settings.MONGODB_URI
        self.database_name = database_name or settings.DATABASE_NAME
        self.client_options: Dict[str, Any] = {
            "serverSelectionTimeoutMS": server_selection_timeout_ms,
            "socketTimeoutMS": socket_timeout_ms,
            "retryReads": False,
            "appname": settings.PROJECT_NAME
        }

        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    async def connect(self) -> None:
        """
        Open the client and ping the cluster.

        Raises:
            ConnectionError: If the cluster cannot be reached or the URI is invalid
        """
        self.logger.info(f"Connecting to MongoDB database '{self.database_name}'")
        try:
            self._client = AsyncIOMotorClient(self.connection_string, **self.client_options)
            await self._client.admin.command("ping")
        except ConnectionFailure as e:
            self.logger.error(f"Failed to connect to MongoDB: {str(e)}")
            await self.disconnect()
            raise ConnectionError(f"MongoDB connection failed: {str(e)}") from e
        except (PyMongoError, ValueError) as e:
            self.logger.error(f"Invalid MongoDB configuration: {str(e)}")
            await self.disconnect()
            raise ConnectionError(f"MongoDB client could not be created: {str(e)}") from e

        self._database = self._client[self.database_name]
        self.logger.info("Connected to MongoDB")

    async def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self.logger.info("Disconnected from MongoDB")
        self._client = None
        self._database = None

    def get_database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise ConnectionError("Not connected to MongoDB. Call connect() first.")
        return self._database

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        return self.get_database()[collection_name]


class MongoDBConnectionFactory:
    """Builds connections for callers that only need one for a block of work."""

    @staticmethod
    @asynccontextmanager
    async def get_connection(
        connection_string: Optional[str] = None,
        database_name: Optional[str] = None
    ):
        """
        Yield a connected MongoDBConnection and close it afterwards.
        """
        connection = MongoDBConnection(connection_string, database_name)
        await connection.connect()
        try:
            yield connection
        finally:
            await connection.disconnect()
