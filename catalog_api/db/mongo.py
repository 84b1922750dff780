# catalog_api/db/mongo.py
from __future__ import annotations
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
import certifi

from catalog_api.core.config import Settings

logger = logging.getLogger(__name__)


class MongoStore:
    """
    Owns the Motor client for the lifetime of the app.
    Built and connected in the lifespan, closed on shutdown; handlers reach it
    through `request.app.state.store`.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None

    @property
    def client(self) -> AsyncIOMotorClient:
        assert self._client is not None, "Mongo client not initialized"
        return self._client

    @property
    def db(self) -> AsyncIOMotorDatabase:
        assert self._db is not None, "Mongo DB not initialized"
        return self._db

    @property
    def products(self) -> AsyncIOMotorCollection:
        return self.db[self.settings.MONGO_COLLECTION]

    def _new_client(self) -> AsyncIOMotorClient:
        kwargs = dict(
            uuidRepresentation="standard",
            tz_aware=True,
            serverSelectionTimeoutMS=self.settings.mongo_timeout_ms,
            connectTimeoutMS=self.settings.mongo_timeout_ms,
        )
        if self.settings.mongo_tls:
            # explicit CA bundle
            kwargs.update(tls=True, tlsCAFile=certifi.where())
        return AsyncIOMotorClient(self.settings.MONGO_URI, **kwargs)

    async def connect(self) -> None:
        """
        Create the client and ping once.
        A failed ping does not abort startup: the client stays lazy and the
        first real query retries the connection.
        """
        self._client = self._new_client()
        self._db = self._client[self.settings.MONGO_DB]
        try:
            await self._client.admin.command("ping")
            logger.info("Mongo connected (ping ok) db=%s", self.settings.MONGO_DB)
        except Exception as e:
            logger.warning("Mongo ping at startup failed, will connect lazily: %s", e)

    async def ping(self) -> None:
        await self.db.command("ping")

    async def close(self) -> None:
        if self._client:
            self._client.close()
            logger.info("Mongo disconnected")
        self._client = None
        self._db = None
