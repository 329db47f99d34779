# deskillz/client.py

import logging
from typing import Optional
import httpx
from deskillz.config.settings import SdkSettings
from deskillz.exceptions.sdk_exceptions import ScoreValidationException
from deskillz.infrastructure.redis_connection import RedisConnection
from deskillz.infrastructure.storage import RedisStorageAdapter, StorageAdapter, create_default_storage
from deskillz.schemas.score_schema import ScorePayload
from deskillz.services.auth_service import AuthService
from deskillz.services.authenticated_transport import AuthenticatedTransport, ForcedLogoutHook
from deskillz.services.credential_store import CredentialStore
from deskillz.services.score_signer import ScoreSigner
from deskillz.services.timestamps import get_timestamp
from deskillz.services.tournament_score_service import TournamentScoreService

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """DEBUG raises the SDK logger to debug level; otherwise the host's config applies"""
    if debug:
        logging.getLogger("deskillz").setLevel(logging.DEBUG)


class DeskillzClient:
    """
    Application-owned context that wires every SDK collaborator once
    
    Usage:
        async with DeskillzClient(SdkSettings(API_SECRET=secret), on_forced_logout=show_login) as sdk:
            await sdk.auth.login_with_email(EmailLoginPayload(email=..., password=...))
            payload = sdk.build_score_payload(match_id="match-456", score=15000, duration=120.5)
            await sdk.scores.sign_and_submit("tournament-1", payload)
    """
    
    def __init__(
        self,
        settings: Optional[SdkSettings] = None,
        storage: Optional[StorageAdapter] = None,
        on_forced_logout: Optional[ForcedLogoutHook] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or SdkSettings()
        configure_logging(self.settings.DEBUG)
        
        self.storage = storage if storage is not None else create_default_storage()
        self.credentials = CredentialStore(self.storage, key_prefix=self.settings.TOKEN_KEY_PREFIX)
        self.transport = AuthenticatedTransport(
            self.settings,
            self.credentials,
            http_client=http_client,
            on_forced_logout=on_forced_logout,
        )
        self.auth = AuthService(self.transport, self.credentials, on_logout=on_forced_logout)
        self.signer = ScoreSigner(self.settings.API_SECRET) if self.settings.API_SECRET else None
        self.scores = TournamentScoreService(self.transport, self.signer)
        self._redis_connection: Optional[RedisConnection] = None
    
    @classmethod
    async def with_redis(cls, settings: Optional[SdkSettings] = None, **kwargs) -> "DeskillzClient":
        """Build a client whose tokens persist in Redis (REDIS_* settings)"""
        settings = settings or SdkSettings()
        connection = RedisConnection(settings)
        await connection.connect()
        
        client = cls(settings, storage=RedisStorageAdapter(connection.get_client()), **kwargs)
        client._redis_connection = connection
        return client
    
    def build_score_payload(
        self,
        match_id: str,
        score: float,
        duration: Optional[float] = None,
        game_id: Optional[str] = None,
    ) -> ScorePayload:
        """Score payload stamped with the current time and the configured game id"""
        game_id = game_id or self.settings.GAME_ID
        if not game_id:
            raise ScoreValidationException("A game id is required (pass game_id or set GAME_ID)")
        return ScorePayload(
            game_id=game_id,
            match_id=match_id,
            score=score,
            duration=duration,
            timestamp=get_timestamp(),
        )
    
    async def close(self) -> None:
        await self.transport.close()
        if self._redis_connection is not None:
            await self._redis_connection.disconnect()
            self._redis_connection = None
        logger.debug("Deskillz client closed")
    
    async def __aenter__(self) -> "DeskillzClient":
        await self.auth.initialize()
        return self
    
    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
