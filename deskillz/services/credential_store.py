# deskillz/services/credential_store.py

import logging
from typing import Optional
from deskillz.infrastructure.storage import StorageAdapter

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Best-effort holder of the access/refresh token pair
    
    Never raises: when the storage capability is missing or failing, reads
    return None and writes are dropped. A present access token is a liveness
    signal only; validity is known after a server round-trip.
    """
    
    ACCESS_TOKEN_KEY = "access_token"
    REFRESH_TOKEN_KEY = "refresh_token"
    IS_NEW_USER_KEY = "is_new_user"
    AUTH_COMPLETED_KEY = "auth_completed"
    
    def __init__(self, storage: Optional[StorageAdapter], key_prefix: str = "deskillz_"):
        self.storage = storage
        self.key_prefix = key_prefix
    
    def _key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"
    
    async def _read(self, name: str) -> Optional[str]:
        if self.storage is None:
            return None
        try:
            return await self.storage.get_item(self._key(name))
        except Exception as e:
            logger.warning(f"Credential storage read failed ({name}): {e}")
            return None
    
    async def _write(self, name: str, value: str) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.set_item(self._key(name), value)
        except Exception as e:
            logger.warning(f"Credential storage write failed ({name}): {e}")
    
    async def _remove(self, name: str) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.remove_item(self._key(name))
        except Exception as e:
            logger.warning(f"Credential storage remove failed ({name}): {e}")
    
    async def get_access(self) -> Optional[str]:
        """Current access token, or None (empty strings count as absent)"""
        token = await self._read(self.ACCESS_TOKEN_KEY)
        return token or None
    
    async def get_refresh(self) -> Optional[str]:
        token = await self._read(self.REFRESH_TOKEN_KEY)
        return token or None
    
    async def set(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """
        Store a token pair
        
        Args:
            access_token: New access token
            refresh_token: New refresh token; the stored one is kept when omitted
        """
        await self._write(self.ACCESS_TOKEN_KEY, access_token)
        if refresh_token:
            await self._write(self.REFRESH_TOKEN_KEY, refresh_token)
    
    async def clear(self) -> None:
        """Forget the token pair and the session flags"""
        for name in (
            self.ACCESS_TOKEN_KEY,
            self.REFRESH_TOKEN_KEY,
            self.IS_NEW_USER_KEY,
            self.AUTH_COMPLETED_KEY,
        ):
            await self._remove(name)
    
    async def is_authenticated(self) -> bool:
        return await self.get_access() is not None
    
    async def set_is_new_user(self, is_new_user: bool) -> None:
        if is_new_user:
            await self._write(self.IS_NEW_USER_KEY, "true")
        else:
            await self._remove(self.IS_NEW_USER_KEY)
    
    async def get_is_new_user(self) -> bool:
        return await self._read(self.IS_NEW_USER_KEY) == "true"
    
    async def set_auth_completed(self, completed: bool) -> None:
        if completed:
            await self._write(self.AUTH_COMPLETED_KEY, "true")
        else:
            await self._remove(self.AUTH_COMPLETED_KEY)
    
    async def get_auth_completed(self) -> bool:
        return await self._read(self.AUTH_COMPLETED_KEY) == "true"
