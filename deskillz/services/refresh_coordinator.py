# deskillz/services/refresh_coordinator.py

import asyncio
import logging
from typing import Optional
import httpx
from deskillz.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Single-flight guard around the token refresh call.
    
    Concurrent callers that observe a 401 share one pending refresh and all
    see the same outcome. The in-flight slot is claimed with no await between
    the check and the set, so on one event loop it is atomic; it is released
    by the task's done-callback, which runs before any waiter resumes.
    """
    
    def __init__(
        self,
        credentials: CredentialStore,
        http_client: httpx.AsyncClient,
        refresh_url: str,
        timeout_seconds: float = 30.0,
    ):
        self.credentials = credentials
        self.http = http_client
        self.refresh_url = refresh_url
        self.timeout_seconds = timeout_seconds
        self._in_flight: Optional[asyncio.Task] = None
    
    @property
    def is_refreshing(self) -> bool:
        return self._in_flight is not None
    
    async def attempt_refresh(self) -> bool:
        """
        Refresh the token pair, joining a refresh already in flight if any
        
        Returns:
            True if a new token pair was stored, False otherwise (never raises)
        """
        task = self._in_flight
        if task is None:
            task = asyncio.create_task(self._do_refresh())
            self._in_flight = task
            task.add_done_callback(self._release)
        else:
            logger.debug("Joining token refresh already in flight")
        
        # A waiter timing out or being cancelled must not cancel the shared refresh
        return await asyncio.shield(task)
    
    def _release(self, task: asyncio.Task) -> None:
        if self._in_flight is task:
            self._in_flight = None
    
    async def _do_refresh(self) -> bool:
        refresh_token = await self.credentials.get_refresh()
        if not refresh_token:
            logger.debug("No refresh token available")
            return False
        
        logger.debug("Attempting token refresh...")
        try:
            response = await self.http.post(
                self.refresh_url,
                json={"refreshToken": refresh_token},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
            
            if not response.is_success:
                logger.debug(f"Token refresh failed: {response.status_code}")
                return False
            
            data = response.json()
            if isinstance(data, dict) and isinstance(data.get("data"), dict):
                data = data["data"]
            
            access_token = data.get("accessToken") if isinstance(data, dict) else None
            if not access_token:
                logger.warning("Token refresh response did not contain an access token")
                return False
            
            await self.credentials.set(access_token, data.get("refreshToken"))
            logger.debug("Token refresh successful")
            return True
        except Exception as e:
            logger.error(f"Token refresh error: {e}")
            return False
