# deskillz/services/auth_service.py

import inspect
import logging
from typing import Any, Dict, Optional
from deskillz.exceptions.sdk_exceptions import AuthException, SdkException, SessionExpiredException
from deskillz.schemas.auth_schema import (
    AuthResult,
    EmailLoginPayload,
    EmailRegisterPayload,
    SocialAuthPayload,
    TokenPair,
)
from deskillz.services.authenticated_transport import AuthenticatedTransport, ForcedLogoutHook
from deskillz.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class AuthService:
    """Login, registration, logout and session restore over the authenticated transport"""
    
    def __init__(
        self,
        transport: AuthenticatedTransport,
        credentials: CredentialStore,
        on_logout: Optional[ForcedLogoutHook] = None,
    ):
        self.transport = transport
        self.credentials = credentials
        self.on_logout = on_logout
        self.current_user: Optional[Dict[str, Any]] = None
    
    # ------------------------------------------------------------------
    # Sign-in flows
    # ------------------------------------------------------------------
    
    async def register_with_email(self, payload: EmailRegisterPayload) -> AuthResult:
        logger.debug(f"Registering with email: {payload.email}")
        response = await self.transport.post(
            "/auth/register", payload.model_dump(), skip_auth=True
        )
        result = self._extract_auth_response(response)
        await self._handle_auth_success(result, is_new_user=True)
        return result
    
    async def login_with_email(self, payload: EmailLoginPayload) -> AuthResult:
        logger.debug(f"Logging in with email: {payload.email}")
        response = await self.transport.post(
            "/auth/login", payload.model_dump(), skip_auth=True
        )
        result = self._extract_auth_response(response)
        await self._handle_auth_success(result, is_new_user=result.is_new_user)
        return result
    
    async def social_auth(self, payload: SocialAuthPayload) -> AuthResult:
        logger.debug(f"Social auth with provider: {payload.provider}")
        response = await self.transport.post(
            "/auth/social", payload.model_dump(by_alias=True), skip_auth=True
        )
        result = self._extract_auth_response(response)
        await self._handle_auth_success(result, is_new_user=result.is_new_user)
        return result
    
    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    
    async def logout(self) -> None:
        """
        Log out locally, telling the backend on a best-effort basis
        
        Server-side failures are logged and ignored; local state is always cleared
        and the logout hook fires once, even when the logout call itself ends the
        session through the forced-logout path.
        """
        logger.debug("Logging out")
        notify = True
        try:
            await self.transport.post("/auth/logout")
        except SessionExpiredException as e:
            # The transport has already cleared the store and fired its forced-logout hook
            notify = self.on_logout is not self.transport.on_forced_logout
            logger.info(f"Server-side logout failed (ignored): {e.message}")
        except SdkException as e:
            logger.info(f"Server-side logout failed (ignored): {e.message}")
        except Exception as e:
            logger.warning(f"Server-side logout failed (ignored): {e}")
        finally:
            await self._clear_auth_state(notify)
    
    async def get_current_user(self) -> Optional[Dict[str, Any]]:
        """Fetch the profile of the signed-in user, or None when signed out or on failure"""
        if not await self.credentials.is_authenticated():
            return None
        
        try:
            self.current_user = await self.transport.get("/users/me")
        except SdkException as e:
            # A 401 here has already been through refresh (or forced logout)
            logger.debug(f"Failed to fetch current user: {e.message}")
            self.current_user = None
        return self.current_user
    
    async def initialize(self) -> Optional[Dict[str, Any]]:
        """Restore a persisted session by fetching the user if a token is stored"""
        if await self.credentials.is_authenticated():
            logger.debug("Existing tokens found, fetching user...")
            return await self.get_current_user()
        return None
    
    async def is_authenticated(self) -> bool:
        return await self.credentials.is_authenticated()
    
    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    
    @staticmethod
    def _extract_auth_response(response: Any) -> AuthResult:
        """
        Build an AuthResult from a flat or nested auth response
        
        Accepts {accessToken, refreshToken, user} as well as the same fields
        nested under "data" or with the tokens grouped under "tokens".
        """
        if not isinstance(response, dict):
            raise AuthException("Invalid auth response from server")
        
        inner = response.get("data") if isinstance(response.get("data"), dict) else response
        tokens = inner.get("tokens") if isinstance(inner.get("tokens"), dict) else {}
        
        access_token = inner.get("accessToken") or tokens.get("accessToken")
        refresh_token = inner.get("refreshToken") or tokens.get("refreshToken")
        user = inner.get("user") or response.get("user")
        
        if not access_token or not user:
            raise AuthException("Invalid auth response from server")
        
        return AuthResult(
            user=user,
            tokens=TokenPair(access_token=access_token, refresh_token=refresh_token),
            is_new_user=bool(inner.get("isNewUser", False)),
        )
    
    async def _handle_auth_success(self, result: AuthResult, is_new_user: bool) -> None:
        await self.credentials.set(result.tokens.access_token, result.tokens.refresh_token)
        await self.credentials.set_auth_completed(True)
        if is_new_user:
            await self.credentials.set_is_new_user(True)
        self.current_user = result.user
        logger.info(f"Authenticated user {result.user.get('id', '<unknown>')}")
    
    async def _clear_auth_state(self, notify: bool = True) -> None:
        await self.credentials.clear()
        self.current_user = None
        if self.on_logout is None or not notify:
            return
        try:
            outcome = self.on_logout()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Logout hook failed: {e}", exc_info=True)
