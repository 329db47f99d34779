# deskillz/services/authenticated_transport.py

import asyncio
import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union
import httpx
from deskillz.config.settings import SdkSettings
from deskillz.exceptions.sdk_exceptions import (
    NetworkException,
    RequestTimeoutException,
    SessionExpiredException,
    error_from_response,
)
from deskillz.services.credential_store import CredentialStore
from deskillz.services.refresh_coordinator import RefreshCoordinator

logger = logging.getLogger(__name__)

ForcedLogoutHook = Callable[[], Union[None, Awaitable[None]]]
QueryValue = Union[str, int, float, bool, None, List[Union[str, int, float, bool]]]


@dataclass(frozen=True)
class RequestEnvelope:
    """One logical call; a retry is the same envelope with is_retry set"""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    skip_auth: bool = False
    is_retry: bool = False
    
    def as_retry(self) -> "RequestEnvelope":
        return replace(self, is_retry=True)


def unwrap_envelope(body: Any) -> Any:
    """Return body["data"] for enveloped objects, the body itself otherwise"""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class AuthenticatedTransport:
    """
    HTTP transport that attaches bearer tokens and drives refresh-then-retry-once.
    
    A 401 on a first attempt triggers one shared refresh and one retry; a 401
    on the retry, or a failed refresh, ends the session: the credential store
    is cleared, the forced-logout hook runs, and SessionExpiredException is raised.
    """
    
    def __init__(
        self,
        settings: SdkSettings,
        credentials: CredentialStore,
        http_client: Optional[httpx.AsyncClient] = None,
        on_forced_logout: Optional[ForcedLogoutHook] = None,
    ):
        self.settings = settings
        self.credentials = credentials
        self.on_forced_logout = on_forced_logout
        self._owns_client = http_client is None
        self.http = http_client if http_client is not None else httpx.AsyncClient(timeout=settings.timeout_seconds)
        self.refresh_coordinator = RefreshCoordinator(
            credentials,
            self.http,
            settings.refresh_url,
            timeout_seconds=settings.refresh_timeout_seconds,
        )
    
    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    
    async def send(
        self,
        method: str,
        url: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        skip_auth: bool = False,
    ) -> Any:
        """
        Issue a request and return the parsed (envelope-unwrapped) result
        
        Args:
            method: GET, POST, PUT, PATCH or DELETE
            url: Absolute URL or path relative to the API base
            body: JSON-serializable body (ignored for GET)
            headers: Extra headers for this call only
            skip_auth: Send without a bearer token and without refresh handling
            
        Raises:
            RequestTimeoutException: The per-request deadline elapsed
            NetworkException: No response was received
            SessionExpiredException: Terminal 401
            ApiException: Any other non-2xx response
        """
        envelope = RequestEnvelope(
            method=method.upper(),
            url=self.build_url(url),
            headers=dict(headers or {}),
            body=body,
            skip_auth=skip_auth,
        )
        return await self._dispatch(envelope)
    
    async def get(self, path: str, params: Optional[Mapping[str, QueryValue]] = None, **kwargs) -> Any:
        return await self.send("GET", self.build_url(path, params), **kwargs)
    
    async def post(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.send("POST", path, body, **kwargs)
    
    async def put(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.send("PUT", path, body, **kwargs)
    
    async def patch(self, path: str, body: Any = None, **kwargs) -> Any:
        return await self.send("PATCH", path, body, **kwargs)
    
    async def delete(self, path: str, **kwargs) -> Any:
        return await self.send("DELETE", path, **kwargs)
    
    async def close(self) -> None:
        """Close the underlying HTTP client if this transport created it"""
        if self._owns_client:
            await self.http.aclose()
    
    async def __aenter__(self) -> "AuthenticatedTransport":
        return self
    
    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
    
    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------
    
    async def _dispatch(self, envelope: RequestEnvelope) -> Any:
        response = await self._issue(envelope)
        
        if response.status_code == 401 and not envelope.skip_auth:
            if envelope.is_retry:
                logger.warning(f"{envelope.method} {envelope.url} rejected again after refresh")
                await self._expire_session()
                raise SessionExpiredException(details=self._error_details(response))
            
            refreshed = await self.refresh_coordinator.attempt_refresh()
            if not refreshed:
                await self._expire_session()
                raise SessionExpiredException(details=self._error_details(response))
            
            return await self._dispatch(envelope.as_retry())
        
        body = self._parse_body(response)
        if not response.is_success:
            raise error_from_response(response.status_code, body)
        
        return unwrap_envelope(body)
    
    async def _issue(self, envelope: RequestEnvelope) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            **self.settings.CUSTOM_HEADERS,
            **envelope.headers,
        }
        if not envelope.skip_auth:
            token = await self.credentials.get_access()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        
        request_kwargs: Dict[str, Any] = {"headers": headers}
        if envelope.body is not None and envelope.method != "GET":
            request_kwargs["json"] = envelope.body
        
        retry_marker = " (retry)" if envelope.is_retry else ""
        logger.debug(f"{envelope.method} {envelope.url}{retry_marker}")
        
        try:
            response = await asyncio.wait_for(
                self.http.request(envelope.method, envelope.url, **request_kwargs),
                timeout=self.settings.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.debug(f"{envelope.method} {envelope.url} timed out")
            raise RequestTimeoutException() from e
        except httpx.HTTPError as e:
            logger.debug(f"{envelope.method} {envelope.url} failed: {e}")
            raise NetworkException(str(e) or "Network error. Please check your connection.") from e
        
        logger.debug(f"{envelope.method} {envelope.url} -> {response.status_code}")
        return response
    
    async def _expire_session(self) -> None:
        """Clear credentials, then notify the forced-logout collaborator"""
        await self.credentials.clear()
        logger.warning("Session expired; credentials cleared")
        
        if self.on_forced_logout is None:
            return
        try:
            result = self.on_forced_logout()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Forced-logout hook failed: {e}", exc_info=True)
    
    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    
    def build_url(self, path: str, params: Optional[Mapping[str, QueryValue]] = None) -> str:
        """Join a relative path to the API base and append query params (None skipped, lists repeated)"""
        if path.startswith("http://") or path.startswith("https://"):
            base = path
        else:
            if not path.startswith("/"):
                path = f"/{path}"
            base = f"{self.settings.api_url}{path}"
        
        if not params:
            return base
        
        pairs: List[Tuple[str, Any]] = []
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                pairs.extend((key, item) for item in value)
            else:
                pairs.append((key, value))
        
        query = str(httpx.QueryParams(pairs))
        if not query:
            return base
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{query}"
    
    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        """Parse JSON, returning None for empty or non-JSON bodies"""
        if not response.content or not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError:
            return None
    
    @classmethod
    def _error_details(cls, response: httpx.Response) -> Dict[str, Any]:
        body = cls._parse_body(response)
        return {"response": body} if body is not None else {}
