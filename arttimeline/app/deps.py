# arttimeline/app/deps.py (singletons, exposed as dependencies)

from __future__ import annotations

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, ClientOptions, create_client

from arttimeline.app.config import settings
from arttimeline.app.domain.errors import InvalidStateTokenError, RepositoryError
from arttimeline.app.domain.models import User
from arttimeline.app.infra.auth.base import IdentityProvider
from arttimeline.app.infra.auth.supabase_auth import SupabaseIdentityProvider
from arttimeline.app.infra.cache.base import CacheStore
from arttimeline.app.infra.cache.memory import InMemoryCacheStore
from arttimeline.app.infra.cache.supabase_cache import SupabaseCacheStore
from arttimeline.app.infra.db.supabase_collection_repo import SupabaseCollectionRepository
from arttimeline.app.services.auth_service import AuthService
from arttimeline.app.services.collection_service import CollectionService
from arttimeline.app.services.timeline_service import TimelineService
from arttimeline.services.curator import PeriodCurator
from arttimeline.services.met_client import MetCollectionClient
from arttimeline.services.tokens import StateTokenSigner

_client: Client | None = None
_auth_client: Client | None = None
_cache: CacheStore | None = None
_met_client: MetCollectionClient | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def get_supabase_auth() -> Client:
    """
    Client reserved for user-facing auth flows. Signing in stores the user's
    session on the client, so tables and admin calls stay on get_supabase().
    """
    global _auth_client
    if _auth_client is None:
        _auth_client = create_client(
            str(settings.SUPABASE_URL),
            settings.SUPABASE_SERVICE_ROLE_KEY,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
    return _auth_client


def get_cache_store() -> CacheStore:
    global _cache
    if _cache is None:
        if settings.CACHE_BACKEND == "supabase":
            _cache = SupabaseCacheStore(get_supabase())
        else:
            _cache = InMemoryCacheStore()
    return _cache


def get_met_client() -> MetCollectionClient:
    global _met_client
    if _met_client is None:
        _met_client = MetCollectionClient(
            get_cache_store(),
            httpx.AsyncClient(follow_redirects=True),
            base_url=settings.MET_API_BASE_URL,
            user_agent=settings.MET_USER_AGENT,
            search_timeout=settings.MET_SEARCH_TIMEOUT_SECONDS,
            object_timeout=settings.MET_OBJECT_TIMEOUT_SECONDS,
            search_ttl=settings.CACHE_SEARCH_TTL_SECONDS,
            object_ttl=settings.CACHE_OBJECT_TTL_SECONDS,
        )
    return _met_client


async def close_clients() -> None:
    global _met_client
    if _met_client is not None:
        await _met_client.aclose()
        _met_client = None


def get_timeline_service(
    client: MetCollectionClient = Depends(get_met_client),
    cache: CacheStore = Depends(get_cache_store),
) -> TimelineService:
    curator = PeriodCurator(
        client,
        batch_size=settings.CURATION_BATCH_SIZE,
        ids_per_query=settings.CURATION_IDS_PER_QUERY,
        pool_factor=settings.CURATION_POOL_FACTOR,
        batch_pause_seconds=settings.CURATION_BATCH_PAUSE_SECONDS,
    )
    return TimelineService(
        client,
        curator,
        cache,
        period_ttl_seconds=settings.CACHE_PERIOD_TTL_SECONDS,
        default_limit=settings.CURATION_DEFAULT_LIMIT,
        max_limit=settings.CURATION_MAX_LIMIT,
    )


def get_collection_service(supa: Client = Depends(get_supabase)) -> CollectionService:
    return CollectionService(SupabaseCollectionRepository(supa))


def get_identity_provider(
    admin: Client = Depends(get_supabase),
    public: Client = Depends(get_supabase_auth),
) -> IdentityProvider:
    return SupabaseIdentityProvider(
        public,
        admin,
        rate_limit_retry_seconds=settings.OTP_RESEND_COOLDOWN_SECONDS,
    )


def get_auth_service(
    identity: IdentityProvider = Depends(get_identity_provider),
    cache: CacheStore = Depends(get_cache_store),
) -> AuthService:
    return AuthService(
        identity,
        StateTokenSigner(settings.AUTH_SECRET_KEY),
        cache,
        pending_ttl_seconds=settings.PENDING_TTL_MINUTES * 60,
        resend_cooldown_seconds=settings.OTP_RESEND_COOLDOWN_SECONDS,
    )


def get_client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str
    name: str | None = None
    twoFactorEnabled: bool = False

    @classmethod
    def from_user(cls, user: User) -> "CurrentUser":
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name or None,
            twoFactorEnabled=user.has_two_factor,
        )


def bearer_token(cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme)) -> str:
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    return cred.credentials


async def get_current_account(
    token: str = Depends(bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """
    Recebe Authorization: Bearer <access_token> do Supabase,
    valida no GoTrue (supa.auth.get_user) e retorna o usuário.
    """
    try:
        user = await auth.authenticate(token)
    except InvalidStateTokenError:
        raise HTTPException(status_code=401, detail="Invalid/expired token")
    except RepositoryError:
        raise HTTPException(status_code=503, detail="Auth provider unavailable")

    if not user.is_verified:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Email not verified")
    return user


async def get_current_user(user: User = Depends(get_current_account)) -> CurrentUser:
    return CurrentUser.from_user(user)
