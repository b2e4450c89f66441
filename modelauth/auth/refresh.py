"""Token refresh: per-provider refreshers and the host's refresh service."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from loguru import logger

from modelauth.auth.broker import IdentityBroker
from modelauth.auth.errors import AuthError, RefreshError
from modelauth.auth.profiles import CredentialProfile, RefreshableToken, StaticSecret

if TYPE_CHECKING:
    from modelauth.auth.store import ProfileStore
    from modelauth.plugins.registry import ProviderRegistry

# Buffer: refresh 5 minutes before actual expiry
REFRESH_BUFFER_MS = 5 * 60 * 1000


class TokenRefresher(ABC):
    """Renews a provider's expiring credentials."""

    @abstractmethod
    async def refresh(self, profile: CredentialProfile) -> CredentialProfile:
        """Return a renewed copy of ``profile``, or ``profile`` itself when
        there is nothing to renew."""


class BrokerTokenRefresher(TokenRefresher):
    """
    Refreshes broker-issued tokens by asking the identity broker again.

    Only tokens flagged ``use_external_refresh`` are renewed; everything else
    is returned unchanged, so callers need not branch on credential kind.
    One broker call per invocation; retry policy belongs to the caller.
    """

    def __init__(self, provider_id: str, broker: IdentityBroker, scope: str, remediation: list[str] | None = None):
        self.provider_id = provider_id
        self.broker = broker
        self.scope = scope
        self.remediation = list(remediation or [])

    async def refresh(self, profile: CredentialProfile) -> CredentialProfile:
        match profile.credential:
            case StaticSecret():
                return profile
            case RefreshableToken() as cred if not cred.uses_external_refresh:
                return profile
            case RefreshableToken() as cred:
                return await self._refresh_token(profile, cred)
            case other:
                raise TypeError(f"Unsupported credential type: {type(other).__name__}")

    async def _refresh_token(self, profile: CredentialProfile, cred: RefreshableToken) -> CredentialProfile:
        endpoint = cred.metadata.get("endpoint", "")
        deployment = cred.metadata.get("deployment_name")
        logger.debug(
            f"Refreshing {profile.profile_id} via broker "
            f"(endpoint={endpoint}, deployment={deployment or '-'})"
        )
        try:
            token = await self.broker.get_token(self.scope)
        except Exception as e:
            logger.error(f"Token refresh failed for {profile.profile_id}: {e}")
            raise RefreshError(
                f"Token refresh failed for {profile.profile_id}",
                cause=e,
                remediation=self.remediation,
            ) from e

        updated = cred.model_copy(update={"access_token": token.token, "expires_at": token.expires_at})
        logger.info(f"Refreshed token for {profile.profile_id} (expires at {token.expires_at})")
        return profile.model_copy(update={"credential": updated})


class TokenRefreshService:
    """
    Host-side scheduler that keeps stored tokens fresh.

    Looks up each profile's provider refresher in the registry, applies the
    refresh timeout and persists results. Concurrent refreshes of the same
    profile are not serialized; the last write wins.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        buffer_ms: int = REFRESH_BUFFER_MS,
        timeout_seconds: float | None = 30.0,
    ):
        self.registry = registry
        self.buffer_ms = buffer_ms
        self.timeout_seconds = timeout_seconds

    def needs_refresh(self, profile: CredentialProfile, now_ms: int | None = None) -> bool:
        """Check if token needs refresh (expired or within buffer)."""
        return profile.is_expiring(self.buffer_ms, now_ms)

    async def refresh_profile(self, profile: CredentialProfile) -> CredentialProfile:
        """
        Refresh one profile through its provider's refresher.

        Providers without a refresher return the profile unchanged.

        Raises:
            RefreshError: If the broker fails or the call times out.
        """
        registration = self.registry.get(profile.provider)
        if registration is None or registration.refresher is None:
            return profile

        try:
            return await asyncio.wait_for(
                registration.refresher.refresh(profile), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise RefreshError(
                f"Token refresh timed out for {profile.profile_id}",
                cause=e,
                remediation=getattr(registration.refresher, "remediation", None),
            ) from e

    async def refresh_due(
        self, store: ProfileStore, now_ms: int | None = None, force: bool = False
    ) -> dict[str, AuthError]:
        """
        Refresh every stored profile that is expiring (every profile when
        ``force``) and persist the result.

        A failing profile does not stop the sweep.

        Returns:
            Errors keyed by profile id (empty when all refreshes succeeded).
        """
        failures: dict[str, AuthError] = {}
        refreshed = 0
        for profile in store.list():
            if not force and not self.needs_refresh(profile, now_ms):
                continue
            try:
                updated = await self.refresh_profile(profile)
            except AuthError as e:
                logger.warning(f"Could not refresh {profile.profile_id}: {e}")
                failures[profile.profile_id] = e
                continue
            if updated is not profile:
                store.upsert(updated)
                refreshed += 1

        if refreshed:
            store.save()
            logger.info(f"Refreshed {refreshed} profile(s)")
        return failures

    async def run_periodic(self, store: ProfileStore, interval_seconds: float, stop: asyncio.Event | None = None) -> None:
        """Sweep ``store`` every ``interval_seconds`` until ``stop`` is set."""
        stop = stop or asyncio.Event()
        logger.info(f"Token refresh loop started (every {interval_seconds}s)")
        while not stop.is_set():
            await self.refresh_due(store)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Token refresh loop stopped")
