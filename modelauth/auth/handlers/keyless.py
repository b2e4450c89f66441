"""Keyless authentication through an ambient identity broker."""

from loguru import logger

from modelauth.auth.broker import IdentityBroker
from modelauth.auth.errors import BrokerAuthError
from modelauth.auth.handlers.base import AuthMethodKind, AuthResult
from modelauth.auth.handlers.endpoint import EndpointAuthMethod, EndpointAuthSettings
from modelauth.auth.profiles import USE_EXTERNAL_REFRESH, CredentialProfile, RefreshableToken
from modelauth.auth.prompter import InteractionContext, track_progress


class KeylessMethod(EndpointAuthMethod):
    """
    Obtains a short-lived token from the identity broker instead of a key.

    The resulting profile is flagged for external refresh: the provider's
    refresher asks the broker again, no refresh token is stored.
    """

    method_id = "keyless"
    kind = AuthMethodKind.CUSTOM
    yields_refreshable = True

    def __init__(self, settings: EndpointAuthSettings, broker: IdentityBroker, label: str = "Keyless", hint: str = ""):
        super().__init__(settings)
        self.broker = broker
        self.label = label
        self.hint = hint

    async def run(self, ctx: InteractionContext) -> AuthResult:
        answers = await self.prompt_endpoint(ctx)
        provider = self.settings.broker_label or self.settings.provider_label

        try:
            with track_progress(
                ctx,
                f"Acquiring {provider} credentials…",
                done=f"{provider} credentials acquired successfully",
                failed=f"Failed to acquire {provider} credentials",
            ):
                token = await self.broker.get_token(self.settings.broker_scope)
        except Exception as e:
            logger.warning(f"{provider} keyless login failed for {answers.endpoint}: {e}")
            raise BrokerAuthError(
                f"{provider} authentication failed",
                cause=e,
                remediation=self.settings.remediation,
            ) from e

        profile_id = self.profile_id(answers)
        metadata = answers.metadata()
        metadata[USE_EXTERNAL_REFRESH] = "true"
        profile = CredentialProfile(
            profile_id=profile_id,
            credential=RefreshableToken(
                provider=self.settings.provider_id,
                access_token=token.token,
                refresh_token=None,
                expires_at=token.expires_at,
                metadata=metadata,
            ),
        )
        logger.info(f"Created keyless profile {profile_id} (expires at {token.expires_at})")

        return AuthResult(
            profiles=[profile],
            config_patch=self.provider_patch(answers, auth="token"),
            default_model=self.settings.qualified_default_model,
            notes=list(self.settings.keyless_notes),
        ).ensure_no_raw_secrets()
