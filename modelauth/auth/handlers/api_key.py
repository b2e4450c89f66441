"""API key authentication method."""

from loguru import logger

from modelauth.auth.handlers.base import AuthMethodKind, AuthResult
from modelauth.auth.handlers.endpoint import EndpointAuthMethod
from modelauth.auth.profiles import CredentialProfile, StaticSecret, profile_reference
from modelauth.auth.prompter import InteractionContext, TextPromptSpec
from modelauth.auth.utils import validate_required_secret


class ApiKeyMethod(EndpointAuthMethod):
    """Stores a pasted API key in a profile; config only references it."""

    method_id = "api-key"
    label = "API Key"
    kind = AuthMethodKind.API_KEY
    yields_refreshable = False

    @property
    def hint(self) -> str:
        return f"Use {self.settings.provider_label} API key from environment or paste manually"

    async def run(self, ctx: InteractionContext) -> AuthResult:
        """Execute API key authentication flow."""
        answers = await self.prompt_endpoint(ctx)
        api_key = await ctx.text(TextPromptSpec(
            message=f"Paste {self.settings.provider_label} API key",
            secret=True,
            validate=validate_required_secret,
        ))

        profile_id = self.profile_id(answers)
        ref = profile_reference(profile_id)
        profile = CredentialProfile(
            profile_id=profile_id,
            credential=StaticSecret(
                provider=self.settings.provider_id,
                key=str(api_key).strip(),
                metadata=answers.metadata(),
            ),
        )
        patch = self.provider_patch(
            answers,
            api_key=ref,
            headers={self.settings.secret_header: ref},
        )
        logger.info(f"Created API key profile {profile_id}")

        return AuthResult(
            profiles=[profile],
            config_patch=patch,
            default_model=self.settings.qualified_default_model,
            notes=list(self.settings.api_key_notes),
        ).ensure_no_raw_secrets()
