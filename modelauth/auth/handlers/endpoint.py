"""Shared pieces of the endpoint-based auth methods.

Both the API key and the keyless flow start the same way: ask for the
resource endpoint and an optional deployment, derive the profile id from the
endpoint host and build the provider section of the config patch. The
provider-specific bits live in :class:`EndpointAuthSettings`.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modelauth.auth.handlers.base import AuthMethod
from modelauth.auth.profiles import derive_profile_id
from modelauth.auth.prompter import InteractionContext, TextPromptSpec
from modelauth.auth.utils import join_url, validate_endpoint_url
from modelauth.providers.models import ModelDescriptor


@dataclass
class EndpointAuthSettings:
    """Provider-specific configuration of the endpoint auth methods."""
    provider_id: str
    provider_label: str
    api: str = "openai-completions"
    endpoint_placeholder: str = ""
    endpoint_env: Optional[str] = None
    deployment_env: Optional[str] = None
    deployment_placeholder: str = ""
    deployment_path: str = "openai/deployments"
    secret_header: str = "api-key"
    models: List[ModelDescriptor] = field(default_factory=list)
    default_model: Optional[str] = None
    broker_scope: str = ""
    broker_label: str = ""  # name of the identity platform in progress output
    remediation: List[str] = field(default_factory=list)
    api_key_notes: List[str] = field(default_factory=list)
    keyless_notes: List[str] = field(default_factory=list)

    @property
    def qualified_default_model(self) -> Optional[str]:
        if not self.default_model:
            return None
        return f"{self.provider_id}/{self.default_model}"


@dataclass(frozen=True)
class EndpointAnswers:
    endpoint: str
    deployment_name: str

    def metadata(self) -> Dict[str, str]:
        meta = {"endpoint": self.endpoint}
        if self.deployment_name:
            meta["deployment_name"] = self.deployment_name
        return meta


class EndpointAuthMethod(AuthMethod):
    """Base for auth methods that target one resource endpoint."""

    def __init__(self, settings: EndpointAuthSettings):
        self.settings = settings

    async def prompt_endpoint(self, ctx: InteractionContext) -> EndpointAnswers:
        """Ask for endpoint then deployment, in that order."""
        s = self.settings
        endpoint = await ctx.text(TextPromptSpec(
            message=f"{s.provider_label} endpoint URL",
            placeholder=s.endpoint_placeholder or None,
            default=self._env_default(s.endpoint_env),
            validate=validate_endpoint_url,
        ))
        deployment = await ctx.text(TextPromptSpec(
            message="Deployment name (optional, can be configured per model)",
            placeholder=s.deployment_placeholder or None,
            default=self._env_default(s.deployment_env),
        ))
        return EndpointAnswers(
            endpoint=str(endpoint).strip(),
            deployment_name=str(deployment or "").strip(),
        )

    @staticmethod
    def _env_default(env_var: Optional[str]) -> str:
        if not env_var:
            return ""
        return os.environ.get(env_var, "").strip()

    def profile_id(self, answers: EndpointAnswers) -> str:
        return derive_profile_id(self.settings.provider_id, answers.endpoint)

    def base_url(self, answers: EndpointAnswers) -> str:
        """Endpoint URL, extended with the deployment path when one is given."""
        if not answers.deployment_name:
            return answers.endpoint
        return join_url(answers.endpoint, self.settings.deployment_path, answers.deployment_name)

    def provider_patch(self, answers: EndpointAnswers, **auth_fields: Any) -> Dict[str, Any]:
        """Config patch for this provider, with the method's auth fields merged in."""
        section: Dict[str, Any] = {
            "base_url": self.base_url(answers),
            "api": self.settings.api,
        }
        section.update(auth_fields)
        section["models"] = [m.model_dump() for m in self.settings.models]
        return {"models": {"providers": {self.settings.provider_id: section}}}
