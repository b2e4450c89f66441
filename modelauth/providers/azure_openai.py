"""Azure OpenAI provider with API key and keyless authentication."""

from modelauth.auth.broker import AzureIdentityBroker, IdentityBroker
from modelauth.auth.handlers import ApiKeyMethod, EndpointAuthSettings, KeylessMethod
from modelauth.auth.refresh import BrokerTokenRefresher
from modelauth.plugins.registry import HostAPI, ProviderRegistration
from modelauth.providers.base import ProviderPlugin
from modelauth.providers.models import ModelCost, ModelDescriptor

PROVIDER_ID = "azure-openai"
PROVIDER_LABEL = "Azure OpenAI"
ENV_VARS = [
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_DEPLOYMENT_NAME",
    "AZURE_CLIENT_ID",
    "AZURE_CLIENT_SECRET",
    "AZURE_TENANT_ID",
]

# Azure OpenAI uses the cognitive services scope
AZURE_COGNITIVE_SCOPE = "https://cognitiveservices.azure.com/.default"

AZURE_REMEDIATION = [
    "Azure CLI installed and logged in (az login), OR",
    "Service principal credentials set (AZURE_CLIENT_ID, AZURE_CLIENT_SECRET, AZURE_TENANT_ID), OR",
    "Managed identity configured on your Azure resource",
]

# Common Azure OpenAI model configurations
AZURE_OPENAI_MODELS = [
    ModelDescriptor(
        id="gpt-4o",
        name="GPT-4o",
        input=["text", "image"],
        cost=ModelCost(input=2.5, output=10, cache_read=1.25, cache_write=2.5),
        context_window=128000,
        max_tokens=16384,
    ),
    ModelDescriptor(
        id="gpt-4o-mini",
        name="GPT-4o mini",
        input=["text", "image"],
        cost=ModelCost(input=0.15, output=0.6, cache_read=0.075, cache_write=0.15),
        context_window=128000,
        max_tokens=16384,
    ),
    ModelDescriptor(
        id="gpt-4-turbo",
        name="GPT-4 Turbo",
        input=["text", "image"],
        cost=ModelCost(input=10, output=30, cache_read=5, cache_write=10),
        context_window=128000,
        max_tokens=4096,
    ),
    ModelDescriptor(
        id="gpt-4",
        name="GPT-4",
        cost=ModelCost(input=30, output=60, cache_read=15, cache_write=30),
        context_window=8192,
        max_tokens=4096,
    ),
    ModelDescriptor(
        id="gpt-35-turbo",
        name="GPT-3.5 Turbo",
        cost=ModelCost(input=0.5, output=1.5, cache_read=0.25, cache_write=0.5),
        context_window=16385,
        max_tokens=4096,
    ),
    ModelDescriptor(
        id="o1-preview",
        name="o1 Preview",
        reasoning=True,
        cost=ModelCost(input=15, output=60, cache_read=7.5, cache_write=15),
        context_window=128000,
        max_tokens=32768,
    ),
    ModelDescriptor(
        id="o1-mini",
        name="o1 Mini",
        reasoning=True,
        cost=ModelCost(input=3, output=12, cache_read=1.5, cache_write=3),
        context_window=128000,
        max_tokens=65536,
    ),
]

SETTINGS = EndpointAuthSettings(
    provider_id=PROVIDER_ID,
    provider_label=PROVIDER_LABEL,
    api="openai-completions",
    endpoint_placeholder="https://your-resource-name.openai.azure.com",
    endpoint_env="AZURE_OPENAI_ENDPOINT",
    deployment_env="AZURE_OPENAI_DEPLOYMENT_NAME",
    deployment_placeholder="gpt-4o",
    deployment_path="openai/deployments",
    secret_header="api-key",
    models=AZURE_OPENAI_MODELS,
    default_model="gpt-4o",
    broker_scope=AZURE_COGNITIVE_SCOPE,
    broker_label="Azure",
    remediation=AZURE_REMEDIATION,
    api_key_notes=[
        "Azure OpenAI requires a deployment for each model.",
        "Configure deployment names in your models config if needed.",
        "API version is managed automatically by the OpenAI SDK.",
    ],
    keyless_notes=[
        "Keyless authentication uses DefaultAzureCredential.",
        "Supports managed identity, service principal, and Azure CLI credentials.",
        "Tokens are refreshed automatically.",
        "Ensure your Azure identity has 'Cognitive Services OpenAI User' role.",
    ],
)

PLUGIN = ProviderPlugin(
    id=PROVIDER_ID,
    name=PROVIDER_LABEL,
    description="Azure OpenAI provider with API key and keyless authentication",
)


def build_registration(broker: IdentityBroker | None = None) -> ProviderRegistration:
    """Build the Azure OpenAI registration. No network access happens here."""
    broker = broker or AzureIdentityBroker()
    return ProviderRegistration(
        id=PROVIDER_ID,
        label=PROVIDER_LABEL,
        aliases=["azure"],
        env_vars=list(ENV_VARS),
        docs_path="/providers/models",
        methods=[
            ApiKeyMethod(SETTINGS),
            KeylessMethod(
                SETTINGS,
                broker,
                label="Keyless (DefaultAzureCredential)",
                hint="Use Azure managed identity or service principal",
            ),
        ],
        refresher=BrokerTokenRefresher(
            PROVIDER_ID, broker, AZURE_COGNITIVE_SCOPE, remediation=AZURE_REMEDIATION
        ),
    )


def register(api: HostAPI, broker: IdentityBroker | None = None) -> None:
    """Hand the Azure OpenAI provider to the host."""
    api.register_provider(build_registration(broker))
