"""Identity brokers that issue short-lived access tokens."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

from loguru import logger


@dataclass(frozen=True)
class BrokerToken:
    token: str
    expires_at: int  # ms since epoch


class IdentityBroker(ABC):
    """Issues access tokens from an ambient identity (CLI login, env, MSI)."""

    @abstractmethod
    async def get_token(self, scope: str) -> BrokerToken:
        """
        Request one token for ``scope``. Single attempt, no retries.

        Raises:
            Exception: Whatever the underlying identity library raises.
        """


class AzureIdentityBroker(IdentityBroker):
    """
    Token broker backed by ``azure.identity.DefaultAzureCredential``.

    The credential chain covers environment service principals
    (AZURE_CLIENT_ID / AZURE_CLIENT_SECRET / AZURE_TENANT_ID), managed
    identity and the Azure CLI login. The SDK call is blocking, so it runs
    in the default executor.
    """

    def __init__(self, credential=None):
        self._credential = credential

    @property
    def credential(self):
        if self._credential is None:
            from azure.identity import DefaultAzureCredential
            self._credential = DefaultAzureCredential()
        return self._credential

    async def get_token(self, scope: str) -> BrokerToken:
        logger.debug(f"Requesting Azure token for scope: {scope}")
        access_token = await asyncio.get_running_loop().run_in_executor(
            None, self.credential.get_token, scope
        )
        # AccessToken.expires_on is in seconds
        return BrokerToken(token=access_token.token, expires_at=int(access_token.expires_on) * 1000)
