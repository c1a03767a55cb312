"""Provider registry lookups."""

from __future__ import annotations

import logging

from ..chain.contract import ContractFactory
from ..chain.errors import translate_error
from ..config import PROVIDER_REGISTRY
from ..models import Provider

logger = logging.getLogger(__name__)


class ProviderModule:
    def __init__(self, contracts: ContractFactory):
        self._contracts = contracts

    def get_provider(self, provider_id: int) -> Provider:
        try:
            contract = self._contracts.get(PROVIDER_REGISTRY)
            data = contract.call("getProvider", provider_id)
            provider = Provider.from_chain(data, provider_id=provider_id)
            logger.debug("Provider %s: %s", provider_id, provider)
            return provider
        except Exception as exc:
            logger.error("Failed to retrieve provider %s: %s", provider_id, exc)
            raise translate_error(exc, self._contracts.abi(PROVIDER_REGISTRY)) from exc
