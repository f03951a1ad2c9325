"""Shared plumbing for the async boto3 wrappers."""
import asyncio
import functools
import logging
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]


class BaseAWSClient:
    """Wraps one boto3 client and runs its blocking calls off the event loop."""

    service_name: str = ""

    def __init__(self, region: Optional[str] = None,
                 client_factory: Optional[ClientFactory] = None,
                 user_agent: Optional[str] = None,
                 max_attempts: Optional[int] = None):
        self.region = region
        factory = client_factory or boto3.client

        config_kwargs: Dict[str, Any] = {}
        if user_agent:
            config_kwargs["user_agent_extra"] = user_agent
        if max_attempts:
            config_kwargs["retries"] = {"max_attempts": max_attempts, "mode": "standard"}

        kwargs: Dict[str, Any] = {"config": Config(**config_kwargs)}
        if region:
            kwargs["region_name"] = region
        self.client = factory(self.service_name, **kwargs)

    async def _run(self, func: Callable[[], Any]) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    async def _call(self, operation: str, **params) -> Dict[str, Any]:
        """Invoke a client operation in the default executor."""
        method = getattr(self.client, operation)
        return await self._run(functools.partial(method, **params))

    async def _paginate(self, operation: str, result_key: str, **params) -> List[Dict[str, Any]]:
        """Collect every item of a paginated operation."""
        def _collect() -> List[Dict[str, Any]]:
            items: List[Dict[str, Any]] = []
            paginator = self.client.get_paginator(operation)
            for page in paginator.paginate(**params):
                items.extend(page.get(result_key, []))
            return items

        return await self._run(_collect)

    @staticmethod
    def _request_id(error: Exception) -> Optional[str]:
        response = getattr(error, "response", None) or {}
        return response.get("ResponseMetadata", {}).get("RequestId")
