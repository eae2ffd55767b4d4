"""
Abstract base connector for all backend protocols.
Provides the standardized interface the connector engine dispatches to.
"""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, Iterable, List
import asyncio
import logging


class BaseProtocolConnector(ABC):
    """Abstract base class for protocol connectors.

    Connectors are stateless between requests; per-request state lives in the
    resolved template they are handed.
    """

    protocol: str = ""

    def __init__(self):
        self.logger = logging.getLogger(f"{self.__class__.__name__}")

    @abstractmethod
    async def get_data(self, template: Dict[str, Any], paths: List[Any]) -> List[Dict[str, Any]]:
        """Fetch and normalize data for every resource path.

        Returns:
            Canonical items, empty when there is no data (never None)
        """
        pass

    @staticmethod
    def product_code(template: Dict[str, Any]) -> str:
        return str(template.get("productCode", ""))

    async def gather_paths(self, calls: Iterable[Awaitable[List[Dict[str, Any]]]]) -> List[Dict[str, Any]]:
        """Run per-path calls concurrently and flatten their items.

        Every call runs to completion; the first failure in path order is
        raised afterwards.
        """
        results = await asyncio.gather(*calls, return_exceptions=True)
        items: List[Dict[str, Any]] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            items.extend(result or [])
        return items
