from abc import ABC, abstractmethod
from typing import Any


class AbstractYunheiClient(ABC):
	"""Interface for clients that look identifiers up in the Yunhei service."""

	@abstractmethod
	async def fetch(self, query_id: str) -> Any:
		"""Fetch the raw lookup payload for an identifier.

		Args:
			query_id: Identifier to look up (already validated).

		Returns:
			Any: Decoded JSON body exactly as the upstream returned it.

		Raises:
			UpstreamAppError: If the request fails or the body is not JSON.
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the client."""
		return None
