"""Multicall batching of independent contract reads.

All reads of a batch are sent as one `aggregate((address,bytes)[])` eth_call
to the Multicall3 contract, which returns `(uint256 blockNumber, bytes[]
returnData)`. A batch succeeds or fails as a whole: Multicall `aggregate`
reverts when any inner call reverts, and there is no partial result.
"""

from collections.abc import Sequence

import httpx

from src.contracts.abi import ContractAbi, decode_payload
from src.contracts.addresses import MULTICALL_ADDRESS
from src.contracts.calls import CallSpec
from src.helpers.errors import BatchCallError
from src.helpers.logging import get_logger
from src.helpers.rpc import RPCClient


logger = get_logger(__name__)


class MulticallClient:
    """Executes ordered batches of CallSpecs through Multicall `aggregate`."""

    def __init__(
        self,
        rpc_client: RPCClient,
        http_client: httpx.AsyncClient,
        abi: ContractAbi,
        address: str = MULTICALL_ADDRESS,
    ) -> None:
        """Initialize the multicall client.

        Args:
            rpc_client: JSON-RPC client used for the eth_call
            http_client: HTTP client instance
            abi: Multicall ABI (must define `aggregate`)
            address: Multicall contract address
        """
        self.rpc_client = rpc_client
        self.http_client = http_client
        self.abi = abi
        self.address = address
        self.batches_sent = 0

    async def aggregate(self, calls: Sequence[CallSpec]) -> list[bytes]:
        """Execute calls in one request and return their raw payloads.

        Args:
            calls: Ordered reads to execute

        Returns:
            One return payload per call, in request order

        Raises:
            httpx.HTTPError: If the transport fails
            RPCError: If the aggregate call reverts
            DecodeError: If the aggregate envelope cannot be decoded
            BatchCallError: If the payload count differs from the call count
        """
        if not calls:
            return []

        call_data = self.abi.encode(
            "aggregate", [call.as_multicall_tuple() for call in calls]
        )
        raw = await self.rpc_client.eth_call(self.http_client, self.address, call_data)
        block_number, return_data = decode_payload(
            self.abi.output_types("aggregate"), raw, name="aggregate"
        )
        self.batches_sent += 1

        if len(return_data) != len(calls):
            msg = (
                f"Multicall returned {len(return_data)} payloads "
                f"for {len(calls)} calls"
            )
            raise BatchCallError(msg, expected=len(calls), received=len(return_data))

        logger.debug(
            "Multicall of %s calls answered at block %s", len(calls), block_number
        )
        return list(return_data)


__all__ = ["MulticallClient"]
