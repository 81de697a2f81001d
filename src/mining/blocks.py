"""Window of mined blocks shown in the block history.

The window grows in both directions: the newest blocks are loaded on every
metrics cycle, older ones on demand when the history is scrolled. Each block
number is fetched at most once; its fetch state is tracked explicitly so that
failed blocks are retried on a later pass while loaded and in-flight blocks
are skipped.
"""

import asyncio
from collections import Counter

import httpx

from src.contracts.abi import ContractAbis
from src.contracts.addresses import ZERO_ADDRESS
from src.contracts.calls import build_miner_calls, build_miners_count_call
from src.contracts.decoder import decode_addresses, decode_call
from src.contracts.multicall import MulticallClient
from src.display.sink import PresentationSink
from src.helpers.constants import BACKWARD_PAGE, FORWARD_WINDOW, MINER_BATCH_SIZE
from src.helpers.logging import get_logger
from src.helpers.rpc import RPCClient
from src.mining.metrics import reward_at_block
from src.mining.models import BlockRecord, BlockState, MinerTallyEntry


logger = get_logger(__name__)


def miner_batches(total: int, batch_size: int = MINER_BATCH_SIZE) -> list[tuple[int, int]]:
    """Split miner indexes 0..total into (start, stop) pages.

    Example:
        >>> miner_batches(250)
        [(0, 100), (100, 200), (200, 250)]
    """
    return [
        (start, min(start + batch_size, total))
        for start in range(0, max(total, 0), batch_size)
    ]


def tally_miners(addresses: list[str]) -> list[MinerTallyEntry]:
    """Count entries per address, most entries first, then by address."""
    counts = Counter(addresses)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0].lower()))
    return [MinerTallyEntry(address=address, count=count) for address, count in ordered]


class BlockWindow:
    """Owns the ordered list of loaded blocks and their fetch states."""

    def __init__(
        self,
        rpc_client: RPCClient,
        http_client: httpx.AsyncClient,
        abis: ContractAbis,
        multicall: MulticallClient,
        sink: PresentationSink,
        *,
        forward_window: int = FORWARD_WINDOW,
        backward_page: int = BACKWARD_PAGE,
        miner_batch_size: int = MINER_BATCH_SIZE,
    ) -> None:
        """Initialize an empty block window.

        Args:
            rpc_client: JSON-RPC client for single reads
            http_client: HTTP client instance
            abis: Loaded contract ABIs
            multicall: Batch executor for miner detail pages
            sink: Presentation sink receiving block rows
            forward_window: Newest blocks loaded per cycle
            backward_page: Older blocks loaded per scroll page
            miner_batch_size: Miner reads per multicall page
        """
        self.rpc_client = rpc_client
        self.http_client = http_client
        self.abis = abis
        self.multicall = multicall
        self.sink = sink
        self.forward_window = forward_window
        self.backward_page = backward_page
        self.miner_batch_size = miner_batch_size

        # Last block number known from a metrics cycle, 0 until the first one
        self.cursor = 0
        self.states: dict[int, BlockState] = {}
        # Strictly descending by block number
        self.records: list[BlockRecord] = []
        self.has_pending = False

        # Stats
        self.blocks_fetched = 0
        self.blocks_failed = 0

    @property
    def loaded_blocks(self) -> set[int]:
        return {n for n, state in self.states.items() if state is BlockState.LOADED}

    @property
    def retry_eligible(self) -> set[int]:
        """Block numbers whose last fetch failed."""
        return {n for n, state in self.states.items() if state is BlockState.FAILED}

    def add_pending_block(self) -> None:
        """Reserve the first row for the block being mined."""
        if self.has_pending:
            return
        self.sink.add_pending_block()
        self.has_pending = True

    async def fetch_miners_count(self, block_number: int) -> int:
        call = build_miners_count_call(self.abis, block_number)
        raw = await self.rpc_client.eth_call(self.http_client, call.target, call.call_data)
        return decode_call(call, raw)

    async def miner_count(self, block_number: int) -> int:
        """Miner count of a block, read from the window when it is loaded."""
        for record in self.records:
            if record.block_number == block_number:
                return record.miner_count
        return await self.fetch_miners_count(block_number)

    async def resolve_winner(self, block_number: int) -> str | None:
        # No on-chain source for winners yet: known blocks get the zero address
        if block_number > self.cursor:
            return None
        return ZERO_ADDRESS

    async def resolve_miner(self, block_number: int) -> str | None:
        if block_number > self.cursor:
            return None
        return ZERO_ADDRESS

    async def load_block(self, block_number: int) -> BlockRecord | None:
        """Fetch one block and insert it into the window.

        Blocks already loaded or being loaded are skipped. A failed fetch is
        logged and leaves the block eligible for a later retry.

        Args:
            block_number: Block to load

        Returns:
            The inserted record, or None if skipped or failed
        """
        if block_number < 0:
            return None
        if self.states.get(block_number) in {BlockState.LOADED, BlockState.LOADING}:
            return None

        self.states[block_number] = BlockState.LOADING
        try:
            miner_count = await self.fetch_miners_count(block_number)
            winner = await self.resolve_winner(block_number)
            miner = await self.resolve_miner(block_number)
            record = BlockRecord(
                block_number=block_number,
                miner_count=miner_count,
                winner=winner,
                reward=reward_at_block(block_number),
                miner=miner,
            )
        except asyncio.CancelledError:
            del self.states[block_number]
            raise
        except Exception:
            logger.exception("Error loading block #%s", block_number)
            self.states[block_number] = BlockState.FAILED
            self.blocks_failed += 1
            return None

        self._insert(record)
        self.states[block_number] = BlockState.LOADED
        self.blocks_fetched += 1
        logger.debug("Loaded block #%s (%s miners)", block_number, record.miner_count)
        return record

    def _insert(self, record: BlockRecord) -> None:
        offset = 1 if self.has_pending else 0
        for index, existing in enumerate(self.records):
            if record.block_number > existing.block_number:
                self.records.insert(index, record)
                self.sink.insert_block(index + offset, record)
                return

        self.records.append(record)
        self.sink.append_block(record)

    async def load_forward(self, current_block: int) -> list[BlockRecord]:
        """Load the newest blocks, from `current_block` downwards."""
        loaded: list[BlockRecord] = []
        for i in range(self.forward_window):
            record = await self.load_block(current_block - i)
            if record is not None:
                loaded.append(record)
        return loaded

    async def load_backward(self) -> list[BlockRecord]:
        """Load the page of blocks just below the oldest loaded block."""
        loaded_blocks = self.loaded_blocks
        if not loaded_blocks:
            return []

        oldest = min(loaded_blocks)
        loaded: list[BlockRecord] = []
        for i in range(1, self.backward_page + 1):
            record = await self.load_block(oldest - i)
            if record is not None:
                loaded.append(record)

        logger.info("Loaded %s older blocks below #%s", len(loaded), oldest)
        return loaded

    async def fetch_block_miners(self, block_number: int, total_miners: int) -> list[str]:
        """Fetch every miner entry of a block, one multicall page at a time.

        Raises:
            Exception: Whatever the first failing page raised
        """
        addresses: list[str] = []
        for start, stop in miner_batches(total_miners, self.miner_batch_size):
            calls = build_miner_calls(self.abis, block_number, start, stop)
            payloads = await self.multicall.aggregate(calls)
            addresses.extend(decode_addresses(payloads))
            logger.debug("Loaded miners %s to %s for block %s", start, stop, block_number)
        return addresses

    async def expand_miner_detail(
        self, block_number: int, total_miners: int
    ) -> list[MinerTallyEntry]:
        """Tally the miners of a block, or return [] if any page fails."""
        try:
            addresses = await self.fetch_block_miners(block_number, total_miners)
        except Exception:
            logger.exception("Error fetching miners for block %s", block_number)
            return []
        return tally_miners(addresses)

    async def show_block_miners(
        self, block_number: int, total_miners: int
    ) -> list[MinerTallyEntry]:
        """Expand a block's miners and hand the tally to the sink."""
        tally = await self.expand_miner_detail(block_number, total_miners)
        self.sink.show_miner_detail(block_number, total_miners, tally)
        return tally


__all__ = [
    "BlockWindow",
    "miner_batches",
    "tally_miners",
]
