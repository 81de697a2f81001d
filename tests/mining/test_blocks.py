"""Tests for the block window: loading, ordering, retries and miner detail."""

import asyncio
import io
from collections import Counter
from collections.abc import Awaitable, Callable, Sequence
from unittest.mock import AsyncMock

import pytest
from eth_abi import decode, encode
from rich.console import Console

from src.contracts.abi import ContractAbis
from src.contracts.addresses import ZERO_ADDRESS
from src.contracts.calls import CallSpec
from src.contracts.multicall import MulticallClient
from src.display.sink import ConsoleSink, PendingBlock
from src.helpers.rpc import RPCClient, RPCError
from src.mining.blocks import BlockWindow, miner_batches, tally_miners
from src.mining.models import BlockState, MinerTallyEntry


MINER_A = "0x00000000000000000000000000000000000000aa"
MINER_B = "0x00000000000000000000000000000000000000bb"


@pytest.fixture
def rpc_client() -> AsyncMock:
    """RPC client whose every block has three miners."""
    client = AsyncMock(spec=RPCClient)
    client.eth_call.return_value = encode(["uint256"], [3])
    return client


@pytest.fixture
def multicall() -> AsyncMock:
    """Multicall executor mock."""
    return AsyncMock(spec=MulticallClient)


@pytest.fixture
def sink() -> ConsoleSink:
    """Console sink writing to a throwaway buffer."""
    return ConsoleSink(console=Console(file=io.StringIO()))


@pytest.fixture
def window(
    rpc_client: AsyncMock,
    mock_http_client: AsyncMock,
    abis: ContractAbis,
    multicall: AsyncMock,
    sink: ConsoleSink,
) -> BlockWindow:
    """Block window with the pending row in place and cursor at 100."""
    block_window = BlockWindow(rpc_client, mock_http_client, abis, multicall, sink)
    block_window.add_pending_block()
    block_window.cursor = 100
    return block_window


def requested_block(rpc_client: AsyncMock, index: int) -> int:
    """Block number of the index-th minersPerBlockCount read."""
    call_data = rpc_client.eth_call.call_args_list[index].args[2]
    return decode(["uint256"], call_data[4:])[0]


def failing_for(*block_numbers: int) -> Callable[..., Awaitable[bytes]]:
    """eth_call side effect that reverts for the given blocks."""

    async def answer(client: object, to: str, data: bytes) -> bytes:
        (block_number,) = decode(["uint256"], data[4:])
        if block_number in block_numbers:
            raise RPCError("eth_call", 3, "execution reverted")
        return encode(["uint256"], [block_number % 7])

    return answer


class TestMinerBatches:
    """Tests for miner_batches."""

    def test_250_miners(self) -> None:
        """Test 250 miners split into pages of 100, 100 and 50."""
        assert miner_batches(250) == [(0, 100), (100, 200), (200, 250)]

    def test_exact_multiple(self) -> None:
        """Test no empty trailing page."""
        assert miner_batches(200) == [(0, 100), (100, 200)]

    def test_no_miners(self) -> None:
        """Test zero miners need no pages."""
        assert miner_batches(0) == []


class TestTallyMiners:
    """Tests for tally_miners."""

    def test_counts_descending(self) -> None:
        """Test the most frequent address comes first."""
        tally = tally_miners([MINER_B, MINER_A, MINER_B])

        assert tally == [
            MinerTallyEntry(address=MINER_B, count=2),
            MinerTallyEntry(address=MINER_A, count=1),
        ]

    def test_ties_sorted_by_address(self) -> None:
        """Test equal counts are ordered by address, ignoring case."""
        tally = tally_miners([MINER_B, MINER_A])

        assert [e.address for e in tally] == [MINER_A, MINER_B]


class TestLoadBlock:
    """Tests for BlockWindow.load_block."""

    @pytest.mark.asyncio
    async def test_loads_record(self, window: BlockWindow, sink: ConsoleSink) -> None:
        """Test a loaded block's record."""
        window.cursor = 50_000
        record = await window.load_block(42_000)

        assert record is not None
        assert record.miner_count == 3
        assert record.reward == 125.0
        assert record.winner == ZERO_ADDRESS
        assert record.miner == ZERO_ADDRESS
        assert sink.blocks == [record]
        assert window.states[42_000] is BlockState.LOADED

    @pytest.mark.asyncio
    async def test_same_block_fetched_once(
        self, window: BlockWindow, rpc_client: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test loading a block twice fetches and inserts it once."""
        first = await window.load_block(50)
        second = await window.load_block(50)

        assert first is not None
        assert second is None
        assert rpc_client.eth_call.await_count == 1
        assert [r.block_number for r in sink.blocks] == [50]

    @pytest.mark.asyncio
    async def test_miner_count_prefers_loaded_record(
        self, window: BlockWindow, rpc_client: AsyncMock
    ) -> None:
        """Test miner counts of loaded blocks need no extra read."""
        await window.load_block(50)
        rpc_client.eth_call.return_value = encode(["uint256"], [9])

        assert await window.miner_count(50) == 3
        assert await window.miner_count(51) == 9
        assert rpc_client.eth_call.await_count == 2

    @pytest.mark.asyncio
    async def test_block_above_cursor_has_no_winner(self, window: BlockWindow) -> None:
        """Test blocks past the cursor are not attributed."""
        record = await window.load_block(101)

        assert record is not None
        assert record.winner is None
        assert record.miner is None

    @pytest.mark.asyncio
    async def test_negative_block_skipped(
        self, window: BlockWindow, rpc_client: AsyncMock
    ) -> None:
        """Test negative block numbers are never fetched."""
        assert await window.load_block(-1) is None
        rpc_client.eth_call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_marks_block_retry_eligible(
        self, window: BlockWindow, rpc_client: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test a failed fetch is logged and left for a later pass."""
        rpc_client.eth_call.side_effect = failing_for(77)

        assert await window.load_block(77) is None
        assert window.retry_eligible == {77}
        assert window.blocks_failed == 1
        assert sink.blocks == []

        rpc_client.eth_call.side_effect = None
        record = await window.load_block(77)

        assert record is not None
        assert window.retry_eligible == set()
        assert window.loaded_blocks == {77}


class TestWindowLoading:
    """Tests for forward and backward loading."""

    @pytest.mark.asyncio
    async def test_load_forward(
        self, window: BlockWindow, rpc_client: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test the newest ten blocks load newest first."""
        loaded = await window.load_forward(100)

        assert [r.block_number for r in loaded] == list(range(100, 90, -1))
        assert requested_block(rpc_client, 0) == 100
        assert [r.block_number for r in sink.blocks] == list(range(100, 90, -1))
        assert isinstance(sink.rows[0], PendingBlock)

    @pytest.mark.asyncio
    async def test_load_forward_near_genesis(self, window: BlockWindow) -> None:
        """Test the window stops at block zero."""
        loaded = await window.load_forward(3)

        assert [r.block_number for r in loaded] == [3, 2, 1, 0]

    @pytest.mark.asyncio
    async def test_load_backward_without_blocks(self, window: BlockWindow) -> None:
        """Test there is nothing to page before the first load."""
        assert await window.load_backward() == []

    @pytest.mark.asyncio
    async def test_ordering_across_directions(
        self, window: BlockWindow, sink: ConsoleSink
    ) -> None:
        """Test mixed forward and backward loads keep the list descending."""
        await window.load_forward(100)
        await window.load_backward()
        window.cursor = 103
        await window.load_forward(103)
        await window.load_backward()

        numbers = [r.block_number for r in sink.blocks]
        assert numbers == sorted(numbers, reverse=True)
        assert len(numbers) == len(set(numbers))
        assert numbers[0] == 103
        assert numbers[-1] == 81
        assert [r.block_number for r in window.records] == numbers
        assert isinstance(sink.rows[0], PendingBlock)

    @pytest.mark.asyncio
    async def test_gap_fills_in_place(
        self, window: BlockWindow, rpc_client: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test a failed block is retried and inserted at its position."""
        rpc_client.eth_call.side_effect = failing_for(95)
        await window.load_forward(100)

        assert 95 not in [r.block_number for r in sink.blocks]
        assert window.retry_eligible == {95}

        rpc_client.eth_call.side_effect = failing_for()
        await window.load_forward(100)

        numbers = [r.block_number for r in sink.blocks]
        assert numbers == list(range(100, 90, -1))
        assert window.retry_eligible == set()


class TestConcurrentLoads:
    """Tests for forward and backward loads interleaving at await points."""

    @pytest.mark.asyncio
    async def test_interleaved_loads_keep_order(
        self, window: BlockWindow, rpc_client: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test concurrent loads fetch each block once and keep the list descending."""
        await window.load_forward(90)
        rpc_client.eth_call.reset_mock()

        async def answer(client: object, to: str, data: bytes) -> bytes:
            await asyncio.sleep(0)
            return encode(["uint256"], [3])

        rpc_client.eth_call.side_effect = answer

        await asyncio.gather(
            window.load_forward(100),
            window.load_backward(),
            window.load_forward(100),
        )

        requested = Counter(
            requested_block(rpc_client, i) for i in range(rpc_client.eth_call.await_count)
        )
        assert set(requested) == set(range(76, 81)) | set(range(91, 101))
        assert set(requested.values()) == {1}

        numbers = [r.block_number for r in sink.blocks]
        assert numbers == list(range(100, 75, -1))
        assert [r.block_number for r in window.records] == numbers
        assert isinstance(sink.rows[0], PendingBlock)
        assert window.loaded_blocks == set(range(76, 101))

    @pytest.mark.asyncio
    async def test_loading_block_not_fetched_again(
        self, window: BlockWindow, rpc_client: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test a block whose fetch is in flight is skipped by a second load."""
        release = asyncio.Event()

        async def answer(client: object, to: str, data: bytes) -> bytes:
            await release.wait()
            return encode(["uint256"], [3])

        rpc_client.eth_call.side_effect = answer

        first = asyncio.create_task(window.load_block(100))
        await asyncio.sleep(0)
        assert window.states[100] is BlockState.LOADING

        assert await window.load_block(100) is None

        release.set()
        record = await first

        assert record is not None
        assert rpc_client.eth_call.await_count == 1
        assert [r.block_number for r in sink.blocks] == [100]


class TestMinerDetail:
    """Tests for the miner detail expansion."""

    @pytest.mark.asyncio
    async def test_pages_of_100(
        self, window: BlockWindow, multicall: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test 250 miners are fetched in three pages and tallied."""

        def answer(calls: Sequence[CallSpec]) -> list[bytes]:
            return [
                encode(["address"], [MINER_A if int(c.name.split("_")[1]) % 5 else MINER_B])
                for c in calls
            ]

        multicall.aggregate.side_effect = answer

        tally = await window.show_block_miners(42, 250)

        sizes = [len(call.args[0]) for call in multicall.aggregate.call_args_list]
        assert sizes == [100, 100, 50]
        assert [(e.address.lower(), e.count) for e in tally] == [
            (MINER_A.lower(), 200),
            (MINER_B.lower(), 50),
        ]
        assert sink.detail is not None
        assert sink.detail[0] == 42
        assert sink.detail[1] == 250

    @pytest.mark.asyncio
    async def test_failed_page_gives_empty_tally(
        self, window: BlockWindow, multicall: AsyncMock, sink: ConsoleSink
    ) -> None:
        """Test one failed page aborts the whole expansion."""
        multicall.aggregate.side_effect = [
            [encode(["address"], [MINER_A])] * 100,
            RPCError("eth_call", -32000, "timeout"),
        ]

        tally = await window.show_block_miners(42, 250)

        assert tally == []
        assert sink.detail == (42, 250, [])
        assert multicall.aggregate.await_count == 2

    @pytest.mark.asyncio
    async def test_no_miners(self, window: BlockWindow, multicall: AsyncMock) -> None:
        """Test an empty block needs no request."""
        assert await window.expand_miner_detail(42, 0) == []
        multicall.aggregate.assert_not_awaited()
