"""Live HYPERS mining dashboard.

This module drives the dashboard: a poll loop re-aggregates the contract state
on a fixed interval, a slower loop refreshes the ETH/USD price, and a scroll
trigger pages older blocks into the history on demand.

Cycle flow:
1. Build the ten metric reads and send them as one multicall
2. Decode the snapshot, read the contract balance
3. Derive metrics and publish them to the presentation sink
4. Load the newest blocks into the block window

A failed cycle resets every metric to a placeholder; the next tick is the
retry.

When stdin is a terminal, one command per line drives the block history:
    m N     show the miners of block N
    p       show the miners of the pending block
    j / k   scroll the block history down / up, loading older blocks near its end
    q       quit

Usage:
    python -m src.live [--rpc-url URL] [--poll-interval SECONDS] [--history-pages N]
"""

import argparse
import asyncio
import signal
import sys
import time
from collections.abc import Awaitable
from pathlib import Path

import httpx
from rich.live import Live

from src.contracts.abi import ContractAbis, load_abis
from src.contracts.addresses import HYPERS_CONTRACT_ADDRESS
from src.contracts.calls import build_metrics_calls
from src.contracts.decoder import decode_snapshot
from src.contracts.multicall import MulticallClient
from src.display.sink import ConsoleSink, PresentationSink, ScrollPosition
from src.helpers.config import get_poll_interval, get_price_refresh_interval, get_rpc_url
from src.helpers.constants import PLACEHOLDER, SCROLL_THRESHOLD
from src.helpers.errors import InitializationError
from src.helpers.http import create_http_client, log_and_suppress_errors
from src.helpers.logging import get_logger
from src.helpers.parsers import format_reward, wei_to_eth
from src.helpers.rpc import RPCClient
from src.mining.blocks import BlockWindow
from src.mining.metrics import (
    METRIC_NAMES,
    derive_metrics,
    metric_display_values,
    seconds_since,
)
from src.mining.models import ChainSnapshot, DerivedMetrics, MinerTallyEntry
from src.prices.oracle import PriceOracle


logger = get_logger(__name__)


def near_trailing_edge(position: ScrollPosition, threshold: float = SCROLL_THRESHOLD) -> bool:
    """Whether less than `threshold` viewport widths remain to scroll."""
    if position.client_width <= 0:
        return False
    remaining = position.scroll_width - (position.scroll_left + position.client_width)
    return remaining / position.client_width < threshold


class ScrollTrigger:
    """Pages older blocks into the window when the viewport nears its end."""

    def __init__(self, window: BlockWindow, threshold: float = SCROLL_THRESHOLD) -> None:
        self.window = window
        self.threshold = threshold
        self.is_loading = False

    async def load_more(self) -> bool:
        """Load one page of older blocks unless a page is already loading.

        Returns:
            True if a page was requested
        """
        if self.is_loading:
            return False

        self.is_loading = True
        try:
            async with log_and_suppress_errors("Loading older blocks", log_level="error"):
                await self.window.load_backward()
        finally:
            self.is_loading = False
        return True

    async def on_scroll(self, position: ScrollPosition) -> bool:
        """Handle a scroll event of the block history."""
        if not near_trailing_edge(position, self.threshold):
            return False
        return await self.load_more()


class DashboardController:
    """Owns the dashboard state and the lifecycle of its polling tasks."""

    def __init__(
        self,
        sink: PresentationSink | None = None,
        *,
        rpc_url: str | None = None,
        abi_dir: str | Path | None = None,
        poll_interval: float | None = None,
        price_interval: float | None = None,
        http_client: httpx.AsyncClient | None = None,
        oracle: PriceOracle | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            sink: Presentation sink, a ConsoleSink by default
            rpc_url: RPC URL override, see `get_rpc_url`
            abi_dir: ABI directory override, see `get_abi_dir`
            poll_interval: Seconds between metrics cycles
            price_interval: Seconds between price refreshes
            http_client: Shared HTTP client, created when omitted
            oracle: Price oracle, built on the HTTP client when omitted
        """
        self.rpc_url = get_rpc_url(rpc_url)
        self.rpc_client = RPCClient(self.rpc_url)
        self.abi_dir = abi_dir
        self.poll_interval = poll_interval or get_poll_interval()
        self.price_interval = price_interval or get_price_refresh_interval()

        self._owns_http_client = http_client is None
        self.http_client = http_client or create_http_client()
        self.sink: PresentationSink = sink or ConsoleSink()
        self.oracle = oracle or PriceOracle(self.http_client)

        # Set by initialize()
        self.abis: ContractAbis | None = None
        self.multicall: MulticallClient | None = None
        self.window: BlockWindow | None = None
        self.scroll: ScrollTrigger | None = None

        self.eth_price: float | None = None
        self.snapshot: ChainSnapshot | None = None
        self.metrics: DerivedMetrics | None = None

        # Stats
        self.cycles_completed = 0
        self.cycles_failed = 0

        self.tasks: list[asyncio.Task[None]] = []
        self._command_tasks: set[asyncio.Task[bool]] = set()
        self.should_shutdown = False
        self._shutdown_event = asyncio.Event()

    async def initialize(self) -> None:
        """Load ABIs, fetch the initial price and run the first cycle.

        Raises:
            InitializationError: If ABIs cannot be loaded or no price is available
        """
        self.abis = load_abis(self.abi_dir)

        self.eth_price = await self.oracle.get_eth_price()
        if self.eth_price is None:
            msg = "Failed to get ETH price"
            raise InitializationError(msg)
        logger.info("ETH price: %s USD", self.eth_price)

        self.multicall = MulticallClient(self.rpc_client, self.http_client, self.abis.multicall)
        self.window = BlockWindow(
            self.rpc_client, self.http_client, self.abis, self.multicall, self.sink
        )
        self.scroll = ScrollTrigger(self.window)
        self.window.add_pending_block()

        await self.update_all_metrics()

    def _require_ready(self) -> tuple[ContractAbis, MulticallClient, BlockWindow]:
        if self.abis is None or self.multicall is None or self.window is None:
            msg = "Dashboard is not initialized"
            raise InitializationError(msg)
        return self.abis, self.multicall, self.window

    async def update_all_metrics(self) -> bool:
        """Run one metrics cycle.

        Returns:
            True if the cycle completed, False if it failed and metrics were reset
        """
        try:
            abis, multicall, window = self._require_ready()
            calls = build_metrics_calls(abis, window.cursor)
            payloads = await multicall.aggregate(calls)
            snapshot = decode_snapshot(calls, payloads)

            balance = await self.rpc_client.get_balance(
                self.http_client, HYPERS_CONTRACT_ADDRESS
            )
            metrics = derive_metrics(snapshot, self.eth_price or 0.0, balance)

            self._publish(snapshot, metrics, window.cursor)
            self.snapshot = snapshot
            self.metrics = metrics
            window.cursor = snapshot.block_number

            await window.load_forward(snapshot.block_number)

            logger.debug(
                "Contract state: block=%s supply=%s tvl=%s ETH price=%s failed blocks=%s",
                snapshot.block_number,
                snapshot.total_supply,
                metrics.tvl_eth,
                self.eth_price,
                sorted(window.retry_eligible),
            )
        except Exception:
            logger.exception("Error updating metrics")
            self._reset_metrics()
            self.cycles_failed += 1
            return False

        self.cycles_completed += 1
        return True

    def _publish(self, snapshot: ChainSnapshot, metrics: DerivedMetrics, cursor: int) -> None:
        now = time.time()
        values = metric_display_values(snapshot, metrics, now=now, cursor=cursor)
        for name, value in values.items():
            self.sink.set_metric(name, value)

        if cursor != 0:
            self.sink.set_pending_block(
                str(snapshot.pending_miners_count),
                format_reward(wei_to_eth(snapshot.miner_reward) or 0.0),
                f"{seconds_since(snapshot.last_block_time, now)}s",
            )

    def _reset_metrics(self) -> None:
        for name in METRIC_NAMES:
            self.sink.set_metric(name, PLACEHOLDER)

    async def refresh_price(self) -> None:
        """Refresh the ETH price, keeping the last one if both sources fail."""
        price = await self.oracle.get_eth_price()
        if price is None:
            logger.warning("Keeping last ETH price %s", self.eth_price)
            return
        self.eth_price = price

    async def show_block_miners(
        self, block_number: int, miner_count: int | None = None
    ) -> list[MinerTallyEntry]:
        """Open the miner detail of a mined block.

        Args:
            block_number: Block to expand
            miner_count: Known miner count, looked up when omitted
        """
        _, _, window = self._require_ready()
        if miner_count is None:
            miner_count = await window.miner_count(block_number)
        return await window.show_block_miners(block_number, miner_count)

    async def show_pending_block_miners(self) -> list[MinerTallyEntry]:
        """Open the miner detail of the block being mined."""
        _, _, window = self._require_ready()
        if self.snapshot is None:
            return []
        return await window.show_block_miners(
            window.cursor + 1, self.snapshot.pending_miners_count
        )

    async def scroll_blocks(self, delta: int) -> bool:
        """Scroll the block history, paging older blocks in near its end.

        Returns:
            True if a page of older blocks was requested
        """
        self._require_ready()
        if self.scroll is None:
            return False
        return await self.scroll.on_scroll(self.sink.scroll(delta))

    async def handle_command(self, line: str) -> bool:
        """Run one interactive command, see the module docstring.

        Returns:
            True if the command was recognized
        """
        parts = line.split()
        if not parts:
            return False
        command, args = parts[0].lower(), parts[1:]

        if command == "q":
            self.shutdown()
            return True

        action: Awaitable[object]
        if command == "m" and len(args) == 1 and args[0].isdigit():
            action = self.show_block_miners(int(args[0]))
        elif command == "p":
            action = self.show_pending_block_miners()
        elif command in {"j", "k"}:
            action = self.scroll_blocks(1 if command == "j" else -1)
        else:
            logger.warning("Unknown command %r", line.strip())
            return False

        async with log_and_suppress_errors(f"Command {line.strip()!r}", log_level="error"):
            await action
        return True

    def _read_command(self) -> None:
        line = sys.stdin.readline()
        if not line:
            asyncio.get_running_loop().remove_reader(sys.stdin.fileno())
            return
        task = asyncio.create_task(self.handle_command(line))
        self._command_tasks.add(task)
        task.add_done_callback(self._command_tasks.discard)

    async def _poll_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while not self.should_shutdown:
            started = loop.time()
            await self.update_all_metrics()
            elapsed = loop.time() - started
            await asyncio.sleep(max(self.poll_interval - elapsed, 0.0))

    async def _price_loop(self) -> None:
        while not self.should_shutdown:
            await asyncio.sleep(self.price_interval)
            await self.refresh_price()

    def start(self) -> None:
        """Start the poll and price tasks, replacing any running ones."""
        for task in self.tasks:
            task.cancel()
        self.should_shutdown = False
        self.tasks = [
            asyncio.create_task(self._poll_loop(), name="poll-loop"),
            asyncio.create_task(self._price_loop(), name="price-loop"),
        ]
        logger.info(
            "Polling every %ss, refreshing price every %ss",
            self.poll_interval,
            self.price_interval,
        )

    async def stop(self) -> None:
        """Cancel the polling and command tasks and wait for them to finish."""
        self.should_shutdown = True
        pending = [*self.tasks, *self._command_tasks]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self.tasks = []
        self._command_tasks.clear()

    def shutdown(self) -> None:
        """Request a graceful shutdown."""
        logger.info("Shutdown signal received, stopping...")
        self.should_shutdown = True
        self._shutdown_event.set()

    async def cleanup(self) -> None:
        """Clean up resources."""
        if self._owns_http_client:
            await self.http_client.aclose()

    async def run(self, history_pages: int = 0, *, interactive: bool = False) -> None:
        """Initialize, then poll until a shutdown is requested.

        Args:
            history_pages: Pages of older blocks to load after the first cycle
            interactive: Read commands from stdin while polling

        Raises:
            InitializationError: If startup fails; nothing is scheduled then
        """
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.shutdown)

        try:
            await self.initialize()
            if self.scroll is not None:
                for _ in range(history_pages):
                    await self.scroll.load_more()

            self.start()
            if interactive:
                loop.add_reader(sys.stdin.fileno(), self._read_command)
            await self._shutdown_event.wait()
        finally:
            if interactive:
                loop.remove_reader(sys.stdin.fileno())
            await self.stop()
            await self.cleanup()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

        logger.info(
            "Dashboard stopped after %s cycles (%s failed)",
            self.cycles_completed,
            self.cycles_failed,
        )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live HYPERS mining dashboard")
    parser.add_argument("--rpc-url", help="Blast JSON-RPC endpoint (HYPERS_RPC_URL)")
    parser.add_argument(
        "--poll-interval", type=float, help="Seconds between metrics cycles"
    )
    parser.add_argument(
        "--history-pages",
        type=int,
        default=0,
        help="Pages of older blocks to load at startup",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    sink = ConsoleSink()
    controller = DashboardController(
        sink, rpc_url=args.rpc_url, poll_interval=args.poll_interval
    )

    try:
        with Live(sink.render(), console=sink.console, refresh_per_second=4) as live:
            sink.live = live
            await controller.run(
                history_pages=args.history_pages, interactive=sys.stdin.isatty()
            )
    except InitializationError:
        logger.exception("Initialization failed")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, exiting...")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
