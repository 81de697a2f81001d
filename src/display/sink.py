"""Presentation sink: receives metric text and block records, renders them.

The sink holds no logic of its own. `ConsoleSink` keeps the latest state in
memory and renders it as rich tables, optionally inside a `rich.live.Live`.
"""

from collections.abc import Sequence
from typing import NamedTuple, Protocol

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from src.contracts.addresses import explorer_url, format_address
from src.helpers.constants import PLACEHOLDER
from src.helpers.parsers import format_reward
from src.mining.metrics import METRIC_NAMES
from src.mining.models import BlockRecord, MinerTallyEntry


METRIC_LABELS: dict[str, str] = {
    "last_block": "Last block",
    "last_block_time": "Since last block",
    "miner_reward": "Block reward ($HYPERS)",
    "miners_count": "Pending miners",
    "next_halving": "Next halving",
    "total_supply": "Total supply",
    "max_supply": "Max supply",
    "burned_amount": "Burned",
    "burned_percentage": "Burned %",
    "mined_amount": "Mined",
    "mined_percentage": "Mined %",
    "intrinsic_value": "Intrinsic value (USD)",
    "intrinsic_value_eth": "Intrinsic value (ETH)",
    "theoretical_value": "Theoretical value (USD)",
    "theoretical_value_eth": "Theoretical value (ETH)",
    "tvl": "TVL (ETH)",
    "tvl_usd": "TVL (USD)",
}


COMMANDS_HELP = "m <block>: miners  p: pending miners  j/k: scroll  q: quit"


class ScrollPosition(NamedTuple):
    """Scroll state of the block history viewport."""

    scroll_left: float
    scroll_width: float
    client_width: float


def address_cell(address: str | None) -> Text:
    """Address label linked to the block explorer."""
    if not address:
        return Text(PLACEHOLDER)
    return Text(format_address(address), style=f"link {explorer_url(address)}")


class PresentationSink(Protocol):
    """Display surface for the dashboard."""

    def set_metric(self, name: str, value: str) -> None: ...

    def add_pending_block(self) -> None: ...

    def set_pending_block(self, miner_count: str, reward: str, since_last: str) -> None: ...

    def insert_block(self, index: int, record: BlockRecord) -> None: ...

    def append_block(self, record: BlockRecord) -> None: ...

    def show_miner_detail(
        self, block_number: int, miner_count: int, tally: Sequence[MinerTallyEntry]
    ) -> None: ...

    def scroll(self, delta: int) -> ScrollPosition: ...


class PendingBlock:
    """Placeholder row for the block being mined."""

    def __init__(self) -> None:
        self.miner_count = PLACEHOLDER
        self.reward = PLACEHOLDER
        self.since_last = PLACEHOLDER


class ConsoleSink:
    """In-memory presentation state rendered with rich."""

    def __init__(self, console: Console | None = None, max_rows: int = 20) -> None:
        self.console = console or Console()
        self.max_rows = max_rows
        self.scroll_offset = 0
        self.metrics: dict[str, str] = dict.fromkeys(METRIC_NAMES, PLACEHOLDER)
        # rows[0] is the pending block once added
        self.rows: list[PendingBlock | BlockRecord] = []
        self.detail: tuple[int, int, list[MinerTallyEntry]] | None = None
        self.live: Live | None = None

    @property
    def blocks(self) -> list[BlockRecord]:
        """Mined block rows, without the pending placeholder."""
        return [row for row in self.rows if isinstance(row, BlockRecord)]

    def set_metric(self, name: str, value: str) -> None:
        self.metrics[name] = value
        self._refresh()

    def add_pending_block(self) -> None:
        self.rows.insert(0, PendingBlock())
        self._refresh()

    def set_pending_block(self, miner_count: str, reward: str, since_last: str) -> None:
        if not self.rows or not isinstance(self.rows[0], PendingBlock):
            return
        pending = self.rows[0]
        pending.miner_count = miner_count
        pending.reward = reward
        pending.since_last = since_last
        self._refresh()

    def insert_block(self, index: int, record: BlockRecord) -> None:
        self.rows.insert(index, record)
        self._refresh()

    def append_block(self, record: BlockRecord) -> None:
        self.rows.append(record)
        self._refresh()

    def show_miner_detail(
        self, block_number: int, miner_count: int, tally: Sequence[MinerTallyEntry]
    ) -> None:
        self.detail = (block_number, miner_count, list(tally))
        self._refresh()

    def scroll(self, delta: int) -> ScrollPosition:
        """Move the block viewport by `delta` rows.

        Returns:
            Viewport position in rows: offset, total rows, visible rows
        """
        last = max(len(self.rows) - self.max_rows, 0)
        self.scroll_offset = min(max(self.scroll_offset + delta, 0), last)
        self._refresh()
        return ScrollPosition(self.scroll_offset, len(self.rows), self.max_rows)

    def _refresh(self) -> None:
        if self.live is not None:
            self.live.update(self.render())

    def render_metrics(self) -> Table:
        table = Table(title="HYPERS mining", show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        for name, label in METRIC_LABELS.items():
            table.add_row(label, self.metrics.get(name, PLACEHOLDER))
        return table

    def render_blocks(self) -> Table:
        table = Table(title="Blocks", caption=COMMANDS_HELP)
        table.add_column("Block")
        table.add_column("Miners", justify="right")
        table.add_column("Winner")
        table.add_column("Reward", justify="right")
        table.add_column("Miner")
        visible = self.rows[self.scroll_offset : self.scroll_offset + self.max_rows]
        for row in visible:
            if isinstance(row, PendingBlock):
                table.add_row(
                    "Pending block",
                    row.miner_count,
                    row.since_last,
                    f"{row.reward} $HYPERS",
                    "",
                    style="italic",
                )
            else:
                table.add_row(
                    f"#{row.block_number}",
                    str(row.miner_count),
                    address_cell(row.winner),
                    f"{format_reward(row.reward)} $HYPERS",
                    address_cell(row.miner),
                )
        return table

    def render_detail(self) -> Table | None:
        if self.detail is None:
            return None
        block_number, miner_count, tally = self.detail
        table = Table(title=f"Block #{block_number} Miners ({miner_count})")
        table.add_column("Entries", justify="right")
        table.add_column("Miner")
        for entry in tally:
            table.add_row(str(entry.count), address_cell(entry.address))
        return table

    def render(self) -> Group:
        parts: list[Table] = [self.render_metrics(), self.render_blocks()]
        detail = self.render_detail()
        if detail is not None:
            parts.append(detail)
        return Group(*parts)


__all__ = [
    "COMMANDS_HELP",
    "METRIC_LABELS",
    "ConsoleSink",
    "PendingBlock",
    "PresentationSink",
    "ScrollPosition",
    "address_cell",
]
