"""Grid layout and panel id assignment."""

from __future__ import annotations

from specdash.dashboards import panels
from specdash.dashboards.models import Panel
from specdash.specs.enumerator import Operation, RpcMethod


class LayoutEngine:
    """Places generated panels on the dashboard grid.

    One engine is used for a whole generation pass. It keeps a vertical
    cursor and the next panel id, so ids run 1..N in the order panels are
    placed.

    Each REST operation takes four row heights: request rate, latency, then
    error rate and throughput side by side. The cursor moves down after every
    panel, so the row under the stat panels stays empty. ``pack_stat_rows``
    drops that empty row. gRPC methods take two rows each.
    """

    def __init__(self, row_height: int = 8, pack_stat_rows: bool = False):
        self.row_height = row_height
        self.pack_stat_rows = pack_stat_rows
        self.cursor_y = 0
        self.next_id = 1

    def _claim(self) -> tuple[int, int]:
        """Return the (panel id, y) for the next panel and advance both."""
        claimed = (self.next_id, self.cursor_y)
        self.next_id += 1
        self.cursor_y += self.row_height
        return claimed

    def place_operation(self, operation: Operation) -> list[Panel]:
        """Build and place the four panels of a REST operation."""
        title, path, method, h = operation.title, operation.path, operation.method, self.row_height

        panel_id, y = self._claim()
        rate = panels.request_rate_panel(title, path, method, panel_id, h, y)

        panel_id, y = self._claim()
        latency = panels.latency_panel(title, path, method, panel_id, h, y)

        panel_id, stat_y = self._claim()
        errors = panels.error_rate_panel(title, path, method, panel_id, h, stat_y)

        panel_id, _ = self._claim()
        throughput = panels.throughput_panel(title, path, method, panel_id, h, stat_y)
        if self.pack_stat_rows:
            self.cursor_y -= h

        return [rate, latency, errors, throughput]

    def place_rpc_method(self, rpc: RpcMethod) -> list[Panel]:
        """Build and place the two panels of a gRPC method."""
        title, h = rpc.title, self.row_height

        panel_id, y = self._claim()
        rate = panels.grpc_request_rate_panel(title, rpc.service, rpc.method, panel_id, h, y)

        panel_id, y = self._claim()
        latency = panels.grpc_latency_panel(title, rpc.service, rpc.method, panel_id, h, y)

        return [rate, latency]

    def layout(self, operations: list[Operation], rpc_methods: list[RpcMethod] | None = None) -> list[Panel]:
        """Place every operation, then every gRPC method, in order."""
        placed: list[Panel] = []
        for operation in operations:
            placed.extend(self.place_operation(operation))
        for rpc in rpc_methods or []:
            placed.extend(self.place_rpc_method(rpc))
        return placed
