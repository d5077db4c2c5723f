"""Real-time CLI dashboard for relay monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class RequestInfo:
    """Info about a single relayed request."""

    def __init__(self, request_id: str, method: str, target: str, timestamp: datetime):
        self.request_id = request_id
        self.method = method
        self.target = target[:80] + "..." if len(target) > 80 else target
        self.timestamp = timestamp
        self.status: int | None = None
        self.hops = 0


class Dashboard:
    """Real-time dashboard showing recent relayed requests."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._requests: list[RequestInfo] = []
        self._max_requests = 12
        self._counts = {"requests": 0, "redirects": 0, "errors": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_request(self, request_id: str, method: str, target: str) -> None:
        """Log a request about to be forwarded."""
        with self._lock:
            self._counts["requests"] += 1
            self._requests.insert(0, RequestInfo(request_id, method, target, datetime.now()))
            self._requests = self._requests[: self._max_requests]
            self._refresh()
            write_cli_log("REQUEST", target, id=request_id, method=method)

    def log_redirect(self, request_id: str, hop: int, status: int, location: str) -> None:
        """Log a redirect hop."""
        with self._lock:
            self._counts["redirects"] += 1
            info = self._find(request_id)
            if info:
                info.hops = hop
            self._refresh()
            write_cli_log("REDIRECT", location, id=request_id, hop=hop, status=status)

    def log_response(self, request_id: str, status: int) -> None:
        """Log the terminal response of a request."""
        with self._lock:
            info = self._find(request_id)
            if info:
                info.status = status
            self._refresh()
            write_cli_log("RESPONSE", str(status), id=request_id)

    def log_error(
        self,
        route: str,
        status: int,
        message: str,
        request_id: str | None = None,
    ) -> None:
        """Log an error."""
        with self._lock:
            self._counts["errors"] += 1
            info = self._find(request_id)
            if info:
                info.status = status
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route[:40]} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], id=request_id, route=route, status=status)

    def _find(self, request_id: str | None) -> RequestInfo | None:
        """Row of a request still shown on the dashboard."""
        return next((info for info in self._requests if info.request_id == request_id), None)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("CORS Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Requests: {self._counts['requests']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Redirects: {self._counts['redirects']}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Errors: {self._counts['errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._requests:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Status", width=6)
            table.add_column("Hops", width=4)
            table.add_column("Target", ratio=1)

            for info in self._requests:
                status = str(info.status) if info.status is not None else "…"
                style = "red" if info.status and info.status >= 400 else ""
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    Text(status, style=style),
                    str(info.hops) if info.hops else "",
                    info.target,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Try: curl http://localhost:{self.config.proxy.port}/example.com",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
