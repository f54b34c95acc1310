"""Dashboard and workspace TUI for shimux."""
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import httpx
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, Input, Label, ListItem, ListView, Static

from ..config import get_config
from ..connection import Connection

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 1.0
STATUS_MARKERS = {"running": "🟢", "finished": "⚪", "dead": "⚫"}


def setup_client_logging():
    """Set up client-side logging."""
    try:
        config = get_config()
        log_level = config.logging.level.upper()
        client_log_file = config.logging.client_log_file

        handlers = []

        # TUI apps should only log to file
        if client_log_file:
            log_path = Path(client_log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
        else:
            handlers.append(logging.NullHandler())

        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers,
            force=True  # Override any existing config
        )

        logger.info("Client logging initialized")

    except Exception:
        # Fallback to basic console logging
        logging.basicConfig(level=logging.INFO)
        logger.exception("Failed to setup client logging, using defaults")


def filter_candidates(candidates: List[Tuple[str, str]], query: str) -> List[Tuple[str, str]]:
    """Candidates whose label contains every word of ``query``, case-insensitively."""
    words = query.lower().split()
    return [c for c in candidates if all(word in c[0].lower() for word in words)]


class PanePicker(ModalScreen):
    """Searchable list of live panes; dismisses with the chosen label or None."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, candidates: List[Tuple[str, str]], **kwargs):
        super().__init__(**kwargs)
        self.candidates = candidates
        self.shown: List[Tuple[str, str]] = list(candidates)

    def compose(self) -> ComposeResult:
        with Vertical(classes="picker"):
            yield Input(placeholder="Pane title or id")
            yield ListView(*[ListItem(Label(label)) for label, _ in self.shown])

    async def on_input_changed(self, event: Input.Changed) -> None:
        self.shown = filter_candidates(self.candidates, event.value)
        list_view = self.query_one(ListView)
        await list_view.clear()
        await list_view.extend([ListItem(Label(label)) for label, _ in self.shown])

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self.shown:
            self.dismiss(self.shown[0][0])

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        index = event.list_view.index
        if index is not None and 0 <= index < len(self.shown):
            self.dismiss(self.shown[index][0])

    def action_cancel(self) -> None:
        self.dismiss(None)


class PaneView(Static):
    """One viewport: the tail of a pane's output."""

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)
        self.pane_id: Optional[str] = None

    def show(self, pane_id: Optional[str], title: str, lines: List[str], focused: bool) -> None:
        self.pane_id = pane_id
        self.border_title = title or pane_id or "(empty)"
        self.set_class(focused, "focused")
        self.update("\n".join(lines))


class ShimuxApp(App):
    """Main shimux TUI application."""

    CSS = """
    .workspace {
        height: 70%;
    }

    PaneView {
        border: solid #444444;
        height: 100%;
        overflow: hidden;
    }

    PaneView.focused {
        border: double #00ff00;
    }

    .dashboard {
        height: 30%;
    }

    .picker {
        width: 60;
        height: 20;
        border: thick white;
        background: #111111;
    }

    #keys {
        display: none;
    }

    #keys.visible {
        display: block;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("a", "show_all", "Show all"),
        ("t", "toggle_all", "Toggle"),
        ("n", "next_pane", "Next"),
        ("p", "prev_pane", "Prev"),
        ("s", "select_pane", "Select"),
        ("c", "start_session", "Start session"),
        ("i", "type_keys", "Type"),
        ("k", "kill_pane", "Kill"),
    ]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.connection = Connection()
        self.client: Optional[httpx.AsyncClient] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Horizontal(classes="workspace", id="workspace")
            yield Input(placeholder="Text for the focused pane", id="keys")
            table = DataTable(classes="dashboard", cursor_type="row")
            table.add_columns("ID", "Name", "Status", "Created")
            yield table
        yield Footer()

    async def on_mount(self) -> None:
        self.client = self.connection.async_client()
        await self.refresh_all()
        self.set_interval(REFRESH_SECONDS, self.refresh_all)

    async def on_unmount(self) -> None:
        if self.client:
            await self.client.aclose()

    async def on_resize(self, event) -> None:
        if self.client is None:
            return
        try:
            await self.client.post("/layout/resize", json={"width": event.size.width})
        except httpx.HTTPError:
            logger.debug("Could not report display width")

    async def _request(self, method: str, path: str, **kwargs) -> Optional[object]:
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
            if response.headers.get("content-type", "").startswith("application/json"):
                return response.json()
            return response.text
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            self.notify(f"Server request failed: {e}", severity="error")
            return None

    async def refresh_all(self) -> None:
        """Reload the dashboard table and the workspace."""
        rows = await self._request("GET", "/pane/")
        layout = await self._request("GET", "/layout")
        if rows is None or layout is None:
            return
        self._render_dashboard(rows)
        await self._render_workspace(layout, {row["id"]: row for row in rows})

    def _render_dashboard(self, rows: List[dict]) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for row in rows:
            marker = STATUS_MARKERS.get(row["status"], "")
            table.add_row(
                row["id"],
                row["title"] or row["name"],
                f"{marker} {row['status']}",
                row["created"][:19].replace("T", " "),
                key=row["id"],
            )

    async def _render_workspace(self, layout: dict, rows: dict) -> None:
        workspace = self.query_one("#workspace", Horizontal)
        viewports = layout["viewports"]
        views = list(workspace.query(PaneView))
        if len(views) != len(viewports):
            await workspace.remove_children()
            views = [PaneView() for _ in viewports]
            await workspace.mount_all(views)

        for view, viewport in zip(views, viewports):
            view.styles.width = f"{viewport['width']}fr"
            pane_id = viewport["pane_id"]
            lines: List[str] = []
            if pane_id:
                output = await self._request("GET", "/pane/output",
                                             params={"pane_id": pane_id, "lines": 100})
                lines = output["lines"] if output else []
            row = rows.get(pane_id, {})
            view.show(pane_id, row.get("title", ""), lines, viewport["focused"])

    async def action_refresh(self) -> None:
        await self.refresh_all()

    async def _layout_command(self, path: str) -> None:
        result = await self._request("POST", path)
        if result and result["status"] == "no-panes":
            self.notify("No panes")
        elif result and result.get("hidden"):
            self.notify(f"Not shown: {', '.join(result['hidden'])}")
        await self.refresh_all()

    async def action_show_all(self) -> None:
        await self._layout_command("/layout/show-all")

    async def action_toggle_all(self) -> None:
        await self._layout_command("/layout/toggle")

    async def action_next_pane(self) -> None:
        await self._layout_command("/focus/next")

    async def action_prev_pane(self) -> None:
        await self._layout_command("/focus/prev")

    async def action_select_pane(self) -> None:
        candidates = await self._request("GET", "/focus/candidates")
        if candidates is None:
            return
        if not candidates:
            self.notify("No panes")
            return

        async def chosen(label: Optional[str]) -> None:
            if label is not None:
                await self._request("POST", "/focus/select", json={"label": label})
                await self.refresh_all()

        picker = PanePicker([(c["label"], c["pane_id"]) for c in candidates])
        self.push_screen(picker, chosen)

    async def action_start_session(self) -> None:
        result = await self._request("POST", "/session/start", json={})
        if result:
            self.notify(f"Started {' '.join(result['command'])} in {result['pane_id']}")
        await self.refresh_all()

    def action_type_keys(self) -> None:
        keys = self.query_one("#keys", Input)
        keys.add_class("visible")
        keys.focus()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "keys":
            return
        focus = await self._request("GET", "/focus")
        if focus and focus["pane_id"]:
            await self._request("POST", "/rpc/send_keys",
                                json={"pane_id": focus["pane_id"], "text": event.value})
        event.input.value = ""
        event.input.remove_class("visible")
        self.query_one(DataTable).focus()

    async def action_kill_pane(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        pane_id = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        await self._request("POST", "/rpc/kill_pane", json={"pane_id": pane_id})
        await self.refresh_all()


def run_tui():
    """Run the shimux TUI application."""
    setup_client_logging()

    app = ShimuxApp()
    app.run()


if __name__ == "__main__":
    run_tui()
