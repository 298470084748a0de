import os

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Input, Label, ListItem, ListView, RichLog, Static

from siteblocker.hosts import HostsError, HostsFile
from siteblocker.sites import InvalidSiteError, validate_site


class DiffScreen(ModalScreen):
    """A screen that displays a diff of the pending changes."""

    def __init__(self, diff_content: str):
        super().__init__()
        self.diff_content = diff_content

    def compose(self) -> ComposeResult:
        with ScrollableContainer(id="diff_container", classes="box"):
            yield Label("Pending changes:", classes="stats")
            yield RichLog(id="diff_text", highlight=True, wrap=False, markup=True)
            with Horizontal():
                yield Button("Close", variant="primary", id="close_diff")

    def on_mount(self):
        log = self.query_one("#diff_text", RichLog)
        for line in self.diff_content.splitlines():
            # Escape brackets in the line content to avoid markup issues
            safe_line = line.replace("[", "\\[")
            if line.startswith("+") and not line.startswith("+++"):
                log.write(f"[green]{safe_line}[/]")
            elif line.startswith("-") and not line.startswith("---"):
                log.write(f"[red]{safe_line}[/]")
            else:
                log.write(safe_line)

    @on(Button.Pressed, "#close_diff")
    def handle_close(self):
        self.app.pop_screen()


class SiteBlockerApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }

    .box {
        height: auto;
        border: solid green;
        margin: 1;
        padding: 1;
    }

    #sites {
        height: auto;
        max-height: 50%;
    }

    .stats {
         width: 100%;
         height: auto;
         content-align: center middle;
         background: $boost;
         margin: 1;
    }

    Button {
        margin: 1;
        width: 1fr;
    }

    #diff_text {
        background: $surface;
        color: $text;
        padding: 1;
        height: 1fr;
    }

    #log_window {
        height: 1fr;
        min-height: 6;
        border: tall $primary;
        background: $surface;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("d", "unblock", "Unblock"),
        ("p", "preview", "Preview"),
        ("s", "save", "Save"),
    ]

    def __init__(self, hosts: HostsFile, backup: bool = False, atomic: bool = False):
        super().__init__()
        self.hosts = hosts
        self.backup = backup
        self.atomic = atomic

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer()

        with Vertical():
            yield Static(id="stats", classes="stats")
            yield ListView(id="sites", classes="box")
            yield Input(placeholder="Site to block, e.g. example.com", id="site_input")

            with Horizontal():
                yield Button("Unblock Selected", id="btn_unblock", variant="warning")
                yield Button("Preview Changes", id="btn_preview", variant="primary")
                yield Button(f"Save to {self.hosts.path}", id="btn_save", variant="error")

            yield RichLog(id="log_window", highlight=True, markup=True)

    def on_mount(self):
        log = self.query_one("#log_window", RichLog)
        self.refresh_sites()
        log.write(f"Loaded {len(self.hosts.lines)} lines from {self.hosts.path}")

        if not self.can_write():
            log.write(f"[bold red]WARNING: {self.hosts.path} is not writable. SAVE DISABLED.[/]")
            self.query_one("#btn_save", Button).disabled = True
        log.scroll_end()

    def can_write(self) -> bool:
        return os.access(self.hosts.path, os.W_OK)

    def refresh_sites(self):
        sites = self.hosts.blocked_sites()
        self.query_one("#stats", Static).update(f"Blocked sites: {len(sites)}")
        list_view = self.query_one("#sites", ListView)
        list_view.clear()
        for site in sites:
            list_view.append(ListItem(Label(site), name=site))

    def report(self, results):
        log = self.query_one("#log_window", RichLog)
        for result in results:
            color = "green" if result.changed else "yellow"
            log.write(f"[{color}]{result.site}: {result.outcome.value}[/]")
        log.scroll_end()

    @on(Input.Submitted, "#site_input")
    def handle_block(self, event: Input.Submitted):
        site = event.value.strip()
        try:
            validate_site(site)
        except InvalidSiteError as e:
            self.query_one("#log_window", RichLog).write(f"[red]{e}[/]")
            return

        self.report(self.hosts.add([site]))
        event.input.value = ""
        self.refresh_sites()

    @on(Button.Pressed, "#btn_unblock")
    def handle_unblock(self):
        item = self.query_one("#sites", ListView).highlighted_child
        if item is None or item.name is None:
            self.query_one("#log_window", RichLog).write("No site selected!")
            return

        self.report(self.hosts.remove([item.name]))
        self.refresh_sites()

    @on(Button.Pressed, "#btn_preview")
    def handle_preview(self):
        diff = self.hosts.diff()
        if not diff:
            log = self.query_one("#log_window", RichLog)
            log.write("No changes detected.")
            log.scroll_end()
            return
        self.push_screen(DiffScreen(diff))

    @on(Button.Pressed, "#btn_save")
    def handle_save(self):
        log = self.query_one("#log_window", RichLog)
        if not self.hosts.changed:
            log.write("Nothing to save.")
            log.scroll_end()
            return

        try:
            if self.backup:
                log.write(f"Backed up to {self.hosts.backup()}")
            self.hosts.write(atomic=self.atomic)
            log.write(f"[bold green]Successfully wrote to {self.hosts.path}![/]")
        except HostsError as e:
            log.write(f"[bold red]ERROR: {e}[/]")
        log.scroll_end()

    def action_unblock(self):
        self.handle_unblock()

    def action_preview(self):
        self.handle_preview()

    def action_save(self):
        self.handle_save()
