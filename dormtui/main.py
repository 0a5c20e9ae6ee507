from datetime import datetime, timezone
import logging
from typing import List, Optional

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.message import Message as TextualMessage
from textual.screen import ModalScreen, Screen
from textual.theme import Theme
from textual.widgets import (
    Button,
    Input,
    Label,
    ListItem,
    ListView,
    LoadingIndicator,
    RadioButton,
    RadioSet,
    Static,
    Switch,
    TextArea,
)
from textual.worker import get_current_worker

from . import config, navigation, palette
from .alerts import AlertOptions, alert_icon
from .api_interface import ApiError
from .app_state import AppState
from .auth import AuthError
from .data_models import (
    BlockedUser,
    Candidate,
    Conversation,
    Election,
    LibraryMaterial,
    MarketItem,
    HousingListing,
    NewsItem,
    Position,
    Transaction,
    User,
    ballot_ids,
    chat_candidates,
    split_elections,
)
from .settings_sync import (
    NOTIFICATION_FIELDS,
    PRIVACY_FIELDS,
    FieldStatus,
    NotificationSettingsSync,
    PreferenceBagSync,
    PrivacySettingsSync,
    SyncState,
)
from .transactions import CURRENCY, classify

logger = logging.getLogger("dormtui.main")

PAGE_SIZE = 20


class SessionChanged(TextualMessage):
    """Posted (from any thread) when the auth session changes."""

    pass


def deliver(node, callback, *args, **kwargs) -> None:
    """Hand a worker's result to the UI thread unless the owning view is gone."""
    if get_current_worker().is_cancelled:
        return
    node.app.call_from_thread(callback, *args, **kwargs)


def update_static(node, selector: str, text) -> None:
    try:
        node.query_one(selector, Static).update(text)
    except NoMatches:
        pass


def format_time_ago(dt: Optional[datetime]) -> str:
    """Format datetime as 'time ago' string."""
    if dt is None:
        return ""
    now = datetime.now(dt.tzinfo) if dt.tzinfo else datetime.now()
    diff = now - dt
    if diff.days > 0:
        return f"{diff.days}d ago"
    if diff.seconds < 60:
        return "just now"
    if diff.seconds < 3600:
        return f"{diff.seconds // 60}m ago"
    return f"{diff.seconds // 3600}h ago"


def format_date(dt: Optional[datetime]) -> str:
    if dt is None:
        return "-"
    return dt.astimezone().strftime("%d %b %Y, %H:%M")


def format_countdown(end: Optional[datetime]) -> str:
    if end is None:
        return ""
    now = datetime.now(timezone.utc) if end.tzinfo else datetime.now()
    left = end - now
    if left.total_seconds() <= 0:
        return "Ended"
    hours, rem = divmod(left.seconds, 3600)
    if left.days:
        return f"{left.days}d {hours}h left"
    return f"{hours}h {rem // 60}m left"


def _textual_theme(name: str, dark: bool) -> Theme:
    colors = palette.COLORS[name]
    return Theme(
        name=f"dorm-{name}",
        primary=colors["primary"],
        secondary=colors["secondary"],
        accent=colors["accent"],
        warning=palette.WARNING,
        error=colors["error"],
        success=colors["success"],
        foreground=colors["text"],
        background=colors["background"],
        surface=colors["card"],
        panel=colors["border"],
        dark=dark,
    )


# ───────── Dialogs ─────────
class AlertDialog(ModalScreen[bool]):
    """One-shot alert; confirm runs the caller's action then closes."""

    BINDINGS = [Binding("escape", "cancel", "Close", show=False)]

    def __init__(self, options: AlertOptions, **kwargs):
        super().__init__(**kwargs)
        self.options = options

    def compose(self) -> ComposeResult:
        icon = alert_icon(self.options.type)
        with Container(id="dialog-container", classes=f"alert-{self.options.type}"):
            yield Static(Text(icon.glyph, style=icon.color or "bold"), id="alert-icon")
            yield Static(self.options.title, id="dialog-title", markup=False)
            yield Static(self.options.description, classes="dialog-message", markup=False)
            with Horizontal(id="dialog-buttons"):
                if self.options.show_cancel:
                    yield Button(self.options.cancel_text, id="alert-cancel")
                yield Button(self.options.button_text, id="alert-confirm", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "alert-confirm":
            if self.options.on_confirm is not None:
                self.options.on_confirm()
            self.dismiss(True)
        else:
            self.dismiss(False)

    def action_cancel(self) -> None:
        self.dismiss(False)


class DetailDialog(ModalScreen):
    """Base for read-only detail popups."""

    BINDINGS = [Binding("escape", "close", "Close", show=False)]

    def action_close(self) -> None:
        self.dismiss()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "dialog-close":
            self.dismiss()


class TransactionDetailDialog(DetailDialog):
    def __init__(self, transaction: Transaction, theme_name: str = "light", **kwargs):
        super().__init__(**kwargs)
        self.transaction = transaction
        self.theme_name = theme_name

    def compose(self) -> ComposeResult:
        tx = self.transaction
        display = classify(tx, palette.palette_for(self.theme_name))
        arrow = "↓" if display.credit else "↑"
        with VerticalScroll(id="dialog-container"):
            yield Static("Transaction Details", id="dialog-title")
            yield Static(
                Text.assemble((f"{arrow} ", display.amount_color), (display.detail_amount, f"bold {display.amount_color}")),
                id="tx-amount",
            )
            yield Static(Text(display.status, style=f"bold {display.status_color}"), id="tx-status")
            if tx.related_user is not None:
                yield Static(
                    f"{tx.related_user.name}\n{display.counterpart_role}",
                    classes="tx-counterpart",
                    markup=False,
                )
            for label, value in (
                ("Type", display.title),
                ("Date", tx.created_at.astimezone().strftime("%d %b %Y") if tx.created_at else "-"),
                ("Time", tx.created_at.astimezone().strftime("%H:%M:%S") if tx.created_at else "-"),
                ("Reference", display.reference),
                ("Description", tx.description or "-"),
            ):
                yield Static(
                    Text.assemble((f"{label:<12}", "dim"), value),
                    classes="detail-row",
                )
            yield Button("Close", id="dialog-close")


class SummaryDialog(DetailDialog):
    """AI summary bullet points for a library material."""

    def __init__(self, material: LibraryMaterial, **kwargs):
        super().__init__(**kwargs)
        self.material = material

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="dialog-container"):
            yield Static(self.material.title, id="dialog-title", markup=False)
            yield Static(
                f"{self.material.course_code} • {self.material.file_type.upper()} • {self.material.size_label}",
                classes="dialog-meta",
                markup=False,
            )
            yield LoadingIndicator(id="summary-loading")
            yield Static("", id="summary-points", markup=False)
            yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        self.load_summary()

    @work(thread=True, exclusive=True)
    def load_summary(self) -> None:
        try:
            summary = self.app.state.api.get_summary(self.material.id)
        except ApiError as e:
            deliver(self, self._populate, [], e.message)
            return
        deliver(self, self._populate, summary.points, None)

    def _populate(self, points: List[str], error: Optional[str]) -> None:
        self.query_one("#summary-loading").display = False
        body = self.query_one("#summary-points", Static)
        if error:
            body.update(f"Could not load summary: {error}")
        elif not points:
            body.update("No summary available for this material yet.")
        else:
            body.update("\n".join(f"• {p}" for p in points))


class CandidateDialog(DetailDialog):
    """Candidate profile with a ballot action while the election is open."""

    def __init__(self, candidate: Candidate, election: Optional[Election] = None,
                 position: Optional[Position] = None, **kwargs):
        super().__init__(**kwargs)
        self.candidate = candidate
        self.election = election
        self.listed_position = position

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="dialog-container"):
            yield Static(self.candidate.name, id="dialog-title", markup=False)
            yield Static("", id="candidate-meta", classes="dialog-meta", markup=False)
            yield LoadingIndicator(id="candidate-loading")
            yield Static("", id="candidate-manifesto", markup=False)
            with Horizontal(id="dialog-buttons"):
                yield Button("Cast Vote", id="cast-vote", variant="primary", disabled=True)
                yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        self.load_candidate()

    @work(thread=True, exclusive=True)
    def load_candidate(self) -> None:
        try:
            candidate = self.app.state.api.get_candidate(self.candidate.id)
        except ApiError as e:
            logger.warning("Error fetching candidate %s: %s", self.candidate.id, e)
            candidate = self.candidate
        deliver(self, self._populate, candidate)

    def _populate(self, candidate: Candidate) -> None:
        self.candidate = candidate
        self.query_one("#candidate-loading").display = False
        position = candidate.position or (self.listed_position.title if self.listed_position else "")
        meta = " • ".join(p for p in (candidate.nickname, position, candidate.election) if p)
        self.query_one("#candidate-meta", Static).update(meta)
        self.query_one("#candidate-manifesto", Static).update(candidate.manifesto or "No manifesto published.")
        self.query_one("#cast-vote", Button).disabled = self.ballot is None

    @property
    def ballot(self):
        return ballot_ids(self.candidate, self.election, self.listed_position)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cast-vote":
            self.app.show_alert(AlertOptions(
                "Finalize Ballot",
                f"Are you sure you want to cast your vote for {self.candidate.name}?",
                type="info",
                button_text="Confirm & Cast",
                show_cancel=True,
                on_confirm=self.cast_vote,
            ))
        else:
            super().on_button_pressed(event)

    @work(thread=True, exclusive=True, group="vote")
    def cast_vote(self) -> None:
        ballot = self.ballot
        if ballot is None:
            return
        deliver(self, self._set_voting, True)
        try:
            self.app.state.api.cast_vote(*ballot)
        except ApiError as e:
            logger.warning("Vote for candidate %s failed: %s", self.candidate.id, e)
            deliver(self, self._vote_failed, e.server_message or "Failed to cast vote. Please try again.")
            return
        deliver(self, self._voted)

    def _set_voting(self, busy: bool) -> None:
        button = self.query_one("#cast-vote", Button)
        button.disabled = busy
        button.label = "Casting…" if busy else "Cast Vote"

    def _voted(self) -> None:
        position = self.candidate.position or (self.listed_position.title if self.listed_position else "")
        as_position = f" as {position}" if position else ""
        self.dismiss()
        self.app.show_alert(AlertOptions(
            "Vote Cast Successfully",
            f"You have successfully voted for {self.candidate.name}{as_position}.",
        ))

    def _vote_failed(self, message: str) -> None:
        self._set_voting(False)
        self.app.show_alert(AlertOptions("Voting Error", message, type="error"))


class ElectionDialog(DetailDialog):
    def __init__(self, election: Election, **kwargs):
        super().__init__(**kwargs)
        self.election = election

    def compose(self) -> ComposeResult:
        e = self.election
        with VerticalScroll(id="dialog-container"):
            yield Static(e.title, id="dialog-title", markup=False)
            yield Static(f"{e.status} • {format_countdown(e.end_date)}", classes="dialog-meta", markup=False)
            if e.description:
                yield Static(e.description, classes="dialog-message", markup=False)
            candidates = ListView(id="candidate-list")
            yield candidates
            yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        listing = self.query_one("#candidate-list", ListView)
        for position in self.election.positions:
            for candidate in position.candidates:
                item = ListItem(Label(f"{position.title}: {candidate.name}", markup=False))
                item.candidate = candidate
                item.ballot_position = position
                listing.append(item)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        candidate = getattr(event.item, "candidate", None)
        if candidate is not None:
            self.app.push_screen(CandidateDialog(candidate, self.election, event.item.ballot_position))


class NewsDialog(DetailDialog):
    def __init__(self, news: NewsItem, **kwargs):
        super().__init__(**kwargs)
        self.news = news

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="dialog-container"):
            yield Static(self.news.title, id="dialog-title", markup=False)
            yield Static(format_date(self.news.created_at), classes="dialog-meta", markup=False)
            yield Static(self.news.content, id="news-content", markup=False)
            yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        self.load_news()

    @work(thread=True, exclusive=True)
    def load_news(self) -> None:
        try:
            news = self.app.state.api.get_news_item(self.news.id)
        except ApiError as e:
            logger.warning("Error fetching news %s: %s", self.news.id, e)
            return
        deliver(self, update_static, self, "#news-content", news.content)


class ChatDialog(DetailDialog):
    def __init__(self, conversation: Conversation, **kwargs):
        super().__init__(**kwargs)
        self.conversation = conversation

    def compose(self) -> ComposeResult:
        title = ", ".join(self.conversation.participants) or "Chat"
        with Vertical(id="dialog-container"):
            yield Static(title, id="dialog-title", markup=False)
            yield VerticalScroll(id="chat-messages")
            yield Input(placeholder="Type a message and press Enter", id="message-input")
            yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        self.load_messages()

    @work(thread=True, exclusive=True)
    def load_messages(self) -> None:
        try:
            messages = self.app.state.api.get_messages(self.conversation.id)
        except ApiError as e:
            deliver(self, self.app.notify, f"Could not load messages: {e.message}", severity="error")
            return
        deliver(self, self._show_messages, messages)

    def _show_messages(self, messages) -> None:
        box = self.query_one("#chat-messages", VerticalScroll)
        box.remove_children()
        me = self.app.state.session.user
        for m in messages:
            mine = me is not None and m.sender_id == me.id
            box.mount(Static(
                f"{'You' if mine else 'Them'} • {format_time_ago(m.created_at)}\n{m.content}",
                classes="chat-message mine" if mine else "chat-message",
                markup=False,
            ))
        box.scroll_end(animate=False)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "message-input":
            return
        text = event.value.strip()
        if not text:
            return
        event.input.value = ""
        self.send(text)

    @work(thread=True)
    def send(self, text: str) -> None:
        try:
            self.app.state.api.send_message(self.conversation.id, text)
        except ApiError as e:
            deliver(self, self.app.notify, f"Message not sent: {e.message}", severity="error")
            return
        deliver(self, self.load_messages)


class SelectUserDialog(ModalScreen[Optional[User]]):
    """Pick a user from the same university to start a chat with."""

    BINDINGS = [Binding("escape", "close", "Close", show=False)]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.users: List[User] = []

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog-container"):
            yield Static("New Message", id="dialog-title")
            yield Input(placeholder="Search users...", id="user-search")
            yield LoadingIndicator(id="users-loading")
            yield ListView(id="user-list")
            yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        self.load_users()

    @work(thread=True, exclusive=True)
    def load_users(self) -> None:
        try:
            users = self.app.state.api.get_users()
        except ApiError as e:
            logger.warning("Error fetching users: %s", e)
            users = []
        deliver(self, self._set_users, users)

    def _set_users(self, users: List[User]) -> None:
        self.users = chat_candidates(users, self.app.state.session.user)
        self.query_one("#users-loading").display = False
        self._list_users()

    def _list_users(self, query: str = "") -> None:
        listing = self.query_one("#user-list", ListView)
        listing.clear()
        for user in chat_candidates(self.users, None, query):
            item = ListItem(Label(user.name, markup=False))
            item.user = user
            listing.append(item)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "user-search":
            self._list_users(event.value)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        self.dismiss(getattr(event.item, "user", None))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "dialog-close":
            self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)


# ───────── Panels ─────────
class Panel(VerticalScroll):
    """A tab's content. Workers it starts die with it."""

    @property
    def state(self) -> AppState:
        return self.app.state

    def show_error(self, message: str) -> None:
        self.app.notify(message, severity="error", timeout=4)

    def show_spinner(self, loading: bool) -> None:
        try:
            self.query_one(LoadingIndicator).display = loading
        except NoMatches:
            pass


class HomePanel(Panel):
    def compose(self) -> ComposeResult:
        user = self.state.session.user
        self.border_title = "Home"
        yield Static(f"Welcome back, {user.name if user else ''}", classes="panel-header", markup=False)
        if user is not None:
            yield Static(f"{user.university}", classes="panel-subheader", markup=False)
            yield Static(
                f"Wallet balance: {CURRENCY}{user.wallet_balance:,}\nIn escrow: {CURRENCY}{user.escrow_balance:,}",
                classes="home-card",
                markup=False,
            )
        yield Static(
            "  ".join(f"[{i + 1}] {name.title()}" for i, name in enumerate(PANELS)),
            classes="help-text",
            markup=False,
        )


class TransactionItem(ListItem):
    def __init__(self, transaction: Transaction, theme_name: str, **kwargs):
        display = classify(transaction, palette.palette_for(theme_name))
        row = Text.assemble(
            (f" {display.icon.glyph} ", f"bold {display.icon.color}"),
            (display.title, "bold"),
            "  ",
            (format_date(transaction.created_at), "dim"),
            "  ",
            (display.list_amount, f"bold {display.amount_color}"),
        )
        super().__init__(Static(row), **kwargs)
        self.transaction = transaction


class WalletPanel(Panel):
    def compose(self) -> ComposeResult:
        self.border_title = "Wallet"
        yield Static("Transaction History", classes="panel-header")
        yield Static("", id="wallet-balance")
        yield LoadingIndicator()
        yield ListView(id="transaction-list")
        yield Static("", id="wallet-empty", classes="empty-state")
        yield Button("Load more", id="load-more")

    def on_mount(self) -> None:
        self.page = 1
        self.transactions: List[Transaction] = []
        self.load_transactions(1)

    @work(thread=True, exclusive=True)
    def load_transactions(self, page: int) -> None:
        api = self.state.api
        try:
            transactions = api.get_transactions(page, PAGE_SIZE)
            balance = api.get_balance() if page == 1 else None
        except ApiError as e:
            logger.error("Error fetching transactions: %s", e)
            deliver(self, self._load_failed, e.message)
            return
        deliver(self, self._populate, page, transactions, balance)

    def _load_failed(self, message: str) -> None:
        self.show_spinner(False)
        self.show_error(f"Could not load transactions: {message}")
        if not self.transactions:
            self.query_one("#wallet-empty", Static).update("No transactions found")

    def _populate(self, page: int, transactions: List[Transaction], balance) -> None:
        self.show_spinner(False)
        self.page = page
        listing = self.query_one("#transaction-list", ListView)
        if page == 1:
            self.transactions = []
            listing.clear()
        self.transactions.extend(transactions)
        theme_name = self.state.theme.resolved
        for tx in transactions:
            listing.append(TransactionItem(tx, theme_name))
        if isinstance(balance, dict):
            self.query_one("#wallet-balance", Static).update(
                f"Balance: {CURRENCY}{balance.get('balance') or 0:,}   Escrow: {CURRENCY}{balance.get('escrowBalance') or 0:,}"
            )
        self.query_one("#wallet-empty", Static).update("" if self.transactions else "No transactions found")
        self.query_one("#load-more", Button).display = len(transactions) == PAGE_SIZE

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "load-more":
            self.show_spinner(True)
            self.load_transactions(self.page + 1)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if isinstance(event.item, TransactionItem):
            self.app.push_screen(TransactionDetailDialog(event.item.transaction, self.state.theme.resolved))


class MarketPanel(Panel):
    TYPES = (("All", None), ("Items", "item"), ("Food", "food"), ("Services", "service"))

    def compose(self) -> ComposeResult:
        self.border_title = "Market"
        yield Static("Marketplace", classes="panel-header")
        with RadioSet(id="market-type"):
            for i, (label, _) in enumerate(self.TYPES):
                yield RadioButton(label, value=i == 0)
        yield Input(placeholder="Search the market... (Enter)", id="market-search")
        yield LoadingIndicator()
        yield ListView(id="market-list")
        yield Static("", id="market-empty", classes="empty-state")

    def on_mount(self) -> None:
        self.item_type: Optional[str] = None
        self.search = ""
        self.reload()

    @property
    def cache_key(self) -> str:
        return f"market_{self.item_type or 'all'}_{self.search}"

    def reload(self) -> None:
        cached = self.state.cache.cached(self.cache_key, MarketItem.from_api)
        if cached is not None:
            self._populate(cached)
        self.load_items(self.cache_key, self.item_type, self.search)

    @work(thread=True, exclusive=True)
    def load_items(self, key: str, item_type: Optional[str], search: str) -> None:
        try:
            items = self.state.cache.refresh(
                key, lambda: self.state.api.get_items(type=item_type, search=search or None)
            )
        except ApiError as e:
            deliver(self, self._load_failed, e.message)
            return
        deliver(self, self._populate, items)

    def _load_failed(self, message: str) -> None:
        self.show_spinner(False)
        self.show_error(f"Could not load market: {message}")

    def _populate(self, items: List[MarketItem]) -> None:
        self.show_spinner(False)
        listing = self.query_one("#market-list", ListView)
        listing.clear()
        for item in items:
            row = Text.assemble(
                (item.title, "bold"), "  ", (item.category or item.type, "dim"), "  ",
                (f"{CURRENCY}{item.price:,}", "bold"),
            )
            listing.append(ListItem(Static(row)))
        self.query_one("#market-empty", Static).update("" if items else "No listings found")

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        event.stop()
        self.item_type = self.TYPES[event.index][1]
        self.show_spinner(True)
        self.reload()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "market-search":
            self.search = event.value.strip()
            self.show_spinner(True)
            self.reload()


class HousingDialog(DetailDialog):
    """Listing details and a tour request form."""

    def __init__(self, listing: HousingListing, **kwargs):
        super().__init__(**kwargs)
        self.listing = listing

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="dialog-container"):
            yield Static(self.listing.title, id="dialog-title", markup=False)
            yield Static("", id="listing-meta", classes="dialog-meta", markup=False)
            yield LoadingIndicator(id="listing-loading")
            yield Static("", id="listing-body", markup=False)
            yield Static("Request a tour", classes="settings-section-header")
            with Horizontal(classes="filter-row"):
                yield Input(placeholder="Date (YYYY-MM-DD)", id="tour-date")
                yield Input(placeholder="Time (HH:MM)", id="tour-time")
            yield Input(placeholder="Message to the owner", id="tour-message")
            with Horizontal(id="dialog-buttons"):
                yield Button("Request tour", id="request-tour", variant="primary")
                yield Button("Close", id="dialog-close")

    def on_mount(self) -> None:
        self._populate(self.listing)
        self.load_listing()

    @work(thread=True, exclusive=True)
    def load_listing(self) -> None:
        try:
            listing = self.app.state.api.get_listing(self.listing.id)
        except ApiError as e:
            logger.warning("Error fetching listing %s: %s", self.listing.id, e)
            listing = self.listing
        deliver(self, self._populate, listing, True)

    def _populate(self, listing: HousingListing, loaded: bool = False) -> None:
        self.listing = listing
        self.query_one("#listing-loading").display = not loaded
        meta = " • ".join(p for p in (
            f"{CURRENCY}{listing.price:,}/mo", listing.type, listing.address, listing.owner,
        ) if p)
        self.query_one("#listing-meta", Static).update(meta)
        body = listing.description or "No description provided."
        if listing.amenities:
            body += "\n\nAmenities: " + ", ".join(listing.amenities)
        self.query_one("#listing-body", Static).update(body)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id != "request-tour":
            super().on_button_pressed(event)
            return
        date = self.query_one("#tour-date", Input).value.strip()
        time = self.query_one("#tour-time", Input).value.strip()
        if not date or not time:
            self.app.show_alert(AlertOptions("Missing details", "Pick a date and time for the tour.", type="error"))
            return
        event.button.disabled = True
        self.request_tour(date, time, self.query_one("#tour-message", Input).value.strip())

    @work(thread=True, exclusive=True, group="tour")
    def request_tour(self, date: str, time: str, message: str) -> None:
        try:
            self.app.state.api.request_tour(self.listing.id, date, time, message)
        except ApiError as e:
            logger.warning("Tour request for %s failed: %s", self.listing.id, e)
            deliver(self, self._tour_failed, e.server_message or "Failed to request tour. Please try again.")
            return
        deliver(self, self._tour_requested)

    def _tour_requested(self) -> None:
        self.dismiss()
        self.app.show_alert(AlertOptions(
            "Tour Requested",
            f"Your tour request for {self.listing.title} has been sent to the owner.",
        ))

    def _tour_failed(self, message: str) -> None:
        self.query_one("#request-tour", Button).disabled = False
        self.app.show_alert(AlertOptions("Request Failed", message, type="error"))


class HousingPanel(Panel):
    TYPES = ("All", "Self-Con", "Flat", "Roommate", "Hostel")
    PAGE_SIZE = 10

    def compose(self) -> ComposeResult:
        self.border_title = "Housing"
        yield Static("Find your next student home", classes="panel-header")
        with RadioSet(id="housing-type"):
            for i, label in enumerate(self.TYPES):
                yield RadioButton(label, value=i == 0)
        yield Input(placeholder="Search location... (Enter)", id="housing-search")
        with Horizontal(classes="filter-row"):
            yield Input(placeholder="Min price", id="housing-min-price", type="integer")
            yield Input(placeholder="Max price", id="housing-max-price", type="integer")
        yield LoadingIndicator()
        yield ListView(id="housing-list")
        yield Static("", id="housing-empty", classes="empty-state")
        yield Button("Load more", id="load-more")

    def on_mount(self) -> None:
        self.query_filters = {"type": None, "search": "", "min_price": "", "max_price": ""}
        self.page = 1
        self.listings: List[HousingListing] = []
        self.reload()

    @property
    def cache_key(self) -> str:
        f = self.query_filters
        return f"housing_{f['type'] or 'all'}_{f['search']}_{f['min_price']}_{f['max_price']}"

    def reload(self) -> None:
        cached = self.state.cache.cached(self.cache_key, HousingListing.from_api)
        if cached is not None:
            self._populate(1, cached)
        self.load_listings(1, self.cache_key, dict(self.query_filters))

    @work(thread=True, exclusive=True)
    def load_listings(self, page: int, key: Optional[str], filters: dict) -> None:
        def fetch():
            return self.state.api.get_listings(page=page, limit=self.PAGE_SIZE, **filters)

        try:
            # only the first page is kept for offline use
            listings = self.state.cache.refresh(key, fetch) if key else fetch()
        except ApiError as e:
            deliver(self, self._load_failed, e.message)
            return
        deliver(self, self._populate, page, listings)

    def _load_failed(self, message: str) -> None:
        self.show_spinner(False)
        self.show_error(f"Could not load housing: {message}")

    def _populate(self, page: int, listings: List[HousingListing]) -> None:
        self.show_spinner(False)
        self.page = page
        listing_view = self.query_one("#housing-list", ListView)
        if page == 1:
            self.listings = []
            listing_view.clear()
        self.listings.extend(listings)
        for listing in listings:
            row = Text.assemble(
                (f"{CURRENCY}{listing.price:,}/mo", "bold"), "  ",
                (listing.title, "bold"), "  ", (listing.address, "dim"),
            )
            item = ListItem(Static(row))
            item.listing = listing
            listing_view.append(item)
        self.query_one("#housing-empty", Static).update(
            "" if self.listings else "No places found. Try another search or filter."
        )
        self.query_one("#load-more", Button).display = len(listings) >= self.PAGE_SIZE

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        event.stop()
        self.query_filters["type"] = self.TYPES[event.index] if event.index else None
        self.show_spinner(True)
        self.reload()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        field = {
            "housing-search": "search",
            "housing-min-price": "min_price",
            "housing-max-price": "max_price",
        }.get(event.input.id or "")
        if field is None:
            return
        self.query_filters[field] = event.value.strip()
        self.show_spinner(True)
        self.reload()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "load-more":
            self.show_spinner(True)
            self.load_listings(self.page + 1, None, dict(self.query_filters))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        listing = getattr(event.item, "listing", None)
        if listing is not None:
            self.app.push_screen(HousingDialog(listing))


class LibraryPanel(Panel):
    TYPES = (("All", None), ("PDF", "pdf"), ("Doc", "doc"), ("Slides", "ppt"), ("Video", "video"))

    def compose(self) -> ComposeResult:
        self.border_title = "Library"
        yield Static("Study Library", classes="panel-header")
        with RadioSet(id="library-type"):
            for i, (label, _) in enumerate(self.TYPES):
                yield RadioButton(label, value=i == 0)
        with Horizontal(classes="filter-row"):
            yield Input(placeholder="Search materials...", id="library-search")
            yield Input(placeholder="Level (e.g. 200)", id="library-level")
        yield LoadingIndicator()
        yield ListView(id="material-list")
        yield Static("", id="library-empty", classes="empty-state")

    def on_mount(self) -> None:
        self.file_type: Optional[str] = None
        self.search = ""
        self.level = ""
        self.materials: List[LibraryMaterial] = []
        self.reload()

    @property
    def cache_key(self) -> str:
        return f"library_materials_{self.search}_{self.file_type or ''}_{self.level}"

    def reload(self) -> None:
        cached = self.state.cache.cached(self.cache_key, LibraryMaterial.from_api)
        if cached is not None:
            self._populate(cached)
        self.load_materials(self.cache_key, self.search, self.file_type, self.level)

    @work(thread=True, exclusive=True)
    def load_materials(self, key: str, search: str, file_type: Optional[str], level: str) -> None:
        try:
            materials = self.state.cache.refresh(
                key,
                lambda: self.state.api.get_materials(search=search or None, type=file_type, level=level or None),
            )
        except ApiError as e:
            deliver(self, self._load_failed, e.message)
            return
        deliver(self, self._populate, materials)

    def _load_failed(self, message: str) -> None:
        self.show_spinner(False)
        self.show_error(f"Could not load materials: {message}")

    def _populate(self, materials: List[LibraryMaterial]) -> None:
        self.show_spinner(False)
        self.materials = materials
        listing = self.query_one("#material-list", ListView)
        listing.clear()
        for m in materials:
            row = Text.assemble(
                (m.title, "bold"), "  ", (m.course_code, "dim"), "  ",
                (f"{m.file_type.upper()} • {m.level or '-'} • ★ {m.rating} • ⇩ {m.downloads}", "dim"),
            )
            item = ListItem(Static(row))
            item.material = m
            listing.append(item)
        self.query_one("#library-empty", Static).update("" if materials else "No materials found")

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        event.stop()
        self.file_type = self.TYPES[event.index][1]
        self.show_spinner(True)
        self.reload()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "library-search":
            self.search = event.value.strip()
        elif event.input.id == "library-level":
            self.level = event.value.strip()
        else:
            return
        self.show_spinner(True)
        self.reload()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        material = getattr(event.item, "material", None)
        if material is not None:
            self.app.push_screen(SummaryDialog(material))


class VotingPanel(Panel):
    def compose(self) -> ComposeResult:
        self.border_title = "Voting"
        yield Static("Elections", classes="panel-header")
        yield LoadingIndicator()
        yield Static("→ Active", classes="settings-section-header")
        yield ListView(id="active-elections")
        yield Static("→ Upcoming", classes="settings-section-header")
        yield ListView(id="upcoming-elections")
        yield Static("→ News", classes="settings-section-header")
        yield ListView(id="election-news")

    def on_mount(self) -> None:
        self.load_elections()

    @work(thread=True, exclusive=True)
    def load_elections(self) -> None:
        api = self.state.api
        try:
            elections = api.get_elections()
            news = api.get_news()
        except ApiError as e:
            logger.error("Error fetching elections: %s", e)
            deliver(self, self._load_failed, e.message)
            return
        deliver(self, self._populate, elections, news)

    def _load_failed(self, message: str) -> None:
        self.show_spinner(False)
        self.show_error(f"Could not load elections: {message}")

    def _populate(self, elections: List[Election], news: List[NewsItem]) -> None:
        self.show_spinner(False)
        active, upcoming = split_elections(elections)
        for list_id, group in (("#active-elections", active), ("#upcoming-elections", upcoming)):
            listing = self.query_one(list_id, ListView)
            listing.clear()
            for election in group:
                item = ListItem(Label(f"{election.title}  {format_countdown(election.end_date)}", markup=False))
                item.election = election
                listing.append(item)
            if not group:
                listing.append(ListItem(Label("Nothing here yet", classes="empty-state")))
        listing = self.query_one("#election-news", ListView)
        listing.clear()
        for n in news:
            item = ListItem(Label(f"{n.title}  {format_time_ago(n.created_at)}", markup=False))
            item.news = n
            listing.append(item)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        election = getattr(event.item, "election", None)
        if election is not None:
            self.app.push_screen(ElectionDialog(election))
            return
        news = getattr(event.item, "news", None)
        if news is not None:
            self.app.push_screen(NewsDialog(news))


class MessagesPanel(Panel):
    def compose(self) -> ComposeResult:
        self.border_title = "Messages"
        yield Static("Messages", classes="panel-header")
        yield Button("New message", id="new-chat")
        yield LoadingIndicator()
        yield ListView(id="conversation-list")
        yield Static("", id="messages-empty", classes="empty-state")

    def on_mount(self) -> None:
        self.load_conversations()

    @work(thread=True, exclusive=True)
    def load_conversations(self) -> None:
        try:
            conversations = self.state.api.get_conversations()
        except ApiError as e:
            deliver(self, self._load_failed, e.message)
            return
        deliver(self, self._populate, conversations)

    def _load_failed(self, message: str) -> None:
        self.show_spinner(False)
        self.show_error(f"Could not load conversations: {message}")

    def _populate(self, conversations: List[Conversation]) -> None:
        self.show_spinner(False)
        listing = self.query_one("#conversation-list", ListView)
        listing.clear()
        for c in conversations:
            unread = f" ({c.unread})" if c.unread else ""
            row = Text.assemble(
                (", ".join(c.participants) + unread, "bold"), "\n",
                (f"{c.last_message}  {format_time_ago(c.updated_at)}", "dim"),
            )
            item = ListItem(Static(row))
            item.conversation = c
            listing.append(item)
        self.query_one("#messages-empty", Static).update("" if conversations else "No conversations yet")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "new-chat":
            self.app.push_screen(SelectUserDialog(), self._user_selected)

    def _user_selected(self, user: Optional[User]) -> None:
        if user is not None:
            self.start_conversation(user.id)

    @work(thread=True)
    def start_conversation(self, user_id: str) -> None:
        try:
            conversation = self.state.api.create_conversation(user_id)
        except ApiError as e:
            deliver(self, self.show_error, f"Could not start chat: {e.message}")
            return
        deliver(self, self._open_chat, conversation)

    def _open_chat(self, conversation: Conversation) -> None:
        self.app.push_screen(ChatDialog(conversation))
        self.load_conversations()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        conversation = getattr(event.item, "conversation", None)
        if conversation is not None:
            self.app.push_screen(ChatDialog(conversation))


class SettingsPanel(Panel):
    THEME_OPTIONS = (("System Default", "system"), ("Light Mode", "light"), ("Dark Mode", "dark"))

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.notifications: NotificationSettingsSync = self.app.state.notification_settings()
        self.privacy: PrivacySettingsSync = self.app.state.privacy_settings()
        self._subscriptions = []

    def compose(self) -> ComposeResult:
        self.border_title = "Settings"
        user = self.state.session.user
        yield Static("settings", classes="panel-header")

        yield Static("\n→ Account", classes="settings-section-header")
        if user is not None:
            yield Static(f"  {user.name}\n  {user.email}\n  {user.university}", classes="settings-field", markup=False)
        with Horizontal(classes="filter-row"):
            yield Input(placeholder="Path to a new avatar image", id="avatar-path")
            yield Button("Upload", id="upload-avatar")

        yield Static("\n→ Appearance", classes="settings-section-header")
        preference = self.state.theme.preference
        with RadioSet(id="theme-preference"):
            for label, mode in self.THEME_OPTIONS:
                yield RadioButton(label, value=mode == preference)

        yield Static("\n→ Interaction", classes="settings-section-header")
        yield from self._toggle_row("haptics", "Haptic Feedback", self.state.haptics.enabled,
                                    "Ring the terminal bell on taps and interactions")

        yield Static("\n→ Notifications", classes="settings-section-header")
        yield from self._toggle_row("notif-pause-all", "Pause All Notifications", self.notifications.pause_all,
                                    "Temporarily disable all push notifications.")
        section = None
        for key, label, group in NOTIFICATION_FIELDS:
            if group != section:
                section = group
                yield Static(f"  {group}", classes="settings-subsection")
            yield from self._toggle_row(f"notif-{key}", label, self.notifications.value(key),
                                        disabled=self.notifications.pause_all)

        yield Static("\n→ Privacy & Data", classes="settings-section-header")
        yield from self._toggle_row("app-lock", "App Lock", self.state.app_lock.enabled, "Require unlock to open app")
        for key, label, _ in PRIVACY_FIELDS:
            yield from self._toggle_row(f"privacy-{key}", label, self.privacy.value(key))

        yield Static("\n→ Blocked Users", classes="settings-section-header")
        yield ListView(id="blocked-list")

        yield Static("\n→ Report a Bug", classes="settings-section-header")
        yield TextArea(id="bug-description")
        yield Button("Send report", id="send-bug")

        yield Static("\n→ Help", classes="settings-section-header")
        yield Static("", id="faq-list", markup=False)

        yield Button("Log out", id="logout", variant="error")

    def _toggle_row(self, switch_id: str, label: str, value: bool, description: str = "", disabled: bool = False):
        with Horizontal(classes="toggle-row"):
            with Vertical(classes="toggle-label"):
                yield Label(label, markup=False)
                if description:
                    yield Label(description, classes="toggle-description", markup=False)
            yield Label("", id=f"{switch_id}-status", classes="toggle-status")
            yield Switch(value=value, id=switch_id, disabled=disabled)

    def on_mount(self) -> None:
        self._subscriptions.extend([
            (self.notifications, self._sync_listener("notif")),
            (self.privacy, self._sync_listener("privacy")),
            (self.state.theme, self.sync_theme_choice),
        ])
        for source, listener in self._subscriptions:
            source.add_listener(listener)
        self.load_blocked()
        self.load_faqs()

    def on_unmount(self) -> None:
        for source, listener in self._subscriptions:
            source.remove_listener(listener)

    # --- preference bags ---
    def _sync_listener(self, prefix: str):
        def listener(key: str, status: FieldStatus) -> None:
            deliver(self, self._render_status, f"{prefix}-{key}", status)
        return listener

    def _render_status(self, switch_id: str, status: FieldStatus) -> None:
        try:
            label = self.query_one(f"#{switch_id}-status", Label)
        except NoMatches:
            return
        if status.state is SyncState.PENDING:
            label.update("saving…")
        elif status.state is SyncState.FAILED:
            label.update(Text("not saved", style=palette.DANGER))
            self.app.notify(f"Failed to update setting: {status.error}", severity="error")
        else:
            label.update("")

    @work(thread=True)
    def push_toggle(self, sync: PreferenceBagSync, key: str, value: bool) -> None:
        sync.toggle(key, value)

    def on_switch_changed(self, event: Switch.Changed) -> None:
        event.stop()
        switch_id = event.switch.id or ""
        value = event.value
        if switch_id == "haptics":
            if value != self.state.haptics.enabled:
                self.state.haptics.set_enabled(value)
        elif switch_id == "app-lock":
            self.state.app_lock.set_enabled(value)
        elif switch_id == "notif-pause-all":
            self.notifications.set_pause_all(value)
            for key, _, _ in NOTIFICATION_FIELDS:
                self.query_one(f"#notif-{key}", Switch).disabled = value
        elif switch_id.startswith("notif-"):
            key = switch_id[len("notif-"):]
            if value != self.notifications.value(key):
                self.push_toggle(self.notifications, key, value)
        elif switch_id.startswith("privacy-"):
            key = switch_id[len("privacy-"):]
            if value != self.privacy.value(key):
                self.push_toggle(self.privacy, key, value)

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        event.stop()
        if event.radio_set.id == "theme-preference":
            mode = self.THEME_OPTIONS[event.index][1]
            if mode != self.state.theme.preference:
                self.state.theme.set_preference(mode)

    def sync_theme_choice(self, _resolved: str = "") -> None:
        """Select the radio button for the stored preference after an outside change."""
        modes = [mode for _, mode in self.THEME_OPTIONS]
        buttons = list(self.query("#theme-preference RadioButton").results(RadioButton))
        button = buttons[modes.index(self.state.theme.preference)]
        if not button.value:
            button.value = True

    # --- blocked users ---
    @work(thread=True, exclusive=True, group="blocked")
    def load_blocked(self) -> None:
        try:
            blocked = self.state.api.get_blocked_users()
        except ApiError as e:
            logger.warning("Error fetching blocked users: %s", e)
            blocked = []
        deliver(self, self._show_blocked, blocked)

    def _show_blocked(self, blocked: List[BlockedUser]) -> None:
        listing = self.query_one("#blocked-list", ListView)
        listing.clear()
        for b in blocked:
            item = ListItem(Label(f"{b.name}  (select to unblock)", markup=False))
            item.blocked_user = b
            listing.append(item)
        if not blocked:
            listing.append(ListItem(Label("You haven't blocked anyone", classes="empty-state")))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        blocked = getattr(event.item, "blocked_user", None)
        if blocked is None:
            return
        self.app.show_alert(AlertOptions(
            title="Unblock user?",
            description=f"{blocked.name} will be able to message you again.",
            type="info",
            button_text="Unblock",
            show_cancel=True,
            on_confirm=lambda: self.unblock(blocked.id),
        ))

    @work(thread=True)
    def unblock(self, user_id: str) -> None:
        try:
            self.state.api.unblock_user(user_id)
        except ApiError as e:
            deliver(self, self.show_error, f"Failed to unblock user: {e.message}")
            return
        deliver(self, self.app.notify, "User unblocked")
        deliver(self, self.load_blocked)

    # --- support ---
    @work(thread=True, exclusive=True, group="faqs")
    def load_faqs(self) -> None:
        try:
            faqs = self.state.api.get_faqs()
        except ApiError as e:
            logger.warning("Error fetching FAQs: %s", e)
            return
        text = "\n\n".join(f"Q: {f.question}\nA: {f.answer}" for f in faqs)
        deliver(self, update_static, self, "#faq-list", text)

    @work(thread=True, exclusive=True, group="bug")
    def send_bug_report(self, description: str) -> None:
        try:
            self.state.api.report_bug(description)
        except ApiError as e:
            deliver(self, self.app.show_alert, AlertOptions("Error", e.message, type="error"))
            return
        deliver(self, self._bug_sent)

    def _bug_sent(self) -> None:
        self.query_one("#bug-description", TextArea).text = ""
        self.app.show_alert(AlertOptions("Report sent", "Thanks! Our team will look into it."))

    @work(thread=True, exclusive=True, group="avatar")
    def upload_avatar(self, path: str) -> None:
        try:
            url = self.state.api.upload_image(path)
            self.state.api.update_profile({"avatar": url})
        except (ApiError, OSError) as e:
            deliver(self, self.app.show_alert, AlertOptions("Error", f"Failed to update profile: {e}", type="error"))
            return
        self.state.session.refresh_user()
        deliver(self, self.app.show_alert, AlertOptions("Success", "Profile updated successfully"))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "send-bug":
            description = self.query_one("#bug-description", TextArea).text.strip()
            if not description:
                self.app.show_alert(AlertOptions("Error", "Please describe the bug", type="error"))
                return
            self.send_bug_report(description)
        elif button_id == "upload-avatar":
            path = self.query_one("#avatar-path", Input).value.strip()
            if path:
                self.upload_avatar(path)
        elif button_id == "logout":
            self.app.show_alert(AlertOptions(
                title="Log out?",
                description="You will need to sign in again.",
                type="info",
                button_text="Log out",
                show_cancel=True,
                on_confirm=self.app.action_logout,
            ))


PANELS = {
    "home": HomePanel,
    "wallet": WalletPanel,
    "market": MarketPanel,
    "housing": HousingPanel,
    "library": LibraryPanel,
    "voting": VotingPanel,
    "messages": MessagesPanel,
    "settings": SettingsPanel,
}


# ───────── Screens ─────────
class LoadingScreen(Screen):
    def compose(self) -> ComposeResult:
        yield Static("dormtui", id="app-header")
        yield LoadingIndicator()
        yield Static("Starting up...", classes="help-text")


class LoginScreen(Screen):
    def compose(self) -> ComposeResult:
        with Container(id="auth-container"):
            yield Static("Welcome back", id="dialog-title")
            yield Input(placeholder="Email", id="login-email")
            yield Input(placeholder="Password", password=True, id="login-password")
            yield Button("Sign in", id="login", variant="primary")
            yield Button("Create an account", id="to-register")
            yield Static("", id="auth-error", classes="error-text", markup=False)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "login-email":
            self.query_one("#login-password", Input).focus()
        else:
            self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "login":
            self._submit()
        elif event.button.id == "to-register":
            self.app.navigate(navigation.REGISTER)

    def _submit(self) -> None:
        email = self.query_one("#login-email", Input).value.strip()
        password = self.query_one("#login-password", Input).value
        if not email or not password:
            self.query_one("#auth-error", Static).update("Please enter your email and password")
            return
        self.login(email, password)

    @work(thread=True, exclusive=True)
    def login(self, email: str, password: str) -> None:
        try:
            self.app.state.session.login(email, password)
        except AuthError as e:
            deliver(self, update_static, self, "#auth-error", str(e))


class RegisterScreen(Screen):
    FIELDS = (("name", "Full name"), ("email", "Email"), ("university", "University"), ("password", "Password"))

    def compose(self) -> ComposeResult:
        with Container(id="auth-container"):
            yield Static("Create account", id="dialog-title")
            for key, label in self.FIELDS:
                yield Input(placeholder=label, password=key == "password", id=f"register-{key}")
            yield Button("Sign up", id="register", variant="primary")
            yield Button("I already have an account", id="to-login")
            yield Static("", id="auth-error", classes="error-text", markup=False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "to-login":
            self.app.navigate(navigation.LOGIN)
        elif event.button.id == "register":
            fields = {key: self.query_one(f"#register-{key}", Input).value.strip() for key, _ in self.FIELDS}
            missing = [label for key, label in self.FIELDS if not fields[key]]
            if missing:
                self.query_one("#auth-error", Static).update(f"Missing: {', '.join(missing)}")
                return
            self.register(fields)

    @work(thread=True, exclusive=True)
    def register(self, fields) -> None:
        try:
            self.app.state.session.register(fields)
        except AuthError as e:
            deliver(self, update_static, self, "#auth-error", str(e))


class OnboardingScreen(Screen):
    SLIDES = (
        "Buy and sell on campus with escrow-protected payments.",
        "Find student housing and book inspections.",
        "Vote in campus elections and read the manifestos.",
        "Share and summarise study materials.",
    )

    def compose(self) -> ComposeResult:
        with Container(id="auth-container"):
            yield Static("Your campus, in one place", id="dialog-title")
            for slide in self.SLIDES:
                yield Static(f"• {slide}", classes="dialog-message")
            yield Button("Get started", id="onboarding-done", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "onboarding-done":
            self.app.state.session.complete_onboarding()


class MainScreen(Screen):
    BINDINGS = [
        Binding(str(i + 1), f"show('{name}')", name.title(), show=False)
        for i, name in enumerate(PANELS)
    ]

    def __init__(self, panel: str = "home", **kwargs):
        super().__init__(**kwargs)
        self.panel_name = panel

    def compose(self) -> ComposeResult:
        user = self.app.state.session.user
        yield Static(f"dormtui [{self.panel_name}] {user.name if user else ''}", id="app-header", markup=False)
        with Horizontal():
            nav = ListView(
                *[ListItem(Label(f"[{i + 1}] {name.title()}", markup=False), id=f"nav-{name}") for i, name in enumerate(PANELS)],
                id="nav-list",
            )
            yield nav
            yield Container(id="screen-container")
        yield Static(f"[1-{len(PANELS)}] Tabs  [ctrl+t] Theme  [q] Quit", id="app-footer", markup=False)

    def on_mount(self) -> None:
        self.show_panel(self.panel_name)

    def show_panel(self, name: str) -> None:
        self.panel_name = name
        container = self.query_one("#screen-container", Container)
        # removing the old panel cancels its in-flight requests
        container.remove_children()
        container.mount(PANELS[name](id=f"{name}-panel"))
        user = self.app.state.session.user
        self.query_one("#app-header", Static).update(f"dormtui [{name}] {user.name if user else ''}")

    def action_show(self, name: str) -> None:
        self.app.navigate(f"{navigation.TABS_GROUP}/{name}")

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "nav-list" or event.item is None or not event.item.id:
            return
        event.stop()
        self.app.navigate(f"{navigation.TABS_GROUP}/{event.item.id[len('nav-'):]}")


AUTH_SCREENS = {
    navigation.LOGIN: LoginScreen,
    navigation.REGISTER: RegisterScreen,
    navigation.ONBOARDING: OnboardingScreen,
}


class DormApp(App):
    CSS_PATH = "main.tcss"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("q", "quit", "Quit", show=False),
        Binding("ctrl+t", "toggle_theme", "Theme", show=False),
    ]

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state
        self.route = navigation.HOME
        self.state.haptics.feedback = self.bell

    def on_mount(self) -> None:
        self.register_theme(_textual_theme("light", dark=False))
        self.register_theme(_textual_theme("dark", dark=True))
        self.state.load_preferences()
        self._use_theme(self.state.theme.resolved)
        self.state.theme.add_listener(self._use_theme)
        self.state.session.add_listener(lambda _session: self.post_message(SessionChanged()))
        self.push_screen(LoadingScreen())
        self.restore_session()

    @work(thread=True, exclusive=True, group="session")
    def restore_session(self) -> None:
        self.state.session.restore()

    def _use_theme(self, resolved: str) -> None:
        self.theme = f"dorm-{resolved}"

    def on_session_changed(self, message: SessionChanged) -> None:
        self.navigate(self.route)

    def navigate(self, route: str) -> None:
        """Go to ``route`` after the session guard has had its say."""
        session = self.state.session
        redirect = navigation.resolve_redirect(
            session.authenticated, route, session.is_loading, session.has_seen_onboarding
        )
        target = redirect or route
        if session.is_loading:
            self.route = target
            return
        logger.debug("navigate %s -> %s", route, target)
        self.route = target

        # drop any dialogs left over from the previous route
        while len(self.screen_stack) > 2 and isinstance(self.screen, ModalScreen):
            self.pop_screen()

        if navigation.route_group(target) == navigation.AUTH_GROUP:
            screen_cls = AUTH_SCREENS.get(target, LoginScreen)
            if not isinstance(self.screen, screen_cls):
                self.switch_screen(screen_cls())
            return

        panel = navigation.segments(target)[-1]
        if panel not in PANELS:
            panel = "home"
        if isinstance(self.screen, MainScreen):
            if self.screen.panel_name != panel:
                self.screen.show_panel(panel)
        else:
            self.switch_screen(MainScreen(panel))

    def show_alert(self, options: AlertOptions) -> None:
        self.push_screen(AlertDialog(options))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.state.haptics.trigger()

    def action_toggle_theme(self) -> None:
        self.state.theme.toggle()

    def action_logout(self) -> None:
        self.state.logout()


def main():
    config.configure_logging()
    logging.getLogger("dormtui").debug("starting dormtui")
    try:
        DormApp(AppState.create()).run()
    except Exception:
        logging.getLogger("dormtui").exception("Exception occurred while running DormApp:")
        raise


if __name__ == "__main__":
    main()
