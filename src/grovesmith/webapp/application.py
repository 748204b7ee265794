"""FastAPI frontend for Grovesmith.

Server-rendered pages for managers: a dashboard of recipients, and a profile
page per recipient with the allowance calculator, distributions, category
histories, charitable causes and settings. Every form posts, applies one
operation through :class:`~grovesmith.service.Grovesmith`, stores a notice in
the session and redirects back. Serve it with ``uvicorn grovesmith.webapp:app``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from html import escape as html_escape
from typing import Callable, Iterable, Optional, Tuple

from fastapi import FastAPI, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from .. import persistence as _persistence
from ..config import (
    HISTORY_LIMIT,
    LOG_PATH,
    PROFILE_SECTIONS,
    SESSION_PRINCIPAL_KEY,
    SESSION_PROFILE_READY_KEY,
    SESSION_SECRET,
)
from ..causes import MAX_ACTIVE_CAUSES, get_owned_cause
from ..exceptions import GrovesmithError, NotFoundOrAccessDeniedError, ValidationError
from ..ledger import unit_of_work
from ..models import CategoryAmounts, CategoryType, CauseUpdate, RecipientSummary, TransactionType
from ..money import ZERO, format_currency, parse_amount, split_evenly
from ..ops import StructuredLogger
from ..persistence import AuthUser, CharitableCause, LedgerTransaction
from ..security import AuthManager
from ..service import Grovesmith
from ..themes import AVAILABLE_THEMES, theme_for, unlocked_themes
from ..trophies import display_trophies


# ---------------------------------------------------------------------------
# FastAPI application setup
# ---------------------------------------------------------------------------
app = FastAPI(title="Grovesmith")
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    same_site="lax",
    max_age=None,
)

_persistence.create_db_and_tables()

_time_provider: Callable[[], datetime] = datetime.utcnow

LOGGER = StructuredLogger(path=LOG_PATH)
AUTH = AuthManager()

CATEGORY_COLORS = {
    CategoryType.GIVE: "#16a34a",
    CategoryType.SPEND: "#2563eb",
    CategoryType.SAVE: "#7c3aed",
    CategoryType.INVEST: "#ea580c",
}


def now_utc() -> datetime:
    """Return naive UTC time using the configured provider."""

    return _time_provider()


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------
def principal_id(request: Request) -> Optional[str]:
    return request.session.get(SESSION_PRINCIPAL_KEY)


def bank_for(request: Request) -> Grovesmith:
    return Grovesmith(_persistence.engine, principal_id(request), clock=now_utc, logger=LOGGER)


def require_manager(request: Request) -> Optional[RedirectResponse]:
    """Redirect anonymous visitors to the login page.

    The manager profile is ensured once per signed-in session, before the
    first page of that session is served.
    """

    if not principal_id(request):
        return RedirectResponse("/login", status_code=302)
    if not request.session.get(SESSION_PROFILE_READY_KEY):
        bank_for(request).ensure_manager_profile(
            email=request.session.get("email"), full_name=request.session.get("full_name")
        )
        request.session[SESSION_PROFILE_READY_KEY] = True
    return None


def set_notice(request: Request, message: str, kind: str = "info") -> None:
    request.session["notice"] = message
    request.session["notice_kind"] = kind


def pop_notice(request: Request) -> Tuple[Optional[str], str]:
    message = request.session.pop("notice", None)
    kind = request.session.pop("notice_kind", "info")
    return message, kind


def profile_url(recipient_id: str, section: str = "overview") -> str:
    return f"/recipients/{recipient_id}?section={section}"


def parse_optional_date(raw: Optional[str]) -> Optional[date]:
    text = (raw or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"'{text}' is not a valid date (use YYYY-MM-DD).") from exc


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def base_styles() -> str:
    return """
    <style>
      :root{ --bg:#f0fdf4; --card:#ffffff; --muted:#64748b; --accent:#16a34a; --text:#0f172a; --bad:#dc2626; }
      body{font-family: system-ui,-apple-system,Segoe UI,Roboto,Arial; background:linear-gradient(135deg,#f0fdf4,#eff6ff);
        color:var(--text); max-width:1120px; margin:0 auto; padding:24px 16px;}
      a{color:var(--accent);}
      .topbar{display:flex; justify-content:space-between; align-items:center; margin-bottom:18px;}
      .grid{display:grid; grid-template-columns:repeat(auto-fit,minmax(260px,1fr)); gap:16px;}
      .card{background:var(--card); border-radius:14px; padding:16px; box-shadow:0 1px 3px rgba(15,23,42,0.12); margin-bottom:16px;}
      .hero{border-radius:16px; padding:20px; margin-bottom:16px;}
      .muted{color:var(--muted); font-size:14px;}
      .pill{display:inline-block; padding:3px 10px; border-radius:999px; background:#0f172a; color:#fff; font-size:12px; margin-right:6px;}
      .pill.off{background:rgba(15,23,42,0.15); color:#334155;}
      .notice{padding:10px 14px; border-radius:10px; margin-bottom:14px;}
      .notice.success{background:#dcfce7; color:#166534;}
      .notice.error{background:#fee2e2; color:#991b1b;}
      .notice.info{background:#e0f2fe; color:#075985;}
      .tabs{display:flex; flex-wrap:wrap; gap:6px; margin-bottom:16px;}
      .tabs a{padding:8px 12px; border-radius:10px; text-decoration:none; background:#fff; color:var(--text);}
      .tabs a.active{background:var(--accent); color:#fff;}
      .balances{display:grid; grid-template-columns:repeat(4,1fr); gap:8px;}
      .balance{border-radius:10px; padding:8px; background:rgba(255,255,255,0.7); text-align:center;}
      .balance b{display:block; font-size:18px;}
      table{width:100%; border-collapse:collapse;}
      th,td{text-align:left; padding:8px; border-top:1px solid #e2e8f0; font-size:14px;}
      .positive{color:#16a34a;} .negative{color:var(--bad);}
      form.inline{display:inline-flex; flex-wrap:wrap; gap:6px; align-items:center; margin:4px 0;}
      label{display:block; font-size:13px; color:var(--muted); margin-top:8px;}
      input,textarea,select{padding:8px; border-radius:8px; border:1px solid #cbd5e1; font:inherit;}
      button{padding:8px 14px; border:none; border-radius:10px; background:var(--accent); color:#fff; font-weight:600; cursor:pointer;}
      button.secondary{background:#e2e8f0; color:var(--text);}
      button.danger{background:var(--bad);}
      .progress{height:8px; background:#e2e8f0; border-radius:999px; overflow:hidden;}
      .progress span{display:block; height:100%; background:var(--accent);}
    </style>
    """


def frame(title: str, inner: str) -> str:
    return (
        "<html><head><meta charset='utf-8'><meta name='viewport' "
        f"content='width=device-width,initial-scale=1'><title>{html_escape(title)} · Grovesmith</title>"
        f"{base_styles()}</head><body>{inner}</body></html>"
    )


def render_page(request: Optional[Request], title: str, inner: str, *, status_code: int = 200) -> HTMLResponse:
    notice_html = ""
    if request is not None:
        message, kind = pop_notice(request)
        if message:
            notice_html = f"<div class='notice {html_escape(kind)}'>{html_escape(message)}</div>"
    return HTMLResponse(frame(title, notice_html + inner), status_code=status_code)


def topbar(title: str) -> str:
    return (
        "<div class='topbar'>"
        f"<h2 style='margin:0;'>{html_escape(title)}</h2>"
        "<div><a href='/dashboard'>Dashboard</a> "
        "<form class='inline' method='post' action='/logout'><button class='secondary' type='submit'>Sign out</button></form>"
        "</div></div>"
    )


def balances_html(summary: RecipientSummary) -> str:
    cells = "".join(
        f"<div class='balance'><span style='color:{CATEGORY_COLORS[category]};'>{category.label}</span>"
        f"<b>{format_currency(amount)}</b></div>"
        for category, amount in summary.balances.items()
    )
    return f"<div class='balances'>{cells}</div>"


def trophies_html(summary: RecipientSummary) -> str:
    pills = "".join(
        f"<span class='pill{'' if trophy.earned else ' off'}' title='{html_escape(trophy.description)}'>"
        f"{html_escape(trophy.title)}</span>"
        for trophy in display_trophies(summary.balances)
    )
    return f"<div style='margin-top:10px;'>{pills}</div>"


def recipient_card(summary: RecipientSummary) -> str:
    theme = theme_for(summary.id)
    archived = "<span class='pill off'>Archived</span>" if summary.is_archived else ""
    return f"""
    <div class='hero' style='background:{theme.gradient_css}; color:{theme.text_color};'>
      <h3 style='margin:0 0 4px 0;'><a href='{profile_url(summary.id)}' style='color:inherit;'>{html_escape(summary.name)}</a> {archived}</h3>
      <div class='muted'>Weekly allowance {format_currency(summary.allowance_amount)} ·
        Total {format_currency(summary.balances.total)}</div>
      <div style='margin-top:10px;'>{balances_html(summary)}</div>
      {trophies_html(summary)}
    </div>
    """


def transactions_table(transactions: Iterable[LedgerTransaction]) -> str:
    rows = []
    for transaction in transactions:
        amount = Decimal(transaction.amount)
        css = "positive" if amount >= ZERO else "negative"
        sign = "+" if amount >= ZERO else ""
        rows.append(
            "<tr>"
            f"<td>{transaction.transaction_date:%Y-%m-%d}</td>"
            f"<td>{html_escape(TransactionType(transaction.transaction_type).label)}</td>"
            f"<td>{html_escape(transaction.description or '')}</td>"
            f"<td class='{css}'>{sign}{format_currency(amount)}</td>"
            f"<td>{format_currency(Decimal(transaction.balance_after))}</td>"
            "</tr>"
        )
    if not rows:
        return "<p class='muted'>No transactions yet.</p>"
    return (
        "<table><thead><tr><th>Date</th><th>Type</th><th>Description</th><th>Amount</th><th>Balance</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
    )


def cause_card(cause: CharitableCause) -> str:
    goal = Decimal(cause.goal_amount)
    current = Decimal(cause.current_amount)
    pct = min(Decimal(100), (current / goal) * 100) if goal > ZERO else ZERO
    due = f" · due {cause.due_date:%Y-%m-%d}" if cause.due_date else ""
    description = f"<p class='muted'>{html_escape(cause.description)}</p>" if cause.description else ""
    header = (
        f"<h4 style='margin:0;'>{html_escape(cause.name)}</h4>{description}"
        f"<div class='muted'>{format_currency(current)} of {format_currency(goal)}{due}</div>"
        f"<div class='progress'><span style='width:{pct:.0f}%;'></span></div>"
    )
    if cause.is_completed:
        done = f"{cause.completed_at:%Y-%m-%d}" if cause.completed_at else ""
        return f"<div class='card'>{header}<p><span class='pill'>Donated {done}</span></p></div>"
    due_value = f"{cause.due_date:%Y-%m-%d}" if cause.due_date else ""
    return f"""
    <div class='card'>
      {header}
      <form class='inline' method='post' action='/causes/{cause.id}/allocate'>
        <input name='amount' placeholder='0.00' inputmode='decimal' required>
        <button type='submit'>Allocate</button>
      </form>
      <form class='inline' method='post' action='/causes/{cause.id}/complete'>
        <button type='submit'>Mark donated</button>
      </form>
      <form class='inline' method='post' action='/causes/{cause.id}/delete'>
        <button class='danger' type='submit'>Delete</button>
      </form>
      <details><summary class='muted'>Edit</summary>
        <form method='post' action='/causes/{cause.id}/update'>
          <label>Name</label><input name='name' value='{html_escape(cause.name)}' required>
          <label>Description</label><input name='description' value='{html_escape(cause.description or '')}'>
          <label>Goal</label><input name='goal_amount' value='{goal:.2f}' inputmode='decimal' required>
          <label>Due date</label><input type='date' name='due_date' value='{due_value}'>
          <div style='margin-top:8px;'><button type='submit'>Save cause</button></div>
        </form>
      </details>
    </div>
    """


# ---------------------------------------------------------------------------
# Authentication routes
# ---------------------------------------------------------------------------
@app.get("/")
def index(request: Request):
    target = "/dashboard" if principal_id(request) else "/login"
    return RedirectResponse(target, status_code=302)


@app.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    if principal_id(request):
        return RedirectResponse("/dashboard", status_code=302)
    inner = """
    <div class='grid'>
      <div class='card'>
        <h3>Sign in</h3>
        <form method='post' action='/login'>
          <label>Email</label><input name='email' type='email' required>
          <label>Password</label><input name='password' type='password' required>
          <div style='margin-top:10px;'><button type='submit'>Sign in</button></div>
        </form>
      </div>
      <div class='card'>
        <h3>Create an account</h3>
        <form method='post' action='/signup'>
          <label>Full name</label><input name='full_name'>
          <label>Email</label><input name='email' type='email' required>
          <label>Password</label><input name='password' type='password' required>
          <div style='margin-top:10px;'><button type='submit'>Sign up</button></div>
        </form>
      </div>
    </div>
    """
    return render_page(request, "Sign in", "<h2>Grovesmith</h2>" + inner)


def _start_session(request: Request, user: AuthUser) -> None:
    request.session.clear()
    request.session[SESSION_PRINCIPAL_KEY] = user.id
    request.session["email"] = user.email
    request.session["full_name"] = user.full_name


@app.post("/login")
def login(request: Request, email: str = Form(...), password: str = Form(...)):
    with unit_of_work(_persistence.engine) as session:
        user = AUTH.authenticate(session, email, password)
    if user is None:
        set_notice(request, "Invalid email or password.", "error")
        return RedirectResponse("/login", status_code=302)
    _start_session(request, user)
    return RedirectResponse("/dashboard", status_code=302)


@app.post("/signup")
def signup(request: Request, email: str = Form(...), password: str = Form(...), full_name: str = Form("")):
    try:
        with unit_of_work(_persistence.engine) as session:
            user = AUTH.register(session, email, password, full_name=full_name)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return RedirectResponse("/login", status_code=302)
    _start_session(request, user)
    set_notice(request, "Welcome to Grovesmith!", "success")
    return RedirectResponse("/dashboard", status_code=302)


@app.post("/logout")
def logout(request: Request):
    request.session.clear()
    return RedirectResponse("/login", status_code=302)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------
@app.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, archived: int = Query(0)):
    if (redirect := require_manager(request)) is not None:
        return redirect
    summaries = bank_for(request).list_recipients(include_archived=bool(archived))
    cards = "".join(recipient_card(summary) for summary in summaries)
    if not summaries:
        cards = (
            "<div class='card'><h3>No recipients yet</h3>"
            "<p class='muted'>Add your first child to begin their financial learning journey.</p></div>"
        )
    toggle = (
        "<a href='/dashboard'>Hide archived</a>" if archived else "<a href='/dashboard?archived=1'>Show archived</a>"
    )
    add_form = """
    <div class='card'>
      <h3>Add recipient</h3>
      <form method='post' action='/recipients'>
        <label>Name</label><input name='name' placeholder="Child's name" required>
        <label>Weekly allowance</label><input name='allowance_amount' value='5.00' inputmode='decimal' required>
        <div style='margin-top:10px;'><button type='submit'>Create recipient</button></div>
      </form>
    </div>
    """
    inner = topbar("Welcome back!") + f"<p class='muted'>{toggle}</p><div class='grid'>{cards}{add_form}</div>"
    return render_page(request, "Dashboard", inner)


@app.post("/recipients")
def create_recipient(request: Request, name: str = Form(""), allowance_amount: str = Form("")):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        recipient = bank_for(request).create_recipient(name, parse_amount(allowance_amount))
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return RedirectResponse("/dashboard", status_code=302)
    set_notice(request, f"Created {recipient.name}'s profile.", "success")
    return RedirectResponse(profile_url(recipient.id), status_code=302)


# ---------------------------------------------------------------------------
# Recipient profile
# ---------------------------------------------------------------------------
def _tabs(recipient_id: str, active: str) -> str:
    links = "".join(
        f"<a class='{'active' if section == active else ''}' href='{profile_url(recipient_id, section)}'>{section.title()}</a>"
        for section in PROFILE_SECTIONS
    )
    return f"<div class='tabs'>{links}</div>"


def _overview_section(bank: Grovesmith, summary: RecipientSummary) -> str:
    owed = bank.compute_undistributed(summary.id)
    today = now_utc().date().isoformat()
    inputs = "".join(
        f"<label>{category.label}</label><input name='{category.value}_amount' value='0.00' inputmode='decimal'>"
        for category in CategoryType
    )
    return f"""
    <div class='grid'>
      <div class='card'>
        <h3>Undistributed allowance</h3>
        <p style='font-size:28px; margin:4px 0;'><b>{format_currency(owed.undistributed_amount)}</b></p>
        <p class='muted'>{owed.weeks_since_created} week(s) × {format_currency(owed.weekly_allowance)}
          = {format_currency(owed.total_allowance_owed)} owed;
          {format_currency(owed.total_distributed)} distributed so far.</p>
      </div>
      <div class='card'>
        <h3>Distribute funds</h3>
        <form method='post' action='/recipients/{summary.id}/distribute'>
          {inputs}
          <label>Date</label><input type='date' name='distribution_date' value='{today}'>
          <label>Notes</label><input name='notes' placeholder='Optional'>
          <div style='margin-top:10px;'><button type='submit'>Distribute</button></div>
        </form>
        <form method='post' action='/recipients/{summary.id}/distribute' style='margin-top:12px;'>
          <input type='hidden' name='mode' value='even'>
          <input type='hidden' name='distribution_date' value='{today}'>
          <label>Split evenly</label>
          <input name='split_total' value='{owed.undistributed_amount:.2f}' inputmode='decimal'>
          <button class='secondary' type='submit'>Quick distribute</button>
        </form>
      </div>
    </div>
    """


def _category_section(bank: Grovesmith, summary: RecipientSummary, category: CategoryType) -> str:
    history = bank.list_transactions(summary.id, category=category, limit=HISTORY_LIMIT)
    body = (
        f"<div class='card'><h3>{category.label}</h3>"
        f"<p style='font-size:28px; margin:4px 0;'><b>{format_currency(summary.balances[category])}</b></p></div>"
    )
    if category is CategoryType.GIVE:
        body += _give_extras(bank, summary)
    body += f"<div class='card'><h3>Transaction history</h3>{transactions_table(history)}</div>"
    return body


def _give_extras(bank: Grovesmith, summary: RecipientSummary) -> str:
    give = bank.get_give_balance(summary.id)
    causes = bank.list_causes(summary.id)
    active = [cause for cause in causes if not cause.is_completed]
    completed = [cause for cause in causes if cause.is_completed]
    if len(active) < MAX_ACTIVE_CAUSES:
        add_form = f"""
        <div class='card'>
          <h3>Add a cause</h3>
          <form method='post' action='/recipients/{summary.id}/causes'>
            <label>Name</label><input name='name' required>
            <label>Description</label><input name='description'>
            <label>Goal</label><input name='goal_amount' inputmode='decimal' required>
            <label>Due date</label><input type='date' name='due_date'>
            <div style='margin-top:10px;'><button type='submit'>Add cause</button></div>
          </form>
        </div>
        """
    else:
        add_form = f"<p class='muted'>Up to {MAX_ACTIVE_CAUSES} causes can be active at once.</p>"
    done_html = ""
    if completed:
        done_html = "<h3>Completed causes</h3>" + "".join(cause_card(cause) for cause in completed)
    return f"""
    <div class='card'>
      <h3>Give balance</h3>
      <div class='balances' style='grid-template-columns:repeat(3,1fr);'>
        <div class='balance'>Total unspent<b>{format_currency(give.total_unspent)}</b></div>
        <div class='balance'>Allocated<b>{format_currency(give.total_allocated)}</b></div>
        <div class='balance'>Unallocated<b>{format_currency(give.unallocated)}</b></div>
      </div>
    </div>
    <h3>Active causes ({len(active)}/{MAX_ACTIVE_CAUSES})</h3>
    {''.join(cause_card(cause) for cause in active)}
    {add_form}
    {done_html}
    """


def _themes_card(summary: RecipientSummary) -> str:
    current = theme_for(summary.id)
    swatches = "".join(
        f"<div class='balance' style='background:{theme.gradient_css}; color:{theme.text_color};'>"
        f"{html_escape(theme.name)}{' (current)' if theme.id == current.id else ''}</div>"
        for theme in unlocked_themes()
    )
    locked = len(AVAILABLE_THEMES) - len(unlocked_themes())
    return f"""
    <div class='card'>
      <h3>Themes</h3>
      <div class='balances' style='grid-template-columns:repeat(3,1fr);'>{swatches}</div>
      <p class='muted'>Profile theme: {html_escape(current.name)}. {locked} more themes are still locked.</p>
    </div>
    """


def _settings_section(summary: RecipientSummary) -> str:
    archive_action = "restore" if summary.is_archived else "archive"
    archive_label = "Restore recipient" if summary.is_archived else "Archive recipient"
    return _themes_card(summary) + f"""
    <div class='grid'>
      <div class='card'>
        <h3>Edit profile</h3>
        <form method='post' action='/recipients/{summary.id}/profile'>
          <label>Name</label><input name='name' value='{html_escape(summary.name)}' required>
          <label>Weekly allowance</label><input name='allowance_amount' value='{summary.allowance_amount:.2f}' inputmode='decimal' required>
          <label>Avatar URL</label><input name='avatar_url' value='{html_escape(summary.avatar_url or '')}'>
          <div style='margin-top:10px;'><button type='submit'>Save profile</button></div>
        </form>
      </div>
      <div class='card'>
        <h3>Reset account</h3>
        <p class='muted'>Sets every balance to zero, clears cause allocations and deletes all
          distributions and transactions. This cannot be undone.</p>
        <form method='post' action='/recipients/{summary.id}/reset'>
          <label><input type='checkbox' name='confirm' value='yes' required> I understand</label>
          <div style='margin-top:10px;'><button class='danger' type='submit'>Reset account</button></div>
        </form>
        <form method='post' action='/recipients/{summary.id}/{archive_action}' style='margin-top:16px;'>
          <button class='secondary' type='submit'>{archive_label}</button>
        </form>
      </div>
    </div>
    """


@app.get("/recipients/{recipient_id}", response_class=HTMLResponse)
def recipient_profile(request: Request, recipient_id: str, section: str = Query("overview")):
    if (redirect := require_manager(request)) is not None:
        return redirect
    bank = bank_for(request)
    try:
        summary = bank.get_recipient(recipient_id)
    except NotFoundOrAccessDeniedError as exc:
        body = f"<div class='card'><p>{html_escape(str(exc))}</p><p><a href='/dashboard'>← Back</a></p></div>"
        return render_page(request, "Not found", body, status_code=404)
    section = section if section in PROFILE_SECTIONS else "overview"
    theme = theme_for(summary.id)
    header = f"""
    <div class='hero' style='background:{theme.gradient_css}; color:{theme.text_color};'>
      <h2 style='margin:0;'>{html_escape(summary.name)}</h2>
      <div class='muted'>Weekly allowance {format_currency(summary.allowance_amount)} ·
        Total balance {format_currency(summary.balances.total)} · {html_escape(theme.name)}</div>
      <div style='margin-top:10px;'>{balances_html(summary)}</div>
      {trophies_html(summary)}
    </div>
    """
    if section == "overview":
        content = _overview_section(bank, summary)
    elif section == "settings":
        content = _settings_section(summary)
    else:
        content = _category_section(bank, summary, CategoryType(section))
    inner = topbar(summary.name) + header + _tabs(summary.id, section) + content
    return render_page(request, summary.name, inner)


@app.post("/recipients/{recipient_id}/distribute")
def distribute_funds(
    request: Request,
    recipient_id: str,
    give_amount: str = Form(""),
    spend_amount: str = Form(""),
    save_amount: str = Form(""),
    invest_amount: str = Form(""),
    split_total: str = Form(""),
    mode: str = Form("custom"),
    distribution_date: str = Form(""),
    notes: str = Form(""),
):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        if mode == "even":
            amounts = CategoryAmounts(*split_evenly(parse_amount(split_total)))
        else:
            amounts = CategoryAmounts(
                give=parse_amount(give_amount, default=ZERO),
                spend=parse_amount(spend_amount, default=ZERO),
                save=parse_amount(save_amount, default=ZERO),
                invest=parse_amount(invest_amount, default=ZERO),
            )
        bank_for(request).distribute(
            recipient_id,
            amounts,
            distribution_date=parse_optional_date(distribution_date),
            notes=notes,
        )
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
    else:
        set_notice(request, f"Distributed {format_currency(amounts.total)}.", "success")
    return RedirectResponse(profile_url(recipient_id), status_code=302)


@app.post("/recipients/{recipient_id}/profile")
def update_recipient_profile(
    request: Request,
    recipient_id: str,
    name: str = Form(""),
    allowance_amount: str = Form(""),
    avatar_url: str = Form(""),
):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        bank_for(request).update_profile(recipient_id, name, parse_amount(allowance_amount), avatar_url)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
    else:
        set_notice(request, "Profile updated.", "success")
    return RedirectResponse(profile_url(recipient_id, "settings"), status_code=302)


@app.post("/recipients/{recipient_id}/reset")
def reset_recipient_account(request: Request, recipient_id: str, confirm: str = Form("")):
    if (redirect := require_manager(request)) is not None:
        return redirect
    if confirm != "yes":
        set_notice(request, "Tick the confirmation box to reset the account.", "error")
        return RedirectResponse(profile_url(recipient_id, "settings"), status_code=302)
    try:
        recipient = bank_for(request).reset_account(recipient_id)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return RedirectResponse(profile_url(recipient_id, "settings"), status_code=302)
    set_notice(request, f"{recipient.name}'s account has been reset.", "success")
    return RedirectResponse(profile_url(recipient_id), status_code=302)


@app.post("/recipients/{recipient_id}/archive")
def archive_recipient(request: Request, recipient_id: str):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        recipient = bank_for(request).archive_recipient(recipient_id)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return RedirectResponse(profile_url(recipient_id, "settings"), status_code=302)
    set_notice(request, f"Archived {recipient.name}.", "success")
    return RedirectResponse("/dashboard", status_code=302)


@app.post("/recipients/{recipient_id}/restore")
def restore_recipient(request: Request, recipient_id: str):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        recipient = bank_for(request).restore_recipient(recipient_id)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
    else:
        set_notice(request, f"Restored {recipient.name}.", "success")
    return RedirectResponse(profile_url(recipient_id, "settings"), status_code=302)


# ---------------------------------------------------------------------------
# Charitable causes
# ---------------------------------------------------------------------------
@app.post("/recipients/{recipient_id}/causes")
def create_cause(
    request: Request,
    recipient_id: str,
    name: str = Form(""),
    goal_amount: str = Form(""),
    description: str = Form(""),
    due_date: str = Form(""),
):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        cause = bank_for(request).create_cause(
            recipient_id,
            name,
            parse_amount(goal_amount),
            description=description,
            due_date=parse_optional_date(due_date),
        )
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
    else:
        set_notice(request, f"Added cause '{cause.name}'.", "success")
    return RedirectResponse(profile_url(recipient_id, "give"), status_code=302)


def _cause_redirect(request: Request, cause_id: str) -> RedirectResponse:
    try:
        with unit_of_work(_persistence.engine) as session:
            cause = get_owned_cause(session, principal_id(request), cause_id)
    except NotFoundOrAccessDeniedError:
        return RedirectResponse("/dashboard", status_code=302)
    return RedirectResponse(profile_url(cause.recipient_id, "give"), status_code=302)


@app.post("/causes/{cause_id}/allocate")
def allocate_to_cause(request: Request, cause_id: str, amount: str = Form("")):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        value = parse_amount(amount)
        cause = bank_for(request).allocate(cause_id, value)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return _cause_redirect(request, cause_id)
    set_notice(request, f"Allocated {format_currency(value)} to {cause.name}.", "success")
    return RedirectResponse(profile_url(cause.recipient_id, "give"), status_code=302)


@app.post("/causes/{cause_id}/complete")
def complete_cause(request: Request, cause_id: str):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        transaction = bank_for(request).mark_complete(cause_id)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return _cause_redirect(request, cause_id)
    set_notice(request, f"Donated {format_currency(-Decimal(transaction.amount))}. Thank you!", "success")
    return RedirectResponse(profile_url(transaction.recipient_id, "give"), status_code=302)


@app.post("/causes/{cause_id}/update")
def update_cause(
    request: Request,
    cause_id: str,
    name: str = Form(""),
    description: str = Form(""),
    goal_amount: str = Form(""),
    due_date: str = Form(""),
):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        parsed_due = parse_optional_date(due_date)
        changes = CauseUpdate(
            name=name,
            description=description,
            goal_amount=parse_amount(goal_amount),
            due_date=parsed_due,
            clear_due_date=parsed_due is None,
        )
        cause = bank_for(request).update_cause(cause_id, changes)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return _cause_redirect(request, cause_id)
    set_notice(request, f"Updated '{cause.name}'.", "success")
    return RedirectResponse(profile_url(cause.recipient_id, "give"), status_code=302)


@app.post("/causes/{cause_id}/delete")
def delete_cause(request: Request, cause_id: str):
    if (redirect := require_manager(request)) is not None:
        return redirect
    try:
        cause = bank_for(request).delete_cause(cause_id)
    except GrovesmithError as exc:
        set_notice(request, str(exc), "error")
        return _cause_redirect(request, cause_id)
    set_notice(request, f"Deleted '{cause.name}'; its allocation is free again.", "success")
    return RedirectResponse(profile_url(cause.recipient_id, "give"), status_code=302)


__all__ = ["app", "now_utc", "bank_for", "require_manager", "LOGGER", "AUTH"]
