# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import time
from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from userportal.auth.session import SESSION_COOKIE, SessionManager, SessionStore, flash, get_session
from userportal.auth.tokens import TOKEN_COOKIE
from userportal.config import load_settings
from userportal.core.outcome import Outcome
from userportal.infra.user_store import UserStore
from userportal.log import logger
from userportal.permissions import CurrentUser, load_user_from_request, require_user
from userportal.services.account_service import authenticate, list_users, register_user

BASE_DIR = Path(__file__).resolve().parent

SETTINGS = load_settings()

app = FastAPI(title="userportal")

app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

app.state.store = UserStore.from_url(SETTINGS.database_url)
app.state.store.init_schema()

SESSIONS = SessionManager(
    SETTINGS.session_secret,
    SessionStore(max_age=SETTINGS.session_max_age),
    cookie_settings=SETTINGS.cookie_settings(),
)

MSG_LOGGED_OUT = "You have been logged out."
MSG_CONTACT_SENT = "Thanks for your message!"
MSG_CONTACT_EMPTY = "Please enter a message."


def _sets_cookie(response, key: str) -> bool:
    prefix = f"{key}="
    return any(v.startswith(prefix) for v in response.headers.getlist("set-cookie"))


# Registered innermost first: the session wraps the auth gate, the request
# log wraps everything.
@app.middleware("http")
async def _auth_gate(request: Request, call_next):
    user, reject = load_user_from_request(request, secret=SETTINGS.token_secret, max_age=SETTINGS.token_max_age)
    request.state.user = user
    response = await call_next(request)
    if reject and not _sets_cookie(response, TOKEN_COOKIE):
        response.delete_cookie(TOKEN_COOKIE)
    return response


@app.middleware("http")
async def _session_middleware(request: Request, call_next):
    session = SESSIONS.open(request.cookies.get(SESSION_COOKIE))
    request.state.session = session
    response = await call_next(request)
    SESSIONS.commit(session, response)
    return response


@app.middleware("http")
async def _request_log(request: Request, call_next):
    t0 = time.perf_counter()
    response = await call_next(request)
    dt = (time.perf_counter() - t0) * 1000.0
    logger.info("{} {} -> {} in {:.1f} ms", request.method, request.url.path, response.status_code, dt)
    return response


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def _render(request: Request, template_name: str, ctx: dict):
    """TemplateResponse wrapper injecting the current user and pending flashes."""
    flashes = get_session(request).pop_flashes()
    base_ctx = {
        "current_user": getattr(request.state, "user", None),
        "success_msgs": flashes["success"],
        "error_msgs": flashes["error"],
    }
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _respond(request: Request, outcome: Outcome, *, ok_url: str, fail_url: str) -> RedirectResponse:
    if outcome.message:
        flash(request, outcome.flash_category, outcome.message)
    return _redirect(ok_url if outcome.ok else fail_url)


# ------------------ Public pages ------------------


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    return _render(request, "index.html", {"title": "Home", "message": "Welcome!"})


@app.get("/about", response_class=HTMLResponse)
def about(request: Request):
    return _render(request, "about.html", {"title": "About", "content": "This is the about page."})


@app.get("/contact", response_class=HTMLResponse)
def contact_get(request: Request):
    return _render(request, "contact.html", {"title": "Contact"})


@app.post("/contact")
def contact_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    message: str = Form(""),
):
    if not message.strip():
        flash(request, "error", MSG_CONTACT_EMPTY)
        return _redirect("/contact")
    # Nothing is delivered yet; the submission only shows up in the log.
    logger.info("contact message from {!r} <{}> ({} chars)", name.strip(), email.strip(), len(message))
    flash(request, "success", MSG_CONTACT_SENT)
    return _redirect("/contact")


# ------------------ Registration / login ------------------


@app.get("/register", response_class=HTMLResponse)
def register_get(request: Request):
    return _render(request, "register.html", {"title": "Register"})


@app.post("/register")
def register_post(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    name: str = Form(""),
    store: UserStore = Depends(get_store),
):
    outcome = register_user(
        store,
        username=username,
        email=email,
        password=password,
        name=name,
        hash_cost=SETTINGS.password_hash_cost,
    )
    return _respond(request, outcome, ok_url="/login", fail_url="/register")


@app.get("/login", response_class=HTMLResponse)
def login_get(request: Request):
    return _render(request, "login.html", {"title": "Login"})


@app.post("/login")
def login_post(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    store: UserStore = Depends(get_store),
):
    outcome = authenticate(store, username=username, password=password, token_secret=SETTINGS.token_secret)
    resp = _respond(request, outcome, ok_url="/", fail_url="/login")
    if outcome.ok:
        resp.set_cookie(
            TOKEN_COOKIE,
            outcome.value,
            max_age=SETTINGS.token_max_age,
            **SETTINGS.cookie_settings(),
        )
    return resp


@app.get("/logout")
def logout(request: Request):
    resp = _redirect("/login")
    resp.delete_cookie(TOKEN_COOKIE)
    flash(request, "success", MSG_LOGGED_OUT)
    return resp


# ------------------ Protected pages ------------------


@app.get("/users", response_class=HTMLResponse)
def users_page(
    request: Request,
    user: CurrentUser = Depends(require_user),
    store: UserStore = Depends(get_store),
):
    outcome = list_users(store)
    if not outcome.ok:
        return _respond(request, outcome, ok_url="/", fail_url="/")
    return _render(request, "users.html", {"title": "Users", "users": outcome.value})
