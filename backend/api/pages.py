"""Minimal HTML pages the route gate redirects between."""
import html

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from core.auth import validate_session
from config import settings

router = APIRouter()

_LOGIN_HTML = """<!doctype html>
<html><head><title>Tabula — Sign in</title></head>
<body>
  <h1>Sign in</h1>
  <form id="login">
    <input name="username" placeholder="Username" autocomplete="username">
    <input name="password" type="password" placeholder="Password" autocomplete="current-password">
    <button type="submit">Sign in</button>
  </form>
  <p id="error"></p>
  <script>
    document.getElementById("login").addEventListener("submit", async (e) => {
      e.preventDefault();
      const form = new FormData(e.target);
      const res = await fetch("/api/auth/login", {
        method: "POST",
        headers: {"Content-Type": "application/json"},
        body: JSON.stringify(Object.fromEntries(form)),
      });
      const body = await res.json();
      if (body.success) {
        const target = new URLSearchParams(location.search).get("redirect") || "%(dashboard)s";
        location.assign(target);
      } else {
        document.getElementById("error").textContent = body.message;
      }
    });
  </script>
</body></html>
"""

_DASHBOARD_HTML = """<!doctype html>
<html><head><title>Tabula — Dashboard</title></head>
<body>
  <h1>Welcome, %(username)s</h1>
  <p>Browse tables through <code>/api/tables?url=&lt;connection string&gt;</code>.</p>
  <button onclick="fetch('/api/auth/logout', {method: 'POST'}).then(() => location.assign('%(login)s'))">
    Log out
  </button>
</body></html>
"""


@router.get("/login", response_class=HTMLResponse)
def login_page():
    return _LOGIN_HTML % {"dashboard": settings.DASHBOARD_PATH}


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(request: Request):
    # The route gate has already rejected missing/invalid sessions
    session = validate_session(request.cookies.get(settings.SESSION_COOKIE_NAME, ""))
    username = session.username if session else "admin"
    return _DASHBOARD_HTML % {"username": html.escape(username), "login": settings.LOGIN_PATH}
