"""
Server-rendered pages behind the route guard.

The guard has already run by the time these handlers execute: admin pages
only render for verified sessions, and the login page only renders for
anonymous visitors. Markup is deliberately bare; the client-side sign-in
flow obtains an ID token from the identity provider and hands it to
exchangeToken().
"""

import html
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from .auth.deps import get_optional_session
from .auth.session import SessionClaims
from .auth.utils import safe_redirect_target
from .models import TAG_VOCABULARY


def _page(title: str, body: str) -> HTMLResponse:
    html_content = f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{html.escape(title)}</title>
    </head>
    <body>
        {body}
    </body>
    </html>
    """
    return HTMLResponse(content=html_content, status_code=200)


def _logout_form() -> str:
    return """
        <button id="logout" type="button">Sign out</button>
        <script>
            document.getElementById("logout").addEventListener("click", async () => {
                await fetch("/api/auth/logout", { method: "POST", credentials: "same-origin" });
                window.location.assign("/");
            });
        </script>
    """


def build_pages_router(protected_prefix: str, login_path: str, home_path: Optional[str] = None) -> APIRouter:
    """
    Create the page router for the configured guard paths.

    Args:
        protected_prefix: Path of the admin home page
        login_path: Path of the login page
        home_path: Default post-login destination (defaults to protected_prefix)
    """
    home_path = home_path or protected_prefix
    router = APIRouter(tags=["pages"], include_in_schema=False)

    def login_page(redirect: Optional[str] = None) -> HTMLResponse:
        target = safe_redirect_target(redirect, home_path)
        body = f"""
        <main data-redirect="{html.escape(target, quote=True)}">
            <h1>Admin sign in</h1>
            <p id="status"></p>
        </main>
        <script>
            async function exchangeToken(idToken) {{
                const response = await fetch("/api/auth/login", {{
                    method: "POST",
                    headers: {{ "Authorization": "Bearer " + idToken }},
                    credentials: "same-origin",
                }});
                if (!response.ok) {{
                    document.getElementById("status").textContent = "Sign in failed.";
                    return;
                }}
                window.location.assign(document.querySelector("main").dataset.redirect);
            }}
        </script>
        """
        return _page("Sign in", body)

    def admin_home(
        claims: Optional[SessionClaims] = Depends(get_optional_session),
    ) -> HTMLResponse:
        name = claims.display_name if claims else ""
        body = f"""
        <main>
            <h1>Dashboard</h1>
            <p>Signed in as {html.escape(name)}</p>
            <ul>
                <li><a href="{protected_prefix}/categorize">Categorize content</a></li>
            </ul>
            {_logout_form()}
        </main>
        """
        return _page("Admin", body)

    def categorize_page() -> HTMLResponse:
        options = "".join(f"<li>{html.escape(tag)}</li>" for tag in TAG_VOCABULARY)
        body = f"""
        <main>
            <h1>Categorize content</h1>
            <form id="categorize">
                <input name="title" placeholder="Title" required>
                <textarea name="body" placeholder="Content" required></textarea>
                <button type="submit">Suggest tags</button>
            </form>
            <p>Available tags:</p>
            <ul>{options}</ul>
            <pre id="result"></pre>
            <a href="{protected_prefix}">Back</a>
        </main>
        <script>
            document.getElementById("categorize").addEventListener("submit", async (event) => {{
                event.preventDefault();
                const form = new FormData(event.target);
                const response = await fetch("/api/admin/categorize", {{
                    method: "POST",
                    headers: {{ "Content-Type": "application/json" }},
                    credentials: "same-origin",
                    body: JSON.stringify({{ title: form.get("title"), body: form.get("body") }}),
                }});
                document.getElementById("result").textContent = JSON.stringify(await response.json());
            }});
        </script>
        """
        return _page("Categorize", body)

    router.add_api_route(login_path, login_page, methods=["GET"], response_class=HTMLResponse)
    router.add_api_route(protected_prefix, admin_home, methods=["GET"], response_class=HTMLResponse)
    router.add_api_route(
        f"{protected_prefix}/categorize",
        categorize_page,
        methods=["GET"],
        response_class=HTMLResponse,
    )
    return router
