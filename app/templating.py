"""
Jinja2 page rendering shared by all routers.

render() exposes the acting user's id to every page as `activeUserId` (set on
request.state by the principal dependency) along with the app's auth mode.
"""
from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    page_context = {
        "activeUserId": getattr(request.state, "user_id", None),
        "auth_mode": request.app.state.auth_mode,
    }
    page_context.update(context or {})
    return templates.TemplateResponse(request, name, page_context, status_code=status_code)
