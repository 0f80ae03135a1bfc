"""Lobby page. Not part of the OAuth flow, just a link to start it."""

from __future__ import annotations

import html

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.core.config import SETTINGS

router = APIRouter(tags=["lobby"])

_LOBBY_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Memberful OAuth Example</title>
</head>
<body>
  <h1>Memberful OAuth Example - Python + FastAPI (No auth library)</h1>
  <p><a href="{begin_url}">Begin OAuth Flow</a></p>
</body>
</html>
"""


@router.get("/")
def lobby() -> HTMLResponse:
    page = _LOBBY_HTML.format(
        begin_url=html.escape(SETTINGS.begin_oauth_flow_path, quote=True)
    )
    return HTMLResponse(page)
