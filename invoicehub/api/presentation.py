"""Page rendering helpers: template setup and value formatting."""

import math
from datetime import datetime
from pathlib import Path

from fastapi.templating import Jinja2Templates

from invoicehub.shared.config import Settings

TEMPLATES_DIR = Path(__file__).parent / "templates"

NOT_PERSISTED_WARNING = (
    "Invoices are kept in memory only and will be lost when the server restarts."
)


def format_amount(amount: float | None) -> str:
    """Two-decimal amount, or a dash when the amount is missing or not a number."""
    if amount is None or math.isnan(amount):
        return "-"
    return f"{amount:,.2f}"


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M:%S")


def media_url(url: str | None, prefix: str) -> str:
    """Map a stored file reference to something a browser can fetch.

    Absolute URLs (remote storage) are returned unchanged; paths relative to
    the local uploads directory are served under ``prefix``.
    """
    if not url:
        return ""
    if url.startswith(("http://", "https://", "/")):
        return url
    return f"{prefix.rstrip('/')}/{url}"


def is_image(url: str | None) -> bool:
    return bool(url) and url.lower().rsplit("?", 1)[0].endswith(
        (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp")
    )


def create_templates(settings: Settings) -> Jinja2Templates:
    """Jinja2 environment with the formatting filters registered."""
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["amount"] = format_amount
    templates.env.filters["datetime"] = format_datetime
    templates.env.filters["media_url"] = lambda url: media_url(url, settings.uploads_url_prefix)
    templates.env.tests["image"] = is_image
    return templates
