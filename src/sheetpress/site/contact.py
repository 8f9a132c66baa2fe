"""Apply contact details from site-config.json across pages and docs."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

from sheetpress.core import write_if_changed
from sheetpress.errors import ConfigError
from sheetpress.site.nav import list_pages

logger = logging.getLogger(__name__)

SITE_CONFIG_FILE = "site-config.json"

_EXTRA_PAGES = (Path("services") / "index.html",)
_DOC_FILES = (
    Path("CLAUDE.md"),
    Path("CONTENT.md"),
    Path("automation") / "blog-template-reference.md",
)

_WHATSAPP_RE = re.compile(r"https://wa\.me/\d+")
_TELEGRAM_RE = re.compile(r"https://t\.me/[A-Za-z0-9_]+")


class ContactDetails(BaseModel):
    """The ``contact`` object of site-config.json."""

    whatsappNumber: str = ""
    telegramUrl: str = ""
    supportEmail: str = ""

    @field_validator("whatsappNumber", mode="before")
    @classmethod
    def _digits_only(cls, value: object) -> str:
        return re.sub(r"\D", "", str(value or ""))


def load_contact(root: Path) -> ContactDetails:
    """Read and validate the contact block.

    Raises:
        ConfigError: Missing/unreadable config or no WhatsApp number.
    """
    path = root / SITE_CONFIG_FILE
    if not path.exists():
        raise ConfigError(f"Missing config: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        contact = ContactDetails.model_validate(data.get("contact") or {})
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError, AttributeError) as exc:
        raise ConfigError(f"Failed to read JSON: {path} ({exc})") from exc
    if not contact.whatsappNumber:
        raise ConfigError(f"Missing contact.whatsappNumber in {SITE_CONFIG_FILE}")
    return contact


def replace_contact_links(
    content: str,
    *,
    whatsapp_url: str,
    telegram_url: str,
    support_email: str,
    domain: str,
) -> str:
    content = _WHATSAPP_RE.sub(lambda _m: whatsapp_url, content)
    content = _TELEGRAM_RE.sub(lambda _m: telegram_url, content)
    email_re = re.compile(rf"[A-Z0-9._%+-]+@{re.escape(domain)}", re.I)
    return email_re.sub(lambda _m: support_email, content)


def sync_contact(root: Path, *, domain: str, default_handle: str = "courseworkninja") -> int:
    """Rewrite WhatsApp, Telegram and support-email references in place.

    Returns:
        Number of files changed.
    """
    contact = load_contact(root)
    replacements = {
        "whatsapp_url": f"https://wa.me/{contact.whatsappNumber}",
        "telegram_url": contact.telegramUrl or f"https://t.me/{default_handle}",
        "support_email": contact.supportEmail or f"help@{domain}",
        "domain": domain,
    }

    files = list_pages(root)
    files.extend(p for p in (*_EXTRA_PAGES, *_DOC_FILES) if (root / p).is_file())
    services_dir = root / "services"
    if services_dir.is_dir():
        files.extend(
            Path("services") / d.name / "index.html"
            for d in sorted(services_dir.iterdir())
            if (d / "index.html").is_file()
        )

    changed = 0
    for rel_path in files:
        path = root / rel_path
        before = path.read_text(encoding="utf-8", errors="replace")
        if write_if_changed(path, replace_contact_links(before, **replacements)):
            changed += 1
            logger.info("contact updated: %s", rel_path)
    logger.info("contact sync done. files changed: %d/%d", changed, len(files))
    return changed
