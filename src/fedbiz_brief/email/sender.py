# ABOUTME: Personalized HTML and plain-text rendering of stored briefs for email delivery.
# ABOUTME: Uses Jinja2 templates, sanitized Markdown conversion, and archives previews to disk.

import re
from datetime import date
from pathlib import Path

import bleach
import markdown as md
import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from fedbiz_brief.brief import rendering
from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.models import BriefDocument, BriefSection, Subscriber

log = structlog.get_logger()

HTML_TEMPLATE = "brief_email.html"
TXT_TEMPLATE = "brief_email.txt"

ALLOWED_TAGS = [
    "p", "br", "strong", "em", "b", "i", "a", "ul", "ol", "li", "blockquote", "h2", "h3", "hr",
]
ALLOWED_ATTRS = {"a": ["href", "title"]}

# Reliability headings get their own styled block in the HTML body.
BLOCK_STYLES = {
    rendering.CONFIRMED_HEADING: ("confirmed", "Confirmed"),
    rendering.DEVELOPING_HEADING: ("developing", "Developing"),
    rendering.SIGNALS_HEADING: ("market-intelligence", "Market Intelligence"),
}

_HEADING_RE = re.compile(r"^#{2,3} (.+)$", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_LINK_RE = re.compile(r"\[(.+?)\]\((.+?)\)")


def render_markdown(value: str) -> Markup:
    """Convert markdown text to sanitized HTML."""
    html = md.markdown(value, extensions=["nl2br"])
    clean = bleach.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRS, strip=True)
    return Markup(clean)


def plain_text(value: str) -> str:
    """Strip Markdown markup for the text/plain body."""
    value = _HEADING_RE.sub(r"\1:", value)
    value = _BOLD_RE.sub(r"\1", value)
    return _LINK_RE.sub(r"\1 (\2)", value)


def split_blocks(section: BriefSection) -> list[dict[str, str]]:
    """Split section Markdown at "###" headings, tagging reliability blocks with a CSS class."""
    blocks: list[dict[str, str]] = []
    current = {"css_class": "", "label": "", "body": ""}
    for line in section.content.splitlines(keepends=True):
        if line.startswith("### "):
            if current["body"].strip():
                blocks.append(current)
            css_class, label = BLOCK_STYLES.get(line.rstrip("\n"), ("", ""))
            current = {"css_class": css_class, "label": label, "body": line}
        else:
            current["body"] += line
    if current["body"].strip():
        blocks.append(current)
    return blocks


class BriefEmailRenderer:
    """Renders a BriefDocument into per-subscriber HTML and text bodies."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._jinja_env: Environment | None = None

    @property
    def jinja_env(self) -> Environment:
        """Lazy-initialized Jinja2 environment."""
        if self._jinja_env is None:
            self._jinja_env = Environment(
                loader=FileSystemLoader(str(self.settings.templates_dir)),
                autoescape=select_autoescape(["html"]),
            )
            self._jinja_env.filters["markdown"] = render_markdown
            self._jinja_env.filters["plain_text"] = plain_text
        return self._jinja_env

    def _context(self, document: BriefDocument, subscriber_name: str) -> dict:
        base_url = self.settings.brief_base_url.rstrip("/")
        return {
            "title": document.title,
            "subscriber_name": subscriber_name,
            "sections": [
                {
                    "title": section.title,
                    "content": section.content,
                    "blocks": split_blocks(section),
                    "signals": section.signals_and_rumors,
                }
                for section in document.sections
                if section.content
            ],
            "briefs_url": f"{base_url}/briefs",
            "unsubscribe_url": f"{base_url}/unsubscribe",
        }

    def render(self, document: BriefDocument, subscriber: Subscriber) -> tuple[str, str]:
        """Render the email bodies for one subscriber.

        Args:
            document: Stored brief.
            subscriber: Recipient; greeted by display name.

        Returns:
            Tuple of (html, text).
        """
        context = self._context(document, subscriber.display_name)
        html = self.jinja_env.get_template(HTML_TEMPLATE).render(**context)
        text = self.jinja_env.get_template(TXT_TEMPLATE).render(**context)
        return html, text

    def _archive(
        self, content: str, extension: str, suffix: str = "", issue_date: date | None = None
    ) -> Path:
        archive_date = issue_date or self.settings.local_today()
        filename = f"{archive_date.strftime('%Y%m%d')}_brief{suffix}.{extension}"
        archive_dir = Path(self.settings.previous_issues_dir)
        archive_dir.mkdir(parents=True, exist_ok=True)

        file_path = archive_dir / filename
        file_path.write_text(content, encoding="utf-8")

        log.info("brief_archived", file=str(file_path))
        return file_path

    def save_preview(self, document: BriefDocument, subscriber_name: str = "Subscriber") -> Path:
        """Render the brief without sending and write it under previous_issues_dir.

        Returns:
            Path to the saved HTML preview file.
        """
        log.info("saving_preview", title=document.title)
        preview = Subscriber(email="preview@localhost", name=subscriber_name)
        html, text = self.render(document, preview)

        self._archive(text, "txt", "_preview", document.brief_date)
        return self._archive(html, "html", "_preview", document.brief_date)
