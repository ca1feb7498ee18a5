# ABOUTME: Markdown rendering for brief sections, entries, header and footer.
# ABOUTME: Produces the stored brief text that email rendering later converts to HTML and plain text.

from datetime import date, datetime

from fedbiz_brief.models import BriefSection, ContentItem, Solicitation

CONFIRMED_HEADING = "### ✅ Confirmed Updates"
DEVELOPING_HEADING = "### 🔄 Developing Stories"
SIGNALS_HEADING = "### 📊 Signals & Market Intelligence"
NEW_OPPORTUNITIES_HEADING = "### New Opportunities"
CLOSING_SOON_HEADING = "### Closing Soon ⏰"
UNVERIFIED_MARKER = "*(Unverified)*"

MARKET_INTELLIGENCE = [
    "Federal spending continues to prioritize technology modernization and cybersecurity",
    "Small business set-asides remain a key opportunity for emerging vendors",
    "Agencies are increasingly focused on best-value procurements over lowest-price",
]


def short_date(value: date | datetime | None) -> str:
    """Format as "Oct 7"."""
    if value is None:
        return "TBD"
    return f"{value:%b} {value.day}"


def long_date(value: date | datetime | None) -> str:
    """Format as "Oct 7, 2026"."""
    if value is None:
        return "TBD"
    return f"{value:%b} {value.day}, {value.year}"


def brief_title(brief_date: date) -> str:
    return f"Federal BD Brief - {long_date(brief_date)}"


def render_news_entry(item: ContentItem, unverified: bool = False) -> str:
    marker = f" {UNVERIFIED_MARKER}" if unverified else ""
    return (
        f"- **{item.title}**{marker}\n"
        f"  Source: {item.source} | {short_date(item.published_at)}\n"
        f"  [Read more]({item.url})\n\n"
    )


def render_details(meta: dict[str, object], labels: dict[str, str]) -> str:
    """One "Label: value | ..." line for the program's labelled metadata, empty if none set."""
    parts: list[str] = []
    for key, label in labels.items():
        value = meta.get(key)
        if value is None or value == "" or value == []:
            continue
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        parts.append(f"{label}: {value}")
    return f"  {' | '.join(parts)}\n" if parts else ""


def render_new_opportunity(opp: Solicitation, labels: dict[str, str] | None = None) -> str:
    return (
        f"- **{opp.title}** ({opp.opp_no})\n"
        f"  Agency: {opp.agency} | Closes: {short_date(opp.close_date)}\n"
        + render_details(opp.meta, labels or {})
        + f"  [View Details]({opp.url})\n\n"
    )


def render_closing_soon(opp: Solicitation) -> str:
    return (
        f"- **{opp.title}**\n"
        f"  Closes: {long_date(opp.close_date)} | {opp.agency}\n"
        f"  [Submit Response]({opp.url})\n\n"
    )


def signal_line(item: ContentItem) -> str:
    return f"📊 {item.title} ({item.source})"


def render_header(brief_date: date, timezone_label: str) -> str:
    return (
        "# Federal Business Development Daily Brief\n"
        f"*{brief_date:%A, %B} {brief_date.day}, {brief_date.year} | {timezone_label}*\n\n"
        "Good morning from the samfedbiz.com team. Here's your intelligence update "
        "for federal business development opportunities.\n\n"
    )


def render_footer() -> str:
    return (
        "---\n\n"
        "**About This Brief**\n"
        "This brief is generated daily and covers TLS, OASIS+, SEWP, and general "
        "federal contracting opportunities.\n\n"
        "**Intelligence Reliability:**\n"
        "- ✅ **Confirmed Updates**: Official announcements from verified government sources\n"
        "- 🔄 **Developing Stories**: News from credible sources requiring further monitoring\n"
        "- 📊 **Signals & Market Intelligence**: Unconfirmed reports requiring verification\n\n"
        "**Important:** Always verify information marked as signals or developing stories "
        "before taking action.\n"
    )


def render_brief(brief_date: date, sections: list[BriefSection], timezone_label: str) -> str:
    """Concatenate header, section bodies and footer into the full brief text."""
    body = "".join(f"{section.content}\n" for section in sections)
    return render_header(brief_date, timezone_label) + body + render_footer()
