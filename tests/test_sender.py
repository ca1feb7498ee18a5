# ABOUTME: Tests for personalized email rendering of stored briefs.
# ABOUTME: Validates greeting, reliability blocks, signals box, plain-text conversion and previews.

from fedbiz_brief.config import Settings
from fedbiz_brief.email.sender import (
    BriefEmailRenderer,
    plain_text,
    render_markdown,
    split_blocks,
)
from fedbiz_brief.models import BriefDocument, BriefSection, Subscriber


class TestRenderMarkdown:
    """Tests for the markdown filter."""

    def test_converts_and_sanitizes(self) -> None:
        html = render_markdown("**Bold** and <script>alert(1)</script>")

        assert "<strong>Bold</strong>" in html
        assert "<script>" not in html

    def test_keeps_links(self) -> None:
        html = render_markdown("[Read more](https://example.com/news/1)")
        assert '<a href="https://example.com/news/1">Read more</a>' in html


class TestPlainText:
    """Tests for the plain_text filter."""

    def test_strips_markup(self) -> None:
        text = plain_text("### ✅ Confirmed Updates\n- **Title**\n  [Read more](https://x.test/a)\n")

        assert "✅ Confirmed Updates:" in text
        assert "**" not in text
        assert "Read more (https://x.test/a)" in text


class TestSplitBlocks:
    """Tests for split_blocks."""

    def test_reliability_blocks_get_css_classes(self, sample_document: BriefDocument) -> None:
        blocks = split_blocks(sample_document.sections[0])

        assert [block["css_class"] for block in blocks] == [
            "",
            "confirmed",
            "market-intelligence",
            "",
        ]
        assert blocks[0]["body"].startswith("## DLA TLS")
        assert blocks[1]["label"] == "Confirmed"

    def test_section_without_headings(self) -> None:
        section = BriefSection(title="Plain", content="Just text\n")
        assert split_blocks(section) == [{"css_class": "", "label": "", "body": "Just text\n"}]


class TestBriefEmailRenderer:
    """Tests for BriefEmailRenderer."""

    def test_html_is_personalized(
        self, mock_settings: Settings, sample_document: BriefDocument, subscriber: Subscriber
    ) -> None:
        html, _ = BriefEmailRenderer(mock_settings).render(sample_document, subscriber)

        assert "Good morning Dana Analyst," in html
        assert "<title>Federal BD Brief - Oct 7, 2026</title>" in html
        assert "DLA TLS (SOE/F&amp;ESE)" in html

    def test_html_reliability_blocks_and_signals(
        self, mock_settings: Settings, sample_document: BriefDocument, subscriber: Subscriber
    ) -> None:
        """Confirmed and signal blocks are styled and the signals box is shown."""
        html, _ = BriefEmailRenderer(mock_settings).render(sample_document, subscriber)

        assert '<div class="confirmed">' in html
        assert '<div class="market-intelligence">' in html
        assert '<div class="signals">' in html
        assert "Industry chatter about SOE recompete (Contracting Blog)" in html
        assert '<a href="https://example.com/news/1">Read more</a>' in html

    def test_footer_links(
        self, mock_settings: Settings, sample_document: BriefDocument, subscriber: Subscriber
    ) -> None:
        settings = mock_settings.model_copy(update={"brief_base_url": "https://briefs.test/"})
        html, text = BriefEmailRenderer(settings).render(sample_document, subscriber)

        assert 'href="https://briefs.test/briefs"' in html
        assert 'href="https://briefs.test/unsubscribe"' in html
        assert "Unsubscribe: https://briefs.test/unsubscribe" in text

    def test_text_body(
        self, mock_settings: Settings, sample_document: BriefDocument, subscriber: Subscriber
    ) -> None:
        """The text body carries the same content without Markdown or HTML."""
        _, text = BriefEmailRenderer(mock_settings).render(sample_document, subscriber)

        assert text.startswith("Federal BD Brief - Oct 7, 2026\n")
        assert "Good morning Dana Analyst," in text
        assert "DLA TLS (SOE/F&ESE)".upper() in text
        assert "SIGNALS & RUMORS:" in text
        assert "Read more (https://example.com/news/1)" in text
        assert "**" not in text
        assert "<p>" not in text

    def test_nameless_subscriber_uses_mailbox(
        self, mock_settings: Settings, sample_document: BriefDocument
    ) -> None:
        html, _ = BriefEmailRenderer(mock_settings).render(
            sample_document, Subscriber(email="ops@example.com")
        )
        assert "Good morning ops," in html

    def test_empty_sections_are_skipped(
        self, mock_settings: Settings, sample_document: BriefDocument, subscriber: Subscriber
    ) -> None:
        document = sample_document.model_copy(
            update={"sections": [*sample_document.sections, BriefSection(title="Empty", content="")]}
        )
        _, text = BriefEmailRenderer(mock_settings).render(document, subscriber)

        assert "EMPTY" not in text


class TestSavePreview:
    """Tests for preview archiving."""

    def test_writes_html_and_text(
        self, mock_settings: Settings, sample_document: BriefDocument
    ) -> None:
        path = BriefEmailRenderer(mock_settings).save_preview(sample_document)

        assert path == mock_settings.previous_issues_dir / "20261007_brief_preview.html"
        assert "Good morning Subscriber," in path.read_text(encoding="utf-8")
        text_path = mock_settings.previous_issues_dir / "20261007_brief_preview.txt"
        assert text_path.exists()
