"""
Test: Certificate renderer: centring, image degradation, fatal failures, download.
"""
import pytest
import requests
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from backend.errors import CertificateGenerationError, DownloadError
from backend.services import certificate_generator
from backend.services.certificate_generator import (
    CertificateRenderer, PAGE_SIZE, centered_x, certificate_filename,
    fetch_asset, format_completion_date, trigger_download,
    LOGO_PLACEHOLDER, SIGNATURE_PLACEHOLDER,
)

PLACEHOLDERS = {LOGO_PLACEHOLDER, SIGNATURE_PLACEHOLDER}


@pytest.fixture
def drawn(monkeypatch):
    """Record every drawString/drawImage call made on any canvas."""
    calls = {"text": [], "images": []}
    original_string = canvas.Canvas.drawString
    original_image = canvas.Canvas.drawImage

    def spy_string(self, x, y, text, *args, **kwargs):
        calls["text"].append({"text": text, "x": x, "y": y,
                              "font": self._fontname, "size": self._fontsize})
        return original_string(self, x, y, text, *args, **kwargs)

    def spy_image(self, image, x, y, width=None, height=None, *args, **kwargs):
        calls["images"].append({"x": x, "y": y, "width": width, "height": height})
        return original_image(self, image, x, y, width, height, *args, **kwargs)

    monkeypatch.setattr(canvas.Canvas, "drawString", spy_string)
    monkeypatch.setattr(canvas.Canvas, "drawImage", spy_image)
    return calls


class TestCentering:
    def test_uses_measured_width(self):
        x = centered_x("Certificate of Completion", "Helvetica-Bold", 30)
        width = stringWidth("Certificate of Completion", "Helvetica-Bold", 30)
        assert x == pytest.approx(PAGE_SIZE[0] / 2 - width / 2)

    def test_same_length_different_width(self):
        # Equal character counts, different glyph widths
        assert centered_x("iiiii", "Helvetica", 20) != pytest.approx(centered_x("WWWWW", "Helvetica", 20))

    def test_every_line_centered(self, renderer, drawn):
        renderer.render("Ada Lovelace", "03/01/2026")
        assert drawn["text"]
        for call in drawn["text"]:
            assert call["x"] == pytest.approx(
                centered_x(call["text"], call["font"], call["size"])
            ), call["text"]


class TestRender:
    def test_returns_pdf(self, renderer):
        pdf = renderer.render("Ada Lovelace", "03/01/2026")
        assert pdf.startswith(b"%PDF")
        assert b"/Subtype /Image" in pdf

    def test_text_content(self, renderer, drawn):
        renderer.render("Ada Lovelace", "03/01/2026")
        texts = [c["text"] for c in drawn["text"]]
        assert texts == [
            "Certificate of Completion",
            "This certifies that",
            "Ada Lovelace",
            "has successfully completed the",
            renderer.course_name,
            "Date of Completion: 03/01/2026",
            renderer.signatory_name,
            renderer.signatory_title,
        ]

    def test_name_in_distinct_typeface(self, renderer, drawn):
        renderer.render("Ada Lovelace", "03/01/2026")
        name = next(c for c in drawn["text"] if c["text"] == "Ada Lovelace")
        assert name["font"] == "Times-Roman"
        assert name["size"] == 36

    def test_images_scaled_proportionally(self, renderer, drawn):
        renderer.render("Ada Lovelace", "03/01/2026")
        logo, signature = drawn["images"]
        # fixture PNG is 400x200
        assert (logo["width"], logo["height"]) == pytest.approx((200, 100))
        assert (signature["width"], signature["height"]) == pytest.approx((100, 50))

    def test_lines_descend(self, renderer, drawn):
        renderer.render("Ada Lovelace", "03/01/2026")
        ys = [c["y"] for c in drawn["text"]]
        assert ys == sorted(ys, reverse=True)
        assert min(ys) > certificate_generator.BORDER_MARGIN

    def test_deterministic_when_invariant(self, renderer):
        assert renderer.render("Ada", "01/01/2026") == renderer.render("Ada", "01/01/2026")


class TestDegradation:
    def test_unreachable_assets_still_render(self, offline_renderer):
        pdf = offline_renderer.render("Ada Lovelace", "03/01/2026")
        assert pdf.startswith(b"%PDF")
        assert b"/Subtype /Image" not in pdf
        assert b"Logo Load Error" in pdf
        assert b"Signature unavailable" in pdf

    def test_only_image_region_differs(self, renderer, offline_renderer, drawn):
        renderer.render("Ada Lovelace", "03/01/2026")
        online = list(drawn["text"])
        drawn["text"].clear()
        offline_renderer.render("Ada Lovelace", "03/01/2026")
        offline = list(drawn["text"])

        online_texts = [c["text"] for c in online]
        offline_texts = [c["text"] for c in offline if c["text"] not in PLACEHOLDERS]
        assert offline_texts == online_texts
        assert {c["text"] for c in offline} & PLACEHOLDERS == PLACEHOLDERS

        # Logo is 100pt tall when loaded, 30pt reserved when not
        assert offline[1]["y"] - online[0]["y"] == pytest.approx(70)

    def test_signature_placeholder_inside_reserved_box(self, offline_renderer, drawn):
        offline_renderer.render("Ada Lovelace", "03/01/2026")
        texts = {c["text"]: c["y"] for c in drawn["text"]}
        box_top = texts["Date of Completion: 03/01/2026"] - 20
        placeholder_y = texts[SIGNATURE_PLACEHOLDER]
        assert placeholder_y == pytest.approx(box_top - 12)
        assert box_top - certificate_generator.SIGNATURE_FALLBACK_HEIGHT < placeholder_y < box_top

    def test_undecodable_image(self, drawn):
        broken = CertificateRenderer(fetcher=lambda url: b"not an image", page_compression=0)
        pdf = broken.render("Ada Lovelace", "03/01/2026")
        assert pdf.startswith(b"%PDF")
        assert drawn["images"] == []

    def test_one_asset_missing(self, png_bytes, drawn):
        def fetcher(url):
            if "signature" in url:
                raise requests.HTTPError("404")
            return png_bytes

        renderer = CertificateRenderer(
            logo_url="https://assets.test/logo.png",
            signature_url="https://assets.test/signature.png",
            fetcher=fetcher,
        )
        renderer.render("Ada Lovelace", "03/01/2026")
        assert len(drawn["images"]) == 1
        texts = [c["text"] for c in drawn["text"]]
        assert SIGNATURE_PLACEHOLDER in texts
        assert LOGO_PLACEHOLDER not in texts

    def test_default_fetch_errors_degrade(self, monkeypatch):
        def boom(url, session=None, timeout=None):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(certificate_generator, "fetch_asset", boom)
        pdf = CertificateRenderer(page_compression=0).render("Ada", "01/01/2026")
        assert b"Logo Load Error" in pdf


class TestFatalFailures:
    def test_unknown_font(self, offline_renderer, monkeypatch):
        monkeypatch.setattr(certificate_generator, "NAME_FONT", "NoSuchFont-Regular")
        with pytest.raises(CertificateGenerationError):
            offline_renderer.render("Ada Lovelace", "03/01/2026")

    def test_save_failure_wrapped(self, offline_renderer, monkeypatch):
        def fail(self):
            raise IOError("disk full")

        monkeypatch.setattr(canvas.Canvas, "save", fail)
        with pytest.raises(CertificateGenerationError) as exc:
            offline_renderer.render("Ada Lovelace", "03/01/2026")
        assert isinstance(exc.value.cause, IOError)


class TestFetchAsset:
    class _Response:
        def __init__(self, status=200, content=b"png"):
            self.status_code = status
            self.content = content

        def raise_for_status(self):
            if self.status_code >= 400:
                raise requests.HTTPError(f"HTTP {self.status_code}")

    class _Session:
        def __init__(self, response):
            self.response = response
            self.calls = []

        def get(self, url, timeout=None):
            self.calls.append((url, timeout))
            return self.response

    def test_returns_content(self):
        session = self._Session(self._Response(content=b"abc"))
        assert fetch_asset("https://x.test/a.png", session=session, timeout=3) == b"abc"
        assert session.calls == [("https://x.test/a.png", 3)]

    def test_http_error_raised(self):
        session = self._Session(self._Response(status=404))
        with pytest.raises(requests.HTTPError):
            fetch_asset("https://x.test/a.png", session=session)


class TestHelpers:
    def test_filename(self):
        assert certificate_filename("Ada  King Lovelace", "Lab 1: Intro") == \
            "Certificate_Ada_King_Lovelace_Lab_1:_Intro.pdf"

    def test_completion_date_from_iso(self):
        assert format_completion_date("2026-03-01T10:00:00+00:00") == "03/01/2026"

    def test_completion_date_zulu(self):
        assert format_completion_date("2026-12-24T08:00:00Z") == "12/24/2026"

    def test_completion_date_defaults_to_today(self):
        assert len(format_completion_date(None)) == 10
        assert len(format_completion_date("garbage")) == 10


class TestTriggerDownload:
    def test_attachment_response(self, app):
        with app.test_request_context():
            response = trigger_download(b"%PDF-1.4 test", "Certificate_Ada.pdf")
            response.direct_passthrough = False
            assert response.mimetype == "application/pdf"
            assert "attachment" in response.headers["Content-Disposition"]
            assert "Certificate_Ada.pdf" in response.headers["Content-Disposition"]
            assert response.get_data() == b"%PDF-1.4 test"

    def test_empty_bytes(self, app):
        with app.test_request_context():
            with pytest.raises(DownloadError):
                trigger_download(b"", "x.pdf")

    def test_outside_request_context(self):
        with pytest.raises(DownloadError):
            trigger_download(b"%PDF", "x.pdf")
