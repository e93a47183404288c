"""
Certificate Generator Service
=============================
Renders the one-page completion certificate (A4 landscape) with reportlab
and hands the bytes back for download.

Layout, top to bottom: logo, title, "This certifies that", student name,
two course lines, completion date, signature image, signature line,
signatory name and title. Every text line is centred by measuring its
rendered width with the font it is drawn in.

The logo and signature are fetched over HTTP. If either cannot be fetched
or decoded, a short placeholder is drawn in its place and the rest of the
page is laid out as usual.
"""

import io
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import requests
from flask import send_file
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from backend.config import (
    ASSET_FETCH_TIMEOUT, CERTIFICATE_LOGO_URL, CERTIFICATE_SIGNATURE_URL,
    CERTIFICATE_COURSE_NAME, CERTIFICATE_SIGNATORY_NAME, CERTIFICATE_SIGNATORY_TITLE,
)
from backend.errors import CertificateGenerationError, DownloadError

logger = logging.getLogger(__name__)


PAGE_SIZE = landscape(A4)  # 841.89 x 595.28 pt
BORDER_MARGIN = 20
BORDER_WIDTH = 3

TITLE_FONT = "Helvetica-Bold"
BODY_FONT = "Helvetica"
NAME_FONT = "Times-Roman"

LOGO_TOP_MARGIN = 40
LOGO_WIDTH = 200
LOGO_FALLBACK_HEIGHT = 30
SIGNATURE_WIDTH = 100
SIGNATURE_FALLBACK_HEIGHT = 20
SIGNATURE_PLACEHOLDER_DROP = 12       # one 12pt text line below the top of the reserved box
SIGNATURE_LINE_HALF_WIDTH = 110

TITLE_TEXT = "Certificate of Completion"
CERTIFIES_TEXT = "This certifies that"
COURSE_INTRO_TEXT = "has successfully completed the"
LOGO_PLACEHOLDER = "Logo Load Error"
SIGNATURE_PLACEHOLDER = "Signature unavailable"

DARK_BLUE = (0.1, 0.2, 0.45)
BORDER_BLUE = (0.27, 0.51, 0.71)
BODY_GREY = (0.2, 0.2, 0.2)
DATE_GREY = (0.33, 0.33, 0.33)
TITLE_GREY = (0.3, 0.3, 0.3)
ERROR_RED = (0.8, 0.2, 0.2)


def fetch_asset(url, session=None, timeout=ASSET_FETCH_TIMEOUT) -> bytes:
    """Download an asset and return its raw bytes.

    Raises requests.RequestException on transport or HTTP errors.
    """
    logger.info("Fetching asset from URL: %s", url)
    getter = session or requests
    response = getter.get(url, timeout=timeout)
    response.raise_for_status()
    logger.info("Asset fetched successfully: %s (%d bytes)", url, len(response.content))
    return response.content


def centered_x(text, font_name, font_size, page_width=PAGE_SIZE[0]) -> float:
    """Left x that centres `text` on the page at the given font and size."""
    return page_width / 2 - pdfmetrics.stringWidth(text, font_name, font_size) / 2


def certificate_filename(full_name, assignment_title) -> str:
    """Certificate_<name>_<title>.pdf with whitespace runs collapsed to '_'."""
    name = re.sub(r"\s+", "_", (full_name or "").strip())
    title = re.sub(r"\s+", "_", (assignment_title or "").strip())
    return f"Certificate_{name}_{title}.pdf"


def format_completion_date(graded_at=None) -> str:
    """Display date for a graded timestamp (datetime or ISO string); today if absent."""
    when = graded_at
    if isinstance(graded_at, str) and graded_at:
        try:
            when = datetime.fromisoformat(graded_at.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable graded timestamp %r, using today", graded_at)
            when = None
    if not isinstance(when, datetime):
        when = datetime.now()
    return when.strftime("%m/%d/%Y")


class CertificateRenderer:
    """Draws completion certificates. Safe to share between threads;
    every render() builds its own canvas and HTTP session."""

    def __init__(self, logo_url=CERTIFICATE_LOGO_URL, signature_url=CERTIFICATE_SIGNATURE_URL,
                 course_name=CERTIFICATE_COURSE_NAME, signatory_name=CERTIFICATE_SIGNATORY_NAME,
                 signatory_title=CERTIFICATE_SIGNATORY_TITLE, fetcher=None,
                 timeout=ASSET_FETCH_TIMEOUT, page_compression=1, invariant=0):
        self.logo_url = logo_url
        self.signature_url = signature_url
        self.course_name = course_name
        self.signatory_name = signatory_name
        self.signatory_title = signatory_title
        self.fetcher = fetcher
        self.timeout = timeout
        self.page_compression = page_compression
        self.invariant = invariant

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    def _fetch_assets(self) -> dict:
        """Fetch logo and signature concurrently. Failed fetches map to None."""
        urls = {"logo": self.logo_url, "signature": self.signature_url}
        assets = {}
        with requests.Session() as session:
            fetch = self.fetcher or (lambda url: fetch_asset(url, session=session, timeout=self.timeout))
            with ThreadPoolExecutor(max_workers=2) as pool:
                futures = {key: pool.submit(fetch, url) for key, url in urls.items() if url}
                for key in urls:
                    future = futures.get(key)
                    if future is None:
                        assets[key] = None
                        continue
                    try:
                        assets[key] = future.result()
                    except Exception as e:
                        logger.warning("Could not fetch %s image from %s: %s", key, urls[key], e)
                        assets[key] = None
        return assets

    @staticmethod
    def _load_image(data):
        """Decode image bytes; returns (reader, width, height) or None."""
        if not data:
            return None
        try:
            reader = ImageReader(io.BytesIO(data))
            width, height = reader.getSize()
        except Exception as e:
            logger.warning("Could not decode certificate image: %s", e)
            return None
        if not width or not height:
            return None
        return reader, width, height

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def _draw_centered(self, c, text, y, font_name, font_size, color, page_width):
        c.setFont(font_name, font_size)
        c.setFillColorRGB(*color)
        c.drawString(centered_x(text, font_name, font_size, page_width), y, text)

    def _draw_image(self, c, image, target_width, x, top_y, label) -> float:
        """Draw `image` scaled to `target_width` with its top edge at top_y.

        Returns the drawn height, or None when the image could not be placed.
        """
        if image is None:
            return None
        reader, img_width, img_height = image
        height = img_height * (target_width / img_width)
        try:
            c.drawImage(reader, x, top_y - height, width=target_width, height=height, mask='auto')
        except Exception as e:
            logger.warning("Could not embed %s image: %s", label, e)
            return None
        return height

    def _draw_page(self, c, full_name, completion_date, assets):
        width, height = PAGE_SIZE
        center_x = width / 2

        # Page styling
        c.setFillColorRGB(1, 1, 1)
        c.rect(0, 0, width, height, stroke=0, fill=1)
        c.setStrokeColorRGB(*BORDER_BLUE)
        c.setLineWidth(BORDER_WIDTH)
        c.rect(BORDER_MARGIN, BORDER_MARGIN, width - 2 * BORDER_MARGIN, height - 2 * BORDER_MARGIN,
               stroke=1, fill=0)

        # Logo
        logo_top = height - LOGO_TOP_MARGIN
        logo_height = self._draw_image(
            c, self._load_image(assets.get("logo")), LOGO_WIDTH,
            (width - LOGO_WIDTH) / 2, logo_top, "logo",
        )
        if logo_height is None:
            self._draw_centered(c, LOGO_PLACEHOLDER, logo_top - 20, BODY_FONT, 12, ERROR_RED, width)
            logo_height = LOGO_FALLBACK_HEIGHT

        current_y = logo_top - logo_height - 60

        self._draw_centered(c, TITLE_TEXT, current_y, TITLE_FONT, 30, DARK_BLUE, width)
        current_y -= 55
        self._draw_centered(c, CERTIFIES_TEXT, current_y, BODY_FONT, 16, BODY_GREY, width)
        current_y -= 60
        self._draw_centered(c, full_name, current_y, NAME_FONT, 36, (0, 0, 0), width)
        current_y -= 50
        self._draw_centered(c, COURSE_INTRO_TEXT, current_y, BODY_FONT, 18, BODY_GREY, width)
        current_y -= 26
        self._draw_centered(c, self.course_name, current_y, TITLE_FONT, 18, DARK_BLUE, width)
        current_y -= 70
        self._draw_centered(c, f"Date of Completion: {completion_date}", current_y,
                            BODY_FONT, 14, DATE_GREY, width)
        current_y -= 20

        # Signature block
        signature_height = self._draw_image(
            c, self._load_image(assets.get("signature")), SIGNATURE_WIDTH,
            center_x - SIGNATURE_WIDTH / 2, current_y, "signature",
        )
        if signature_height is None:
            self._draw_centered(c, SIGNATURE_PLACEHOLDER, current_y - SIGNATURE_PLACEHOLDER_DROP,
                                BODY_FONT, 12, ERROR_RED, width)
            signature_height = SIGNATURE_FALLBACK_HEIGHT
        current_y -= signature_height

        c.setStrokeColorRGB(0.1, 0.1, 0.1)
        c.setLineWidth(1.5)
        c.line(center_x - SIGNATURE_LINE_HALF_WIDTH, current_y,
               center_x + SIGNATURE_LINE_HALF_WIDTH, current_y)
        current_y -= 15

        self._draw_centered(c, self.signatory_name, current_y, BODY_FONT, 12, BODY_GREY, width)
        current_y -= 12
        self._draw_centered(c, self.signatory_title, current_y, BODY_FONT, 11, TITLE_GREY, width)

    def render(self, full_name, completion_date) -> bytes:
        """
        Build the certificate PDF for one (name, date) pair.

        Image problems are logged and replaced with placeholders. Anything
        else that goes wrong raises CertificateGenerationError and no bytes
        are returned.
        """
        logger.info("Starting certificate generation for: %s (date: %s)", full_name, completion_date)
        assets = self._fetch_assets()

        buffer = io.BytesIO()
        try:
            for font_name in (TITLE_FONT, BODY_FONT, NAME_FONT):
                pdfmetrics.getFont(font_name)

            c = canvas.Canvas(buffer, pagesize=PAGE_SIZE,
                              pageCompression=self.page_compression, invariant=self.invariant)
            c.setTitle(TITLE_TEXT)
            c.setSubject(f"{TITLE_TEXT}: {full_name}")
            self._draw_page(c, full_name, completion_date, assets)
            c.showPage()
            c.save()
        except Exception as e:
            logger.exception("Critical error while generating certificate for %s", full_name)
            raise CertificateGenerationError(f"Failed to generate certificate: {e}", cause=e) from e
        finally:
            pdf_bytes = buffer.getvalue()
            buffer.close()

        logger.info("Certificate generated for %s (%d bytes)", full_name, len(pdf_bytes))
        return pdf_bytes


def trigger_download(pdf_bytes, filename):
    """Wrap certificate bytes in a Flask attachment response.

    Must be called inside a request context.
    """
    if not pdf_bytes:
        raise DownloadError("No certificate data to download")
    try:
        response = send_file(
            io.BytesIO(pdf_bytes),
            mimetype='application/pdf',
            as_attachment=True,
            download_name=filename,
        )
    except Exception as e:
        logger.error("Error preparing download %s: %s", filename, e)
        raise DownloadError(f"Failed to trigger PDF download: {e}", cause=e) from e
    logger.info("PDF download prepared for: %s", filename)
    return response
