"""
Certificate rendering: an HTML preview and a downloadable A4 PDF.

Both are pure functions of CertificateData plus the issue timestamp printed in
the footer. They never consult enrollment records or approval state.
"""
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, UTC
from io import BytesIO
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
from reportlab.pdfgen import canvas

from errors import InvalidInput
from utils import format_display_timestamp

DEFAULT_ISSUER_NAME = 'ProCo Tech'
TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

# Layout is drawn on an 800 x 1000 design frame, then scaled onto the page.
FRAME_WIDTH = 800
FRAME_HEIGHT = 1000

INK = HexColor('#1f2937')
BODY = HexColor('#374151')
MUTED = HexColor('#6b7280')
ACCENT = HexColor('#3b82f6')
PAPER = HexColor('#f8fafc')

_env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html']))
_env.filters['display_timestamp'] = format_display_timestamp


@dataclass
class CertificateData:
    student_name: str
    course_title: str
    course_description: str
    completion_date: str
    certificate_id: str
    course_duration: Optional[str] = None


@dataclass
class CertificateFile:
    filename: str
    content: bytes
    mimetype: str = 'application/pdf'


def slugify_course_title(title: str) -> str:
    """Lowercase and collapse each run of non-alphanumerics into one underscore."""
    return re.sub(r'[^a-z0-9]+', '_', (title or '').lower())


def certificate_filename(data: CertificateData, ext: str = 'pdf') -> str:
    return f'Certificate_{data.certificate_id}_{slugify_course_title(data.course_title)}.{ext}'


def _validate(data: CertificateData) -> None:
    if not (data.student_name or '').strip():
        raise InvalidInput('Student name is required to render a certificate')
    if not (data.course_title or '').strip():
        raise InvalidInput('Course title is required to render a certificate')


def render_certificate_preview(data: CertificateData, issued_on: Optional[datetime] = None,
                               issuer_name: str = DEFAULT_ISSUER_NAME,
                               logo_url: Optional[str] = None) -> str:
    """Return a full HTML page showing the certificate, suitable for printing."""
    _validate(data)
    template = _env.get_template('certificate_preview.html')
    return template.render(
        cert=data,
        issuer_name=issuer_name,
        logo_url=logo_url,
        issued_on=issued_on or datetime.now(UTC),
    )


def _draw_centred_paragraph(can, text, y, font, size, leading, max_width):
    lines = simpleSplit(text, font, size, max_width)
    can.setFont(font, size)
    for line in lines:
        can.drawCentredString(FRAME_WIDTH / 2, y, line)
        y -= leading
    return y


def _draw_certificate(can, data, issued_on, issuer_name, logo_path, text_font=None):
    """Draw the certificate on the design frame; origin is the frame's bottom-left.

    Record-supplied text (name, course, description, duration, issuer) is set in
    `text_font` when given, otherwise in the built-in Times faces.
    """
    centre = FRAME_WIDTH / 2

    can.setFillColor(PAPER)
    can.setStrokeColor(INK)
    can.setLineWidth(8)
    can.rect(4, 4, FRAME_WIDTH - 8, FRAME_HEIGHT - 8, stroke=1, fill=1)

    y = FRAME_HEIGHT - 110
    can.setFillColor(INK)
    can.setFont('Times-Bold', 36)
    can.drawCentredString(centre, y, 'CERTIFICATE OF COMPLETION')
    can.setFillColor(ACCENT)
    can.rect(centre - 50, y - 22, 100, 3, stroke=0, fill=1)

    y -= 90
    can.setFillColor(BODY)
    can.setFont('Times-Roman', 20)
    can.drawCentredString(centre, y, 'This is to certify that')

    y -= 50
    can.setFillColor(INK)
    y = _draw_centred_paragraph(can, data.student_name.upper(), y, text_font or 'Times-Bold', 32, 38, FRAME_WIDTH - 120)

    y -= 12
    can.setFillColor(BODY)
    can.setFont('Times-Roman', 18)
    can.drawCentredString(centre, y, 'has successfully completed the course')

    y -= 46
    can.setFillColor(ACCENT)
    y = _draw_centred_paragraph(can, f'"{data.course_title}"', y, text_font or 'Times-BoldItalic', 28, 34, FRAME_WIDTH - 120)

    if data.course_description:
        y -= 10
        can.setFillColor(MUTED)
        y = _draw_centred_paragraph(can, data.course_description, y, text_font or 'Times-Roman', 16, 24, 600)

    # Two-column details block
    y -= 40
    left, right = centre - 150, centre + 150
    can.setFont('Times-Roman', 14)
    can.setFillColor(MUTED)
    can.drawCentredString(left, y, 'Completion Date')
    can.drawCentredString(right, y, 'Certificate ID')
    y -= 22
    can.setFont('Times-Bold', 16)
    can.setFillColor(INK)
    can.drawCentredString(left, y, data.completion_date or '-')
    can.drawCentredString(right, y, data.certificate_id or '-')

    if data.course_duration:
        y -= 44
        can.setFont('Times-Roman', 14)
        can.setFillColor(MUTED)
        can.drawCentredString(centre, y, 'Course Duration')
        y -= 22
        can.setFont(text_font or 'Times-Bold', 16)
        can.setFillColor(INK)
        can.drawCentredString(centre, y, data.course_duration)

    # Issuer block
    y -= 50
    if logo_path and os.path.exists(logo_path):
        try:
            logo = ImageReader(logo_path)
            width, height = logo.getSize()
            draw_h = 60
            draw_w = width * draw_h / float(height)
            can.drawImage(logo, centre - draw_w / 2, y - draw_h, draw_w, draw_h, mask='auto')
            y -= draw_h + 14
        except OSError:
            logging.exception('[EXPORT] Could not load certificate logo %s', logo_path)
    can.setFont('Times-Roman', 14)
    can.setFillColor(MUTED)
    can.drawCentredString(centre, y, 'Certified by')
    y -= 22
    can.setFont(text_font or 'Times-Bold', 16)
    can.setFillColor(INK)
    can.drawCentredString(centre, y, issuer_name)

    can.setFont('Times-Roman', 12)
    can.setFillColor(MUTED)
    can.drawCentredString(centre, 70, 'This certificate is officially recognized and verified')
    can.drawCentredString(centre, 52, f'Issued on {format_display_timestamp(issued_on)}')


def register_certificate_font(font_path: Optional[str]) -> Optional[str]:
    """Register a TrueType font for record text and return its reportlab name.

    Returns None when no path is given or the file cannot be loaded; the
    built-in Times faces are used then, which only cover Latin-1.
    """
    if not font_path:
        return None
    if not os.path.exists(font_path):
        logging.warning('[EXPORT] Certificate font %s not found, using Times', font_path)
        return None
    name = 'Certificate-' + os.path.splitext(os.path.basename(font_path))[0]
    if name not in pdfmetrics.getRegisteredFontNames():
        try:
            pdfmetrics.registerFont(TTFont(name, font_path))
        except (TTFError, OSError):
            logging.exception('[EXPORT] Could not load certificate font %s', font_path)
            return None
    return name


def _latin1_only(*values) -> bool:
    try:
        for value in values:
            (value or '').encode('latin-1')
    except UnicodeEncodeError:
        return False
    return True


def export_certificate(data: CertificateData, issued_on: Optional[datetime] = None,
                       issuer_name: str = DEFAULT_ISSUER_NAME,
                       logo_path: Optional[str] = None,
                       template_path: Optional[str] = None,
                       font_path: Optional[str] = None) -> CertificateFile:
    """Render the certificate to a single-page A4 portrait PDF.

    The design frame is scaled to fit the page and centred. When `template_path`
    points at a PDF, the drawing is merged over its first page. `font_path` names
    a TrueType font for names and course text outside Latin-1.
    """
    _validate(data)
    issued_on = issued_on or datetime.now(UTC)
    text_font = register_certificate_font(font_path)
    if text_font is None and not _latin1_only(data.student_name, data.course_title,
                                                data.course_description, data.course_duration, issuer_name):
        logging.warning('[EXPORT] %s has text outside Latin-1 and no certificate font is configured',
                        data.certificate_id)

    page_width, page_height = A4
    ratio = min(page_width / FRAME_WIDTH, page_height / FRAME_HEIGHT)
    offset_x = (page_width - FRAME_WIDTH * ratio) / 2
    offset_y = (page_height - FRAME_HEIGHT * ratio) / 2

    packet = BytesIO()
    can = canvas.Canvas(packet, pagesize=A4)
    can.setTitle(f'Certificate {data.certificate_id}')
    can.setAuthor(issuer_name)
    can.saveState()
    can.translate(offset_x, offset_y)
    can.scale(ratio, ratio)
    _draw_certificate(can, data, issued_on, issuer_name, logo_path, text_font)
    can.restoreState()
    can.showPage()
    can.save()
    packet.seek(0)

    if template_path and os.path.exists(template_path):
        template_pdf = PdfReader(template_path)
        overlay_pdf = PdfReader(packet)
        output_pdf = PdfWriter()
        page = template_pdf.pages[0]
        page.merge_page(overlay_pdf.pages[0])
        output_pdf.add_page(page)
        merged = BytesIO()
        output_pdf.write(merged)
        content = merged.getvalue()
    else:
        if template_path:
            logging.warning('[EXPORT] Certificate template %s not found, using plain page', template_path)
        content = packet.getvalue()

    filename = certificate_filename(data)
    logging.info('[EXPORT] Rendered %s (%d bytes)', filename, len(content))
    return CertificateFile(filename=filename, content=content)
