import os
from datetime import datetime, UTC
from io import BytesIO

import pytest
import reportlab
from PyPDF2 import PdfReader
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from errors import InvalidInput
from generate_certificate import (
    CertificateData,
    slugify_course_title,
    certificate_filename,
    render_certificate_preview,
    export_certificate,
    register_certificate_font,
)

ISSUED = datetime(2024, 8, 2, 10, 0, tzinfo=UTC)
VERA_TTF = os.path.join(os.path.dirname(reportlab.__file__), 'fonts', 'Vera.ttf')


def _data(**overrides):
    values = dict(
        student_name='Jane Doe',
        course_title='Full Stack Web Dev!!',
        course_description='HTML, CSS, JavaScript and Python.',
        completion_date='July 15, 2024',
        certificate_id='PRC00042',
        course_duration='6 months',
    )
    values.update(overrides)
    return CertificateData(**values)


@pytest.mark.parametrize('title, slug', [
    ('Full Stack Web Dev!!', 'full_stack_web_dev_'),
    ('C++ & Data Structures', 'c_data_structures'),
    ('  Tally ERP 9 ', '_tally_erp_9_'),
    ('python', 'python'),
])
def test_slugify_course_title(title, slug):
    assert slugify_course_title(title) == slug


def test_certificate_filename():
    assert certificate_filename(_data()) == 'Certificate_PRC00042_full_stack_web_dev_.pdf'


@pytest.mark.parametrize('field', ['student_name', 'course_title'])
@pytest.mark.parametrize('value', ['', '   '])
def test_renderer_rejects_empty_identity_fields(field, value):
    with pytest.raises(InvalidInput):
        render_certificate_preview(_data(**{field: value}))
    with pytest.raises(InvalidInput):
        export_certificate(_data(**{field: value}))


def test_preview_contains_certificate_content():
    html = render_certificate_preview(_data(), issued_on=ISSUED)
    assert 'Certificate of Completion' in html
    assert 'This is to certify that' in html
    assert 'Jane Doe' in html
    assert 'has successfully completed the course' in html
    assert '&#34;Full Stack Web Dev!!&#34;' in html or '"Full Stack Web Dev!!"' in html
    assert 'PRC00042' in html
    assert 'July 15, 2024' in html
    assert 'Course Duration' in html
    assert 'ProCo Tech' in html
    assert 'Issued on August 02, 2024 at 10:00 UTC' in html


def test_preview_omits_duration_when_absent():
    html = render_certificate_preview(_data(course_duration=None), issued_on=ISSUED)
    assert 'Course Duration' not in html


def test_preview_escapes_markup():
    html = render_certificate_preview(_data(student_name='<script>alert(1)</script>'), issued_on=ISSUED)
    assert '<script>alert(1)</script>' not in html
    assert '&lt;script&gt;' in html


def test_export_is_single_a4_page():
    cert = export_certificate(_data(), issued_on=ISSUED)
    assert cert.filename == 'Certificate_PRC00042_full_stack_web_dev_.pdf'
    assert cert.mimetype == 'application/pdf'
    assert cert.content.startswith(b'%PDF')
    reader = PdfReader(BytesIO(cert.content))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert round(float(box.width)) == round(A4[0])
    assert round(float(box.height)) == round(A4[1])
    text = reader.pages[0].extract_text()
    assert 'JANE DOE' in text
    assert 'PRC00042' in text


def test_export_merges_background_template(tmp_path):
    template = tmp_path / 'background.pdf'
    can = canvas.Canvas(str(template), pagesize=A4)
    can.drawString(40, 40, 'BACKGROUND MARK')
    can.showPage()
    can.save()

    cert = export_certificate(_data(), issued_on=ISSUED, template_path=str(template))
    reader = PdfReader(BytesIO(cert.content))
    assert len(reader.pages) == 1
    text = reader.pages[0].extract_text()
    assert 'BACKGROUND MARK' in text
    assert 'PRC00042' in text


def test_export_ignores_missing_template(tmp_path):
    cert = export_certificate(_data(), issued_on=ISSUED, template_path=str(tmp_path / 'missing.pdf'))
    assert len(PdfReader(BytesIO(cert.content)).pages) == 1


def test_footer_carries_render_time():
    cert = export_certificate(_data(), issued_on=ISSUED)
    text = PdfReader(BytesIO(cert.content)).pages[0].extract_text()
    assert 'August 02, 2024 at 10:00 UTC' in text


def _font_names(content):
    fonts = PdfReader(BytesIO(content)).pages[0]['/Resources']['/Font']
    return [str(font.get_object()['/BaseFont']) for font in fonts.values()]


def test_export_with_unicode_font_keeps_non_latin_name():
    name = 'राहुल शर्मा'
    cert = export_certificate(_data(student_name=name), issued_on=ISSUED, font_path=VERA_TTF)
    reader = PdfReader(BytesIO(cert.content))
    text = reader.pages[0].extract_text()
    assert 'राहुल' in text
    assert 'PRC00042' in text
    assert any('Vera' in font for font in _font_names(cert.content))


def test_register_certificate_font():
    assert register_certificate_font(VERA_TTF) == 'Certificate-Vera'
    assert register_certificate_font(VERA_TTF) == 'Certificate-Vera'
    assert register_certificate_font(None) is None
    assert register_certificate_font('/nonexistent/font.ttf') is None


def test_unreadable_font_falls_back_to_times(tmp_path):
    bogus = tmp_path / 'broken.ttf'
    bogus.write_bytes(b'not a font')
    assert register_certificate_font(str(bogus)) is None
    cert = export_certificate(_data(), issued_on=ISSUED, font_path=str(bogus))
    assert 'JANE DOE' in PdfReader(BytesIO(cert.content)).pages[0].extract_text()
    assert not any('Vera' in font for font in _font_names(cert.content))
