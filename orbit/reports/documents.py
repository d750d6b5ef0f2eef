"""
Printable documents: registration form, invoice and certificate.
Uses reportlab for layout, python-barcode and Pillow for the certificate barcode.
"""
import base64
import binascii
import io
import logging

import barcode
from barcode.writer import ImageWriter
from PIL import Image
from reportlab.lib.colors import HexColor, white
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .formatting import format_currency, format_date, format_datetime, format_percent

logger = logging.getLogger(__name__)

BRAND = HexColor('#1f1566')
GOLD = HexColor('#d4af37')
TEXT = HexColor('#333333')
MUTED = HexColor('#666666')
RULE = HexColor('#CCCCCC')
LIGHT_FILL = HexColor('#F3F4F8')

INVOICE_TERMS = [
    "Fee once paid is not refundable under any circumstances.",
    "Balance amount should be paid as per the agreed schedule.",
    "Institute reserves the right to cancel admission in case of defaulted payments.",
    "This is a computer-generated invoice and doesn't require a signature.",
]

REGISTRATION_TERMS = [
    "The payment for any course must be made fully after signing the contract and prior to the "
    "course commencement.",
    "Paid fees are made only for the mentioned individual, for the specified course, and their "
    "specific time only.",
    "Every absence is counted and no make-up sessions are given. Fees and other paid amounts are "
    "non-transferable and non-refundable.",
    "Payments are to be made in the institute currency. Course and examination fees may be "
    "exclusive of applicable taxes.",
    "Attendance is mandatory.",
    "The institute may cancel an admission if fees are not paid on the agreed date, the candidate "
    "does not join from the starting date, or the minimum qualification is not proven.",
    "The institute reserves the right to modify course content, fee structure and these terms.",
    "Any dispute shall ideally be resolved amicably amongst the parties with mutual agreement.",
]


class DocumentCanvas:
    """Small set of drawing helpers over a reportlab canvas"""

    def __init__(self, pagesize=A4, title=''):
        self.buffer = io.BytesIO()
        self.width, self.height = pagesize
        self.margin = 50
        self.c = canvas.Canvas(self.buffer, pagesize=pagesize)
        if title:
            self.c.setTitle(title)
        self.y = self.height - self.margin

    def text(self, value, x=None, font='Helvetica', size=10, color=TEXT, align='left', advance=0):
        x = self.margin if x is None else x
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        value = '' if value is None else str(value)
        if align == 'center':
            self.c.drawCentredString(x, self.y, value)
        elif align == 'right':
            self.c.drawRightString(x, self.y, value)
        else:
            self.c.drawString(x, self.y, value)
        self.y -= advance

    def wrapped(self, value, x=None, width=None, font='Helvetica', size=9, leading=12, color=TEXT):
        x = self.margin if x is None else x
        width = width or (self.width - x - self.margin)
        line = ''
        for word in str(value).split():
            candidate = f"{line} {word}".strip()
            if stringWidth(candidate, font, size) <= width:
                line = candidate
                continue
            self.text(line, x, font, size, color, advance=leading)
            line = word
        if line:
            self.text(line, x, font, size, color, advance=leading)

    def rule(self, color=RULE, width=0.8):
        self.c.setStrokeColor(color)
        self.c.setLineWidth(width)
        self.c.line(self.margin, self.y, self.width - self.margin, self.y)

    def label_value(self, label, value, x, label_width=110):
        self.text(f"{label}:", x, 'Helvetica-Bold', 9)
        self.text(value or '-', x + label_width, 'Helvetica', 9)

    def institute_header(self, institute, heading):
        self.text(institute.name, font='Helvetica-Bold', size=18, color=BRAND, advance=16)
        contact = ' | '.join(filter(None, [institute.address, institute.phone, institute.email]))
        if contact:
            self.text(contact, size=8, color=MUTED, advance=12)
        self.text(heading, self.width - self.margin, 'Helvetica-Bold', 14, BRAND, align='right', advance=12)
        self.rule(BRAND, 1.2)
        self.y -= 24

    def finish(self):
        self.c.showPage()
        self.c.save()
        return self.buffer.getvalue()


def _signature_image(signature_data):
    """Decode a base64 (optionally data-URL) signature into an ImageReader"""
    if not signature_data:
        return None
    payload = signature_data.split(',', 1)[1] if signature_data.startswith('data:') else signature_data
    try:
        image = Image.open(io.BytesIO(base64.b64decode(payload)))
        image.load()
    except (binascii.Error, ValueError, OSError) as e:
        logger.warning(f"Could not decode signature image: {e}")
        return None
    return ImageReader(image)


def render_registration_pdf(student, institute):
    """Registration form with course lines, totals, terms and signature"""
    doc = DocumentCanvas(title=f"Registration {student.registration_number or student.student_id}")
    doc.institute_header(institute, "Student Registration Form")
    currency = institute.currency

    left, right = doc.margin, doc.width / 2 + 10
    rows = [
        (("Registration No", student.registration_number), ("Student ID", student.student_id)),
        (("Full Name", student.full_name), ("Registration Date", format_date(student.registration_date))),
        (("Father's Name", student.father_name), ("Date of Birth", format_date(student.dob))),
        (("Email", student.email), ("Phone", student.phone)),
        (("Nationality", student.nationality), ("Alternative Phone", student.alternative_phone)),
        (("Passport No", student.passport_no), ("Emirates ID", student.emirates_id_no)),
        (("Education", student.education), ("Company/University", student.company_or_university)),
        (("Class Type", student.get_class_type_display()), ("Batch", student.get_batch_display())),
    ]
    doc.text("Student Details", font='Helvetica-Bold', size=12, color=BRAND, advance=18)
    for (l_label, l_value), (r_label, r_value) in rows:
        doc.label_value(l_label, l_value, left)
        doc.label_value(r_label, r_value, right)
        doc.y -= 15
    if student.address:
        doc.label_value("Address", student.address, left)
        doc.y -= 15
    doc.y -= 10

    doc.text("Courses", font='Helvetica-Bold', size=12, color=BRAND, advance=8)
    columns = [("Course", 230), ("Price", 95), ("Discount", 70), ("Final", 100)]
    x = doc.margin
    doc.c.setFillColor(BRAND)
    doc.c.rect(doc.margin, doc.y - 16, sum(w for _, w in columns), 18, fill=1, stroke=0)
    doc.y -= 11
    for heading, w in columns:
        doc.text(heading, x + 4, 'Helvetica-Bold', 9, white)
        x += w
    doc.y -= 19

    course_lines = list(student.registration_courses.select_related('course'))
    for index, line in enumerate(course_lines):
        if index % 2:
            doc.c.setFillColor(LIGHT_FILL)
            doc.c.rect(doc.margin, doc.y - 5, sum(w for _, w in columns), 16, fill=1, stroke=0)
        values = [line.course.name, format_currency(line.price, currency), format_percent(line.discount),
                  format_currency(line.final_price, currency)]
        x = doc.margin
        for value, (_, w) in zip(values, columns):
            doc.text(value, x + 4, 'Helvetica', 9)
            x += w
        doc.y -= 16
    doc.y -= 8

    totals_x = doc.width - doc.margin
    for label, value in [
        ("Course Fee", student.course_fee),
        ("Discount", student.discount),
        ("Total Fee", student.total_fee),
        ("Amount Paid", student.amount_paid()),
        ("Balance Due", student.balance_due),
    ]:
        doc.text(f"{label}: {format_currency(value, currency)}", totals_x, 'Helvetica-Bold', 10,
                 align='right', advance=14)
    if student.due_date and student.balance_due > 0:
        doc.text(f"Balance due by {format_date(student.due_date)}", totals_x, size=9, color=MUTED,
                 align='right', advance=14)
    doc.y -= 10

    doc.text("Terms and Conditions", font='Helvetica-Bold', size=11, color=BRAND, advance=14)
    for number, term in enumerate(REGISTRATION_TERMS, start=1):
        doc.wrapped(f"{number}. {term}", size=8, leading=10)
    doc.y -= 6
    doc.wrapped("I have read, understood, and I do hereby consent to the above Terms & Conditions.",
                font='Helvetica-Oblique', size=8, leading=10)
    doc.y -= 30

    signature = _signature_image(student.signature_data)
    if signature:
        doc.c.drawImage(signature, doc.margin, doc.y, width=140, height=40, mask='auto',
                        preserveAspectRatio=True)
    doc.c.setStrokeColor(TEXT)
    doc.c.line(doc.margin, doc.y - 4, doc.margin + 180, doc.y - 4)
    doc.c.line(doc.width - doc.margin - 180, doc.y - 4, doc.width - doc.margin, doc.y - 4)
    doc.y -= 16
    doc.text("Student Signature", doc.margin, size=9)
    doc.text("Authorized Signatory", doc.width - doc.margin, size=9, align='right', advance=12)
    if student.terms_accepted and student.signature_date:
        doc.text(f"*Terms and conditions accepted digitally on {format_datetime(student.signature_date)}",
                 size=7, color=MUTED)
    return doc.finish()


def render_invoice_pdf(invoice, institute):
    """Single-payment invoice"""
    doc = DocumentCanvas(title=invoice.invoice_number)
    doc.institute_header(institute, "INVOICE")
    student = invoice.student
    currency = institute.currency
    issued = invoice.payment_date or invoice.created_at

    right = doc.width - doc.margin
    doc.text(f"Invoice No: {invoice.invoice_number}", right, 'Helvetica-Bold', 10, align='right', advance=14)
    doc.text(f"Date: {format_date(issued)}", right, size=10, align='right', advance=14)
    doc.text(f"Status: {invoice.get_status_display()}", right, size=10, align='right', advance=24)

    doc.text("Bill To", font='Helvetica-Bold', size=11, color=BRAND, advance=14)
    doc.text(student.full_name, font='Helvetica-Bold', size=10, advance=13)
    doc.text(f"Student ID: {student.student_id}", size=9, advance=12)
    for value in (student.email, student.phone):
        if value:
            doc.text(value, size=9, advance=12)
    doc.y -= 16

    course_name = student.course.name if student.course else '-'
    doc.c.setFillColor(BRAND)
    doc.c.rect(doc.margin, doc.y - 6, doc.width - 2 * doc.margin, 20, fill=1, stroke=0)
    doc.text("Description", doc.margin + 6, 'Helvetica-Bold', 10, white)
    doc.text("Amount", right - 6, 'Helvetica-Bold', 10, white, align='right', advance=24)
    doc.text(f"Course fee payment - {course_name}", doc.margin + 6, size=10)
    doc.text(format_currency(invoice.amount, currency), right - 6, size=10, align='right', advance=10)
    doc.rule()
    doc.y -= 18
    doc.text(f"Total: {format_currency(invoice.amount, currency)}", right - 6, 'Helvetica-Bold', 12,
             align='right', advance=16)
    doc.text(f"Balance Due: {format_currency(student.balance_due, currency)}", right - 6, size=10,
             color=MUTED, align='right', advance=28)

    doc.text(f"Payment Mode: {invoice.get_payment_mode_display()}", size=10, advance=14)
    if invoice.transaction_id:
        doc.text(f"Transaction ID: {invoice.transaction_id}", size=10, advance=14)
    if invoice.notes:
        doc.wrapped(f"Notes: {invoice.notes}", size=9)
    doc.y -= 16

    doc.text("Terms & Conditions:", font='Helvetica-Bold', size=10, advance=14)
    for term in INVOICE_TERMS:
        doc.text(f"- {term}", doc.margin + 8, size=9, advance=12)
    doc.y -= 40
    doc.text(f"Thank you for choosing {institute.name}!", doc.width / 2, 'Helvetica-Bold', 11, BRAND,
             align='center', advance=14)
    if institute.footer_text:
        doc.text(institute.footer_text, doc.width / 2, size=8, color=MUTED, align='center')
    return doc.finish()


def _barcode_image(value):
    code128 = barcode.get_barcode_class('code128')
    barcode_instance = code128(value, writer=ImageWriter())
    # render() returns a PIL image
    return barcode_instance.render({
        'write_text': False,
        'module_width': 0.3,
        'module_height': 12.0,
        'quiet_zone': 2.0,
        'background': 'white',
        'foreground': 'black',
    })


def render_certificate_pdf(certificate, institute):
    """A4 landscape certificate with a gold double border and Code128 barcode"""
    doc = DocumentCanvas(pagesize=landscape(A4), title=certificate.certificate_number)
    c, width, height = doc.c, doc.width, doc.height

    c.setStrokeColor(GOLD)
    c.setLineWidth(4)
    c.rect(20, 20, width - 40, height - 40)
    c.setLineWidth(1.5)
    c.rect(32, 32, width - 64, height - 64)

    center = width / 2
    doc.y = height - 90
    doc.text(institute.name, center, 'Helvetica-Bold', 16, BRAND, align='center', advance=50)
    doc.text("Certificate of Achievement", center, 'Helvetica-Bold', 32, GOLD, align='center', advance=44)
    doc.text("This is to certify that", center, 'Helvetica', 14, MUTED, align='center', advance=40)
    doc.text(certificate.student.full_name, center, 'Helvetica-Bold', 28, BRAND, align='center', advance=10)
    c.setStrokeColor(GOLD)
    c.setLineWidth(1)
    c.line(center - 180, doc.y, center + 180, doc.y)
    doc.y -= 30
    doc.text("has successfully completed the course", center, 'Helvetica', 14, MUTED, align='center', advance=30)
    doc.text(certificate.course.name, center, 'Helvetica-Bold', 20, TEXT, align='center', advance=26)
    doc.text("with excellence and dedication", center, 'Helvetica-Oblique', 13, MUTED, align='center', advance=28)
    doc.text(f"Issued on {format_date(certificate.issue_date)}", center, 'Helvetica', 11, TEXT, align='center')

    sig_y = 110
    c.setStrokeColor(TEXT)
    c.setLineWidth(0.8)
    for x, title in ((150, "Director"), (width - 150, "Training Manager")):
        c.line(x - 90, sig_y, x + 90, sig_y)
        doc.y = sig_y - 16
        doc.text(title, x, 'Helvetica-Bold', 11, align='center')

    doc.y = 60
    doc.text(f"Certificate No: {certificate.certificate_number}", center, 'Helvetica', 9, MUTED, align='center')
    barcode_img = _barcode_image(certificate.certificate_number)
    img_w, img_h = barcode_img.size
    draw_w = 180
    draw_h = draw_w * img_h / img_w
    c.drawImage(ImageReader(barcode_img), center - draw_w / 2, 72, width=draw_w, height=min(draw_h, 40))
    return doc.finish()
