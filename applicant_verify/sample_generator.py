# sample_generator.py
# Generates sample certificate PDFs (with a real text layer) using reportlab and Faker.

import logging
import os
import random
from datetime import date

from faker import Faker
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from applicant_verify.config import PROJECT_ROOT

logger = logging.getLogger(__name__)

OUTPUT_DIR = os.path.join(PROJECT_ROOT, 'sample_certificates')

INSTITUTIONS = [
    "University of Cape Town",
    "Stellenbosch University",
    "Rhodes University",
    "Windhoek College of Commerce",
]
DEGREES = [
    ("Bachelor of Commerce", "degree"),
    ("Bachelor of Science", "degree"),
    ("Master of Business Administration", "degree"),
    ("Diploma in Accounting", "diploma"),
]
GRADES = ["First Class", "Second Class", "Distinction", "Pass"]

# Static certificates used by the test-suite. Keep in sync with the expectations there.
SEED_CERTIFICATES = {
    "degree_uct.pdf": {
        "institution": "University of Cape Town",
        "title": "Degree Certificate",
        "intro": "This is to certify that",
        "name": "Thandiwe Nkosi",
        "award": "has been awarded the degree of Bachelor of Commerce",
        "grade": "with First Class",
        "date": "Conferred on 15/06/2020",
    },
    "german_b1.pdf": {
        "institution": "Goethe Institute",
        "title": "Language Certificate",
        "intro": "This certificate is presented to",
        "name": "Anna Schmidt",
        "award": "on completion of the qualification in German Language",
        "grade": "Level B1",
        "date": "Issued on 12 March 2021",
    },
    "unaccredited_college.pdf": {
        "institution": "Windhoek College of Commerce",
        "title": "Certificate of Completion",
        "intro": "This is to certify that",
        "name": "Petrus Shikongo",
        "award": "completed the qualification in Project Management",
        "grade": "with Distinction",
        "date": "Issued on 2019/11/30",
    },
}

LINE_ORDER = ("institution", "title", "intro", "name", "award", "grade", "date")


class CertificateGenerator:
    def __init__(self, output_dir=OUTPUT_DIR, seed=None):
        self.output_dir = output_dir
        self.fake = Faker('en_US')
        self.random = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)
        os.makedirs(self.output_dir, exist_ok=True)

    def create_certificate(self, path: str, lines: dict):
        """Draws one centred line per entry of LINE_ORDER that is present in `lines`."""
        width, height = landscape(A4)
        c = canvas.Canvas(path, pagesize=landscape(A4))
        margin = 15 * mm
        c.setLineWidth(2)
        c.rect(margin, margin, width - 2 * margin, height - 2 * margin)

        fonts = {
            "institution": ("Helvetica-Bold", 22),
            "title": ("Helvetica-Bold", 28),
            "name": ("Helvetica-Bold", 20),
        }
        y_pos = height - 40 * mm
        for key in LINE_ORDER:
            value = lines.get(key)
            if not value:
                continue
            font, size = fonts.get(key, ("Helvetica", 14))
            c.setFont(font, size)
            c.drawCentredString(width / 2, y_pos, value)
            y_pos -= 16 * mm

        c.setFont("Helvetica", 10)
        c.line(width - margin - 80 * mm, margin + 20 * mm, width - margin - 20 * mm, margin + 20 * mm)
        c.drawString(width - margin - 80 * mm, margin + 14 * mm, "Registrar")
        c.showPage()
        c.save()
        return path

    def random_lines(self) -> dict:
        degree, kind = self.random.choice(DEGREES)
        issued = date(self.random.randint(2005, 2023), self.random.randint(1, 12), self.random.randint(1, 28))
        award = (f"has been awarded the degree of {degree}" if kind == "degree"
                 else f"has been awarded the {degree}")
        return {
            "institution": self.random.choice(INSTITUTIONS),
            "title": "Degree Certificate" if kind == "degree" else "Diploma",
            "intro": "This is to certify that",
            "name": f"{self.fake.first_name()} {self.fake.last_name()}",
            "award": award,
            "grade": f"with {self.random.choice(GRADES)}",
            "date": f"Conferred on {issued:%d/%m/%Y}",
        }

    def generate_random(self, count=1):
        paths = []
        for index in range(count):
            path = os.path.join(self.output_dir, f"random_certificate_{index + 1}.pdf")
            paths.append(self.create_certificate(path, self.random_lines()))
            logger.info("Generated %s", path)
        return paths


def generate_seed_files(output_dir=OUTPUT_DIR):
    """
    Writes the static certificates of SEED_CERTIFICATES. Returns {path: lines}.
    """
    generator = CertificateGenerator(output_dir)
    written = {}
    for filename, lines in SEED_CERTIFICATES.items():
        path = generator.create_certificate(os.path.join(output_dir, filename), lines)
        written[path] = lines
    return written
