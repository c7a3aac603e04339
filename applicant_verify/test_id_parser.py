# test_id_parser.py
# unittest suite for services.id_parser: text cleaning, ID-number decoding and field cascades.

import unittest
from datetime import date

from applicant_verify.config import TestingConfig
from applicant_verify.services import id_parser

TODAY = date(2026, 10, 17)

# A photographed card as Tesseract typically reads it: O for 0 inside the number.
NAMIBIAN_CARD_TEXT = """REPUBLIC OF NAMIBIA
NATIONAL IDENTITY CARD
NO. O21 1 15 OO3O 5
SURNAME
MUDJANIMA
FIRST NAMES
ISMAEL
"""


class CenturyCutoffConfig(TestingConfig):
    ID_CENTURY_CUTOFF = 10


class TestCleanOcrText(unittest.TestCase):

    def test_uppercases_and_fixes_pipes(self):
        self.assertEqual(id_parser.clean_ocr_text("sm|th \\van"), "SMITH IVAN")

    def test_strips_symbols_and_collapses_spaces_but_keeps_lines(self):
        cleaned = id_parser.clean_ocr_text("SURNAME:   *DOE*\n\n  first  names  jane ")
        self.assertEqual(cleaned, "SURNAME DOE\nFIRST NAMES JANE")

    def test_letter_o_is_not_rewritten(self):
        self.assertIn("O21 1 15 OO3O 5", id_parser.clean_ocr_text("o21 1 15 oo3o 5"))

    def test_empty_text(self):
        self.assertEqual(id_parser.clean_ocr_text(""), "")
        self.assertEqual(id_parser.clean_ocr_text(None), "")


class TestDecodeIdNumber(unittest.TestCase):

    def test_valid_number_decodes_birth_date_and_age(self):
        breakdown = id_parser.decode_id_number("02111500305", today=TODAY)
        self.assertTrue(breakdown.is_valid)
        self.assertEqual(breakdown.date_of_birth, "2002-11-15")
        self.assertEqual(breakdown.age_years, 24)

    def test_years_after_cutoff_are_twentieth_century(self):
        breakdown = id_parser.decode_id_number("85010112345", today=TODAY)
        self.assertEqual(breakdown.date_of_birth, "1985-01-01")
        self.assertEqual(breakdown.age_years, 41)

    def test_cutoff_is_configurable(self):
        self.assertEqual(id_parser.decode_id_number("15030412345", century_cutoff=21).date_of_birth, "2015-03-04")
        self.assertEqual(id_parser.decode_id_number("15030412345", century_cutoff=10).date_of_birth, "1915-03-04")

    def test_date_of_birth_re_encodes_to_the_same_digits(self):
        for digits in ("00010100000", "21123112345", "22010154321", "99063000001", "50022999999"):
            with self.subTest(digits=digits):
                breakdown = id_parser.decode_id_number(digits)
                self.assertTrue(breakdown.is_valid)
                year, month, day = breakdown.date_of_birth.split("-")
                self.assertEqual(year[2:] + month + day, digits[:6])

    def test_invalid_dates_and_shapes_are_rejected(self):
        for digits in ("99133000000", "99003000000", "99010000000", "99013200000", "9901010000", "990101000001", "99O10100000", ""):
            with self.subTest(digits=digits):
                self.assertFalse(id_parser.decode_id_number(digits).is_valid)

    def test_format_id_number(self):
        self.assertEqual(id_parser.format_id_number("02111500305"), "02 1115 0030 5")


class TestParseIdText(unittest.TestCase):

    def parse(self, text, confidence=0.9, settings=TestingConfig):
        return id_parser.parse_id_text(text, confidence, settings, today=TODAY)

    def test_namibian_card_with_ocr_errors(self):
        result = self.parse(NAMIBIAN_CARD_TEXT)
        self.assertTrue(result.success)
        self.assertEqual(result.fields["id_number"], "02 1115 0030 5")
        self.assertEqual(result.fields["date_of_birth"], "2002-11-15")
        self.assertEqual(result.fields["age"], TODAY.year - 2002)
        self.assertEqual(result.fields["surname"], "MUDJANIMA")
        self.assertEqual(result.fields["first_name"], "ISMAEL")
        self.assertEqual(result.fields["country"], "REPUBLIC OF NAMIBIA")
        self.assertEqual(result.sources["id_number"], "id_smart_grouped")
        self.assertEqual(result.sources["surname"], "surname_label")
        self.assertEqual(result.sources["first_name"], "first_name_label")

    def test_gender_is_never_inferred(self):
        result = self.parse(NAMIBIAN_CARD_TEXT)
        self.assertNotIn("gender", result.fields)
        self.assertNotIn("sex", result.fields)

    def test_confidence_is_passed_through(self):
        for confidence in (0.0, 0.42, 0.97):
            with self.subTest(confidence=confidence):
                self.assertEqual(self.parse(NAMIBIAN_CARD_TEXT, confidence).confidence, confidence)

        partial = self.parse("NO. 85010112345", confidence=0.88)
        self.assertEqual(partial.confidence, 0.88)
        self.assertAlmostEqual(partial.coverage, 1 / 3)

    def test_labelled_plain_number(self):
        result = self.parse("ID NO. 85010112345\nSURNAME SHIKONGO")
        self.assertEqual(result.fields["id_number"], "85 0101 1234 5")
        self.assertEqual(result.sources["id_number"], "id_labelled")

    def test_more_specific_pattern_beats_earlier_plain_digits(self):
        # The plain 11-digit run comes first in the text, but the OCR-shaped pattern ranks higher.
        text = "REF 99010112345\nNO. O21 1 15 O123O 5"
        result = self.parse(text)
        self.assertEqual(result.sources["id_number"], "id_ocr_grouped")
        self.assertEqual(result.fields["id_number"], "02 1115 0123 0")

    def test_long_digit_run_is_scanned_for_a_valid_window(self):
        result = self.parse("7785010112345")
        self.assertEqual(result.fields["id_number"], "85 0101 1234 5")
        self.assertEqual(result.sources["id_number"], "id_digit_run")

    def test_no_valid_number_requires_manual_entry(self):
        result = self.parse("NATIONAL IDENTITY CARD\nNO. 99133000000\nSURNAME DOE")
        self.assertFalse(result.success)
        self.assertTrue(result.requires_manual_entry)
        self.assertIsNotNone(result.error_reason)
        self.assertNotIn("id_number", result.fields)

    def test_unlabelled_card_falls_back_to_capitalised_words(self):
        text = "REPUBLIC OF NAMIBIA\nNATIONAL IDENTITY CARD\nSHIKONGO\nPETRUS\n85010112345"
        result = self.parse(text)
        self.assertEqual(result.fields["surname"], "SHIKONGO")
        self.assertEqual(result.sources["surname"], "surname_capitalised_word")
        self.assertEqual(result.fields["first_name"], "PETRUS")
        self.assertEqual(result.sources["first_name"], "second_capitalised_word")

    def test_titles_are_skipped_in_first_names(self):
        result = self.parse("SURNAME DOE\nFIRST NAMES MR JOHN PAUL\n85010112345")
        self.assertEqual(result.fields["first_name"], "JOHN")
        self.assertEqual(result.fields["names"], "JOHN PAUL")

    def test_label_capture_stops_at_next_caption(self):
        result = self.parse("SURNAME NANGOLO FIRST NAMES MARIA SEX F\n85010112345")
        self.assertEqual(result.fields["surname"], "NANGOLO")
        self.assertEqual(result.fields["first_name"], "MARIA")
        self.assertEqual(result.fields["names"], "MARIA")

    def test_given_names_label(self):
        result = self.parse("FAMILY NAME IYAMBO\nGIVEN NAME(S) SELMA\n85010112345")
        self.assertEqual(result.fields["surname"], "IYAMBO")
        self.assertEqual(result.sources["surname"], "family_name_label")
        self.assertEqual(result.fields["first_name"], "SELMA")
        self.assertEqual(result.sources["first_name"], "given_name_label")

    def test_country_defaults_when_absent(self):
        result = self.parse("SURNAME DOE\n85010112345")
        self.assertEqual(result.fields["country"], TestingConfig.DEFAULT_COUNTRY)

    def test_century_cutoff_from_settings(self):
        result = self.parse("NO. 15030412345", settings=CenturyCutoffConfig)
        self.assertEqual(result.fields["date_of_birth"], "1915-03-04")


if __name__ == "__main__":
    unittest.main(verbosity=2)
