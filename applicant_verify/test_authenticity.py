# test_authenticity.py

import dataclasses
import unittest

from applicant_verify.models import CertificateRecord, VerificationFlags
from applicant_verify.services.authenticity_service import (
    MAX_SCORE, WEIGHTS, count_structural_signals, evaluate_authenticity, is_valid_date_format, score_certificate,
)
from applicant_verify.services.certificate_parser import parse_certificate

FULL_RECORD = CertificateRecord(
    institution="University of Cape Town",
    is_accredited=True,
    verification_flags=VerificationFlags(institution_found=True),
    date_issued="15/06/2020",
    holder_name="John Doe",
    grade="First Class",
    subject="Commerce",
)
FULL_TEXT = "Degree certificate, University of Cape Town, awarded 2020"


class TestAuthenticityScore(unittest.TestCase):

    def test_weights_sum_to_max_score(self):
        full_marks = (WEIGHTS['INSTITUTION_ACCREDITED'] + WEIGHTS['DATE_FORMAT'] + WEIGHTS['HOLDER_NAME']
                      + WEIGHTS['GRADE'] + WEIGHTS['SUBJECT'] + WEIGHTS['STRUCTURE_FULL'])
        self.assertEqual(full_marks, MAX_SCORE)

    def test_full_certificate_scores_100(self):
        report = evaluate_authenticity(FULL_RECORD, FULL_TEXT)
        self.assertEqual(report.score, 100)
        self.assertEqual(report.flags, VerificationFlags(True, True, True, True))
        self.assertEqual(len(report.reasons), 6)

    def test_certificate_without_subject(self):
        text = ("University of Cape Town\nThis is to certify that\nJohn Doe\n"
                "has been awarded this certificate\nwith First Class\non 15/06/2020")
        record = parse_certificate(text)
        self.assertIsNone(record.subject)
        report = evaluate_authenticity(record, text)
        self.assertEqual(report.score, 30 + 20 + 15 + 10 + 15)
        self.assertTrue(report.flags.institution_found)
        self.assertTrue(report.flags.date_format_valid)
        self.assertTrue(report.flags.grade_present)
        self.assertTrue(report.flags.certificate_structure_valid)

    def test_unaccredited_institution_gets_partial_credit(self):
        record = CertificateRecord(institution="Windhoek College")
        report = evaluate_authenticity(record, "")
        self.assertEqual(report.score, WEIGHTS['INSTITUTION_UNACCREDITED'])
        self.assertFalse(report.flags.institution_found)

    def test_partial_structure(self):
        self.assertEqual(count_structural_signals("Degree certificate from the college"), 2)
        report = evaluate_authenticity(CertificateRecord(), "Degree certificate from the college")
        self.assertEqual(report.score, WEIGHTS['STRUCTURE_PARTIAL'])
        self.assertFalse(report.flags.certificate_structure_valid)

    def test_short_holder_name_earns_nothing(self):
        report = evaluate_authenticity(CertificateRecord(holder_name="Al"), "")
        self.assertEqual(report.score, 0)

    def test_empty_record(self):
        report = evaluate_authenticity(CertificateRecord(), "")
        self.assertEqual(report.score, 0)
        self.assertEqual(report.reasons, ())

    def test_adding_a_field_never_lowers_the_score(self):
        base = CertificateRecord()
        steps = [
            {'institution': "Windhoek College"},
            {'is_accredited': True, 'verification_flags': VerificationFlags(institution_found=True)},
            {'date_issued': "2019/11/30"},
            {'holder_name': "Petrus Shikongo"},
            {'grade': "Distinction"},
            {'subject': "Project Management"},
        ]
        previous = evaluate_authenticity(base, FULL_TEXT).score
        record = base
        for changes in steps:
            with self.subTest(changes=changes):
                record = dataclasses.replace(record, **changes)
                score = evaluate_authenticity(record, FULL_TEXT).score
                self.assertGreaterEqual(score, previous)
                previous = score
        self.assertEqual(previous, 100)


class TestDateFormat(unittest.TestCase):

    def test_valid_and_invalid_dates(self):
        cases = [
            ("15/06/2020", True),
            ("2019/11/30", True),
            ("12 March 2021", True),
            ("March 12, 2021", True),
            ("31/02/2020", False),
            ("15/06/20", False),
            ("sometime in 2020", False),
            ("", False),
            (None, False),
        ]
        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(is_valid_date_format(value), expected)


class TestScoreCertificate(unittest.TestCase):

    def test_returns_new_record_and_leaves_input_alone(self):
        scored = score_certificate(FULL_RECORD, FULL_TEXT)
        self.assertEqual(scored.authenticity_score, 100)
        self.assertTrue(scored.verification_flags.grade_present)
        self.assertEqual(FULL_RECORD.authenticity_score, 0)
        self.assertFalse(FULL_RECORD.verification_flags.grade_present)

    def test_rescoring_is_idempotent(self):
        once = score_certificate(FULL_RECORD, FULL_TEXT)
        self.assertEqual(score_certificate(once, FULL_TEXT), once)


if __name__ == "__main__":
    unittest.main(verbosity=2)
