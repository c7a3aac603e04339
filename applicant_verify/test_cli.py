# test_cli.py

import json
import logging
import os
import shutil
import tempfile
import unittest
from unittest import mock

from click.testing import CliRunner

from applicant_verify.cli import cli
from applicant_verify.logging_config import LOGGER_NAME
from applicant_verify.models import ExtractionResult
from applicant_verify.sample_generator import generate_seed_files
from applicant_verify.services import id_document_service

PROFILE = {
    "id_extraction_confidence": 0.92,
    "email_verified": True,
    "email_verification_hours": 12,
    "languages": [
        {"language": "English", "is_verified": True, "verification_method": "native"},
        {"language": "Afrikaans", "is_verified": True, "verification_method": "interview"},
        {"language": "Oshiwambo", "is_verified": True, "verification_method": "native"},
    ],
    "certificates": [
        {"type": "academic", "is_accredited": True, "authenticity_score": score, "holder_name": "Jane Doe"}
        for score in (95, 90, 100)
    ],
    "first_name": "Jane",
    "surname": "Doe",
    "email": "jane@example.com",
    "phone": "+264 81 123 4567",
    "country": "Namibia",
    "profile_picture_url": "https://cdn.example.com/jane.jpg",
    "video_intro_url": "https://cdn.example.com/jane.mp4",
}


class TestCli(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)
        package_logger = logging.getLogger(LOGGER_NAME)
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()

    def invoke(self, *args, **kwargs):
        return self.runner.invoke(cli, ['--config', 'testing', *args], **kwargs)

    def test_score(self):
        result = self.invoke('score', '-', input=json.dumps(PROFILE))
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.stdout)
        self.assertEqual(data["total"], 83)
        self.assertEqual(data["status"], "green")
        self.assertEqual(data["status_details"]["message"], "Ready for Employer Consideration")

    def test_score_rejects_bad_json(self):
        result = self.invoke('score', '-', input='{not json')
        self.assertEqual(result.exit_code, 1)
        self.assertIn('not valid JSON', result.output)

    def test_unknown_config(self):
        result = self.runner.invoke(cli, ['--config', 'staging', 'score', '-'], input='{}')
        self.assertEqual(result.exit_code, 2)

    def test_sample_certificates(self):
        result = self.invoke('sample-certificates', '--output-dir', self.tmp, '--random', '2', '--seed', '7')
        self.assertEqual(result.exit_code, 0, result.output)
        generated = json.loads(result.stdout)["generated"]
        self.assertEqual(len(generated), 5)
        for path in generated:
            self.assertTrue(os.path.exists(path), path)

    def test_certificates(self):
        paths = list(generate_seed_files(self.tmp))
        result = self.invoke('certificates', *paths, '--first-name', 'Anna', '--surname', 'Schmidt')
        self.assertEqual(result.exit_code, 0, result.output)

        entries = {entry["filename"]: entry for entry in json.loads(result.stdout)}
        german = entries["german_b1.pdf"]
        self.assertTrue(german["ok"])
        self.assertEqual(german["record"]["authenticity_score"], 100)
        self.assertTrue(german["german_verification"]["is_valid"])
        self.assertEqual(german["name_match"], {"matches": True, "confidence": 0.95})
        self.assertNotIn("german_verification", entries["degree_uct.pdf"])

    def test_id_document_rejects_png(self):
        path = os.path.join(self.tmp, 'id.png')
        with open(path, 'wb') as handle:
            handle.write(b'png')
        result = self.invoke('id-document', path)
        self.assertEqual(result.exit_code, 1)
        self.assertIn('Only JPG files are supported', result.output)

    def test_id_document(self):
        path = os.path.join(self.tmp, 'id.jpg')
        with open(path, 'wb') as handle:
            handle.write(b'jpg')
        extraction = ExtractionResult(success=True, confidence=0.55,
                                      fields={'id_number': '85 0101 1234 5', 'surname': 'SHIKONGO'})
        with mock.patch.object(id_document_service, 'process_id_document', return_value=extraction):
            result = self.invoke('id-document', path, '--delete-after', '0')

        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.stdout)
        self.assertEqual(data["fields"]["surname"], "SHIKONGO")
        self.assertTrue(data["requires_manual_review"])
        self.assertFalse(os.path.exists(path))


if __name__ == "__main__":
    unittest.main(verbosity=2)
