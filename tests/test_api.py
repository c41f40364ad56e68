# ========================
# tests/test_api.py
# ========================

import unittest
import sys
import os
import tempfile

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

import api_server
from src.utils.data_generator import TripDataGenerator

class TestAPI(unittest.TestCase):
    """Endpoint tests against generated sample exports."""

    @classmethod
    def setUpClass(cls):
        cls.tmp = tempfile.TemporaryDirectory()
        legacy = os.path.join(cls.tmp.name, 'legacy.csv')
        modern = os.path.join(cls.tmp.name, 'modern.csv')
        generator = TripDataGenerator(seed=3)
        generator.generate_legacy_dataset(legacy, 200)
        generator.generate_modern_dataset(modern, 200)

        cls.original = {k: getattr(api_server.config, k)
                        for k in ('LEGACY_INPUT_FILE', 'MODERN_INPUT_FILE', 'DEFAULT_OUTPUT_DIR')}
        api_server.config.LEGACY_INPUT_FILE = legacy
        api_server.config.MODERN_INPUT_FILE = modern
        api_server.config.DEFAULT_OUTPUT_DIR = os.path.join(cls.tmp.name, 'processed')

        cls.client = TestClient(api_server.app)

    @classmethod
    def tearDownClass(cls):
        for key, value in cls.original.items():
            setattr(api_server.config, key, value)
        api_server.job_status.clear()
        cls.tmp.cleanup()

    def _start_run(self, **params):
        response = self.client.post("/runs", params=params)
        self.assertEqual(response.status_code, 200)
        return response.json()["job_id"]

    def test_health_endpoint(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_root_lists_views(self):
        data = self.client.get("/").json()
        self.assertIn("weekday_stats", data["views"])

    def test_run_and_fetch_tables(self):
        job_id = self._start_run()

        status = self.client.get(f"/runs/{job_id}").json()
        self.assertEqual(status["status"], "completed")
        self.assertEqual(status["statistics"]["rows_read"], 400)

        table = self.client.get(f"/runs/{job_id}/tables/weekday_stats").json()
        self.assertTrue(table["rows"])
        self.assertEqual(list(table["rows"][0]), ["member_casual", "weekday", "count", "mean"])
        self.assertIsInstance(table["rows"][0]["weekday"], str)

        download = self.client.get(f"/runs/{job_id}/download/monthly_stats")
        self.assertEqual(download.status_code, 200)
        self.assertTrue(download.text.startswith("member_casual,month,count"))

    def test_strict_run_fails_on_defects(self):
        job_id = self._start_run(error_policy="strict")
        status = self.client.get(f"/runs/{job_id}").json()
        self.assertEqual(status["status"], "failed")
        self.assertIn("error", status)

        response = self.client.get(f"/runs/{job_id}/tables/weekday_stats")
        self.assertEqual(response.status_code, 400)

    def test_undecodable_input_marks_job_failed(self):
        broken = os.path.join(self.tmp.name, 'broken.csv')
        with open(broken, 'wb') as f:
            f.write(b'\xff\xfetrip_id,start_time\n\xff\xff,\xfe\n')

        legacy = api_server.config.LEGACY_INPUT_FILE
        api_server.config.LEGACY_INPUT_FILE = broken
        try:
            job_id = self._start_run()
        finally:
            api_server.config.LEGACY_INPUT_FILE = legacy

        status = self.client.get(f"/runs/{job_id}").json()
        self.assertEqual(status["status"], "failed")
        self.assertIn("error", status)
        self.assertIn("failed_at", status)

    def test_invalid_error_policy(self):
        response = self.client.post("/runs", params={"error_policy": "lenient"})
        self.assertEqual(response.status_code, 400)

    def test_unknown_job_and_view(self):
        self.assertEqual(self.client.get("/runs/does-not-exist").status_code, 404)

        job_id = self._start_run()
        self.assertEqual(self.client.get(f"/runs/{job_id}/tables/nope").status_code, 404)

    def test_list_runs(self):
        job_id = self._start_run()
        data = self.client.get("/runs", params={"status": "completed"}).json()
        self.assertIn(job_id, [job["job_id"] for job in data["jobs"]])

if __name__ == '__main__':
    unittest.main()
