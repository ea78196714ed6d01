"""Unit tests for the FastAPI upload/download endpoints."""

import json
import os
import time

import pytest
from fastapi.testclient import TestClient

from subtranslate.errors import TransportError
from subtranslate.translate.best_effort_translator import BestEffortTranslator
from subtranslate.web import create_app
from subtranslate.web.dependencies import cleanup_old_jobs, create_job_dir, get_job_dir


@pytest.fixture
def jobs_dir(tmp_path, monkeypatch):
    root = tmp_path / "jobs"
    monkeypatch.setenv("SUBTRANSLATE_WEB_JOBS_DIR", str(root))
    monkeypatch.chdir(tmp_path)
    return root


def make_client(backend):
    return TestClient(create_app(engine=BestEffortTranslator(backend)))


class TestHealth:
    def test_health(self, jobs_dir, fake_backend_factory):
        response = make_client(fake_backend_factory([])).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestJobs:
    """Tests for POST /api/jobs and GET /download/{job_id}."""

    def test_translate_and_download(self, jobs_dir, sample_srt, fake_backend_factory, uppercase_translation):
        client = make_client(fake_backend_factory([uppercase_translation]))

        response = client.post(
            "/api/jobs",
            files={"file": ("episode.srt", sample_srt.encode("utf-8"), "application/x-subrip")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["output_name"] == "episode.pt.srt"
        assert data["block_count"] == 3

        download = client.get(f"/download/{data['job_id']}")
        assert download.status_code == 200
        assert "HELLO." in download.text
        assert "episode.pt.srt" in download.headers["content-disposition"]

    def test_empty_translations_still_succeed(self, jobs_dir, sample_srt, fake_backend_factory):
        reply = json.dumps([{"id": i, "text": ""} for i in range(3)])
        client = make_client(fake_backend_factory([reply]))

        response = client.post(
            "/api/jobs", files={"file": ("episode.srt", sample_srt.encode("utf-8"), "text/plain")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["block_count"] == 3
        download = client.get(f"/download/{data['job_id']}")
        assert "Hello." in download.text

    def test_rejects_non_subtitle_upload(self, jobs_dir, fake_backend_factory):
        client = make_client(fake_backend_factory([]))
        response = client.post("/api/jobs", files={"file": ("clip.mp4", b"\x00\x01", "video/mp4")})
        assert response.status_code == 400

    def test_content_error_is_400_and_cleans_up(self, jobs_dir, fake_backend_factory):
        backend = fake_backend_factory([])
        client = make_client(backend)
        response = client.post("/api/jobs", files={"file": ("bad.srt", b"1\nno time\n", "text/plain")})
        assert response.status_code == 400
        assert "No valid subtitle blocks" in response.json()["error"]
        assert backend.calls == []
        assert not any(jobs_dir.iterdir())

    def test_service_error_is_502(self, jobs_dir, sample_srt, fake_backend_factory):
        client = make_client(fake_backend_factory([TransportError("network down")]))
        response = client.post(
            "/api/jobs", files={"file": ("episode.srt", sample_srt.encode("utf-8"), "text/plain")}
        )
        assert response.status_code == 502
        assert "network down" in response.json()["error"]
        assert not any(jobs_dir.iterdir())

    def test_upload_size_limit(self, jobs_dir, monkeypatch, fake_backend_factory):
        monkeypatch.setenv("SUBTRANSLATE_WEB_MAX_UPLOAD_MB", "1")
        client = make_client(fake_backend_factory([]))
        payload = b"x" * (1024 * 1024 + 1)
        response = client.post("/api/jobs", files={"file": ("big.srt", payload, "text/plain")})
        assert response.status_code == 413

    def test_unknown_job_download(self, jobs_dir, fake_backend_factory):
        client = make_client(fake_backend_factory([]))
        assert client.get("/download/deadbeef").status_code == 404


class TestJobDirectories:
    """Tests for job directory helpers."""

    def test_cleanup_removes_expired_jobs(self, jobs_dir):
        _, old_dir = create_job_dir()
        _, fresh_dir = create_job_dir()
        stale = time.time() - 3 * 3600
        os.utime(old_dir, (stale, stale))

        assert cleanup_old_jobs(ttl_hours=1) == 1

        assert not old_dir.exists()
        assert fresh_dir.exists()

    def test_zero_ttl_keeps_everything(self, jobs_dir):
        _, job_dir = create_job_dir()
        stale = time.time() - 100 * 3600
        os.utime(job_dir, (stale, stale))
        assert cleanup_old_jobs(ttl_hours=0) == 0
        assert job_dir.exists()

    def test_get_job_dir_rejects_traversal(self, jobs_dir):
        assert get_job_dir("..") is None
        assert get_job_dir("a/b") is None
