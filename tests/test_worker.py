import asyncio

import pytest

from homecare import worker


class TestWorkerSettings:
    def test_redis_defaults_to_localhost(self):
        settings = worker.get_redis_settings()
        assert settings.host == "localhost"
        assert settings.port == 6379
        assert settings.ssl is False

    def test_reminders_run_hourly(self):
        [job] = worker.WorkerSettings.cron_jobs
        assert job.coroutine is worker.generate_reminders_task
        assert job.minute == 0


class TestGenerateRemindersTask:
    def test_runs_generation(self, db, seed, monkeypatch):
        monkeypatch.setattr(worker, "SessionLocal", lambda: db)
        result = asyncio.run(worker.generate_reminders_task({"job_id": "test"}))
        assert result == {"created": 0, "events": 0}

    def test_failures_propagate(self, db, monkeypatch):
        def broken(_db):
            raise RuntimeError("boom")

        monkeypatch.setattr(worker, "SessionLocal", lambda: db)
        monkeypatch.setattr(worker, "generate_reminders", broken)
        with pytest.raises(RuntimeError):
            asyncio.run(worker.generate_reminders_task({}))
