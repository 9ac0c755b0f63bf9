import pytest

from conftest import JOB_DESCRIPTION, RESUME
from atsmaster.main import limiter


@pytest.fixture
def prod(monkeypatch):
    monkeypatch.setenv("ENV", "prod")
    limiter.reset()
    yield
    limiter.reset()


@pytest.mark.anyio
async def test_prod_polling_is_not_rate_limited(client, fake_analyzer, prod):
    gate = fake_analyzer.hold()

    r = await client.post("/analyze", data={"resume_text": RESUME, "job_description": JOB_DESCRIPTION})
    assert r.status_code == 303

    for _ in range(10):
        r = await client.get("/")
        assert r.status_code == 200
        assert 'http-equiv="refresh"' in r.text

    r = await client.post("/api/analyze", json={"resumeText": RESUME, "jobDescriptionText": JOB_DESCRIPTION})
    session_id = r.json()["session_id"]
    for _ in range(10):
        r = await client.get(f"/api/status/{session_id}")
        assert r.status_code == 200
        assert r.json()["state"] == "in_flight"

    gate.set()


@pytest.mark.anyio
async def test_prod_limits_analyze_requests(client, fake_analyzer, prod):
    fake_analyzer.hold()
    payload = {"resumeText": RESUME, "jobDescriptionText": JOB_DESCRIPTION}

    for _ in range(5):
        r = await client.post("/api/analyze", json=payload)
        assert r.status_code == 200, r.text

    r = await client.post("/api/analyze", json=payload)
    assert r.status_code == 429
    assert r.json()["status"] is False


@pytest.mark.anyio
async def test_dev_is_not_rate_limited(client, monkeypatch):
    monkeypatch.setenv("ENV", "dev")
    limiter.reset()
    payload = {"resumeText": RESUME, "jobDescriptionText": JOB_DESCRIPTION}
    for _ in range(7):
        r = await client.post("/api/analyze", json=payload)
        assert r.status_code == 200, r.text
