import asyncio
from types import SimpleNamespace

import fitz  # pymupdf
import pytest
from httpx import ASGITransport, AsyncClient

from atsmaster.core import AnalysisResult
from atsmaster.main import app, get_analyzer, sessions

RESUME = (
    "Jane Doe - Backend Engineer. Seven years building REST services in Java and Go, "
    "running PostgreSQL and Kafka in production on AWS."
)
JOB_DESCRIPTION = (
    "We are hiring a Senior Backend Engineer. Required skills: Python, Django, PostgreSQL "
    "and AWS. Experience with Kafka is a plus."
)

RESULT_JSON = (
    '{"score":42,"missingKeywords":["Python","Django"],'
    '"matchAnalysis":"Solid backend background, but the core language is missing.",'
    '"recommendation":"Add any Python work. Mention Django if you used it.",'
    '"linkedin":{"suggestedHeadline":"Backend Engineer | Go, Java, PostgreSQL, AWS",'
    '"suggestedAbout":"Backend engineer focused on reliable services.",'
    '"topSkillsToAdd":["Python","Django","PostgreSQL","AWS","Kafka"]}}'
)

PDF_PAGES = [
    ["Jane Doe", "Backend Engineer"],
    ["Experience", "Acme Corp 2018-2024"],
    ["Skills", "Go Java PostgreSQL"],
]


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeAnalyzer:
    """Deterministic stand-in for the Gemini analyzer."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else AnalysisResult.model_validate_json(RESULT_JSON)
        self.error = error
        self.calls = []
        self.gate = None

    def hold(self):
        self.gate = asyncio.Event()
        return self.gate

    async def analyze(self, resume_text, job_description):
        self.calls.append((resume_text, job_description))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeModels:
    def __init__(self, text=None, error=None, delay=0.0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeAsyncClient:
    def __init__(self, models):
        self.models = models
        self.closed = False

    async def aclose(self):
        self.closed = True


class FakeClientFactory:
    """Records every client construction, mimicking google.genai.Client(api_key=...)."""

    def __init__(self, models):
        self.models = models
        self.constructed = []
        self.clients = []

    def __call__(self, api_key):
        self.constructed.append(api_key)
        aio = FakeAsyncClient(self.models)
        self.clients.append(aio)
        return SimpleNamespace(aio=aio)


def make_pdf(pages=PDF_PAGES) -> bytes:
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        y = 72
        for line in lines:
            page.insert_text((72, y), line)
            y += 24
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer()


@pytest.fixture
async def client(fake_analyzer):
    app.dependency_overrides[get_analyzer] = lambda: fake_analyzer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    for session in sessions.values():
        session.controller.reset()
    sessions.clear()


async def wait_for_state(client, session_id, wanted, attempts=50):
    body = None
    for _ in range(attempts):
        r = await client.get(f"/api/status/{session_id}")
        assert r.status_code == 200, r.text
        body = r.json()
        if body["state"] in wanted:
            return body
        await asyncio.sleep(0.01)
    pytest.fail(f"Session stuck in {body}")
