import logging
import time
import uuid
from typing import Dict, Optional

from fastapi import Depends, FastAPI, UploadFile, File, Form, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from atsmaster.ai import Analyzer, GeminiAnalyzer
from atsmaster.core import (
    ANALYZE_RATE_LIMIT,
    CORS_ORIGINS,
    MAX_FILE_BYTES,
    MAX_FILE_MB,
    MIN_INPUT_CHARS,
    SESSION_TTL_SECONDS,
    AnalyzeRequest,
    AnalyzeResponse,
    AnalysisResult,
    ConsistencyRequest,
    ConsistencyResponse,
    ExtractResponse,
    StatusResponse,
    get_env,
    get_model_name,
    is_admissible,
    is_prod,
)
from atsmaster.exceptions import ExtractionError, InvalidTransitionError
from atsmaster.logging_config import setup_logging
from atsmaster.models import Session
from atsmaster.services.consistency import simulate_consistency_score
from atsmaster.services.parse import extract_text
from atsmaster.services.report import render_page
from atsmaster.services.report_pdf import build_pdf
from atsmaster.state import AnalysisController, Failed, Succeeded

setup_logging()
logger = logging.getLogger(__name__)

SESSION_COOKIE = "atsmaster_session"
TOO_SHORT_MESSAGE = f"Both the résumé and the job description need at least {MIN_INPUT_CHARS} characters."
TOO_LARGE_MESSAGE = f"File too large (max {MAX_FILE_MB}MB)."
PROFILE_REQUIRED_MESSAGE = "Paste your LinkedIn profile text to run the consistency check."

# only the analyze routes are limited; page loads and status polls never are
limiter = Limiter(key_func=get_remote_address, default_limits=[])

rate_limit = limiter.limit(ANALYZE_RATE_LIMIT, exempt_when=lambda: not is_prod())

app = FastAPI(title="ATS Master", version="0.1.0")
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

sessions: Dict[str, Session] = {}

_analyzer = GeminiAnalyzer()


def get_analyzer() -> Analyzer:
    return _analyzer


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"status": False, "message": "Rate limit exceeded: 5 free analyses/day per IP."},
    )


def sweep_sessions(now: Optional[float] = None) -> int:
    """Drop sessions idle for longer than SESSION_TTL_SECONDS. Must run on the event loop."""
    now = now if now is not None else time.time()
    stale = [sid for sid, s in sessions.items() if s.expired(SESSION_TTL_SECONDS, now)]
    for sid in stale:
        sessions.pop(sid).controller.reset()
    if stale:
        logger.info("Evicted %d idle session(s)", len(stale))
    return len(stale)


def store_session(session: Session) -> Session:
    if session.session_id not in sessions:
        sweep_sessions()
        sessions[session.session_id] = session
    session.touch()
    return session


def new_session(analyzer: Analyzer) -> Session:
    return Session(session_id=str(uuid.uuid4()), controller=AnalysisController(analyzer))


def get_session(session_id: str) -> Session:
    session = sessions.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    session.touch()
    return session


def browser_session(request: Request, analyzer: Analyzer = Depends(get_analyzer)) -> Session:
    """The cookie's session, or a fresh one that is only kept once a form is posted."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id and session_id in sessions:
        session = sessions[session_id]
        session.touch()
        return session
    return new_session(analyzer)


def _back_to_page(session: Session) -> Response:
    store_session(session)
    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True, samesite="lax")
    return response


def _status(session: Session) -> StatusResponse:
    state = session.controller.state
    return StatusResponse(
        session_id=session.session_id,
        state=state.name,
        result=state.result if isinstance(state, Succeeded) else None,
        error=state.message if isinstance(state, Failed) else None,
    )


async def _read_upload(file: UploadFile) -> bytes:
    contents = await file.read()
    await file.close()
    if len(contents) > MAX_FILE_BYTES:
        raise ExtractionError(TOO_LARGE_MESSAGE)
    return contents


async def _extract(file: UploadFile) -> str:
    contents = await _read_upload(file)
    return await run_in_threadpool(extract_text, contents, file.content_type, file.filename)


# ---------------------------------------------------------------------------
# HTML pages
# ---------------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse, tags=["ui"])
def index(session: Session = Depends(browser_session)):
    return HTMLResponse(render_page(session))


@app.post("/analyze", tags=["ui"])
@rate_limit
async def analyze_form(
    request: Request,
    resume_text: str = Form(""),
    job_description: str = Form(""),
    session: Session = Depends(browser_session),
):
    session.resume_text = resume_text
    session.job_description = job_description
    session.notice = None

    if not is_admissible(resume_text, job_description):
        session.notice = TOO_SHORT_MESSAGE
    elif session.controller.can_submit:
        session.controller.submit(resume_text, job_description)
    else:
        logger.info("Ignoring submit for session %s while %s", session.session_id, session.controller.state.name)

    return _back_to_page(session)


@app.post("/upload", tags=["ui"])
async def upload_form(
    file: UploadFile = File(...),
    job_description: str = Form(""),
    session: Session = Depends(browser_session),
):
    session.job_description = job_description
    try:
        session.resume_text = await _extract(file)
        session.notice = None
    except ExtractionError as e:
        logger.warning("Extraction failed for %s: %s", file.filename, e)
        session.notice = f"Could not read the file: {e} You can also paste the text directly."
    return _back_to_page(session)


@app.post("/reset", tags=["ui"])
async def reset_form(session: Session = Depends(browser_session)):
    session.clear()
    return _back_to_page(session)


@app.post("/consistency", tags=["ui"])
async def consistency_form(
    linkedin_profile: str = Form(""),
    session: Session = Depends(browser_session),
):
    session.linkedin_profile = linkedin_profile
    session.notice = None
    if not isinstance(session.controller.state, Succeeded):
        logger.info("Ignoring consistency check for session %s while %s", session.session_id, session.controller.state.name)
    elif not linkedin_profile.strip():
        session.notice = PROFILE_REQUIRED_MESSAGE
    else:
        session.consistency_score = simulate_consistency_score().score
    return _back_to_page(session)


@app.get("/report.pdf", tags=["ui"])
def report_pdf(session: Session = Depends(browser_session)):
    return _pdf_response(session)


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------

@app.get("/health", tags=["default"])
def health():
    return {"ok": True, "env": get_env(), "rate_limit_enabled": is_prod(), "model": get_model_name()}


@app.post("/api/analyze", response_model=None, tags=["default"])
@rate_limit
async def analyze(
    request: Request,
    payload: AnalyzeRequest,
    analyzer: Analyzer = Depends(get_analyzer),
):
    if not is_admissible(payload.resume_text, payload.job_description):
        raise HTTPException(status_code=422, detail=TOO_SHORT_MESSAGE)

    session = store_session(new_session(analyzer))
    session.resume_text = payload.resume_text
    session.job_description = payload.job_description
    session.controller.submit(payload.resume_text, payload.job_description)

    return AnalyzeResponse(status=True, session_id=session.session_id).model_dump()


@app.get("/api/status/{session_id}", response_model=StatusResponse, tags=["default"])
def status(session_id: str):
    return _status(get_session(session_id))


@app.get("/api/result/{session_id}", response_model=AnalysisResult, tags=["default"])
def result(session_id: str):
    state = get_session(session_id).controller.state
    if not isinstance(state, Succeeded):
        raise HTTPException(status_code=404, detail="Result not found")
    return state.result


@app.post("/api/resubmit/{session_id}", response_model=StatusResponse, tags=["default"])
@rate_limit
async def resubmit(request: Request, session_id: str):
    session = get_session(session_id)
    try:
        session.controller.submit(session.resume_text, session.job_description)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _status(session)


@app.post("/api/reset/{session_id}", response_model=StatusResponse, tags=["default"])
async def reset(session_id: str):
    session = get_session(session_id)
    session.controller.reset()
    session.consistency_score = None
    return _status(session)


@app.post("/api/extract", response_model=ExtractResponse, tags=["default"])
async def extract(file: UploadFile = File(...)):
    try:
        text = await _extract(file)
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ExtractResponse(text=text, characters=len(text))


@app.post("/api/consistency/{session_id}", response_model=ConsistencyResponse, tags=["default"])
def consistency(session_id: str, payload: ConsistencyRequest):
    if not payload.linkedin_profile.strip():
        raise HTTPException(status_code=422, detail=PROFILE_REQUIRED_MESSAGE)
    session = get_session(session_id)
    session.linkedin_profile = payload.linkedin_profile
    check = simulate_consistency_score()
    session.consistency_score = check.score
    return ConsistencyResponse(score=check.score, verdict=check.verdict, simulated=check.simulated)


@app.get("/api/download/{session_id}", tags=["default"])
def download(session_id: str):
    return _pdf_response(get_session(session_id))


def _pdf_response(session: Session) -> Response:
    state = session.controller.state
    if not isinstance(state, Succeeded):
        raise HTTPException(status_code=404, detail="Report not found")

    pdf_bytes = build_pdf(state.result)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="ATS_Report_{session.session_id}.pdf"'},
    )
