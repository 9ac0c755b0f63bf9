from __future__ import annotations
from html import escape
from typing import List, Optional

from atsmaster.core import MIN_INPUT_CHARS, AnalysisResult, is_admissible
from atsmaster.models import Session
from atsmaster.services.consistency import EXCELLENT_ABOVE
from atsmaster.state import Failed, InFlight, Succeeded

POLL_SECONDS = 2

_STYLE = """
    body {
      font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Arial;
      background: #070A12;
      color: #E7E9EE;
      margin: 0; padding: 24px;
    }
    .wrap { max-width: 980px; margin: 0 auto; }
    .hero {
      background: radial-gradient(900px 300px at 10% 0%, rgba(212,175,55,0.18), transparent 60%),
                  radial-gradient(900px 300px at 90% 0%, rgba(0,208,132,0.16), transparent 60%),
                  #0B0F1A;
      border: 1px solid rgba(255,255,255,0.08);
      border-radius: 18px;
      padding: 18px 18px;
    }
    .row { display: grid; grid-template-columns: 1fr 1.4fr; gap: 14px; margin-top: 14px; }
    .panel {
      background: rgba(255,255,255,0.03);
      border: 1px solid rgba(255,255,255,0.08);
      border-radius: 16px;
      padding: 14px;
      margin-top: 14px;
    }
    .row .panel { margin-top: 0; }
    .muted { color: rgba(231,233,238,0.7); font-size: 13px; }
    .warn { color: #F5A524; font-size: 12px; }
    .gold { color: #D4AF37; }
    .emerald { color: #00D084; }
    .chip {
      display: inline-block;
      font-size: 12px;
      padding: 4px 10px;
      margin: 4px 4px 0 0;
      border-radius: 999px;
      border: 1px solid rgba(212,175,55,0.35);
      color: #D4AF37;
      background: rgba(212,175,55,0.08);
    }
    .card {
      background: rgba(255,255,255,0.03);
      border: 1px solid rgba(255,255,255,0.08);
      border-radius: 16px;
      padding: 12px;
      margin-top: 10px;
    }
    .title { font-weight: 700; margin-bottom: 4px; }
    .detail { color: rgba(231,233,238,0.85); font-size: 14px; line-height: 1.5; white-space: pre-wrap; }
    .banner {
      border: 1px solid rgba(255,99,99,0.35);
      background: rgba(255,99,99,0.08);
      color: #FF8A8A;
      border-radius: 14px;
      padding: 12px 14px;
      margin-top: 14px;
      text-align: center;
    }
    .badge {
      display: inline-block; font-size: 11px; padding: 2px 8px; border-radius: 999px;
      border: 1px solid rgba(56,199,215,0.4); color: #38C7D7; margin-left: 6px;
    }
    textarea {
      width: 100%; box-sizing: border-box; height: 180px; padding: 12px;
      border-radius: 12px; border: 1px solid rgba(255,255,255,0.12);
      background: #0B0F1A; color: #E7E9EE; resize: vertical;
    }
    button, .button {
      background: #D4AF37; color: #070A12; border: 0; border-radius: 12px;
      padding: 10px 18px; font-weight: 700; cursor: pointer; text-decoration: none;
      display: inline-block;
    }
    button.secondary { background: transparent; color: #E7E9EE; border: 1px solid rgba(255,255,255,0.2); }
    button[disabled] { opacity: 0.4; cursor: not-allowed; }
    .spinner {
      width: 64px; height: 64px; margin: 40px auto 16px;
      border: 4px solid rgba(212,175,55,0.15); border-top-color: #D4AF37;
      border-radius: 50%; animation: spin 1s linear infinite;
    }
    @keyframes spin { to { transform: rotate(360deg); } }
    .center { text-align: center; }
    @media (max-width: 820px) {
      .row { grid-template-columns: 1fr; }
    }
"""


def _chips(items: List[str]) -> str:
    if not items:
        return "<span class='muted'>—</span>"
    return "".join(f"<span class='chip'>{escape(x)}</span>" for x in items)


def _gauge(score: int) -> str:
    pct = max(0, min(100, score))
    radius = 52
    circumference = 2 * 3.14159 * radius
    offset = circumference * (1 - pct / 100.0)
    color = "#00D084" if pct >= 75 else ("#D4AF37" if pct >= 50 else "#FF6363")
    return f"""
      <svg width="140" height="140" viewBox="0 0 140 140" role="img" aria-label="Match score {pct} of 100">
        <circle cx="70" cy="70" r="{radius}" fill="none" stroke="rgba(255,255,255,0.08)" stroke-width="12"/>
        <circle cx="70" cy="70" r="{radius}" fill="none" stroke="{color}" stroke-width="12"
                stroke-linecap="round" stroke-dasharray="{circumference:.1f}" stroke-dashoffset="{offset:.1f}"
                transform="rotate(-90 70 70)"/>
        <text x="70" y="78" text-anchor="middle" font-size="30" font-weight="800" fill="#E7E9EE">{pct}</text>
      </svg>
    """


def _counter(text: str) -> str:
    n = len(text)
    hint = ""
    if 0 < len(text.strip()) < MIN_INPUT_CHARS:
        hint = f" <span class='warn'>Minimum {MIN_INPUT_CHARS} characters</span>"
    return f"<div class='muted'>{n} characters{hint}</div>"


def render_form(session: Session) -> str:
    resume = session.resume_text
    jd = session.job_description
    disabled = "" if is_admissible(resume, jd) else " disabled"
    return f"""
    <form class="panel" method="post" action="/analyze">
      <div class="title">Job description</div>
      <textarea name="job_description" placeholder="Paste the full job description here...">{escape(jd)}</textarea>
      {_counter(jd)}
      <div class="title" style="margin-top:14px;">Your résumé</div>
      <textarea name="resume_text" placeholder="Paste your résumé text, or upload a PDF/TXT file below...">{escape(resume)}</textarea>
      {_counter(resume)}
      <div style="margin-top:14px;">
        <button type="submit" id="analyze"{disabled}>Analyze compatibility</button>
      </div>
    </form>
    <script>
      (function () {{
        var form = document.querySelector('form[action="/analyze"]');
        var fields = form.querySelectorAll("textarea");
        function update() {{
          var ok = Array.prototype.every.call(fields, function (f) {{ return f.value.trim().length >= {MIN_INPUT_CHARS}; }});
          document.getElementById("analyze").disabled = !ok;
        }}
        fields.forEach(function (f) {{ f.addEventListener("input", update); }});
      }})();
    </script>

    <form class="panel" method="post" action="/upload" enctype="multipart/form-data">
      <div class="title">Upload résumé</div>
      <div class="muted">PDF or plain text. The extracted text replaces the résumé field above.</div>
      <input type="hidden" name="job_description" value="{escape(jd)}"/>
      <input type="file" name="file" accept=".pdf,.txt,application/pdf,text/plain" style="margin-top:10px;"/>
      <button type="submit" class="secondary">Extract text</button>
    </form>
    """


def render_loading() -> str:
    return """
    <div class="panel center">
      <div class="spinner"></div>
      <div class="title gold">Analyzing your résumé against the job description...</div>
      <div class="muted">Looking at skills, keywords and overall fit. This page refreshes on its own.</div>
    </div>
    """


def render_consistency(session: Session) -> str:
    score = session.consistency_score
    if score is None:
        outcome = "<div class='muted'>Not checked yet.</div>"
    else:
        verdict = "looks excellent" if score > EXCELLENT_ABOVE else "needs some adjustments"
        outcome = f"<div class='emerald title'>Profile consistency: {score}%</div><div class='muted'>Your LinkedIn {verdict} for this role.</div>"
    disabled = "" if session.linkedin_profile.strip() else " disabled"
    return f"""
    <div class="panel">
      <div class="title">Profile consistency check <span class="badge">SIMULATED DEMO</span></div>
      <div class="muted">Illustrative only: this score is random and is not based on your résumé or LinkedIn profile.</div>
      <form method="post" action="/consistency" style="margin-top:10px;">
        <label class="muted" for="linkedin_profile">LinkedIn profile</label>
        <textarea id="linkedin_profile" name="linkedin_profile" placeholder="Paste your LinkedIn headline and About section...">{escape(session.linkedin_profile)}</textarea>
        <button type="submit" id="consistency" class="secondary"{disabled}>Run demo check</button>
      </form>
      <div style="margin-top:10px;">{outcome}</div>
    </div>
    <script>
      (function () {{
        var field = document.getElementById("linkedin_profile");
        field.addEventListener("input", function () {{
          document.getElementById("consistency").disabled = field.value.trim().length === 0;
        }});
      }})();
    </script>
    """


def render_dashboard(result: AnalysisResult, session: Optional[Session] = None) -> str:
    linkedin = ""
    if result.linkedin is not None:
        li = result.linkedin
        linkedin = f"""
    <div class="panel">
      <div class="muted">LinkedIn suggestions</div>
      <div class="card">
        <div class="title">Headline</div>
        <div class="detail">{escape(li.suggested_headline)}</div>
      </div>
      <div class="card">
        <div class="title">About</div>
        <div class="detail">{escape(li.suggested_about)}</div>
      </div>
      <div class="card">
        <div class="title">Top skills to add</div>
        <div>{_chips(li.top_skills_to_add)}</div>
      </div>
    </div>
        """

    consistency = render_consistency(session) if session is not None else ""

    return f"""
    <div class="row">
      <div class="panel center">
        <div class="muted">Match score</div>
        {_gauge(result.score)}
        <div class="muted">out of 100</div>
      </div>
      <div class="panel">
        <div class="muted">Missing keywords</div>
        <div style="margin-top:6px;">{_chips(result.missing_keywords)}</div>
      </div>
    </div>

    <div class="panel">
      <div class="title">Match analysis</div>
      <div class="detail">{escape(result.match_analysis)}</div>
    </div>

    <div class="panel">
      <div class="title">Recommendation</div>
      <div class="detail">{escape(result.recommendation)}</div>
    </div>
    {linkedin}
    {consistency}
    <div class="panel">
      <a class="button" href="/report.pdf">Download PDF report</a>
      <form method="post" action="/reset" style="display:inline; margin-left:8px;">
        <button type="submit" class="secondary">New analysis</button>
      </form>
    </div>
    """


def render_page(session: Session) -> str:
    state = session.controller.state
    refresh = ""
    banner = ""

    if isinstance(state, InFlight):
        body = render_loading()
        refresh = f'<meta http-equiv="refresh" content="{POLL_SECONDS}"/>'
    elif isinstance(state, Succeeded):
        body = render_dashboard(state.result, session)
    else:
        body = render_form(session)

    messages = []
    if isinstance(state, Failed):
        messages.append(state.message)
    if session.notice:
        messages.append(session.notice)
    for m in messages:
        banner += f'<div class="banner" role="alert">{escape(m)}</div>'

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  {refresh}
  <title>ATS Master</title>
  <style>{_STYLE}</style>
</head>
<body>
  <div class="wrap">
    <div class="hero">
      <h1 style="margin:0; font-size: 22px;">ATS<span class="gold">Master</span></h1>
      <div class="muted">Compare your résumé with a job description and see which skills are missing.</div>
    </div>
    {banner}
    {body}
    <div class="muted center" style="margin-top:24px;">Powered by Gemini</div>
  </div>
</body>
</html>
"""
