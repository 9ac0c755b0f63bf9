from dataclasses import dataclass, field
from typing import Optional
import time

from atsmaster.state import AnalysisController


@dataclass
class Session:
    session_id: str
    controller: AnalysisController
    last_seen: float = field(default_factory=lambda: time.time())
    resume_text: str = ""
    job_description: str = ""
    linkedin_profile: str = ""
    notice: Optional[str] = None
    consistency_score: Optional[int] = None

    def touch(self, now: Optional[float] = None):
        self.last_seen = now if now is not None else time.time()

    def expired(self, ttl: float, now: Optional[float] = None) -> bool:
        now = now if now is not None else time.time()
        return now - self.last_seen > ttl

    def clear(self):
        self.controller.reset()
        self.resume_text = ""
        self.job_description = ""
        self.linkedin_profile = ""
        self.notice = None
        self.consistency_score = None
