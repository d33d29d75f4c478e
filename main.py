# main.py

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ats_detector import detect_ats, is_ats_url
from browser import AtsResolver, BrowserSession, BrowserUnavailable
from forms import DetectedField, analyze, summarize


# -----------------------------
# Shared browser (one per process, launched on first resolve)
# -----------------------------
session = BrowserSession()
resolver = AtsResolver(session)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await session.shutdown()


app = FastAPI(
    title="ATS Resolver",
    description="Resolves job postings to ATS application forms and audits form fill rate",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Request models
# -----------------------------
class ResolveRequest(BaseModel):
    url: str


class FieldIn(BaseModel):
    selector: str
    type: str = "text"
    name: Optional[str] = None
    id: Optional[str] = None
    placeholder: Optional[str] = None
    label: Optional[str] = None
    label_source: Optional[str] = None
    required: bool = False
    value: Optional[str] = None
    filled: bool = False


class AnalyzeRequest(BaseModel):
    fields: List[FieldIn]
    filled_selectors: List[str] = []


# -----------------------------
# Endpoints
# -----------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/ats/detect")
def ats_detect(url: str = Query(...)):
    """
    Fingerprint a URL without opening it:
      { "url", "is_ats", "ats", "board_id", "board_url" }
    """
    match = detect_ats(url)
    return {
        "url": url,
        "is_ats": is_ats_url(url),
        "ats": match.ats if match else None,
        "board_id": match.board_id if match else None,
        "board_url": match.board_url if match else None,
    }


@app.post("/ats/resolve")
async def ats_resolve(payload: ResolveRequest):
    """
    Follow a job posting to its application form.
    resolved_url == url means no ATS was found; ok=False means the page never loaded.
    """
    try:
        resolved = await resolver.resolve_application_url(payload.url)
    except BrowserUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    match = detect_ats(resolved) if resolved else None
    return {
        "url": payload.url,
        "resolved_url": resolved,
        "ats": match.ats if match else None,
        "ok": resolved is not None,
    }


@app.post("/forms/analyze")
def forms_analyze(payload: AnalyzeRequest):
    """Partition reported fields into filled/missed given the selectors a fill pass touched."""
    fields = [DetectedField(**f.model_dump()) for f in payload.fields]
    analysis = analyze(fields, payload.filled_selectors)

    result = analysis.to_dict()
    result["summary"] = summarize(analysis)
    return result


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
