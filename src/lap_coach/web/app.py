"""FastAPI Web application: health probe and lap performance analysis."""

from __future__ import annotations

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

from lap_coach.config import load_settings
from lap_coach.web.schemas import AnalyzeRequest, HealthResponse, SummaryResponse
from lap_coach.web.service import AnalysisService

load_dotenv()  # loads .env from project root; must run before env vars are consumed

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Lap Coach", version="0.1.0")

_settings = load_settings()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version="0.1.0")


@app.post("/api/analyze", response_model=SummaryResponse)
def analyze(req: AnalyzeRequest) -> SummaryResponse:
    """Aggregate one lap's comparison results into a performance summary."""
    svc = AnalysisService(_settings.aggregator)
    try:
        summary = svc.summarise(req)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return SummaryResponse.model_validate(summary.to_dict())
