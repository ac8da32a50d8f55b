"""Meter anomaly review API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query

from fuelops.api.deps import ensure_success, get_actor_id, get_detector
from fuelops.schemas.anomaly import AnomalyReviewResult, MeterAnomalyResponse
from fuelops.services.anomaly import AnomalyDetector

router = APIRouter(prefix="/anomalies", tags=["anomalies"])


@router.get("/pending", response_model=list[MeterAnomalyResponse])
def list_pending(
    station_id: int | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    detector: AnomalyDetector = Depends(get_detector),
) -> list[MeterAnomalyResponse]:
    """Unreviewed anomalies, newest first."""
    anomalies = detector.get_pending_anomalies(station_id=station_id, limit=limit)
    return [MeterAnomalyResponse.model_validate(a) for a in anomalies]


@router.post("/{anomaly_id}/review", response_model=AnomalyReviewResult)
def review_anomaly(
    anomaly_id: int,
    detector: AnomalyDetector = Depends(get_detector),
    actor_id: int | None = Depends(get_actor_id),
) -> AnomalyReviewResult:
    """Mark an anomaly as reviewed by the acting user."""
    if actor_id is None:
        raise HTTPException(status_code=400, detail="X-Actor-Id header is required")
    return ensure_success(detector.mark_anomaly_reviewed(anomaly_id, actor_id))
