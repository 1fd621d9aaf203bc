"""FastAPI route exposing Prometheus metrics."""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST

from sovereign_watch.web.dependencies import AppServices, get_services

router = APIRouter()


@router.get("/metrics", include_in_schema=False, summary="Prometheus metrics endpoint")
def metrics_endpoint(services: AppServices = Depends(get_services)) -> Response:
    """Expose collected metrics in Prometheus text format."""

    return Response(content=services.metrics.render(), media_type=CONTENT_TYPE_LATEST)
