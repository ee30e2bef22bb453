"""
Reports API Endpoints.

Render downloadable SEO sales reports from Lead-shaped records.
"""

from fastapi import APIRouter, HTTPException, Query, Response

from api.models import BulkReportRequest, ErrorResponse, LeadPayload
from services.report_service import (
    ReportFormat,
    bulk_report_filename,
    render_bulk_report,
    render_report,
    report_filename,
)

router = APIRouter()


def report_response(content: str, filename: str, fmt: ReportFormat) -> Response:
    """Wrap a rendered document as a file download."""

    return Response(
        content=content.encode("utf-8"),
        media_type=fmt.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/reports",
    summary="Render Lead Report",
    description="Render one lead as a plain-text or self-contained HTML report.",
    response_class=Response,
    responses={400: {"model": ErrorResponse}},
)
def create_report(
    lead: LeadPayload,
    fmt: ReportFormat = Query(ReportFormat.TXT, alias="format", description="'txt' or 'html'"),
):
    """
    Render a report for a single lead.

    **Example usage:**
    ```
    POST /api/v1/reports?format=html
    ```

    **Response:**
    File download named `<Business_Name>_SEO_Report.<format>`.
    """
    try:
        domain_lead = lead.to_domain()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid lead: {str(e)}")

    try:
        content = render_report(domain_lead, fmt)
        return report_response(content, report_filename(domain_lead, fmt), fmt)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to render report: {str(e)}"
        )


@router.post(
    "/reports/bulk",
    summary="Render Bulk Report",
    description="Render a cover page, executive summary and one section per lead.",
    response_class=Response,
    responses={400: {"model": ErrorResponse}},
)
def create_bulk_report(
    request: BulkReportRequest,
    fmt: ReportFormat = Query(ReportFormat.TXT, alias="format", description="'txt' or 'html'"),
):
    """
    Render one document for every lead from a discovery search.

    Leads are rendered in the order given.
    """
    try:
        leads = [payload.to_domain() for payload in request.leads]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid lead: {str(e)}")

    try:
        content = render_bulk_report(leads, request.geography, request.industry, fmt)
        filename = bulk_report_filename(request.geography, request.industry, fmt)
        return report_response(content, filename, fmt)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to render bulk report: {str(e)}"
        )
