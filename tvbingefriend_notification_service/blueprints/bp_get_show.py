"""Get show by ID"""
import json
import logging
import hashlib

import azure.functions as func

from tvbingefriend_notification_service.services.reconciliation_service import ReconciliationService

bp: func.Blueprint = func.Blueprint()


@bp.function_name(name="get_show")
@bp.route(route="shows/{show_id}", methods=["GET"])
def get_show(req: func.HttpRequest) -> func.HttpResponse:
    """Get a canonical show by its ID

    Args:
        req (func.HttpRequest): HTTP request

    Returns:
        func.HttpResponse: HTTP response with show data
    """
    try:
        show_id = req.route_params.get('show_id')
        if not show_id:
            return func.HttpResponse(
                body="Show ID is required",
                status_code=400
            )

        reconciliation_service = ReconciliationService()
        show = reconciliation_service.get_show(show_id)

        if not show:
            return func.HttpResponse(
                body="Show not found",
                status_code=404
            )

        etag = hashlib.md5(json.dumps(show, sort_keys=True).encode(), usedforsecurity=False).hexdigest()

        if req.headers.get('If-None-Match') == etag:
            return func.HttpResponse(status_code=304)

        return func.HttpResponse(
            body=json.dumps(show),
            status_code=200,
            headers={
                "Content-Type": "application/json",
                "Cache-Control": "public, max-age=3600",
                "ETag": etag
            }
        )

    except Exception as e:
        logging.error(f"get_show: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
