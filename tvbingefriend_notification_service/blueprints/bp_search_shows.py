"""Search shows across providers"""
import json
import logging

import azure.functions as func

from tvbingefriend_notification_service.services.reconciliation_service import ReconciliationService

bp: func.Blueprint = func.Blueprint()


@bp.function_name(name="search_shows")
@bp.route(route="shows/search", methods=["GET"])
def search_shows(req: func.HttpRequest) -> func.HttpResponse:
    """Search every enabled provider and return reconciled shows

    Args:
        req (func.HttpRequest): HTTP request with a 'q' query parameter

    Returns:
        func.HttpResponse: HTTP response with canonical shows
    """
    try:
        query = (req.params.get('q') or "").strip()
        if not query:
            return func.HttpResponse(
                body="Query parameter 'q' is required",
                status_code=400
            )

        reconciliation_service = ReconciliationService()
        shows = reconciliation_service.search_shows(query)

        return func.HttpResponse(
            body=json.dumps(shows),
            status_code=200,
            headers={"Content-Type": "application/json"}
        )

    except Exception as e:
        logging.error(f"search_shows: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
