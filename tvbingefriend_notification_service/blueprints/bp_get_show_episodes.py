"""Get one show's stored episodes"""
import json
import logging

import azure.functions as func

from tvbingefriend_notification_service.services.episode_service import EpisodeService

bp: func.Blueprint = func.Blueprint()


@bp.function_name(name="get_show_episodes")
@bp.route(route="shows/{show_id}/episodes", methods=["GET"])
def get_show_episodes(req: func.HttpRequest) -> func.HttpResponse:
    """Get all stored episodes for a show

    Args:
        req (func.HttpRequest): HTTP request

    Returns:
        func.HttpResponse: HTTP response with episodes data
    """
    try:
        show_id = req.route_params.get('show_id')
        if not show_id:
            return func.HttpResponse(
                body="Show ID is required",
                status_code=400
            )

        episode_service = EpisodeService()
        episodes = episode_service.get_show_episodes(show_id)

        return func.HttpResponse(
            body=json.dumps(episodes),
            status_code=200,
            headers={
                "Content-Type": "application/json",
                "Cache-Control": "public, max-age=600",
                "ETag": f'"{show_id}-{len(episodes)}"'
            }
        )

    except Exception as e:
        logging.error(f"get_show_episodes: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
