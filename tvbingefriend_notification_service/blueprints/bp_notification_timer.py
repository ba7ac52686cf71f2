"""Notify followers about upcoming episodes"""
import logging

import azure.functions as func

from tvbingefriend_notification_service.config import CHECK_INTERVAL_NCRON, NOTIFICATIONS_ENABLED
from tvbingefriend_notification_service.services.notification_service import get_notification_service

bp: func.Blueprint = func.Blueprint()


@bp.function_name(name="notification_sweep_timer")
@bp.timer_trigger(
    arg_name="sweeptimer",
    schedule=CHECK_INTERVAL_NCRON,
    run_on_startup=True
)
def notification_sweep_timer(sweeptimer: func.TimerRequest) -> None:
    """Run a notification sweep over every followed show"""
    if not NOTIFICATIONS_ENABLED:
        logging.info("notification_sweep_timer: Notifications are disabled, skipping sweep")
        return

    try:
        if sweeptimer.past_due:
            logging.warning("notification_sweep_timer: Timer is past due")
        result = get_notification_service().run_sweep()  # skipped if a sweep is already running
        logging.info(f"notification_sweep_timer: Sweep result: {result.to_dict()}")
    except Exception as e:  # catch errors and log them
        logging.error(
            f"notification_sweep_timer: Unhandled exception. Error: {e}",
            exc_info=True
        )
        raise
