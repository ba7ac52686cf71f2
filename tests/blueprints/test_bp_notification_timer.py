"""
Unit tests for the notification sweep timer and the manual sweep endpoint.
"""
import json
import os
import unittest
from unittest.mock import MagicMock, patch

import azure.functions as func

# Set required env vars for module import
os.environ.setdefault('SQLALCHEMY_CONNECTION_STRING', 'sqlite:///:memory:')

from tvbingefriend_notification_service.blueprints.bp_notification_timer import notification_sweep_timer
from tvbingefriend_notification_service.blueprints.bp_sweep_manual import run_sweep_manually
from tvbingefriend_notification_service.services.notification_service import SweepResult


class TestBpNotificationTimer(unittest.TestCase):

    def setUp(self):
        self.mock_notification_service = MagicMock()
        self.mock_notification_service.run_sweep.return_value = SweepResult(shows_checked=2)
        self.mock_timer_request = MagicMock(spec=func.TimerRequest)
        self.mock_timer_request.past_due = False

    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.get_notification_service')
    def test_timer_runs_sweep(self, mock_get_service):
        mock_get_service.return_value = self.mock_notification_service

        result = notification_sweep_timer(self.mock_timer_request)

        self.assertIsNone(result)
        self.mock_notification_service.run_sweep.assert_called_once_with()

    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.logging')
    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.get_notification_service')
    def test_timer_past_due_still_runs(self, mock_get_service, mock_logging):
        mock_get_service.return_value = self.mock_notification_service
        self.mock_timer_request.past_due = True

        notification_sweep_timer(self.mock_timer_request)

        mock_logging.warning.assert_called_once()
        self.mock_notification_service.run_sweep.assert_called_once_with()

    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.NOTIFICATIONS_ENABLED', False)
    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.get_notification_service')
    def test_timer_disabled(self, mock_get_service):
        notification_sweep_timer(self.mock_timer_request)
        mock_get_service.assert_not_called()

    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.logging')
    @patch('tvbingefriend_notification_service.blueprints.bp_notification_timer.get_notification_service')
    def test_timer_error_is_logged_and_raised(self, mock_get_service, mock_logging):
        mock_get_service.return_value = self.mock_notification_service
        self.mock_notification_service.run_sweep.side_effect = RuntimeError("Database connection failed")

        with self.assertRaises(RuntimeError):
            notification_sweep_timer(self.mock_timer_request)

        mock_logging.error.assert_called_once()
        self.assertTrue(mock_logging.error.call_args.kwargs['exc_info'])


class TestBpSweepManual(unittest.TestCase):

    def setUp(self):
        self.request = func.HttpRequest(method='POST', url='/api/notifications/sweep', body=b'')

    @patch('tvbingefriend_notification_service.blueprints.bp_sweep_manual.get_notification_service')
    def test_manual_sweep(self, mock_get_service):
        mock_get_service.return_value.run_sweep.return_value = SweepResult(shows_checked=3, notifications_sent=4)

        response = run_sweep_manually(self.request)

        self.assertEqual(response.status_code, 200)
        body = json.loads(response.get_body())
        self.assertEqual(body['shows_checked'], 3)
        self.assertEqual(body['notifications_sent'], 4)

    @patch('tvbingefriend_notification_service.blueprints.bp_sweep_manual.get_notification_service')
    def test_manual_sweep_while_running(self, mock_get_service):
        mock_get_service.return_value.run_sweep.return_value = SweepResult(skipped=True)

        response = run_sweep_manually(self.request)

        self.assertEqual(response.status_code, 409)
        self.assertTrue(json.loads(response.get_body())['skipped'])

    @patch('tvbingefriend_notification_service.blueprints.bp_sweep_manual.logging')
    @patch('tvbingefriend_notification_service.blueprints.bp_sweep_manual.get_notification_service')
    def test_manual_sweep_error(self, mock_get_service, mock_logging):
        mock_get_service.return_value.run_sweep.side_effect = RuntimeError("boom")

        response = run_sweep_manually(self.request)

        self.assertEqual(response.status_code, 500)
        mock_logging.error.assert_called_once()


if __name__ == '__main__':
    unittest.main()
