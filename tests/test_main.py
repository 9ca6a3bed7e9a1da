"""
Tests for the CLI entry point: validation pipeline, exit codes and error output.

Usage:
    python -m pytest tests/test_main.py -v
"""
import io
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import requests

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from m365_search.main import build_parser, main, run_command
from m365_search.utils.error_handling import AuthenticationError, ConfigurationError


def conflict_error():
    response = requests.Response()
    response.status_code = 409
    response.encoding = 'utf-8'
    response._content = b'{"error": {"code": "Conflict", "message": "Connection already exists"}}'
    return requests.HTTPError('409 Client Error', response=response)


class TestRunCommand(unittest.TestCase):

    def setUp(self):
        self.parser = build_parser()
        self.client = MagicMock()
        self.config = MagicMock()
        self.config.resource = 'https://graph.microsoft.com'

    def parse(self, connection_id='Contoso1'):
        return self.parser.parse_args([
            'search', 'externalconnection', 'add',
            '-i', connection_id, '-n', 'Contoso', '-d', 'Contoso content'
        ])

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('m365_search.main.Config')
    def test_validation_failure_makes_no_request(self, mock_config, mock_stderr):
        options = self.parse('my_id')

        exit_code = run_command(options.command, options, client=self.client)

        self.assertEqual(exit_code, 1)
        self.assertEqual(
            mock_stderr.getvalue(),
            'Error: ID must only contain alphanumeric characters.\n'
        )
        mock_config.assert_not_called()
        self.client.post.assert_not_called()

    def test_success(self):
        options = self.parse()

        exit_code = run_command(options.command, options, config=self.config, client=self.client)

        self.assertEqual(exit_code, 0)
        self.client.post.assert_called_once()
        self.assertEqual(
            self.client.post.call_args[0][0].url,
            'https://graph.microsoft.com/v1.0/external/connections'
        )

    @patch('sys.stderr', new_callable=io.StringIO)
    def test_service_rejection(self, mock_stderr):
        self.client.post.side_effect = conflict_error()
        options = self.parse()

        exit_code = run_command(options.command, options, config=self.config, client=self.client)

        self.assertEqual(exit_code, 1)
        self.assertEqual(self.client.post.call_count, 1)
        self.assertEqual(mock_stderr.getvalue(), 'Error: Connection already exists\n')

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('m365_search.main.Config')
    def test_configuration_error(self, mock_config, mock_stderr):
        mock_config.side_effect = ConfigurationError('Set M365_ACCESS_TOKEN')
        options = self.parse()

        self.assertEqual(run_command(options.command, options), 1)
        self.assertEqual(mock_stderr.getvalue(), 'Error: Set M365_ACCESS_TOKEN\n')

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('m365_search.main.Request')
    def test_authentication_error(self, mock_request, mock_stderr):
        self.config.get_access_token.side_effect = AuthenticationError('Failed to acquire access token')
        options = self.parse()

        self.assertEqual(run_command(options.command, options, config=self.config), 1)
        mock_request.assert_not_called()

    @patch('m365_search.main.Request')
    def test_creates_and_closes_client(self, mock_request):
        self.config.get_access_token.return_value = 'token'
        self.config.request_timeout = 30
        options = self.parse()

        self.assertEqual(run_command(options.command, options, config=self.config), 0)

        mock_request.assert_called_once_with('token', timeout=30)
        mock_request.return_value.post.assert_called_once()
        mock_request.return_value.close.assert_called_once_with()

    def test_injected_client_is_not_closed(self):
        options = self.parse()
        run_command(options.command, options, config=self.config, client=self.client)
        self.client.close.assert_not_called()


@patch('m365_search.main.setup_logging')
class TestMain(unittest.TestCase):

    ARGV = [
        'search', 'externalconnection', 'add',
        '-i', 'Contoso1', '-n', 'Contoso', '-d', 'Contoso content',
        '--authorizedAppIds', 'app1,app2'
    ]

    @patch('m365_search.main.Request')
    @patch('m365_search.main.Config')
    def test_exits_zero_on_success(self, mock_config, mock_request, mock_setup_logging):
        mock_config.return_value.resource = 'https://graph.microsoft.com'

        with self.assertRaises(SystemExit) as ctx:
            main(self.ARGV)

        self.assertEqual(ctx.exception.code, 0)
        request_options = mock_request.return_value.post.call_args[0][0]
        self.assertEqual(request_options.data['configuration'], {'authorizedAppIds': ['app1', 'app2']})

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('m365_search.main.Request')
    @patch('m365_search.main.Config')
    def test_exits_non_zero_on_conflict_without_retry(self, mock_config, mock_request,
                                                      mock_stderr, mock_setup_logging):
        mock_config.return_value.resource = 'https://graph.microsoft.com'
        mock_request.return_value.post.side_effect = conflict_error()

        with self.assertRaises(SystemExit) as ctx:
            main(self.ARGV)

        self.assertEqual(ctx.exception.code, 1)
        self.assertEqual(mock_request.return_value.post.call_count, 1)

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('m365_search.main.Config')
    def test_exits_non_zero_on_invalid_id(self, mock_config, mock_stderr, mock_setup_logging):
        argv = list(self.ARGV)
        argv[4] = 'SharePoint'

        with self.assertRaises(SystemExit) as ctx:
            main(argv)

        self.assertEqual(ctx.exception.code, 1)
        self.assertIn('ID cannot be one of the following values', mock_stderr.getvalue())
        mock_config.assert_not_called()

    @patch.dict(os.environ, {'LOG_LEVEL': 'debug'})
    @patch('m365_search.main.run_command', return_value=0)
    def test_log_level_from_environment(self, mock_run_command, mock_setup_logging):
        with self.assertRaises(SystemExit):
            main(self.ARGV)

        mock_setup_logging.assert_called_once_with(log_level='DEBUG', json_format=False)

    @patch('m365_search.main.run_command', return_value=0)
    def test_log_level_option(self, mock_run_command, mock_setup_logging):
        with self.assertRaises(SystemExit):
            main(['--log_level', 'ERROR', '--json_logs', *self.ARGV])

        mock_setup_logging.assert_called_once_with(log_level='ERROR', json_format=True)

    @patch('m365_search.main.run_command', side_effect=KeyboardInterrupt)
    def test_keyboard_interrupt(self, mock_run_command, mock_setup_logging):
        with self.assertRaises(SystemExit) as ctx:
            main(self.ARGV)

        self.assertEqual(ctx.exception.code, 130)

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('m365_search.main.run_command', side_effect=RuntimeError('boom'))
    def test_unexpected_error(self, mock_run_command, mock_stderr, mock_setup_logging):
        with self.assertRaises(SystemExit) as ctx:
            main(self.ARGV)

        self.assertEqual(ctx.exception.code, 1)
        self.assertEqual(mock_stderr.getvalue(), 'Error: boom\n')

    def test_missing_subcommand_is_usage_error(self, mock_setup_logging):
        with patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                main(['search'])

        self.assertEqual(ctx.exception.code, 2)


if __name__ == '__main__':
    unittest.main()
