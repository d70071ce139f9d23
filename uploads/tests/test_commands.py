from io import StringIO
from unittest import mock

from django.core.management import CommandError, call_command
from django.test import TestCase, override_settings

from automation.models import SystemSetting
from uploads.management.commands.process_upload_queue import resolve_concurrency


class ProcessUploadQueueCommandTests(TestCase):
    @override_settings(PROCESSOR_API_KEY="")
    def test_refuses_to_start_without_api_key(self):
        with self.assertRaises(CommandError):
            call_command("process_upload_queue", "--once")

    @mock.patch("uploads.management.commands.process_upload_queue.UploadQueuePoller")
    def test_once_runs_a_single_tick(self, poller_class):
        poller = poller_class.return_value
        poller.run.return_value = mock.Mock(calls=1, processed=0, idle=1, failed=0)
        out = StringIO()

        call_command("process_upload_queue", "--once", "--interval-ms", "100", stdout=out)

        args, kwargs = poller_class.call_args
        self.assertEqual(args[1], "test-processor-key")
        self.assertEqual(kwargs["interval_ms"], 100)
        poller.run.assert_called_once_with(max_ticks=1)
        self.assertIn("1 idle", out.getvalue())


class ResolveConcurrencyTests(TestCase):
    @override_settings(MAX_CONCURRENT_PROCESSORS="")
    def test_defaults_to_one(self):
        self.assertEqual(resolve_concurrency(), 1)

    @override_settings(MAX_CONCURRENT_PROCESSORS="")
    def test_uses_system_setting(self):
        SystemSetting.objects.create(key=SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS, value="4")

        self.assertEqual(resolve_concurrency(), 4)

    @override_settings(MAX_CONCURRENT_PROCESSORS="3")
    def test_environment_overrides_system_setting(self):
        SystemSetting.objects.create(key=SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS, value="4")

        self.assertEqual(resolve_concurrency(), 3)
        self.assertEqual(resolve_concurrency(2), 2)

    @override_settings(MAX_CONCURRENT_PROCESSORS="nope")
    def test_invalid_values_are_ignored(self):
        SystemSetting.objects.create(key=SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS, value="-1")

        self.assertEqual(resolve_concurrency(), 1)
