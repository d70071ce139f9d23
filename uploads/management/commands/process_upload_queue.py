import signal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from automation.models import SystemSetting
from uploads.poller import UploadQueuePoller, parse_interval_ms


def _positive_int(raw):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def resolve_concurrency(option=None) -> int:
    """Command option, then MAX_CONCURRENT_PROCESSORS, then the system setting, then 1."""
    for candidate in (option, getattr(settings, "MAX_CONCURRENT_PROCESSORS", "")):
        value = _positive_int(candidate)
        if value:
            return value
    stored = SystemSetting.get_value(SystemSetting.KEY_MAX_CONCURRENT_PROCESSORS)
    return _positive_int(stored) or 1


class Command(BaseCommand):
    help = "Poll the upload queue processor endpoint until terminated"

    def add_arguments(self, parser):
        parser.add_argument("--url", default=None, help="Processor endpoint (defaults to PROCESSOR_URL).")
        parser.add_argument("--interval-ms", default=None, help="Delay between ticks (defaults to PROCESSOR_INTERVAL_MS).")
        parser.add_argument("--concurrency", type=int, default=None, help="Calls issued per tick.")
        parser.add_argument("--once", action="store_true", help="Run a single tick and exit.")

    def handle(self, *args, **options):
        api_key = getattr(settings, "PROCESSOR_API_KEY", "")
        if not api_key:
            raise CommandError("PROCESSOR_API_KEY is not set!")

        interval_raw = options["interval_ms"]
        if interval_raw is None:
            interval_raw = getattr(settings, "PROCESSOR_INTERVAL_MS", None)

        poller = UploadQueuePoller(
            options["url"] or settings.PROCESSOR_URL,
            api_key,
            interval_ms=parse_interval_ms(interval_raw),
            concurrency=resolve_concurrency(options["concurrency"]),
            stats_interval_ms=getattr(settings, "LOG_INTERVAL_MS", 30000),
        )

        previous_handlers = {
            signum: signal.signal(signum, poller.stop) for signum in (signal.SIGINT, signal.SIGTERM)
        }

        self.stdout.write("Starting background processor...")
        try:
            stats = poller.run(max_ticks=1 if options["once"] else None)
        finally:
            for signum, handler in previous_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
        self.stdout.write(
            f"Processor stopped after {stats.calls} calls "
            f"({stats.processed} processed, {stats.idle} idle, {stats.failed} failed)."
        )
