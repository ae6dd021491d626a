from rich.console import Console

from fastpurge.domain.models.purge import DeliveryOutcome, DeliveryResult
from fastpurge.infrastructure.cli.display import ConsoleDisplay


def _display():
    return ConsoleDisplay(console=Console(record=True, width=160))


def test_display_summary_lists_every_chunk():
    display = _display()
    results = [
        DeliveryResult("req-1", DeliveryOutcome.SUCCEEDED, attempts=1, last_status=201, object_count=3),
        DeliveryResult("req-2", DeliveryOutcome.EXHAUSTED_RETRIES, attempts=10, last_status=429, object_count=5),
        DeliveryResult("req-3", DeliveryOutcome.FAILED_TERMINAL, attempts=1, last_status=None, object_count=1),
    ]

    display.display_summary(results)
    output = display.console.export_text()

    assert "req-1" in output and "req-2" in output and "req-3" in output
    assert "exhausted_retries" in output
    assert "1/3 request(s) accepted" in output


def test_display_summary_without_results():
    display = _display()
    display.display_summary([])
    assert "No invalidation requests were sent." in display.console.export_text()


def test_display_error():
    display = _display()
    display.display_error("edgerc file not found")
    output = display.console.export_text()
    assert "Error" in output
    assert "edgerc file not found" in output
