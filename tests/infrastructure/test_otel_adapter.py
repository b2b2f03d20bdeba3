from summify_search.infrastructure.telemetry.otel_adapter import OpenTelemetryAdapter, OtelConfig


class FakeInstrument:
    def __init__(self):
        self.calls = []

    def add(self, value, attributes=None):
        self.calls.append((value, attributes))

    def record(self, value, attributes=None):
        self.calls.append((value, attributes))


class FakeMeter:
    def __init__(self):
        self.instruments = {}

    def create_counter(self, name, description=""):
        return self.instruments.setdefault(name, FakeInstrument())

    def create_histogram(self, name, description=""):
        return self.instruments.setdefault(name, FakeInstrument())


def test_calls_never_raise_whether_or_not_sdk_is_installed():
    adapter = OpenTelemetryAdapter(OtelConfig())
    adapter.incr("search.requests", {"search_type": "enhanced_text_search"})
    adapter.observe("search.latency_ms", 12.5)


def test_instruments_are_created_once_and_reused():
    adapter = OpenTelemetryAdapter(OtelConfig())
    meter = FakeMeter()
    adapter._meter = meter

    adapter.incr("search.fallback", {"reason": "Timeout"})
    adapter.incr("search.fallback")
    adapter.observe("search.latency_ms", 7)

    assert adapter.enabled
    assert meter.instruments["search.fallback"].calls == [(1, {"reason": "Timeout"}), (1, {})]
    assert meter.instruments["search.latency_ms"].calls == [(7, {})]
