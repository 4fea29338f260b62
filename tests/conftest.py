import httpx
import pytest

from rebound import Dispatcher, Scheduler

URL = "https://api.example.com/v1/me"


class RecordingScheduler(Scheduler):
    """Runs jobs inline and remembers the delays they asked for."""

    def __init__(self):
        self.delays = []

    def schedule(self, delay, fn):
        self.delays.append(delay)
        fn()


class DroppingScheduler(Scheduler):
    """Accepts jobs and never runs them."""

    def __init__(self):
        self.delays = []

    def schedule(self, delay, fn):
        self.delays.append(delay)


def get_me(client):
    return client.build_request("GET", URL)


def sequence_handler(responses, calls):
    """MockTransport handler replaying `responses`; the last one repeats."""

    def _handle(request):
        calls.append(request)
        status, kwargs = responses[min(len(calls), len(responses)) - 1]
        return httpx.Response(status, **kwargs)

    return _handle


@pytest.fixture
def make_dispatcher():
    created = []

    def _make(responses, scheduler=None, **kwargs):
        calls = []
        client = httpx.Client(transport=httpx.MockTransport(sequence_handler(responses, calls)))
        scheduler = scheduler if scheduler is not None else RecordingScheduler()
        d = Dispatcher(client, scheduler=scheduler, **kwargs)
        created.append((d, client))
        return d, calls, scheduler

    yield _make
    for d, client in created:
        d.close()
        client.close()
