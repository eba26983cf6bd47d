import pytest

import dispatcher.pipeline as pipeline
from tests.factories import make_contest


class DummyResponse:

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _patch_get(monkeypatch, resp):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return resp

    monkeypatch.setattr(pipeline.rq, "get", fake_get)
    return calls


def test_fetch_contest(monkeypatch):
    contest = make_contest(id="c7")
    calls = _patch_get(
        monkeypatch,
        DummyResponse(payload={"data": contest.model_dump(mode="json")}))
    fetched = pipeline.fetch_contest("c7")
    assert fetched == contest
    assert fetched.question("q1").testCases[1].isHidden
    url, params = calls[0]
    assert url == f"{pipeline.BACKEND_API}/contest/c7"
    assert params == {"token": pipeline.JUDGE_TOKEN}


def test_fetch_contest_not_found(monkeypatch):
    _patch_get(monkeypatch, DummyResponse(status_code=404))
    assert pipeline.fetch_contest("nope") is None


@pytest.mark.parametrize(
    "resp, error",
    [
        (DummyResponse(status_code=401), PermissionError),
        (DummyResponse(status_code=500, text="boom"), RuntimeError),
        # payload missing required fields
        (DummyResponse(payload={"data": {"id": "c1"}}), RuntimeError),
        (DummyResponse(payload=None), RuntimeError),
    ],
)
def test_fetch_contest_failures(monkeypatch, resp, error):
    _patch_get(monkeypatch, resp)
    with pytest.raises(error):
        pipeline.fetch_contest("c1")


def test_fetch_contest_backend_unreachable(monkeypatch):

    def fake_get(url, params=None, timeout=None):
        raise pipeline.rq.ConnectionError("connection refused")

    monkeypatch.setattr(pipeline.rq, "get", fake_get)
    with pytest.raises(RuntimeError):
        pipeline.fetch_contest("c1")
