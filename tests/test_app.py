import importlib

import pytest

from dispatcher.repository import ContestRepository, SubmissionStore
from tests.factories import make_submission


@pytest.fixture
def judge_app(monkeypatch, tmp_path, lifecycle, contests, store):
    monkeypatch.setenv("JUDGE_LOG_FILE", str(tmp_path / "judge.log"))
    monkeypatch.setenv("JUDGE_INVOKER", "local")
    monkeypatch.setattr("dispatcher.config._SUBMISSION_CONFIG_PATH",
                        tmp_path / "missing.json")
    monkeypatch.setattr("dispatcher.config.SUBMISSION_DIR",
                        tmp_path / "submissions")
    import app as judge_app
    judge_app = importlib.reload(judge_app)
    monkeypatch.setattr(judge_app, "STORE", store)
    monkeypatch.setattr(judge_app, "CONTESTS", contests)
    monkeypatch.setattr(judge_app, "LIFECYCLE", lifecycle)
    return judge_app


@pytest.fixture
def client(judge_app):
    return judge_app.app.test_client()


@pytest.fixture
def token(judge_app):
    return judge_app.config.JUDGE_TOKEN


def _submit(client, token, **kwargs):
    body = {
        "token": token,
        "contestId": "c1",
        "questionId": "q1",
        "code": "print(sum(map(int, input().split())))",
        "language": "python",
        "userId": "u1",
        **kwargs,
    }
    return client.post("/submit", json=body)


def test_status_without_token(client):
    rv = client.get("/status")
    assert rv.status_code == 200
    assert rv.get_json() == {"alive": True}


def test_status_with_token(client, token):
    rv = client.get("/status", query_string={"token": token})
    assert rv.get_json()["submissionCount"] == 0


def test_invalid_token_rejected(client):
    rv = _submit(client, "wrong")
    assert rv.status_code == 403


def test_submit_and_fetch(client, token):
    rv = _submit(client, token)
    assert rv.status_code == 201
    payload = rv.get_json()
    assert payload["status"] == "ok"
    data = payload["data"]
    assert data["status"] == "completed"
    assert data["scorePercentage"] == 100
    # hidden test case output is redacted for the participant
    assert data["testCaseResults"][1]["output"] == ""

    rv = client.get(f"/submissions/{data['submissionId']}",
                    query_string={
                        "token": token,
                        "user_id": "u1"
                    })
    assert rv.status_code == 200
    assert rv.get_json()["data"]["submissionId"] == data["submissionId"]

    rv = client.get(f"/submissions/{data['submissionId']}",
                    query_string={
                        "token": token,
                        "user_id": "u2"
                    })
    assert rv.status_code == 403


def test_submit_form_encoded(client, token):
    rv = client.post("/submit",
                     data={
                         "token": token,
                         "contestId": "c1",
                         "questionId": "q1",
                         "code": "x",
                         "language": "c",
                         "userId": "u1",
                     })
    assert rv.status_code == 201


@pytest.mark.parametrize(
    "kwargs, status_code",
    [
        ({"code": ""}, 400),
        ({"contestId": "nope"}, 404),
        ({"questionId": "nope"}, 404),
        ({"language": "javascript"}, 400),
    ],
)
def test_submit_rejections(client, token, store, kwargs, status_code):
    rv = _submit(client, token, **kwargs)
    assert rv.status_code == status_code
    payload = rv.get_json()
    assert payload["status"] == "err"
    assert payload["msg"]
    assert len(store) == 0


def test_attempt_limit_is_403(client, token):
    for _ in range(3):
        assert _submit(client, token).status_code == 201
    assert _submit(client, token).status_code == 403


def test_run_custom_input(client, token):
    rv = client.post("/run",
                     json={
                         "token": token,
                         "code": "x",
                         "language": "cpp",
                         "input": "1 2",
                     })
    assert rv.status_code == 200
    assert rv.get_json()["data"]["output"] == "3\n"


def test_history_requires_user(client, token):
    rv = client.get("/contests/c1/submissions", query_string={"token": token})
    assert rv.status_code == 400


def test_history(client, token):
    _submit(client, token)
    _submit(client, token, questionId="q2")
    rv = client.get("/contests/c1/submissions",
                    query_string={
                        "token": token,
                        "user_id": "u1",
                        "question_id": "q2",
                    })
    data = rv.get_json()["data"]
    assert [s["questionId"] for s in data] == ["q2"]


def test_leaderboard_requires_privilege(client, token):
    rv = client.get("/contests/c1/leaderboard",
                    query_string={
                        "token": token,
                        "role": "student"
                    })
    assert rv.status_code == 403


def test_leaderboard(judge_app, client, token):
    store = SubmissionStore()
    store.save(make_submission("u1", "q1", 4, 1))
    store.save(make_submission("u2", "q1", 9, 2))
    judge_app.STORE = store
    rv = client.get("/contests/c1/leaderboard",
                    query_string={
                        "token": token,
                        "role": "admin"
                    })
    assert rv.status_code == 200
    board = rv.get_json()["data"]
    assert [e["userId"] for e in board] == ["u2", "u1"]
    assert board[0]["maxPossibleScore"] == 20

    rv = client.get("/contests/c1/participants",
                    query_string={
                        "token": token,
                        "role": "instructor"
                    })
    assert [p["userId"] for p in rv.get_json()["data"]] == ["u1", "u2"]


def test_leaderboard_unknown_contest(client, token):
    rv = client.get("/contests/nope/leaderboard",
                    query_string={
                        "token": token,
                        "role": "admin"
                    })
    assert rv.status_code == 404


def test_delete_contest_requires_privilege(client, token, store):
    _submit(client, token)
    rv = client.delete("/contests/c1", query_string={"token": token})
    assert rv.status_code == 403
    assert len(store) == 1


def test_delete_contest_cascades(client, token, store):
    _submit(client, token)
    _submit(client, token, userId="u2")
    rv = client.delete("/contests/c1",
                       query_string={
                           "token": token,
                           "role": "admin"
                       })
    assert rv.status_code == 200
    assert rv.get_json()["data"] == {"deletedSubmissions": 2}
    assert len(store) == 0
    # the contest is gone from the cache too
    assert _submit(client, token).status_code == 404


def test_contest_source_failure_keeps_envelope(judge_app, client, token,
                                               monkeypatch):

    def fetch(contest_id):
        raise RuntimeError("backend unreachable: c1")

    failing = ContestRepository(fetch=fetch)
    monkeypatch.setattr(judge_app.LIFECYCLE, "contests", failing)
    monkeypatch.setattr(judge_app, "CONTESTS", failing)
    rv = _submit(client, token)
    assert rv.status_code == 502
    assert rv.get_json()["status"] == "err"
    rv = client.post("/run",
                     json={
                         "token": token,
                         "code": "x",
                         "language": "c",
                         "contestId": "c1",
                         "questionId": "q1",
                     })
    assert rv.status_code == 502
    rv = client.get("/contests/c1/leaderboard",
                    query_string={
                        "token": token,
                        "role": "admin"
                    })
    assert rv.status_code == 502
