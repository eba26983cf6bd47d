import os
import logging
import secrets
from pathlib import Path
from flask import Flask, request, jsonify
from dispatcher import config
from dispatcher.constant import PRIVILEGED_ROLES
from dispatcher.dispatcher import Dispatcher
from dispatcher.exception import SubmissionRejected
from dispatcher.grader import Grader
from dispatcher.leaderboard import build_leaderboard, list_participants
from dispatcher.lifecycle import SubmissionLifecycle
from dispatcher.pipeline import fetch_contest
from dispatcher.repository import ContestRepository, SubmissionStore
from runner.factory import create_invoker

LOG_FILE = Path(os.getenv("JUDGE_LOG_FILE", "logs/judge.log"))
LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    filename=LOG_FILE,
    level=logging.DEBUG,
)
app = Flask(__name__)
if __name__ != "__main__":
    # let flask app use gunicorn's logger
    gunicorn_logger = logging.getLogger("gunicorn.error")
    app.logger.handlers = gunicorn_logger.handlers
    app.logger.setLevel(gunicorn_logger.level)
    logging.getLogger().setLevel(gunicorn_logger.level)

    # Allow overriding log level via environment variable
    if os.getenv("JUDGE_DEBUG", "").lower() == "true":
        app.logger.setLevel(logging.DEBUG)
        logging.getLogger().setLevel(logging.DEBUG)
logger = app.logger

# setup grading engine
SUBMISSION_CONFIG = config.get_submission_config()
DISPATCHER = Dispatcher(
    create_invoker(SUBMISSION_CONFIG),
    simulated_stdin=SUBMISSION_CONFIG["simulated_stdin"],
)
STORE = SubmissionStore(config.SUBMISSION_DIR, config.SUBMISSION_BACKUP_DIR)
CONTESTS = ContestRepository(fetch=fetch_contest)
LIFECYCLE = SubmissionLifecycle(CONTESTS, STORE, Grader(DISPATCHER, STORE))


def _ok(data, status_code=200):
    return jsonify({
        "status": "ok",
        "msg": "ok",
        "data": data,
    }), status_code


def _err(msg, status_code):
    return jsonify({
        "status": "err",
        "msg": msg,
        "data": None,
    }), status_code


def _params() -> dict:
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        return body
    return request.values.to_dict()


def _token_valid(params: dict) -> bool:
    token = params.get("token") or request.args.get("token", "")
    return secrets.compare_digest(str(token), config.JUDGE_TOKEN)


def _viewer(params: dict) -> tuple[str | None, bool]:
    user_id = params.get("userId") or request.args.get("user_id")
    role = params.get("role") or request.args.get("role", "")
    return user_id, role in PRIVILEGED_ROLES


@app.errorhandler(SubmissionRejected)
def rejected(e: SubmissionRejected):
    logger.debug(f"request rejected: {e}")
    return _err(str(e), e.status_code)


@app.before_request
def check_token():
    if request.endpoint == "status":
        return None
    params = _params()
    if not _token_valid(params):
        logger.debug(f"get invalid token: {params.get('token')}")
        return "invalid token", 403
    return None


@app.post("/submit")
def submit():
    params = _params()
    user_id, privileged = _viewer(params)
    view = LIFECYCLE.submit(
        contest_id=params.get("contestId"),
        question_id=params.get("questionId"),
        code=params.get("code"),
        language=params.get("language"),
        user_id=user_id,
        privileged=privileged,
    )
    return _ok(view, 201)


@app.post("/run")
def run():
    params = _params()
    result = LIFECYCLE.run(
        code=params.get("code"),
        language=params.get("language"),
        input=params.get("input") or "",
        contest_id=params.get("contestId"),
        question_id=params.get("questionId"),
    )
    return _ok(result)


@app.get("/submissions/<submission_id>")
def get_submission(submission_id: str):
    user_id, privileged = _viewer(_params())
    return _ok(LIFECYCLE.get(submission_id, user_id, privileged))


@app.get("/contests/<contest_id>/submissions")
def user_submissions(contest_id: str):
    user_id, _ = _viewer(_params())
    if not user_id:
        return _err("missing user id", 400)
    submissions = LIFECYCLE.history(
        contest_id,
        user_id,
        question_id=request.args.get("question_id"),
    )
    return _ok(submissions)


@app.get("/contests/<contest_id>/leaderboard")
def leaderboard(contest_id: str):
    _, privileged = _viewer(_params())
    if not privileged:
        return _err("Admin access required", 403)
    contest = CONTESTS.get(contest_id)
    if contest is None:
        return _err("Contest not found", 404)
    entries = build_leaderboard(contest, STORE.find(contest_id=contest_id))
    return _ok([e.model_dump(mode="json") for e in entries])


@app.delete("/contests/<contest_id>")
def delete_contest(contest_id: str):
    _, privileged = _viewer(_params())
    if not privileged:
        return _err("Admin access required", 403)
    deleted = STORE.delete_contest(contest_id)
    CONTESTS.remove(contest_id)
    logger.info(f"contest deleted [contest={contest_id}, submissions={deleted}]")
    return _ok({"deletedSubmissions": deleted})


@app.get("/contests/<contest_id>/participants")
def participants(contest_id: str):
    _, privileged = _viewer(_params())
    if not privileged:
        return _err("Admin access required", 403)
    found = list_participants(STORE.find(contest_id=contest_id))
    return _ok([p.model_dump(mode="json") for p in found])


@app.get("/status")
def status():
    ret = {
        "alive": True,
    }
    # if token is provided
    if secrets.compare_digest(config.JUDGE_TOKEN,
                              request.args.get("token", "")):
        ret.update({
            "submissionCount": len(STORE),
            "invoker": SUBMISSION_CONFIG["invoker"],
        })
    return jsonify(ret), 200


# for local debug
# if __name__ == "__main__":
#     app.run(host="0.0.0.0", port=5000, debug=True)
