from typing import Optional

import requests as rq
from pydantic import ValidationError

from .utils import logger
from .config import (
    BACKEND_API,
    JUDGE_TOKEN,
)
from .meta import Contest


def handle_contest_response(resp: rq.Response):
    if resp.status_code == 404:
        raise ValueError("Contest not found")
    if resp.status_code == 401:
        raise PermissionError()
    if not resp.ok:
        logger().error(f"Error during get contest data [resp: {resp.text}]")
        raise RuntimeError()


def fetch_contest(contest_id: str) -> Optional[Contest]:
    """
    Fetch a contest with its questions and test cases from backend server.
    Returns None when the backend does not know the contest.
    """
    logger().debug(f"fetch contest [contest_id: {contest_id}]")
    try:
        resp = rq.get(
            f"{BACKEND_API}/contest/{contest_id}",
            params={
                "token": JUDGE_TOKEN,
            },
            timeout=10,
        )
    except rq.RequestException as e:
        logger().error(f"Backend unreachable, [contest_id: {contest_id}]: {e}")
        raise RuntimeError(f"backend unreachable: {contest_id}") from e
    try:
        handle_contest_response(resp)
    except ValueError:
        logger().warning(f"Not found contest, [contest_id: {contest_id}]")
        return None
    try:
        return Contest.model_validate(resp.json().get("data", {}))
    except (ValueError, ValidationError) as e:
        logger().error(
            f"Invalid contest payload, [contest_id: {contest_id}]: {e}")
        raise RuntimeError(f"invalid contest payload: {contest_id}") from e
