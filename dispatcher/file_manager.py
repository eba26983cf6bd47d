import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from . import config
from .meta import Submission
from .utils import logger


def submission_path(root_dir: Path, submission_id: str) -> Path:
    return root_dir / f'{submission_id}.json'


def write_submission(root_dir: Path, submission: Submission):
    root_dir.mkdir(parents=True, exist_ok=True)
    target = submission_path(root_dir, submission.id)
    tmp = target.with_suffix('.json.tmp')
    tmp.write_text(submission.model_dump_json())
    # readers never see a half written record
    os.replace(tmp, target)


def read_submission(root_dir: Path, submission_id: str) -> Submission:
    path = submission_path(root_dir, submission_id)
    return Submission.model_validate_json(path.read_text())


def load_submissions(root_dir: Path) -> Iterator[Submission]:
    if not root_dir.exists():
        return
    for path in sorted(root_dir.glob('*.json')):
        try:
            yield read_submission(root_dir, path.stem)
        except (OSError, ValidationError) as e:
            logger().warning(f'skip unreadable submission [path={path}]: {e}')


def clean_data(submission_id, root_dir: Path = None):
    root_dir = root_dir or config.SUBMISSION_DIR
    submission_path(root_dir, submission_id).unlink(missing_ok=True)


def backup_data(submission_id, root_dir: Path = None, backup_dir: Path = None):
    root_dir = root_dir or config.SUBMISSION_DIR
    backup_dir = backup_dir or config.SUBMISSION_BACKUP_DIR
    backup_dir.mkdir(parents=True, exist_ok=True)
    dest = backup_dir / f'{submission_id}_{datetime.now().strftime("%Y-%m-%d_%H:%M:%S")}.json'
    shutil.move(submission_path(root_dir, submission_id), dest)
    return dest
