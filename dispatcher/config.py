import json
import os
from pathlib import Path

# backend (LMS) config
BACKEND_API = os.getenv(
    'BACKEND_API',
    'http://web:8080',
)
# judge token
JUDGE_TOKEN = os.getenv(
    'JUDGE_TOKEN',
    'KoNoJudgeDa',
)
SUBMISSION_DIR = Path(os.getenv(
    'SUBMISSION_DIR',
    'submissions',
))
SUBMISSION_BACKUP_DIR = Path(
    os.getenv(
        'SUBMISSION_BACKUP_DIR',
        'submissions.bk',
    ))
# ad-hoc runs without a target question get this budget (ms)
CUSTOM_RUN_TIME_LIMIT = int(os.getenv('CUSTOM_RUN_TIME_LIMIT', '10000'))
# seconds a fetched contest stays cached in-process
CONTEST_CACHE_TTL = float(os.getenv('CONTEST_CACHE_TTL', '30'))

_SUBMISSION_CONFIG_PATH = Path(
    os.getenv('SUBMISSION_CONFIG', '.config/submission.json'))

# default toolchain, `{src}` / `{bin}` / `{dir}` are filled by the invoker
DEFAULT_COMMANDS = {
    'c': {
        'source': 'main.c',
        'compile': ['gcc', '-O2', '-o', '{bin}', '{src}', '-lm'],
        'run': ['{bin}'],
    },
    'cpp': {
        'source': 'main.cpp',
        'compile': ['g++', '-O2', '-std=c++17', '-o', '{bin}', '{src}'],
        'run': ['{bin}'],
    },
    'java': {
        'source': 'Main.java',
        'compile': ['javac', '{src}'],
        'run': ['java', '-cp', '{dir}', 'Main'],
    },
    'python': {
        'source': 'main.py',
        'compile': None,
        'run': ['python3', '-u', '{src}'],
    },
    'javascript': {
        'source': 'main.js',
        'compile': None,
        'run': ['node', '{src}'],
    },
}

DEFAULT_IMAGES = {
    'c': 'gcc:13',
    'cpp': 'gcc:13',
    'java': 'eclipse-temurin:17',
    'python': 'python:3.12-slim',
    'javascript': 'node:20-slim',
}


def _load_json_config(path: Path) -> dict:
    try:
        with path.open() as f:
            return json.load(f)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError:
        return {}


def get_submission_config(config_path: str | Path | None = None) -> dict:
    path = Path(config_path) if config_path else _SUBMISSION_CONFIG_PATH
    cfg = _load_json_config(path) if path else {}
    working_dir_env = os.getenv('SUBMISSION_WORKING_DIR')
    if working_dir_env:
        cfg['working_dir'] = working_dir_env
    invoker_env = os.getenv('JUDGE_INVOKER')
    if invoker_env:
        cfg['invoker'] = invoker_env
    cfg.setdefault('working_dir', str(SUBMISSION_DIR))
    cfg.setdefault('invoker', 'local')
    cfg.setdefault('docker_url', 'unix://var/run/docker.sock')
    cfg['ceiling_ms'] = int(
        os.getenv('INVOKER_CEILING_MS', cfg.get('ceiling_ms', 15000)))
    cfg.setdefault('mem_limit_mb', 512)
    cfg.setdefault('simulated_stdin', ['python'])
    commands = dict(DEFAULT_COMMANDS)
    commands.update(cfg.get('commands') or {})
    cfg['commands'] = commands
    images = dict(DEFAULT_IMAGES)
    images.update(cfg.get('image') or {})
    cfg['image'] = images
    return cfg
