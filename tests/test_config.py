import json

import pytest

from dispatcher import config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SUBMISSION_WORKING_DIR", "JUDGE_INVOKER",
                 "INVOKER_CEILING_MS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config_file(tmp_path):
    cfg = config.get_submission_config(tmp_path / "missing.json")
    assert cfg["invoker"] == "local"
    assert cfg["ceiling_ms"] == 15000
    assert cfg["simulated_stdin"] == ["python"]
    assert set(cfg["commands"]) == {"c", "cpp", "java", "python", "javascript"}
    assert cfg["image"]["python"] == config.DEFAULT_IMAGES["python"]


def test_broken_config_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "submission.json"
    path.write_text("{oops")
    assert config.get_submission_config(path)["invoker"] == "local"


def test_config_file_overrides_and_merges(tmp_path):
    path = tmp_path / "submission.json"
    path.write_text(
        json.dumps({
            "invoker": "docker",
            "ceiling_ms": 4000,
            "image": {
                "python": "python:3.11"
            },
            "commands": {
                "python": {
                    "source": "main.py",
                    "compile": None,
                    "run": ["pypy3", "{src}"],
                }
            },
        }))
    cfg = config.get_submission_config(path)
    assert cfg["invoker"] == "docker"
    assert cfg["ceiling_ms"] == 4000
    assert cfg["image"]["python"] == "python:3.11"
    # untouched languages keep their defaults
    assert cfg["image"]["c"] == config.DEFAULT_IMAGES["c"]
    assert cfg["commands"]["python"]["run"] == ["pypy3", "{src}"]
    assert cfg["commands"]["java"] == config.DEFAULT_COMMANDS["java"]


def test_environment_wins_over_file(tmp_path, monkeypatch):
    path = tmp_path / "submission.json"
    path.write_text(json.dumps({"invoker": "docker", "ceiling_ms": 4000}))
    monkeypatch.setenv("JUDGE_INVOKER", "local")
    monkeypatch.setenv("INVOKER_CEILING_MS", "9000")
    monkeypatch.setenv("SUBMISSION_WORKING_DIR", str(tmp_path / "work"))
    cfg = config.get_submission_config(path)
    assert cfg["invoker"] == "local"
    assert cfg["ceiling_ms"] == 9000
    assert cfg["working_dir"] == str(tmp_path / "work")
