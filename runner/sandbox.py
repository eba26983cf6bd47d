import math
import shlex
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List
from uuid import uuid4

import docker
import requests

from dispatcher.constant import Language
from .invoker import InvokerError, InvokerResult, RuntimeInvoker
from .path_utils import PathTranslator

WORKSPACE = "/workspace"


@dataclass
class Sandbox(RuntimeInvoker):
    """
    Run every invocation in a fresh container. The source and stdin are
    written into a per-invocation directory that is bind-mounted at
    /workspace, the container has no network and is always removed.
    """
    images: Dict[str, str]
    commands: Dict[str, dict]
    docker_url: str
    working_dir: str
    ceiling_ms: int = 15000
    mem_limit_mb: int = 512
    translator: PathTranslator = field(default=None, repr=False)

    @classmethod
    def from_config(cls, cfg: dict) -> "Sandbox":
        return cls(
            images=cfg["image"],
            commands=cfg["commands"],
            docker_url=cfg["docker_url"],
            working_dir=cfg["working_dir"],
            ceiling_ms=cfg["ceiling_ms"],
            mem_limit_mb=cfg["mem_limit_mb"],
            translator=PathTranslator(cfg=cfg),
        )

    def invoke(self, language: Language, code: str,
               stdin: str) -> InvokerResult:
        profile = self.commands.get(language.value)
        image = self.images.get(language.value)
        if not profile or not image:
            raise InvokerError(f"no image for language {language.value}")
        workdir = Path(self.working_dir) / "sandbox" / uuid4().hex
        workdir.mkdir(parents=True)
        try:
            (workdir / profile["source"]).write_text(code, encoding="utf-8")
            (workdir / "stdin.txt").write_text(stdin or "", encoding="utf-8")
            return self._run_container(image, self._script(profile), workdir)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def _script(self, profile: dict) -> List[str]:
        src = f"{WORKSPACE}/{profile['source']}"
        fill = lambda args: shlex.join(
            a.format(src=src, bin=f"{WORKSPACE}/main", dir=WORKSPACE)
            for a in args)
        run = f"{fill(profile['run'])} < {WORKSPACE}/stdin.txt"
        if profile.get("compile"):
            run = f"{fill(profile['compile'])} && {run}"
        return ["/bin/sh", "-c", run]

    def _run_container(self, image: str, command: List[str],
                       workdir: Path) -> InvokerResult:
        translator = self.translator or PathTranslator()
        client = docker.APIClient(base_url=self.docker_url)
        host_config = client.create_host_config(
            binds={
                str(translator.to_host(workdir)): {
                    "bind": WORKSPACE,
                    "mode": "rw",
                }
            },
            mem_limit=f"{self.mem_limit_mb}m",
            tmpfs={"/tmp": "rw,nosuid"},
        )
        try:
            container = client.create_container(
                image=image,
                command=command,
                working_dir=WORKSPACE,
                network_disabled=True,
                host_config=host_config,
            )
        except docker.errors.DockerException as exc:
            raise InvokerError(f"create container failed: {exc}") from exc
        timeout_sec = max(1, math.ceil(self.ceiling_ms / 1000))
        try:
            client.start(container)
            try:
                exit_status = client.wait(container, timeout=timeout_sec)
            except requests.exceptions.RequestException:
                client.kill(container)
                stdout = client.logs(container, stdout=True,
                                     stderr=False).decode("utf-8", "ignore")
                return InvokerResult(
                    output=stdout,
                    error=f"Execution exceeded {self.ceiling_ms} ms ceiling",
                )
            stdout = client.logs(container, stdout=True,
                                 stderr=False).decode("utf-8", "ignore")
            stderr = client.logs(container, stdout=False,
                                 stderr=True).decode("utf-8", "ignore")
        except docker.errors.DockerException as exc:
            raise InvokerError(f"container execution failed: {exc}") from exc
        finally:
            try:
                client.remove_container(container, v=True, force=True)
            except docker.errors.DockerException:
                pass
        status_code = exit_status.get("StatusCode", 1)
        if status_code != 0:
            return InvokerResult(
                output=stdout,
                error=stderr or f"Process exited with code {status_code}",
            )
        return InvokerResult(output=stdout)
