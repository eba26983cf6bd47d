import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from dispatcher.constant import Language
from .invoker import InvokerError, InvokerResult, RuntimeInvoker


def _decode(data) -> str:
    if data is None:
        return ''
    if isinstance(data, bytes):
        return data.decode('utf-8', 'replace')
    return data


class LocalInvoker(RuntimeInvoker):
    '''
    Run submissions as child processes of the judge inside a throwaway
    directory. Toolchains come from the `commands` section of the
    submission config.
    '''
    COMPILE_TIMEOUT = 20  # sec.

    def __init__(
        self,
        commands: dict,
        ceiling_ms: int = 15000,
        working_dir: Optional[str] = None,
    ):
        self.commands = commands
        self.ceiling_ms = ceiling_ms
        self.working_dir = working_dir

    @classmethod
    def from_config(cls, cfg: dict) -> 'LocalInvoker':
        return cls(
            commands=cfg['commands'],
            ceiling_ms=cfg['ceiling_ms'],
            working_dir=cfg.get('local_tmp_dir'),
        )

    def invoke(self, language: Language, code: str,
               stdin: str) -> InvokerResult:
        profile = self.commands.get(language.value)
        if not profile:
            raise InvokerError(f'no toolchain for language {language.value}')
        with tempfile.TemporaryDirectory(dir=self.working_dir) as tmp:
            src = Path(tmp) / profile['source']
            src.write_text(code, encoding='utf-8')
            fill = lambda args: [
                a.format(src=str(src), bin=str(Path(tmp) / 'main'), dir=tmp)
                for a in args
            ]
            if profile.get('compile'):
                try:
                    proc = self._exec(fill(profile['compile']), '', tmp,
                                      self.COMPILE_TIMEOUT)
                except subprocess.TimeoutExpired:
                    return InvokerResult(error='Compilation timed out')
                if proc.returncode != 0:
                    return InvokerResult(
                        output='',
                        error=_decode(proc.stderr) or _decode(proc.stdout)
                        or 'Compilation failed',
                    )
            try:
                proc = self._exec(fill(profile['run']), stdin, tmp,
                                  self.ceiling_ms / 1000)
            except subprocess.TimeoutExpired as exc:
                return InvokerResult(
                    output=_decode(exc.stdout),
                    error=f'Execution exceeded {self.ceiling_ms} ms ceiling',
                )
        stdout = _decode(proc.stdout)
        error = None
        if proc.returncode != 0:
            error = _decode(proc.stderr) or \
                f'Process exited with code {proc.returncode}'
        return InvokerResult(output=stdout, error=error)

    def _exec(self, command: List[str], stdin: str, cwd: str,
              timeout: float) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                command,
                input=(stdin or '').encode('utf-8'),
                capture_output=True,
                timeout=timeout,
                check=False,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise InvokerError(f'toolchain not found: {command[0]}') from exc
