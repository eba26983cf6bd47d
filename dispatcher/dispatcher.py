import ast
import re
import textwrap
import time
from typing import Callable, Dict, Iterable, Optional, Tuple

from runner.invoker import RuntimeInvoker
from .constant import (
    ExecutionStatus,
    Language,
    TIME_LIMIT_MESSAGE,
    UNSUPPORTED_LANGUAGE_MESSAGE,
)
from .result_factory import Outcome, make_outcome
from .utils import logger


class LanguageHandler:
    '''
    Prepares source code for one language before it reaches the invoker.
    '''
    simulated_stdin = False

    def __init__(self, language: Language):
        self.language = language

    def prepare(self, code: str, stdin: str, simulate: bool) -> str:
        return code


class PythonHandler(LanguageHandler):
    simulated_stdin = True
    PREAMBLE = textwrap.dedent('''\
        # simulated input
        _judge_input_lines = {lines!r}
        _judge_input_index = 0


        def input(prompt=''):
            global _judge_input_index
            if _judge_input_index < len(_judge_input_lines):
                line = _judge_input_lines[_judge_input_index]
                _judge_input_index += 1
                return line
            return ''


        ''')

    def prepare(self, code: str, stdin: str, simulate: bool) -> str:
        if not simulate:
            return code
        lines = (stdin or '').strip().split('\n')
        header, body = _split_header(code)
        return header + self.PREAMBLE.format(lines=lines) + body


_CODING_RE = re.compile(r'^[ \t\f]*#.*?coding[:=]')


def _split_header(code: str) -> Tuple[str, str]:
    '''
    Split off what has to stay at the top of a python module: shebang,
    encoding declaration, docstring and `from __future__` imports.
    '''
    lines = code.splitlines(keepends=True)
    cut = 0
    for i, line in enumerate(lines[:2]):
        if line.startswith('#!') or _CODING_RE.match(line):
            cut = i + 1
    try:
        tree = ast.parse(code)
    except SyntaxError:
        return ''.join(lines[:cut]), ''.join(lines[cut:])
    for i, node in enumerate(tree.body):
        if isinstance(node, ast.ImportFrom) and node.module == '__future__':
            cut = max(cut, node.end_lineno)
        elif i == 0 and isinstance(node, ast.Expr) and isinstance(
                node.value, ast.Constant) and isinstance(node.value.value,
                                                         str):
            continue
        else:
            break
    header = ''.join(lines[:cut])
    if header and not header.endswith('\n'):
        header += '\n'
    return header, ''.join(lines[cut:])


HANDLERS: Dict[Language, LanguageHandler] = {
    Language.C: LanguageHandler(Language.C),
    Language.CPP: LanguageHandler(Language.CPP),
    Language.JAVA: LanguageHandler(Language.JAVA),
    Language.PYTHON: PythonHandler(Language.PYTHON),
    Language.JAVASCRIPT: LanguageHandler(Language.JAVASCRIPT),
}

DEFAULT_SIMULATED_STDIN = (Language.PYTHON, )


class Dispatcher:
    '''
    Executes one piece of code against one input through the runtime
    invoker and normalizes what comes back into an `Outcome`.

    The time limit is checked after the invocation returns: a slow run is
    not interrupted, it is reclassified as a timeout. Hard stops are the
    invoker's own ceiling.
    '''

    def __init__(
        self,
        invoker: RuntimeInvoker,
        simulated_stdin: Optional[Iterable] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.invoker = invoker
        if simulated_stdin is None:
            simulated_stdin = DEFAULT_SIMULATED_STDIN
        self.simulated_stdin = {
            lang
            for lang in map(Language.parse, simulated_stdin)
            if lang is not None and HANDLERS[lang].simulated_stdin
        }
        self.clock = clock

    def execute(
        self,
        code: str,
        language,
        input: str,
        time_limit_ms: int,
    ) -> Outcome:
        lang = Language.parse(language)
        if lang is None:
            logger().warning(f'unsupported language [language={language}]')
            return make_outcome(
                ExecutionStatus.ERROR,
                error=UNSUPPORTED_LANGUAGE_MESSAGE,
            )
        handler = HANDLERS[lang]
        source = handler.prepare(code, input, lang in self.simulated_stdin)
        start = self.clock()
        result = self.invoker.invoke(lang, source, input or '')
        elapsed_ms = (self.clock() - start) * 1000
        logger().debug(f'invocation finished [language={lang.value}, '
                       f'elapsed={elapsed_ms:.0f}ms, limit={time_limit_ms}ms]')
        if elapsed_ms > time_limit_ms:
            return make_outcome(
                ExecutionStatus.TIMEOUT,
                output=result.output,
                error=TIME_LIMIT_MESSAGE,
                exec_time=elapsed_ms,
                mem_usage=result.memoryUsedKb,
            )
        if result.error:
            return make_outcome(
                ExecutionStatus.ERROR,
                output=result.output,
                error=result.error,
                exec_time=elapsed_ms,
                mem_usage=result.memoryUsedKb,
            )
        return make_outcome(
            ExecutionStatus.SUCCESS,
            output=result.output,
            exec_time=elapsed_ms,
            mem_usage=result.memoryUsedKb,
        )
