from dataclasses import dataclass
from typing import Optional

from dispatcher.constant import Language


class InvokerError(Exception):
    """Raised when the invoker itself cannot run the code at all."""


@dataclass
class InvokerResult:
    output: str = ''
    error: Optional[str] = None
    memoryUsedKb: Optional[int] = None


class RuntimeInvoker:
    """
    Contract every runtime backend satisfies: run `code` written in
    `language` with `stdin` and return what it printed.

    A compile failure or a non-zero exit is reported through `error`, not
    raised. Implementations enforce their own wall-clock ceiling so a call
    never hangs indefinitely.
    """

    def invoke(self, language: Language, code: str,
               stdin: str) -> InvokerResult:
        raise NotImplementedError
