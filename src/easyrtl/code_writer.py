from contextlib import contextmanager
from typing import Iterator, List

class CodeWriter:
    """
    Accumulates lines of generated code. Lines are buffered until generation finishes so
    that an error partway through never leaks partial output to the caller.
    """

    INDENT = "    "

    def __init__(self):
        self._indent = ""
        self._lines: List[str] = []

    def __call__(self, line=None):
        if line is not None:
            self._lines.append(f"{self._indent}{line}\n")
        else:
            self._lines.append("\n")

    @contextmanager
    def indent(self, levels=1):
        orig = self._indent
        self._indent += self.INDENT * levels
        yield
        self._indent = orig

    def lines(self) -> Iterator[str]:
        return iter(self._lines)

    def __str__(self):
        return "".join(self._lines)
