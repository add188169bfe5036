# opsmith/synthesis/prompts.py
"""
Prompt construction for operation synthesis.

The output of :func:`build_prompt` depends only on the request and the
reference set, so the same request always produces the same two messages.
"""
import re
from typing import Iterable, Sequence

from opsmith.operations import SynthesisRequest
from opsmith.types import Message

__all__ = ["build_prompt", "format_example", "strip_code_fences"]

SYSTEM_TEMPLATE = (
    "You are a code generation assistant that generates Python classes with unique names "
    "for {category} operations. The generated code must define exactly one class with a "
    "no-argument constructor and exactly one public, non-static method. Annotate every "
    "method parameter with a built-in type such as int, float, bool or str. Only import "
    "from these modules: {references}. The generated result should be without explanation "
    "and without formatting."
)

USER_TEMPLATE = (
    "Generate a non-static {name} method in a class with a unique name that accepts "
    "{arity} arguments like {examples}"
)

_FENCE_RE = re.compile(r"^\s*```[\w+-]*[ \t]*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


def format_example(values: Sequence[str]) -> str:
    """``["3", "4"]`` -> ``"(3, 4)"``."""
    return "(" + ", ".join(str(v) for v in values) + ")"


def build_prompt(request: SynthesisRequest, references: Iterable[str]) -> list[Message]:
    refs = ", ".join(sorted(set(references))) or "(none)"
    examples = " or ".join(format_example(ex) for ex in request.examples) or "()"
    return [
        Message(
            role="system",
            content=SYSTEM_TEMPLATE.format(category=request.category, references=refs),
        ),
        Message(
            role="user",
            content=USER_TEMPLATE.format(name=request.name, arity=request.arity, examples=examples),
        ),
    ]


def strip_code_fences(text: str) -> str:
    """Remove a single surrounding markdown code fence, if present."""
    match = _FENCE_RE.match(text)
    if match:
        return match.group("body").strip("\n")
    return text.strip("\n")
