from .exceptions import SynthesisError
from .prompts import build_prompt, format_example, strip_code_fences
from .synthesizer import CodeSynthesizer

__all__ = [
    "CodeSynthesizer",
    "SynthesisError",
    "build_prompt",
    "format_example",
    "strip_code_fences",
]
