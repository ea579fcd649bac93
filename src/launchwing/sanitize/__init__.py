from launchwing.sanitize.classify import classify
from launchwing.sanitize.handler import DEFAULT_HANDLER, brackets_balanced, dedupe_entry_blocks
from launchwing.sanitize.prose import strip_prose
from launchwing.sanitize.sanitizer import Sanitizer, SanitizerOptions
from launchwing.sanitize.templates import DEFAULT_WORKFLOW, patch_workflow

__all__ = [
    "DEFAULT_HANDLER",
    "DEFAULT_WORKFLOW",
    "Sanitizer",
    "SanitizerOptions",
    "brackets_balanced",
    "classify",
    "dedupe_entry_blocks",
    "patch_workflow",
    "strip_prose",
]
