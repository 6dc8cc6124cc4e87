"""Inline test step injection for documentation sources.

The `inline_steps` package binds structured test steps (`click`, `find`,
`goTo`, ...) to the prose and markup of a documentation file and embeds
them as inline statements next to the text they verify.

Key features:
- recognition of links, emphasized UI text, navigation phrases, quoted
  input and images in Markdown, HTML, AsciiDoc and DITA sources;
- greedy, order-aware binding of steps to recognized spans;
- JSON, YAML and attribute payloads in every supported comment format;
- single-pass patching or a diff-style preview of the insertions;
- structural and schema-backed validation of test specifications.

Hosts talk to the package through `InlineInjector.handle`, which takes
one JSON request and returns one JSON response.
"""

from inline_steps.core import InlineInjector
from inline_steps.errors import InlineStepsError
from inline_steps.settings import Settings

__all__ = (
    'InlineInjector',
    'InlineStepsError',
    'Settings',
)
