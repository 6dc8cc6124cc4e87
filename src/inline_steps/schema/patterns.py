"""Declarative custom pattern definitions.

Custom patterns let a caller or a plugin teach the matcher constructs
the built-in dialect tables do not recognize, for example a product
specific shortcode that should bind to `click` steps.
"""

from pydantic import Field

from inline_steps.models import MessageModel


class PatternDescriptor(MessageModel):
    """A caller-supplied recognition pattern.

    The expression is compiled by the matcher and run globally over the
    document, after the built-in patterns of the same dialect.
    """

    name: str = Field(
        default='customPattern',
        min_length=1,
        title='Pattern name',
        description='Name reported on matches produced by this pattern.',
    )

    regex: str = Field(
        min_length=1,
        title='Regular expression',
        description=(
            'Expression searched in the document. JavaScript-style named '
            'groups (`(?<name>...)`) are accepted.'
        ),
    )

    action: str = Field(
        min_length=1,
        title='Target action',
        description='Step action represented by a match.',
    )

    value_group: int = Field(
        default=1,
        ge=0,
        title='Value group',
        description=(
            'Index of the capture group holding the matched value; '
            '`0` uses the whole match.'
        ),
    )
