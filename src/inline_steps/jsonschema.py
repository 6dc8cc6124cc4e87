"""JSON Schema management."""

from functools import cache
from json import dumps
from typing import TYPE_CHECKING

from pydantic import Field, create_model
from pydantic.json_schema import GenerateJsonSchema

from inline_steps.schema import TestDeclaration, TestSpec, build_step_union

if TYPE_CHECKING:
    from pydantic import BaseModel
    from pydantic_core import core_schema as core


class SchemaGenerator(GenerateJsonSchema):
    """Custom JSON Schema generator for test specifications.

    Fields excluded from serialization are attached by loaders only and
    are never written by authors, so they are left out of the schema.
    """

    @classmethod
    @cache
    def get_model(cls) -> 'type[BaseModel]':
        """Build and cache a specification model with typed steps.

        Returns:
            Generated specification model whose steps validate against
            the known actions.
        """
        declaration = create_model(
            'TestDeclaration',
            __base__=TestDeclaration,
            steps=(
                list[build_step_union()],  # type: ignore[misc]
                Field(default_factory=list, title='Steps'),
            ),
        )

        return create_model(
            'TestSpec',
            __base__=TestSpec,
            tests=(
                list[declaration],  # type: ignore[valid-type]
                Field(default_factory=list, title='Tests'),
            ),
        )

    @classmethod
    @cache
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema for test specifications.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        model = cls.get_model()

        schema = {
            **model.model_json_schema(schema_generator=cls),
            'title': 'inline-steps',
            'description': 'JSON Schema for inline-steps test specifications',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

    def field_is_present(self, field: 'core.ModelField | core.DataclassField | core.TypedDictField') -> bool:
        """Check whether a field belongs to the schema.

        Args:
            field: Pydantic core schema of the field.

        Returns:
            `False` for fields excluded from serialization.
        """
        if field.get('serialization_exclude'):
            return False

        return super().field_is_present(field)
