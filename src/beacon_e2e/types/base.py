"""Strict, immutable pydantic base model for harness configuration."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictBaseModel(BaseModel):
    """
    A frozen model that rejects unknown keys and silent type coercion.

    Fields may be given by name (`num_beacon_nodes`) or in camel case
    (`numBeaconNodes`), so config files can follow either convention.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        extra="forbid",
        frozen=True,
        strict=True,
    )

    def copy(self: Self, **kwargs: Any) -> Self:
        """Create a copy with the given fields replaced, validated like a new instance."""
        return self.__class__(**(self.model_dump(exclude_unset=True) | kwargs))
