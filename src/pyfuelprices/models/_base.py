"""Base model for pyfuelprices data structures.

Every model inherits from :class:`FuelBaseModel` which provides:

* ``alias_generator=to_camel`` so the stored/served JSON uses camelCase
  keys (``generatedAt``) while Python code uses snake_case fields.
* ``populate_by_name=True`` so both spellings are accepted on input.
* Frozen instances: snapshots are replaced, never mutated.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FuelBaseModel(BaseModel):
    """Base for all pyfuelprices models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
