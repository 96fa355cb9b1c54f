# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for survboard."""

from __future__ import annotations

from typing import ClassVar, Union

from pydantic import BaseModel, ConfigDict
from typing_extensions import TypeAlias

Scalar: TypeAlias = Union[bool, int, float, str, None]
Record: TypeAlias = dict[str, Scalar]


class SurvboardBaseModel(BaseModel):
    """Base model with shared config for survboard schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


class FrozenModel(BaseModel):
    """Base model for values that never change once built."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )
