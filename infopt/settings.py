"""
Model settings.

Pydantic schemas for the knobs an InfiniteModel carries:
- MeasureDefaults: default keyword values used when building integrals
- ModelSettings: container-wide behaviour (support recording and rounding)

Settings can be loaded from YAML:

    settings = ModelSettings.from_yaml("model.yaml")

    # model.yaml
    record_measure_supports: false
    measure_defaults:
      eval_method: quadrature
      num_supports: 20
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def default_weight(value: Any) -> float:
    """Constant weight function used by measures unless one is given."""
    return 1.0


class MeasureDefaults(BaseModel):
    """
    Default keyword arguments for integral construction.

    These are consumed by measure-building front-ends; the model only stores
    and validates them.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    eval_method: Literal["sampling", "quadrature"] = Field(
        "sampling",
        description="How integral supports are generated"
    )
    num_supports: int = Field(
        10,
        description="Number of supports drawn per integral"
    )
    weight_function: Callable[[Any], float] = Field(
        default_weight,
        description="Weight applied to each support"
    )
    name: str = Field(
        "integral",
        description="Display name prefix for integrals"
    )
    use_existing_supports: bool = Field(
        False,
        description="Reuse supports already attached to the parameter"
    )

    @field_validator('num_supports')
    @classmethod
    def validate_num_supports(cls, v):
        if v <= 0:
            raise ValueError(f"num_supports must be positive, got {v}")
        return v

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v:
            raise ValueError("name must be non-empty")
        return v


class ModelSettings(BaseModel):
    """Container-wide behaviour of an InfiniteModel."""

    model_config = ConfigDict(extra="forbid")

    measure_defaults: MeasureDefaults = Field(default_factory=MeasureDefaults)
    record_measure_supports: bool = Field(
        True,
        description="Merge measure support points into parameter supports"
    )
    support_decimals: int = Field(
        12,
        description="Decimals kept when de-duplicating supports"
    )

    @field_validator('support_decimals')
    @classmethod
    def validate_support_decimals(cls, v):
        if v < 0:
            raise ValueError(f"support_decimals must be >= 0, got {v}")
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModelSettings':
        """Build settings from a plain dictionary."""
        return cls(**(data or {}))

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'ModelSettings':
        """Load settings from a YAML file."""
        path = Path(path)
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
        logger.debug(f"Loaded model settings from {path}")
        return cls.from_dict(data)
