"""Validation Models
------------------

All pydantic models describing a chart request live in this module.  It
defines:

- the strict base model (`PBase`) shared by every schema in the package
- option literals for chart types, bar modes and scatter modes
- `PlotDescriptor`, the validated form of one CLI invocation (or one call to
  `dfplot.pp.e2e_plot`)
- `ensure_validated`, the helper every layer uses to accept either a dict or an
  already validated model
"""

__all__ = [
    "PBase",
    "DF",
    "PlotOption",
    "BarModeOption",
    "ScatterModeOption",
    "PlotDescriptor",
    "ensure_validated",
]

from typing import Annotated, Any, Callable, List, Literal, Optional, Self, TypeVar, Union
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


# Define a new base that is more strict towards unknown inputs
class PBase(BaseModel):
    model_config = ConfigDict(extra="forbid", protected_namespaces=(), arbitrary_types_allowed=True)


def DF(factory: Callable[[], Any]) -> Any:
    """Shorthand for a mutable default (``DF(list)``, ``DF(dict)``)."""
    return Field(default_factory=factory)


PlotOption = Literal["scatter", "bar", "box", "histogram"]
BarModeOption = Literal["group", "overlay", "relative", "stack", "proportion"]
ScatterModeOption = Literal["markers", "lines", "lines+markers"]


def str_ensure_list(v: Union[str, List[str], None]) -> List[str]:
    """Allow a single column name wherever a list of names is expected."""
    if v is None:
        return []
    return [v] if isinstance(v, str) else v


ColumnList = Annotated[List[str], BeforeValidator(str_ensure_list)]


# --------------------------------------------------------
#          PLOT DESCRIPTOR
# --------------------------------------------------------


class PlotDescriptor(PBase):
    """Descriptor for one chart request (``pp_desc``)."""

    # Main parameters
    plot: PlotOption  # Registered plot type (see `dfplot.plots`)
    input: Optional[str] = None  # Path to the .csv/.json/.ndjson/.jsonl file, not needed when a frame is given
    y: ColumnList  # Value columns, one trace per column (and per group combination)
    x: Optional[str] = None  # x column for scatter/bar. Row index 1..n is used if absent
    group: ColumnList = DF(list)  # Group columns, every combination of their categories gets its own traces

    # Plotting choices
    barmode: BarModeOption = "group"  # Only meaningful for bar charts
    mode: ScatterModeOption = "markers"  # Only meaningful for scatter charts
    title: Optional[str] = None
    width: int = 800
    height: Optional[int] = None

    # IO
    output: Optional[str] = None  # HTML file to write. Interactive display if None
    infer_schema_length: Optional[int] = 100  # Rows used by polars for schema inference, None = all

    @model_validator(mode="after")
    def check_columns(self) -> Self:
        if not self.y:
            raise ValueError("At least one y column is required")
        if len(set(self.y)) != len(self.y):
            raise ValueError(f"Y columns must be distinct, got {self.y}")
        if len(set(self.group)) != len(self.group):
            raise ValueError(f"Group columns must be distinct, got {self.group}")
        if self.x is not None and self.plot in ("box", "histogram"):
            raise ValueError(f"Plot '{self.plot}' does not take an x column")
        if self.plot == "bar" and self.barmode == "proportion" and self.x is None:
            raise ValueError("Bar mode 'proportion' requires an x column to define the categories")
        return self


M = TypeVar("M", bound=BaseModel)


def ensure_validated(m: dict[str, object] | M, model: type[M]) -> M:
    """Validate a dictionary against a pydantic model, passing validated instances through.

    Args:
        m: Dictionary (or model instance) to validate.
        model: Pydantic model class to validate against.

    Raises:
        pydantic.ValidationError: If validation fails (a ``ValueError`` subclass).
    """
    if isinstance(m, model):
        return m
    return model.model_validate(m)
