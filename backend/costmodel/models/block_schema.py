from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


class BlockCharacteristics(BaseModel):
    """
    Physical / geological description of one mining block.
    Supplied per call; the engine never retains it.
    """
    model_config = ConfigDict(frozen=True)

    block_id: str
    depth: float = Field(..., description="Meters from surface")
    tonnage: float
    volume: float = Field(0.0, description="Cubic meters")
    grade: float = 0.0
    grade_unit: Literal["%", "g/t", "ppm"] = "%"
    rock_type: str = Field(..., description="Matched against penetration rates, case-insensitive")
    hardness: float = Field(..., description="Mohs scale")
    abrasivity: float = 0.0
    strike_length: float
    width: float
    height: float = 0.0


class BlockSchedule(BaseModel):
    """Places one block in a monthly period token ``YYYY-MM``."""
    model_config = ConfigDict(frozen=True)

    block_id: str
    period: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    sequence: int = 0
