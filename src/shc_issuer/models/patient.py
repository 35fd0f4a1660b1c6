"""Patient data model.

This module defines the Patient dataclass carried on a SMART Health Card.
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Patient:
    """Patient identity as shown on an immunization card.
    
    Attributes:
        family: Family (last) name, non-empty
        given: Given names in display order, at least one
        birth_date: Date of birth (no time component)
    """

    family: str
    given: tuple[str, ...]
    birth_date: date

    def __post_init__(self) -> None:
        if not self.family:
            raise ValueError("Patient family name must not be empty")
        # Accept any sequence but store a tuple so the instance stays hashable
        object.__setattr__(self, "given", tuple(self.given))
        if not self.given:
            raise ValueError("Patient must have at least one given name")
