"""
Engine error taxonomy.

Everything the engine raises on bad input derives from EngineError, so a
caller of ``engine.project`` can catch a single type. The concrete classes
also subclass ValueError because every one of them describes a bad value.
"""

from __future__ import annotations

from typing import List, Optional


class EngineError(Exception):
    """Base class for all projection-engine failures."""

    def __init__(self, message: str, *, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class InvalidDefinition(EngineError, ValueError):
    """Malformed recurring definition (negative amount, inverted dates, bad enum)."""


class UnsupportedTaxJurisdiction(EngineError, ValueError):
    """No bracket table for the requested state code or filing status."""


class NegativeQuantityError(EngineError, ValueError):
    """Negative shares, principal or balance supplied as input."""


class HorizonError(EngineError, ValueError):
    """Zero-length or inverted projection window."""


class ScenarioValidationError(EngineError, ValueError):
    """Raised when the upfront validation pass is asked to report every violation."""

    def __init__(self, errors: List[EngineError]):
        self.errors = list(errors)
        lines = [f"{len(self.errors)} validation error(s):"]
        lines.extend(f"  - {e}" for e in self.errors)
        super().__init__("\n".join(lines))
