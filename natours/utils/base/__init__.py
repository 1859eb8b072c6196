from natours.utils.base.dates import as_utc, utcnow
from natours.utils.base.enums import BaseEnum, Difficulty, Role

__all__ = ["BaseEnum", "Difficulty", "Role", "as_utc", "utcnow"]
