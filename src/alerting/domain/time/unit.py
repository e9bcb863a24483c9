import re
from enum import StrEnum


class TimeUnit(StrEnum):
    s = "s"
    m = "m"
    h = "h"
    d = "d"
    w = "w"

    @classmethod
    def get_regex_pattern(cls) -> str:
        return "|".join(re.escape(unit.value) for unit in cls)
