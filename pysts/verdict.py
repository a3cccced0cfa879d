from enum import Enum


class Verdict(Enum):
    PROVED = 0,
    UNSAFE = 1,
    TIMEOUT = 2,
    ERROR = 3

    def is_conclusive(self):
        return self in (Verdict.PROVED, Verdict.UNSAFE)

    def __str__(self):
        return Enum.__str__(self).replace('Verdict.', '')
