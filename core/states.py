from enum import Enum


class JobStatus(str, Enum):
    TODO = "todo"
    APPLIED = "applied"
    HIDDEN = "hidden"
