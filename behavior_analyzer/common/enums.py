from enum import Enum, IntEnum


class MetricIndex(IntEnum):
    """Intenum for the raw metric series of a candidate."""

    LATERAL_ACCEL = 0
    LONGITUDINAL_JERK = 1
    MINIMUM_TTC = 2
    TRAVEL_DISTANCE = 3

    @classmethod
    def size(cls) -> int:
        return len(cls)


class ScoreIndex(IntEnum):
    """Intenum for the normalized scores of a candidate."""

    LATERAL_COMFORTABILITY = 0
    LONGITUDINAL_COMFORTABILITY = 1
    EFFICIENCY = 2
    SAFETY = 3

    @classmethod
    def size(cls) -> int:
        return len(cls)


class CandidateTag(str, Enum):
    """Origin of a candidate trajectory."""

    EXECUTED = "executed"  # log-driven ego motion
    SELF = "self"  # current plan, resampled from the ego position
    SAMPLED = "sampled"  # frenet sampled alternative


class StreamType(str, Enum):
    """Input streams buffered by the synchronized snapshot."""

    TRANSFORM = "tf"
    ODOMETRY = "odometry"
    OBJECTS = "objects"
    ACCELERATION = "acceleration"
    STEERING = "steering"
    TRAJECTORY = "trajectory"
