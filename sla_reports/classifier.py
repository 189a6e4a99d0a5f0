"""
SLA Threshold Classifier
Author: CloudOps-SRE-Toolkit
Description: Classify SLA percentages as ok / nok against a threshold
"""

import math
from enum import Enum
from typing import Optional

DEFAULT_THRESHOLD = 99.5


class SlaClass(Enum):
    OK = "ok"
    NOK = "nok"
    UNKNOWN = "unknown"


def classify(value: Optional[float], threshold: float = DEFAULT_THRESHOLD) -> SlaClass:
    """Classify a SLA value; missing values are unknown, never ok or nok"""
    if value is None or math.isnan(value):
        return SlaClass.UNKNOWN

    if value < threshold:
        return SlaClass.NOK

    return SlaClass.OK
