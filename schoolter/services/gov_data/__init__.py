"""Government data services for the pipeline's input.

Available services:
- GIASService: School register data from Get Information About Schools
"""

from schoolter.services.gov_data.base import InputDataError
from schoolter.services.gov_data.gias import GIASService, extract_schools

__all__ = ["GIASService", "InputDataError", "extract_schools"]
