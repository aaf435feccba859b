"""
Fixed job category taxonomy used during harmonization.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class JobCategory(Enum):
    """Standardized job categories"""
    SOFTWARE_ENGINEERING = "Software Engineering"
    DATA_SCIENCE = "Data Science"
    MACHINE_LEARNING = "Machine Learning"
    PRODUCT_MANAGEMENT = "Product Management"
    DESIGN = "Design"
    DEVOPS = "DevOps"
    SECURITY = "Security"
    MOBILE = "Mobile Development"
    FRONTEND = "Frontend"
    BACKEND = "Backend"
    FULL_STACK = "Full Stack"
    EMBEDDED = "Embedded Systems"
    GAMEDEV = "Game Development"
    OTHER = "Other"

    @classmethod
    def infer(cls, text: str) -> "JobCategory":
        """
        Infer a category from free text (a role or a page title).

        Rules are checked in order: specialties first, generic
        software engineering last.
        """
        lowered = (text or "").lower()
        for category, keywords in CATEGORY_RULES:
            if any(keyword in lowered for keyword in keywords):
                return category
        return cls.OTHER

    @classmethod
    def from_label(cls, label: str) -> "JobCategory":
        """Case-insensitive lookup by display name, Other when unknown."""
        wanted = (label or "").strip().lower()
        for category in cls:
            if category.value.lower() == wanted:
                return category
        logger.debug(f"Unknown category label '{label}', using Other")
        return cls.OTHER

    @classmethod
    def labels(cls) -> list:
        return [category.value for category in cls]


CATEGORY_RULES = [
    (JobCategory.MACHINE_LEARNING, ['machine learning', 'ml engineer', 'ai engineer']),
    (JobCategory.DATA_SCIENCE, ['data scien', 'data analyst']),
    (JobCategory.PRODUCT_MANAGEMENT, ['product manager', 'product management']),
    (JobCategory.DEVOPS, ['devops', 'site reliability', 'sre', 'platform engineer']),
    (JobCategory.SECURITY, ['security', 'cybersecurity', 'infosec']),
    (JobCategory.MOBILE, ['ios', 'android', 'mobile']),
    (JobCategory.FRONTEND, ['frontend', 'front-end', 'front end', 'ui engineer']),
    (JobCategory.BACKEND, ['backend', 'back-end', 'back end']),
    (JobCategory.FULL_STACK, ['full stack', 'fullstack', 'full-stack']),
    (JobCategory.EMBEDDED, ['embedded', 'firmware', 'hardware']),
    (JobCategory.GAMEDEV, ['game', 'unity', 'unreal']),
    (JobCategory.DESIGN, ['design', 'ux', 'ui/ux']),
    (JobCategory.SOFTWARE_ENGINEERING, ['software', 'engineer', 'developer', 'programmer']),
]
