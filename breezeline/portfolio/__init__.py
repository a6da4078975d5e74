"""Portfolio of categorized works."""

from breezeline.portfolio.images import ImageStorage, ImageUpload
from breezeline.portfolio.repository import PortfolioStore

__all__ = ["ImageStorage", "ImageUpload", "PortfolioStore"]
