from .category import Category, CategoryColor
from .impression import Impression, impression_categories

__all__ = [
    "Category",
    "CategoryColor",
    "Impression",
    "impression_categories",
]
