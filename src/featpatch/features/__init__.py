"""Feature plans shipped with featpatch."""

from .product_notes import PLAN_NAME, PRODUCT_NOTES_MAX_LENGTH, build_product_notes_plan

__all__ = ["PLAN_NAME", "PRODUCT_NOTES_MAX_LENGTH", "build_product_notes_plan"]
