from recordqa.domain.base import CamelCaseModel

__all__ = ["CamelCaseModel"]
