from typing import Optional


class TextValidator:
    """Checks applied to prompted fields before they reach the catalog."""

    @staticmethod
    def clean(text: Optional[str]) -> str:
        if text is None:
            return ""
        return text.strip()

    @staticmethod
    def is_blank(text: Optional[str]) -> bool:
        return not TextValidator.clean(text)

    @staticmethod
    def all_present(*values: Optional[str]) -> bool:
        """True when every value has non-whitespace content."""
        return all(not TextValidator.is_blank(v) for v in values)

    @staticmethod
    def parse_choice(raw: Optional[str]) -> Optional[int]:
        """Parse a menu choice; ``None`` when the input is not a non-negative whole number."""
        try:
            value = int(TextValidator.clean(raw))
        except ValueError:
            return None
        return value if value >= 0 else None
