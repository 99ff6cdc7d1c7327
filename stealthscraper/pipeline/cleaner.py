"""
Text Cleaner Module

Normalizes rendered page text: control characters and whitespace.
"""

import re


class TextCleaner:
    """
    Cleans and normalizes extracted text.

    Features:
    - Whitespace normalization
    - Control character removal

    Example:
        cleaner = TextCleaner()
        cleaned = cleaner.clean_text("  Hello \\n\\n  World!  ")
        # Returns: "Hello World!"
    """

    MULTI_WHITESPACE = re.compile(r'\s+')

    # Control characters (tabs and newlines are whitespace, handled separately)
    CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')

    def clean_text(self, text: str | None) -> str:
        """
        Clean a single text string.

        Args:
            text: Text to clean

        Returns:
            Cleaned text ("" for None)
        """
        if not text:
            return ""

        result = self.CONTROL_CHARS.sub('', text)
        result = self.MULTI_WHITESPACE.sub(' ', result)
        return result.strip()
