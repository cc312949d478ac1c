"""Pinyin normalization for dictionary lookup queries."""

import re
import unicodedata


# Tone-marked letters and shorthand clusters mapped to their plain search form.
# Clusters written with combining marks (ê̄, m̄, ...) have no precomposed
# code point, so they are listed as two-character keys.
PINYIN_MAP = {
    # Tone-marked vowels
    "ā": "a", "á": "a", "ǎ": "a", "à": "a",
    "ō": "o", "ó": "o", "ǒ": "o", "ò": "o",
    "ē": "e", "é": "e", "ě": "e", "è": "e",
    "ī": "i", "í": "i", "ǐ": "i", "ì": "i",
    "ū": "u", "ú": "u", "ǔ": "u", "ù": "u",
    "ǖ": "ü", "ǘ": "ü", "ǚ": "ü", "ǜ": "ü",
    "\u00ea\u0304": "ê", "ế": "ê", "\u00ea\u030c": "ê", "ề": "ê",
    # Syllabic nasals
    "m\u0304": "m", "ḿ": "m", "m\u0300": "m",
    "ń": "n", "ň": "n", "ǹ": "n",
    # Retroflex shorthand
    "ẑ": "zh", "ĉ": "ch", "ŝ": "sh",
    "ŋ": "ng",
    # Keyboard stand-in for ü
    "v": "ü",
}

# "ei" after folding is the interjection ê in the source tone tables.
EI_SYLLABLE = "ei"
EI_REPLACEMENT = "ê"


class PinyinNormalizer:
    """
    Normalizer for pinyin search input.

    Handles:
    - Unicode NFC composition and lower-casing
    - Tone mark folding (nǐ -> ni, lǜ -> lü)
    - Shorthand letters (ẑ/ĉ/ŝ -> zh/ch/sh, ŋ -> ng, v -> ü)
    """

    def __init__(self, mapping: dict[str, str] | None = None):
        """
        Build the substitution pattern.

        Args:
            mapping: Substitution table, defaults to PINYIN_MAP
        """
        self._mapping = dict(mapping if mapping is not None else PINYIN_MAP)

        # Longest keys first so a combining cluster wins over its base letter
        keys = sorted(self._mapping, key=len, reverse=True)
        self._pattern = re.compile("|".join(re.escape(k) for k in keys))

    def normalize(self, text: str) -> str:
        """
        Fold pinyin text to its plain search key.

        Every mapped letter is replaced in a single pass, so the output of one
        substitution is never rewritten by another. Normalizing twice gives the
        same result, except that a bare "ei" becomes "ê" and "ê" stays "ê".

        Tone marks fold to bare vowels ("hǎo" -> "hao"), so the tone is lost and
        a key cannot be mapped back to its toned spelling. Index keys are
        expected in the folded form.

        Args:
            text: Search text, any case

        Returns:
            Normalized search key
        """
        if not text:
            return text

        text = unicodedata.normalize("NFC", text).lower()
        out = self._pattern.sub(lambda m: self._mapping[m.group(0)], text)

        return EI_REPLACEMENT if out == EI_SYLLABLE else out

    def normalize_query(self, query: str) -> str:
        """Normalize a search query after trimming surrounding whitespace."""
        return self.normalize(query.strip())


# Singleton instance for reuse
_normalizer_instance = None


def get_normalizer() -> PinyinNormalizer:
    """Get the singleton PinyinNormalizer instance."""
    global _normalizer_instance
    if _normalizer_instance is None:
        _normalizer_instance = PinyinNormalizer()
    return _normalizer_instance
