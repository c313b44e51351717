"""Term extraction shared by indexing and querying."""
import re

_WORD_RE = re.compile(r"[a-z]+")

MIN_TERM_LENGTH = 3

STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "must", "shall",
    "can", "need", "dare", "ought", "used", "to", "of", "in",
    "for", "on", "with", "at", "by", "from", "as", "into",
    "through", "during", "before", "after", "above", "below",
    "between", "under", "and", "but", "or", "yet", "so",
    "if", "because", "although", "though", "while", "where",
    "when", "that", "which", "who", "whom", "whose", "what",
    "this", "these", "those", "i", "you", "he", "she", "it",
    "we", "they", "me", "him", "her", "us", "them",
    "not", "nor", "its", "our", "your", "their", "his",
    "there", "than", "then", "also", "too", "very", "just",
})


def extract_terms(text: str) -> frozenset[str]:
    """Extract normalized search terms from text.

    Lowercases the text, takes maximal runs of ``a-z`` letters (digits and
    punctuation separate words), then drops short words and stop words.

    Args:
        text: Arbitrary text.

    Returns:
        Deduplicated set of terms.
    """
    return frozenset(
        word
        for word in _WORD_RE.findall(text.lower())
        if len(word) >= MIN_TERM_LENGTH and word not in STOP_WORDS
    )
