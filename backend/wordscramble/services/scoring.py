"""Length-based word scoring."""

# Word length -> points. Anything longer than the table scores LONG_WORD_SCORE.
LENGTH_SCORES = {3: 1, 4: 2, 5: 4, 6: 7, 7: 10}
LONG_WORD_SCORE = 15


def score_word(word: str) -> int:
    """Score a word by its length.

    3 -> 1, 4 -> 2, 5 -> 4, 6 -> 7, 7 -> 10, 8+ -> 15. Shorter words score 0;
    they are rejected before scoring ever matters.
    """
    length = len(word.strip())
    if length > max(LENGTH_SCORES):
        return LONG_WORD_SCORE
    return LENGTH_SCORES.get(length, 0)
