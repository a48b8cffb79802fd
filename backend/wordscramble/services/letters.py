import random
from collections import Counter
from typing import Optional

VOWELS = ('a', 'e', 'i', 'o', 'u')

# Letter frequency in English text (percent)
LETTER_FREQUENCY = {
    'a': 8.17, 'b': 1.49, 'c': 2.78, 'd': 4.25, 'e': 12.70,
    'f': 2.23, 'g': 2.02, 'h': 6.09, 'i': 6.97, 'j': 0.15,
    'k': 0.77, 'l': 4.03, 'm': 2.41, 'n': 6.75, 'o': 7.51,
    'p': 1.93, 'q': 0.10, 'r': 5.99, 's': 6.33, 't': 9.06,
    'u': 2.76, 'v': 0.98, 'w': 2.36, 'x': 0.15, 'y': 1.97,
    'z': 0.07,
}

CONSONANTS = tuple(letter for letter in LETTER_FREQUENCY if letter not in VOWELS)
CONSONANT_WEIGHTS = tuple(LETTER_FREQUENCY[letter] for letter in CONSONANTS)

MAX_LETTER_REPEATS = 2


class LetterSetGenerator:
    """Random letter multisets for puzzles.

    2 or 3 distinct vowels, the rest consonants weighted by English
    frequency, no letter more than twice, returned in shuffled order.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, length: int = 7) -> str:
        if length < 3:
            raise ValueError(f"Puzzles need at least 3 letters, got {length}")

        vowel_count = self.rng.randint(2, 3)
        letters = self.rng.sample(VOWELS, vowel_count)

        counts = Counter(letters)
        while len(letters) < length:
            letter = self._weighted_consonant()
            if counts[letter] >= MAX_LETTER_REPEATS:
                continue
            counts[letter] += 1
            letters.append(letter)

        self.rng.shuffle(letters)
        return ''.join(letters)

    def _weighted_consonant(self) -> str:
        return self.rng.choices(CONSONANTS, weights=CONSONANT_WEIGHTS, k=1)[0]
