from typing import List

SIMILARITY_THRESHOLD = 0.8

def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance, every insertion/deletion/substitution costs 1."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    # Two rolling rows over the shorter string
    previous: List[int] = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]

def similarity(a: str, b: str) -> float:
    """
    Normalized similarity in [0, 1], case-insensitive.
    Two empty strings are identical (1.0).
    """
    a, b = a.lower(), b.lower()
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len

def is_similar(a: str, b: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    return similarity(a, b) > threshold
