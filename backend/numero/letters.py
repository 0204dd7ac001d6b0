"""Letter-to-number tables for the Pythagorean, Chaldean and Devanagari systems."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LetterSystem(str, Enum):
    PYTHAGOREAN = "pythagorean"
    CHALDEAN = "chaldean"
    DEVANAGARI = "devanagari"


# ── Western tables ───────────────────────────────────────────────────

# Pythagorean: alphabet position cycled through 1-9
# A=1 B=2 C=3 D=4 E=5 F=6 G=7 H=8 I=9
# J=1 K=2 L=3 M=4 N=5 O=6 P=7 Q=8 R=9
# S=1 T=2 U=3 V=4 W=5 X=6 Y=7 Z=8
PYTHAGOREAN_TABLE: dict[str, int] = {
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6, "G": 7, "H": 8, "I": 9,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "O": 6, "P": 7, "Q": 8, "R": 9,
    "S": 1, "T": 2, "U": 3, "V": 4, "W": 5, "X": 6, "Y": 7, "Z": 8,
}

# Chaldean: sound-based values 1-8, 9 is never assigned to a letter
CHALDEAN_TABLE: dict[str, int] = {
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 8, "G": 3, "H": 5, "I": 1,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "O": 7, "P": 8, "Q": 1, "R": 2,
    "S": 3, "T": 4, "U": 6, "V": 6, "W": 6, "X": 5, "Y": 1, "Z": 7,
}

LATIN_VOWELS: frozenset[str] = frozenset("AEIOU")
LATIN_CONSONANTS: frozenset[str] = frozenset(PYTHAGOREAN_TABLE) - LATIN_VOWELS


# ── Devanagari table ─────────────────────────────────────────────────

DEVANAGARI_TABLE: dict[str, int] = {
    # Ka varga
    "क": 1, "ख": 2, "ग": 3, "घ": 4, "ङ": 5,
    # Cha varga
    "च": 6, "छ": 7, "ज": 8, "झ": 9, "ञ": 1,
    # Retroflex Ta varga
    "ट": 2, "ठ": 3, "ड": 4, "ढ": 5, "ण": 6,
    # Dental Ta varga
    "त": 7, "थ": 8, "द": 9, "ध": 1, "न": 2,
    # Pa varga
    "प": 3, "फ": 4, "ब": 5, "भ": 6, "म": 7,
    # Antastha
    "य": 8, "र": 9, "ल": 1, "व": 2,
    # Ushma
    "श": 3, "ष": 4, "स": 5, "ह": 6,
    # Independent vowels
    "अ": 1, "आ": 2, "इ": 3, "ई": 4, "उ": 5,
    "ऊ": 6, "ऋ": 7, "ए": 8, "ऐ": 9, "ओ": 1, "औ": 2,
    # Matras
    "ा": 2, "ि": 3, "ी": 4, "ु": 5, "ू": 6,
    "ृ": 7, "े": 8, "ै": 9, "ो": 1, "ौ": 2,
    # Anusvara, visarga, chandrabindu
    "ं": 3, "ः": 4, "ँ": 5,
}

DEVANAGARI_VOWELS: frozenset[str] = frozenset(
    "अआइईउऊऋएऐओऔ"
    "ािीुूृेैोौ"
)

DEVANAGARI_CONSONANTS: frozenset[str] = frozenset(
    "कखगघङ"
    "चछजझञ"
    "टठडढण"
    "तथदधन"
    "पफबभम"
    "यरलव"
    "शषसह"
)

DEVANAGARI_DIGITS = "०१२३४५६७८९"
_FROM_DEVANAGARI = str.maketrans(DEVANAGARI_DIGITS, "0123456789")

_WESTERN_TABLES: dict[LetterSystem, dict[str, int]] = {
    LetterSystem.PYTHAGOREAN: PYTHAGOREAN_TABLE,
    LetterSystem.CHALDEAN: CHALDEAN_TABLE,
}


@dataclass(frozen=True)
class LetterBreakdown:
    letter: str
    value: int

    def to_dict(self) -> dict:
        return {"letter": self.letter, "value": self.value}


# ── Lookup ───────────────────────────────────────────────────────────

def letter_value(char: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> int | None:
    """Value of a single character: active Western table first, then Devanagari."""
    upper = char.upper()
    western = _WESTERN_TABLES.get(LetterSystem(system))
    if western is not None and upper in western:
        return western[upper]
    return DEVANAGARI_TABLE.get(char)


def is_vowel(char: str) -> bool:
    return char.upper() in LATIN_VOWELS or char in DEVANAGARI_VOWELS


def is_consonant(char: str) -> bool:
    # matras overlap the Devanagari vowel set, so vowels never count twice
    if char.upper() in LATIN_CONSONANTS:
        return True
    return char in DEVANAGARI_CONSONANTS and char not in DEVANAGARI_VOWELS


def from_devanagari_numerals(text: str) -> str:
    return text.translate(_FROM_DEVANAGARI)
