"""
Domain categories and part-of-speech inference for lexicon entries.
"""
import re
from typing import Dict, FrozenSet, Iterable, Optional

DEFAULT_CATEGORY = "general"
DEFAULT_PART_OF_SPEECH = "noun"
UNKNOWN_PART_OF_SPEECH = "unknown"

CATEGORY_KEYWORDS: Dict[str, FrozenSet[str]] = {
    "family": frozenset({
        "family", "mother", "father", "parent", "child", "son", "daughter", "brother",
        "sister", "uncle", "aunt", "cousin", "grandmother", "grandfather",
    }),
    "food": frozenset({
        "food", "eat", "drink", "meal", "breakfast", "lunch", "dinner", "fruit",
        "vegetable", "meat", "fish", "rice", "bread", "water", "milk",
    }),
    "body": frozenset({
        "body", "head", "eye", "nose", "mouth", "ear", "hand", "foot", "arm", "leg",
        "finger", "toe", "hair", "skin", "heart",
    }),
    "nature": frozenset({
        "tree", "flower", "plant", "animal", "bird", "fish", "water", "river",
        "mountain", "forest", "sky", "sun", "moon", "star", "rain",
    }),
    "time": frozenset({
        "time", "day", "night", "morning", "afternoon", "evening", "week", "month",
        "year", "today", "tomorrow", "yesterday", "hour", "minute",
    }),
    "emotion": frozenset({
        "love", "hate", "happy", "sad", "angry", "fear", "joy", "peace", "worry",
        "hope", "dream", "feel", "emotion",
    }),
    "action": frozenset({
        "go", "come", "walk", "run", "sit", "stand", "sleep", "wake", "work", "play",
        "speak", "listen", "see", "look", "hear", "stop",
    }),
    "greeting": frozenset({
        "hello", "goodbye", "welcome", "thank", "thanks", "please", "sorry", "excuse",
        "greet", "greeting", "blessing",
    }),
    "spiritual": frozenset({
        "god", "pray", "church", "spirit", "soul", "heaven", "blessing", "worship",
        "faith", "believe", "sacred", "holy",
    }),
}

_POS_PATTERNS = [
    ("preposition", [re.compile(
        r"^(in|on|at|by|for|of|with|to|from|into|onto|upon|under|over|above|below|between|"
        r"among|through|across|around|behind|before|after|during|within|without|against|"
        r"toward|towards|beneath|beside|beyond|inside|outside|underneath|throughout)$"
    )]),
    ("pronoun", [re.compile(
        r"^(i|you|he|she|it|we|they|me|him|her|us|them|my|your|his|its|our|their|mine|"
        r"yours|hers|ours|theirs|this|that|these|those|who|whom|whose|which|what)$"
    )]),
    ("conjunction", [re.compile(
        r"^(and|or|but|so|yet|nor|because|since|although|though|while|if|unless|until|"
        r"when|where|why|how|whether)$"
    )]),
    ("interjection", [re.compile(
        r"^(hello|hi|hey|goodbye|bye|yes|no|oh|ah|wow|ouch|hurray|alas|bravo)$"
    )]),
    ("verb", [
        re.compile(r"ing$"),
        re.compile(r"ed$"),
        re.compile(r"^to\s+"),
        re.compile(r"^(is|am|are|was|were|be|been|have|has|had|do|does|did|will|would|can|"
                   r"could|should|shall|may|might)\s"),
    ]),
    ("adverb", [
        re.compile(r"ly$"),
        re.compile(r"(ward|wise)$"),
        re.compile(r"^(very|quite|really|extremely|completely|totally|absolutely|perfectly|"
                   r"exactly|almost|nearly|hardly|barely|just|only|even|still|already|soon|"
                   r"late|early|often|always|never|sometimes|usually|rarely|frequently)$"),
    ]),
    ("adjective", [
        re.compile(r"(ful|less|ous|ive|able|ible)$"),
        re.compile(r"^(good|bad|big|small|hot|cold|new|old|young|beautiful|ugly|fast|slow|"
                   r"high|low|long|short|wide|narrow|thick|thin|heavy|light|dark|bright|clean|"
                   r"dirty|rich|poor|happy|sad|angry|calm|easy|hard|soft|loud|quiet|sweet|"
                   r"bitter|sour|salty)$"),
    ]),
]


def category_keywords(category: Optional[str]) -> FrozenSet[str]:
    """Keyword set for a category, empty when the category is unknown."""
    if not category:
        return frozenset()
    return CATEGORY_KEYWORDS.get(category.lower(), frozenset())


def infer_category(words: Iterable[str]) -> str:
    """
    First category whose keyword set intersects the given words.

    :param words: Tokens from the source term and gloss
    :return: Category name, DEFAULT_CATEGORY if nothing matches
    """
    word_set = set(words)
    for category, keywords in CATEGORY_KEYWORDS.items():
        if word_set & keywords:
            return category
    return DEFAULT_CATEGORY


def infer_part_of_speech(source_term: str) -> str:
    """Guess a part of speech from the shape of a source term, defaulting to noun."""
    word = source_term.lower().strip()
    for pos, patterns in _POS_PATTERNS:
        if any(pattern.search(word) for pattern in patterns):
            return pos
    return DEFAULT_PART_OF_SPEECH
