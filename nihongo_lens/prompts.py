import json
from typing import Any, Optional, Sequence

CHAT_SYSTEM = """You are a professional Japanese-language tutor. Answer the learner's questions in {language}, covering:

1. Grammar explanations with example sentences
2. Vocabulary meaning, usage and conjugation
3. Japanese culture and customs
4. Study methods and advice
5. Translation and breakdown of Japanese sentences
6. Honorific (keigo) usage
7. JLPT and other exam questions

Keep answers accurate, easy to follow, rich in concrete examples and suited to native {language} speakers.

If the question is not about learning Japanese, politely steer the learner back to Japanese study."""

GRAMMAR_SCHEMA = """{
  "text_overview": {
    "total_sentences": <number of sentences>,
    "overall_complexity": "simple | moderate | complex",
    "text_type": "everyday conversation | formal document | literature | ...",
    "overall_politeness_level": "overall politeness level"
  },
  "sentences": [
    {
      "sentence_text": "the sentence",
      "sentence_tokens": [tokens belonging to this sentence],
      "sentence_structure": {
        "main_clause": {
          "subject": { "tokens": [], "description": "subject and its modifiers", "grammatical_role": "topic of the sentence" },
          "predicate": { "tokens": [], "description": "predicate verb or adjective", "grammatical_role": "statement about the subject" },
          "object": { "tokens": [], "description": "object, if any", "grammatical_role": "target of the action" }
        },
        "modifiers": [
          { "type": "modifier type", "modifier_tokens": [], "modified_tokens": [], "description": "how it modifies" }
        ],
        "particles_analysis": [
          { "particle": "particle", "function": "function", "scope": "scope", "detailed_explanation": "details" }
        ]
      },
      "grammatical_patterns": [
        { "pattern": "pattern", "tokens": [], "explanation": "explanation" }
      ],
      "dependency_relations": [
        { "governor": "head", "dependent": "dependent", "relation": "relation type", "explanation": "explanation" }
      ],
      "sentence_type": {
        "type": "sentence type",
        "politeness_level": "politeness level",
        "formality": "formality",
        "explanation": "notable features"
      }
    }
  ],
  "cross_sentence_analysis": {
    "discourse_markers": [
      { "marker": "connective", "function": "function", "explanation": "explanation" }
    ],
    "topic_flow": "how the topic moves between sentences",
    "coherence_analysis": "coherence notes"
  },
  "learning_notes": {
    "key_grammar_points": ["key grammar points"],
    "difficulty_level": "N5/N4/N3/N2/N1",
    "common_patterns": ["common sentence patterns"],
    "learning_tips": "overall study advice",
    "sentence_by_sentence_tips": [
      { "sentence_index": 0, "specific_tips": ["tips for the first sentence"] }
    ]
  }
}"""

GRAMMAR_REQUIREMENTS = """Requirements:
1. Sentence splitting: split the text on sentence-final punctuation and line breaks.
2. Per-sentence analysis: analyse every sentence's structure separately.
3. Subject/predicate/object: identify them for every sentence, including implied subjects.
4. Particles: explain what each particle does in its sentence.
5. Cross-sentence analysis: when there are several sentences, describe how they relate.
6. Study guidance: give concrete tips for every sentence.
7. Difficulty: rate the overall and per-sentence JLPT level."""

# Output fields requested per learning mode; each level extends the previous one.
WORD_DETAIL_FIELDS = {
    "beginner": ("originalWord", "translation", "pos", "furigana", "romaji"),
    "intermediate": (
        "originalWord",
        "translation",
        "pos",
        "furigana",
        "romaji",
        "dictionaryForm",
        "explanation",
        "usageExamples",
    ),
    "advanced": (
        "originalWord",
        "translation",
        "pos",
        "furigana",
        "romaji",
        "dictionaryForm",
        "explanation",
        "usageExamples",
        "grammarNotes",
        "culturalContext",
        "etymology",
        "jlptLevel",
    ),
}

_FIELD_HINTS = {
    "translation": "translation into {language}",
    "dictionaryForm": "dictionary form, if applicable",
    "explanation": (
        "explanation in {language} covering grammar, conjugation rules and particle usage, "
        "with key terms wrapped in 【】 and line breaks written as \\n"
    ),
    "usageExamples": "1-2 short example sentences with translations",
    "grammarNotes": "detailed notes on tense, voice, politeness and conjugation path",
    "culturalContext": "cultural or pragmatic nuances of the word",
    "etymology": "origin and history of the word",
    "jlptLevel": "N5/N4/N3/N2/N1",
}

LAYOUT_POS = frozenset({"改行", "空格"})


def chat_system_prompt(language: str) -> str:
    return CHAT_SYSTEM.format(language=language)


def build_chat_messages(messages: Sequence[dict[str, Any]], language: str) -> list[dict[str, Any]]:
    return [{"role": "system", "content": chat_system_prompt(language)}, *messages]


def grammar_prompt(sentence: str, tokens: Any, language: str) -> str:
    return (
        "You are an expert in Japanese grammar. Give a thorough structural analysis "
        "of the following Japanese text.\n\n"
        f"Text: {sentence}\n\n"
        "Tokenization:\n"
        f"{json.dumps(tokens, ensure_ascii=False, indent=2)}\n\n"
        "First identify every sentence in the text, then analyse each one in detail.\n\n"
        "Return JSON in exactly this shape:\n\n"
        f"{GRAMMAR_SCHEMA}\n\n"
        f"{GRAMMAR_REQUIREMENTS}\n\n"
        f"Write every explanation in {language} so that native {language} speakers "
        "learning Japanese can follow it. For multi-sentence text pay special attention "
        "to the logical links and topic shifts between sentences."
    )


def describe_word(word: str, pos: str, furigana: Optional[str], romaji: Optional[str]) -> str:
    info = f'the word "{word}" (part of speech: {pos}'
    if furigana:
        info += f", reading: {furigana}"
    if romaji:
        info += f", romaji: {romaji}"
    return info + ")"


def word_detail_schema(
    word: str,
    pos: str,
    furigana: Optional[str],
    romaji: Optional[str],
    learning_mode: str,
    language: str,
) -> str:
    known = {
        "originalWord": word,
        "pos": pos,
        "furigana": furigana or "",
        "romaji": romaji or "",
    }
    lines = []
    for field in WORD_DETAIL_FIELDS[learning_mode]:
        if field in known:
            value = json.dumps(known[field], ensure_ascii=False)
        else:
            value = json.dumps(_FIELD_HINTS[field].format(language=language), ensure_ascii=False)
        lines.append(f"  {json.dumps(field)}: {value}")
    return "{\n" + ",\n".join(lines) + "\n}"


def word_detail_prompt(
    word: str,
    pos: str,
    sentence: str,
    furigana: Optional[str],
    romaji: Optional[str],
    learning_mode: str,
    language: str,
) -> str:
    schema = word_detail_schema(word, pos, furigana, romaji, learning_mode, language)
    notes = [
        "Give the exact dictionary form.",
        "For verbs, identify tense, voice and politeness level.",
        "For auxiliary + verb combinations, state the base form and the conjugation path.",
        "For adjectives, distinguish い-adjectives from な-adjectives and name the inflected form.",
    ]
    if learning_mode == "beginner":
        notes = ["Keep it short: meaning and pronunciation only."]
    numbered = "\n".join(f"{i}. {note}" for i, note in enumerate(notes, 1))
    return (
        f'In the Japanese sentence "{sentence}", what does '
        f"{describe_word(word, pos, furigana, romaji)} mean in context? "
        "Answer with a strict JSON object only, without markdown or any other text.\n\n"
        f"Notes:\n{numbered}\n\n"
        f"{schema}"
    )


def content_tokens(tokens: Sequence[Any]) -> list[Any]:
    return [token for token in tokens if token.pos not in LAYOUT_POS]


def batch_translate_prompt(tokens: Sequence[Any], language: str) -> str:
    listing = "\n".join(
        f"{i}. {token.word} ({token.pos}"
        + (f", reading: {token.furigana}" if token.furigana else "")
        + ")"
        for i, token in enumerate(tokens, 1)
    )
    example_keys = [token.word for token in tokens[:2]]
    example = ",\n".join(
        f"  {json.dumps(key, ensure_ascii=False)}: \"translation\"" for key in example_keys
    )
    return (
        f"Translate the following Japanese words into {language}. "
        "Reply with the JSON shape below and no markdown or other formatting.\n\n"
        f"Words:\n{listing}\n\n"
        "JSON shape:\n"
        "{\n"
        f"{example},\n"
        "  ...\n"
        "}\n\n"
        "Rules:\n"
        "1. Return a bare JSON object only.\n"
        "2. Give an accurate translation for every word.\n"
        "3. Use the original Japanese word as the key.\n"
        "4. Keep translations short, without explanations."
    )
