"""Tests for sentence/paragraph segmentation, readability and entity heuristics."""

from __future__ import annotations

import pytest

from copyscan.utils.text_stats import (
    calculate_basic_stats,
    calculate_readability,
    count_syllables,
    extract_entities,
    extract_paragraphs,
    extract_sentences,
    reading_level,
)

from tests.conftest import FOX


class TestSegmentation:

    def test_sentences_need_length_and_three_words(self) -> None:
        text = "Hi. This is a proper sentence! Short one? Yes it is here."
        assert extract_sentences(text) == ["This is a proper sentence", "Yes it is here"]

    def test_repeated_terminators_split_once(self) -> None:
        assert extract_sentences("What is going on here?!? Nothing at all...") == [
            "What is going on here",
            "Nothing at all",
        ]

    def test_paragraphs_split_on_blank_lines(self) -> None:
        text = "First paragraph is long enough.\n\nShort\n \n  Second paragraph also long enough  "
        assert extract_paragraphs(text) == [
            "First paragraph is long enough.",
            "Second paragraph also long enough",
        ]

    def test_empty_input(self) -> None:
        assert extract_sentences("") == []
        assert extract_paragraphs("   ") == []


class TestBasicStats:

    def test_counts(self) -> None:
        stats = calculate_basic_stats("Hello, world!  Foo")
        assert stats["word_count"] == 3
        assert stats["character_count"] == 18
        assert stats["character_count_no_spaces"] == 15
        assert stats["average_word_length"] == pytest.approx(5.0)
        assert stats["longest_word"] == "Hello"

    def test_whitespace_only(self) -> None:
        stats = calculate_basic_stats("   \n ")
        assert stats["word_count"] == 0
        assert stats["average_word_length"] == 0.0


class TestReadability:

    @pytest.mark.parametrize("word,expected", [
        ("cake", 1),
        ("the", 1),
        ("beautiful", 3),
        ("rhythm", 1),
        ("over", 2),
    ])
    def test_syllables(self, word: str, expected: int) -> None:
        assert count_syllables(word) == expected

    @pytest.mark.parametrize("score,label", [
        (95, "Very Easy"),
        (90, "Very Easy"),
        (85, "Easy"),
        (75, "Fairly Easy"),
        (65, "Standard"),
        (55, "Fairly Difficult"),
        (35, "Difficult"),
        (29.9, "Very Difficult"),
        (-12, "Very Difficult"),
    ])
    def test_levels(self, score: float, label: str) -> None:
        assert reading_level(score) == label

    def test_flesch_for_single_sentence(self) -> None:
        sentences = extract_sentences(FOX)
        r = calculate_readability(FOX, sentences, 9)
        assert r.avg_words_per_sentence == pytest.approx(9.0)
        assert r.avg_syllables_per_word == pytest.approx(1.2)
        assert r.flesch_score == pytest.approx(94.3)
        assert r.level == "Very Easy"

    def test_no_sentences_is_unknown(self) -> None:
        r = calculate_readability("ok", [], 1)
        assert r.level == "Unknown"
        assert r.flesch_score == 0.0


class TestEntities:

    def test_extracts_each_kind(self) -> None:
        text = ("Acme Widget Corporation opened an office on Market Street on January 5, 2021 "
                "with 25% growth and 3.5 million in revenue, dated 12/31/2020.")
        entities = extract_entities(text)
        assert entities.organizations == ["Acme Widget Corporation"]
        assert entities.locations == ["Market Street"]
        assert "January 5, 2021" in entities.dates
        assert "12/31/2020" in entities.dates
        assert "25%" in entities.numbers
        assert "3.5" in entities.numbers

    def test_deduplicates(self) -> None:
        entities = extract_entities("We sold 10 units, then 10 more at Boston University and Boston University.")
        assert entities.numbers == ["10"]
        assert entities.organizations == ["Boston University"]
