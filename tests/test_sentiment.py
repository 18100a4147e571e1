"""Tests for the keyword sentiment heuristic."""

import pytest

from app.services.sentiment import keyword_score, keyword_sentiment, label_for_score


def test_neutral_text():
    assert keyword_score("I walked to the shop") == 0


def test_words_count_once():
    assert keyword_score("happy happy happy") == pytest.approx(0.2)


def test_case_insensitive():
    assert keyword_score("GREAT day") == pytest.approx(0.2)


def test_positive_and_negative_cancel():
    assert keyword_score("good but sad") == 0


def test_clamped_to_range():
    text = "happy joy excited good great amazing wonderful"
    assert keyword_score(text) == 1.0
    assert keyword_score("sad angry anxious bad terrible awful worst") == -1.0


def test_custom_step():
    assert keyword_score("happy", step=0.5) == 0.5


@pytest.mark.parametrize(
    "score, label",
    [(0.5, "positive"), (0.1, "neutral"), (0, "neutral"), (-0.1, "neutral"), (-0.2, "negative")],
)
def test_labels(score, label):
    assert label_for_score(score) == label


def test_keyword_sentiment():
    result = keyword_sentiment("awful and terrible")

    assert result.label == "negative"
    assert result.score == pytest.approx(-0.4)
