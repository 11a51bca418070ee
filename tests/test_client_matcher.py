import pytest

from session_payroll.core.client_matcher import (
    REASON_ALTERNATE,
    REASON_FIRST_NAME,
    REASON_FULL_NAME,
    REASON_KEYWORD,
    ClientMatcher,
)
from session_payroll.core.models import MatchConfidence


@pytest.fixture
def matcher():
    return ClientMatcher()


def _single(results):
    assert len(results) == 1
    return results[0]


def test_full_name_is_exact(matcher):
    result = _single(matcher.find_client_matches_with_confidence("John Doe", ["John Doe"]))
    assert result.client_name == "John Doe"
    assert result.confidence == MatchConfidence.EXACT


def test_full_name_with_extra_words_is_exact(matcher):
    result = _single(matcher.find_client_matches_with_confidence(
        "Βασιλική Σταικούρα - Μετρητά", ["ΒΑΣΙΛΙΚΗ ΣΤΑΙΚΟΥΡΑ"]
    ))
    assert result.confidence == MatchConfidence.EXACT


def test_accents_and_case_do_not_matter(matcher):
    result = _single(matcher.find_client_matches_with_confidence("jóhn dóe online", ["John Doe"]))
    assert result.confidence == MatchConfidence.EXACT


def test_reversed_name_is_high(matcher):
    result = _single(matcher.find_client_matches_with_confidence("Doe John", ["John Doe"]))
    assert result.confidence == MatchConfidence.HIGH
    assert result.matched_text == "doe john"


def test_first_name_only_is_low(matcher):
    result = _single(matcher.find_client_matches_with_confidence("John", ["John Doe"]))
    assert result.confidence == MatchConfidence.LOW
    assert result.reason == REASON_FIRST_NAME


def test_first_name_must_be_a_whole_word(matcher):
    assert matcher.find_client_matches_with_confidence("Johnny", ["John Doe"]) == []


def test_short_first_name_is_ignored(matcher):
    assert matcher.find_client_matches_with_confidence("Ann", ["Ann Lee"]) == []


def test_surname_only_never_matches(matcher):
    assert matcher.find_client_matches_with_confidence("Doe", ["John Doe"]) == []


def test_single_token_name_is_exact(matcher):
    result = _single(matcher.find_client_matches_with_confidence("Νίκος 10:00", ["Νίκος"]))
    assert result.confidence == MatchConfidence.EXACT
    assert result.reason == REASON_FULL_NAME


def test_single_token_name_not_in_title(matcher):
    assert matcher.find_client_matches_with_confidence("Νικόλαος", ["Νίκος"]) == []


def test_hyphenated_alternate_name_is_high(matcher):
    result = _single(matcher.find_client_matches_with_confidence("Γιάννης", ["John - Γιάννης"]))
    assert result.confidence == MatchConfidence.HIGH
    assert result.reason == REASON_ALTERNATE


def test_special_keyword_short_circuits(matcher):
    results = matcher.find_client_matches_with_confidence(
        "Supervision with John Doe", ["John Doe"], special_keywords=["supervision"]
    )
    result = _single(results)
    assert result.is_special_keyword
    assert result.confidence == MatchConfidence.EXACT
    assert result.reason == REASON_KEYWORD


def test_keyword_matching_is_accent_insensitive(matcher):
    result = _single(matcher.find_client_matches_with_confidence(
        "ΕΠΟΠΤΕΙΑ ομάδας", [], special_keywords=["εποπτεία"]
    ))
    assert result.is_special_keyword


def test_results_follow_roster_order(matcher):
    results = matcher.find_client_matches_with_confidence(
        "John Doe & Mary Smith", ["Mary Smith", "John Doe"]
    )
    assert [r.client_name for r in results] == ["Mary Smith", "John Doe"]


@pytest.mark.parametrize("title", ["", "   ", None, "!!"])
def test_blank_title_matches_nothing(matcher, title):
    assert matcher.find_client_matches_with_confidence(title, ["John Doe"], ["supervision"]) == []


def test_blank_client_name_is_skipped(matcher):
    assert matcher.find_client_matches_with_confidence("John Doe", ["", "  "]) == []


def test_find_client_matches_returns_only_certain_names(matcher):
    clients = ["John Doe", "John Doe", "Johnathan Smith", "Νίκος"]
    assert matcher.find_client_matches("John Doe Νίκος", clients) == ["John Doe", "Νίκος"]


def test_get_uncertain_matches(matcher):
    uncertain = matcher.get_uncertain_matches("Νίκος και John", ["John Doe", "Νίκος", "Mary Smith"])
    assert [(m.client_name, m.confidence) for m in uncertain] == [("John Doe", MatchConfidence.LOW)]
    assert all(ClientMatcher.requires_confirmation(m) for m in uncertain)


def test_confidence_ordering():
    assert MatchConfidence.EXACT > MatchConfidence.HIGH > MatchConfidence.MEDIUM
    assert MatchConfidence.MEDIUM > MatchConfidence.LOW > MatchConfidence.NONE
    assert MatchConfidence.HIGH.auto_accepted and not MatchConfidence.MEDIUM.auto_accepted
