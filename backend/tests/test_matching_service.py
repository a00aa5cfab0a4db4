"""
Unit tests for tokenization, edit distance and candidate scoring.
Run from backend: python -m pytest tests/test_matching_service.py -v
"""
import pytest

from nutrimatch.models.nutrition import CandidateRecord, LookupRequest, SourceType


def _candidate(external_id, description, source_type=SourceType.OTHER):
    return CandidateRecord(external_id=external_id, description=description, source_type=source_type)


def test_tokenize_drops_noise():
    """Punctuation splits, 1-char tokens, stop words and numbers are dropped."""
    from nutrimatch.matching.matching_service import tokenize
    assert tokenize("Coca-Cola 2-Liter Bottle") == ["coca", "cola"]
    assert tokenize("Whole Milk, Vitamin D, Gallon, 128 fl oz") == ["whole", "milk", "vitamin"]
    assert tokenize("") == []


def test_tokenize_with_weights():
    from nutrimatch.matching.matching_service import tokenize_with_weights
    weights = {t.text: t.weight for t in tokenize_with_weights("whole milk horizon")}
    assert weights == {"whole": 2.0, "milk": 3.0, "horizon": 1.0}


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("kitten", "sitting", 3),
        ("milk", "milk", 0),
        ("", "abc", 3),
        ("chiken", "chicken", 1),
        ("flaw", "lawn", 2),
    ],
)
def test_levenshtein_distance(a, b, expected):
    from nutrimatch.matching.matching_service import levenshtein_distance
    assert levenshtein_distance(a, b) == expected
    assert levenshtein_distance(b, a) == expected


def test_fuzzy_token_match_rules():
    from nutrimatch.matching.matching_service import fuzzy_token_match
    assert fuzzy_token_match("chiken", "chicken", 1)
    assert not fuzzy_token_match("tea", "tee", 1)  # too short
    assert not fuzzy_token_match("milk", "milkfat", 1)  # length gap
    assert fuzzy_token_match("soda", "soda", 1)


def test_empty_candidates_raise_not_found():
    from nutrimatch.errors import NotFoundError
    from nutrimatch.matching import MatchingService
    with pytest.raises(NotFoundError):
        MatchingService().find_best_match(LookupRequest("whole milk"), [])


def test_invalid_request():
    from nutrimatch.errors import InvalidRequestError
    from nutrimatch.matching import MatchingService
    candidates = [_candidate("1", "Milk")]
    with pytest.raises(InvalidRequestError):
        MatchingService().find_best_match(None, candidates)
    with pytest.raises(InvalidRequestError):
        MatchingService().find_best_match(LookupRequest(""), candidates)


def test_great_value_whole_milk_scenario():
    """Branded whole milk with the brand in its description wins clearly."""
    from nutrimatch.matching import MatchingService
    candidates = [
        _candidate("1", "Skim Milk", SourceType.FOUNDATION),
        _candidate("2", "Great Value Whole Milk, Vitamin D", SourceType.BRANDED),
        _candidate("3", "Chocolate Milk", SourceType.FOUNDATION),
    ]
    request = LookupRequest("Whole Milk, Vitamin D, Gallon, 128 fl oz", brand="Great Value")
    result = MatchingService().find_best_match(request, candidates)
    assert result.external_id == "2"
    assert result.score >= 50
    assert set(result.matched_tokens) == {"whole", "milk", "vitamin"}


def test_brand_bonus_is_exact():
    """A matching brand adds exactly the brand bonus while under the cap."""
    from nutrimatch.matching import MatchingService
    from nutrimatch.matching.matching_service import BRAND_MATCH_BONUS
    service = MatchingService()
    candidate = _candidate("1", "Great Value Milk", SourceType.FOUNDATION)
    without, _ = service.score_candidate("milk", None, candidate)
    with_brand, _ = service.score_candidate("milk", "Great Value", candidate)
    assert without == pytest.approx(73.0)
    assert with_brand - without == pytest.approx(BRAND_MATCH_BONUS)


def test_source_type_and_substring_bonus():
    from nutrimatch.matching import MatchingService
    service = MatchingService()
    survey, _ = service.score_candidate("whole milk", None, _candidate("1", "Whole milk", SourceType.SURVEY))
    other, _ = service.score_candidate("whole milk", None, _candidate("2", "Whole milk", SourceType.OTHER))
    # 70 base + 10 substring, +5 for Survey
    assert other == pytest.approx(80.0)
    assert survey == pytest.approx(85.0)


def test_score_is_capped():
    from nutrimatch.matching import MatchingService
    score, _ = MatchingService().score_candidate(
        "great value whole milk", "Great Value",
        _candidate("1", "Great Value Whole Milk", SourceType.BRANDED),
    )
    assert score == 100.0


def test_no_tokens_scores_zero():
    """No bonuses either when one side has no tokens."""
    from nutrimatch.matching import MatchingService
    score, matched = MatchingService().score_candidate(
        "the of 12 oz", "Great Value",
        _candidate("1", "Great Value Milk", SourceType.BRANDED),
    )
    assert score == 0.0
    assert matched == []


def test_fuzzy_matching_toggle():
    from nutrimatch.matching import MatchConfig, MatchingService
    candidate = _candidate("1", "Chicken Breast", SourceType.OTHER)
    _, matched = MatchingService().score_candidate("chiken breast", None, candidate)
    assert "chiken~chicken" in matched
    _, matched = MatchingService(MatchConfig(enable_fuzzy_matching=False)).score_candidate(
        "chiken breast", None, candidate
    )
    assert matched == ["breast"]


def test_ties_keep_first_candidate():
    from nutrimatch.matching import MatchingService
    candidates = [_candidate("a", "Whole Milk"), _candidate("b", "Whole Milk")]
    result = MatchingService().find_best_match(LookupRequest("whole milk"), candidates)
    assert result.external_id == "a"


def test_low_confidence_carries_match():
    from nutrimatch.errors import LowConfidenceError
    from nutrimatch.matching import MatchConfig, MatchingService
    service = MatchingService(MatchConfig(min_confidence_threshold=80))
    with pytest.raises(LowConfidenceError) as exc:
        service.find_best_match(
            LookupRequest("chocolate cake"),
            [_candidate("9", "Grilled Chicken Breast", SourceType.FOUNDATION)],
        )
    assert exc.value.match.external_id == "9"
    assert exc.value.match.score < 80
    assert exc.value.threshold == 80


def test_config_defaults_for_non_positive_values():
    from nutrimatch.matching import MatchConfig, MatchingService
    service = MatchingService(MatchConfig(min_confidence_threshold=0, fuzzy_edit_distance=-1))
    assert service.min_confidence_threshold == 40.0
    assert service.fuzzy_edit_distance == 1


def test_cancelled_matching():
    import threading
    from nutrimatch.errors import LookupCancelledError
    from nutrimatch.matching import MatchingService
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(LookupCancelledError):
        MatchingService().find_best_match(LookupRequest("milk"), [_candidate("1", "Milk")], cancel=cancel)


def test_blank_brand_earns_no_bonus():
    """Whitespace-only brand scores the same as no brand."""
    from nutrimatch.matching import MatchingService
    service = MatchingService()
    candidate = _candidate("1", "Skim Milk", SourceType.OTHER)
    without, _ = service.score_candidate("whole milk", None, candidate)
    blank, _ = service.score_candidate("whole milk", "   ", candidate)
    assert blank == without


def test_candidate_scoring_detail_logged_at_debug(caplog):
    """Per-candidate lines are DEBUG; only the winner is logged at INFO."""
    import logging
    from nutrimatch.matching import MatchConfig, MatchingService
    service = MatchingService(MatchConfig(enable_debug_logging=True))
    candidates = [_candidate("1", "Great Value Whole Milk", SourceType.BRANDED)]
    request = LookupRequest("whole milk", brand="Great Value")

    with caplog.at_level(logging.INFO, logger="nutrimatch.matching.matching_service"):
        service.find_best_match(request, candidates)
    assert "MATCH best" in caplog.text
    assert "MATCH candidate" not in caplog.text
    assert "MATCH brand bonus" not in caplog.text

    caplog.clear()
    with caplog.at_level(logging.DEBUG, logger="nutrimatch.matching.matching_service"):
        service.find_best_match(request, candidates)
    assert "MATCH candidate" in caplog.text
    assert "MATCH brand bonus" in caplog.text
