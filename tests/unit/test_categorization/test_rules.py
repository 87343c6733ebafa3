from pocketledger.categorization.rules import (
    CATEGORIES,
    UNCATEGORIZED,
    classify,
    normalize_merchant,
)


def test_classify_spotify_entertainment() -> None:
    assert classify("Spotify") == "Entertainment"


def test_classify_coffee_shop_food() -> None:
    assert classify("Coffee Shop") == "Food"


def test_classify_online_shopping() -> None:
    assert classify("Online Shopping") == "Shopping"


def test_classify_uber_eats_is_food_not_transport() -> None:
    assert classify("Uber Eats order") == "Food"


def test_classify_uber_ride_is_transport() -> None:
    assert classify("UBER *TRIP HELP.UBER.COM") == "Transport"


def test_classify_is_case_and_whitespace_insensitive() -> None:
    assert classify("  netflix.com   monthly ") == "Entertainment"


def test_classify_exact_mcc_wins_over_text() -> None:
    # 4121 is taxicabs/limousines even though the text looks like shopping.
    assert classify("random merchant", mcc=4121) == "Transport"
    assert classify("Amazon", mcc=5812) == "Food"


def test_classify_mcc_range() -> None:
    assert classify("ACME", mcc=3005) == "Travel"
    assert classify("ACME", mcc=5651) == "Shopping"


def test_classify_unknown_mcc_falls_through_to_text() -> None:
    assert classify("Starbucks", mcc=1234) == "Food"


def test_classify_provider_category_used_only_as_fallback() -> None:
    assert classify("Unknown Vendor", provider_category="MEDICAL") == "Health"
    # Text rules beat the provider hint.
    assert classify("Spotify", provider_category="GENERAL_MERCHANDISE") == "Entertainment"


def test_classify_unmatched_is_uncategorized() -> None:
    assert classify("zzqx holdings") == UNCATEGORIZED


def test_classify_empty_input_is_uncategorized() -> None:
    assert classify(None) == UNCATEGORIZED
    assert classify("") == UNCATEGORIZED
    assert classify("   ", mcc=None) == UNCATEGORIZED


def test_classify_is_deterministic() -> None:
    assert {classify("Coffee Shop") for _ in range(5)} == {"Food"}


def test_classify_returns_known_label() -> None:
    for text in ["Spotify", "Coffee Shop", "Shell Station", "City Hospital", "Udemy"]:
        assert classify(text) in CATEGORIES


def test_normalize_merchant() -> None:
    assert normalize_merchant("  Coffee   shop\t") == "COFFEE SHOP"
    assert normalize_merchant(None) == ""
