from __future__ import annotations

import pytest

from contributor_insights.identity import VendorClassifier, VendorRules, auto_classify, email_domain


def _classifier() -> VendorClassifier:
    return VendorClassifier(
        {
            "acme": VendorRules.build(domains=["Acme.com"], organizations=["ACME Corp"], usernames=["RoadRunner"]),
            "initech": VendorRules.build(domains=["initech.com"], organizations=["initech"]),
            "empty": VendorRules.build(),
        }
    )


@pytest.mark.parametrize(
    ("email", "expected"),
    [
        ("dev@confluent.io", "@confluent.io"),
        ("dev@gmail.com", "community"),
        ("Dev@GMail.COM", "community"),
        ("dev@Example.ORG", "@example.org"),
        ("", "unknown"),
        ("not-an-email", "invalid-email"),
        ("a@b@c.com", "invalid-email"),
    ],
)
def test_auto_classify(email: str, expected: str) -> None:
    assert auto_classify(email) == expected


def test_email_domain_rejects_malformed() -> None:
    assert email_domain("a@Acme.com") == "acme.com"
    assert email_domain("") == ""
    assert email_domain("nope") == ""
    assert email_domain("a@b@acme.com") == ""


def test_empty_config_switches_to_auto_mode() -> None:
    c = VendorClassifier()
    assert c.auto_mode
    assert c.categories() == []
    assert c.classify("x@bigcorp.io") == "@bigcorp.io"
    assert c.classify("x@yahoo.co.uk") == "community"


def test_cascade_priority_username_beats_domain() -> None:
    c = _classifier()
    # username points at acme even though the email is initech
    assert c.classify("wile@initech.com", "", "roadrunner") == "acme"
    assert c.classify("wile@initech.com", "", "@RoadRunner") == "acme"


def test_cascade_priority_domain_beats_organization() -> None:
    c = _classifier()
    assert c.classify("wile@initech.com", "ACME Corp, Inc.", "") == "initech"


def test_organization_fragment_substring_case_insensitive() -> None:
    c = _classifier()
    assert c.classify("wile@gmail.com", "The Acme Corp Research Lab", "") == "acme"
    assert c.classify("", "INITECH", "") == "initech"


def test_default_is_community_and_empty_fields_never_match() -> None:
    c = _classifier()
    assert c.classify("someone@gmail.com") == "community"
    assert c.classify("", "", "") == "community"
    assert c.classify("broken-email", "   ", "") == "community"
    assert c.classify("a@b@acme.com") == "community"


def test_categories_in_config_order_with_community() -> None:
    assert _classifier().categories() == ["acme", "initech", "empty", "community"]


def test_first_category_in_config_order_wins_on_shared_rule() -> None:
    c = VendorClassifier(
        {
            "first": VendorRules.build(domains=["shared.io"]),
            "second": VendorRules.build(domains=["shared.io"]),
        }
    )
    assert c.classify("x@shared.io") == "first"


def test_classify_is_deterministic() -> None:
    c = _classifier()
    results = {c.classify("a@acme.com", "org", "user") for _ in range(50)}
    assert results == {"acme"}
