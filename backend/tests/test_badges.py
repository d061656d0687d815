"""Tests for badge aggregation."""

from backend.tests.conftest import make_listing


def test_total_new_matches_sums_alerting_searches(services, index):
    for i in range(3):
        index.add(make_listing(f"p{i}"))
    index.add(make_listing("b1", brand="BMW"))

    porsches = services.store.create("user-1", "Porsches", {"brands": ["Porsche"]})
    everything = services.store.create("user-1", "Everything", {})
    muted = services.store.create("user-1", "Muted", {}, alert_enabled=False)
    other = services.store.create("user-2", "Other", {})
    for search in (porsches, everything, muted, other):
        services.tracker.check(search.id)

    assert services.badges.total_new_matches("user-1") == 3 + 4
    assert services.badges.badges_by_search("user-1") == {porsches.id: 3, everything.id: 4}
    assert services.badges.total_new_matches("user-2") == 4


def test_badge_reflects_acknowledgement(services, index):
    index.add(make_listing("p1"))
    search = services.store.create("user-1", "Porsches", {})
    services.tracker.check(search.id)
    assert services.badges.total_new_matches("user-1") == 1

    services.tracker.mark_as_checked(search.id)
    assert services.badges.total_new_matches("user-1") == 0
    assert services.badges.badges_by_search("user-1") == {}


def test_user_without_searches_has_zero(services):
    assert services.badges.total_new_matches("nobody") == 0
