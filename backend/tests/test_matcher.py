"""Tests for matching semantics across the in-memory and SQL listing indexes."""

import pytest

from backend.database.models import Listing
from backend.services.errors import IndexUnavailableError
from backend.services.filter_spec import FilterSpec
from backend.services.listing_index import InMemoryListingIndex, SqlListingIndex
from backend.services.matcher import Matcher, listing_matches
from backend.tests.conftest import make_listing


CORPUS = [
    make_listing("p1", title="Porsche 911 Carrera", price=50, year=2018, description="Guards red, sport chrono"),
    make_listing("p2", title="Porsche Cayenne Turbo", price=150, year=2024, fuel_type="Hybrid", condition="New"),
    make_listing("p3", title="Porsche Macan", price=151, year=2020, location="Kandy"),
    make_listing("b1", title="BMW M3 Competition", brand="BMW", price=80, year=2022, transmission="Manual"),
    make_listing("m1", title="Mercedes G 63", brand="Mercedes-Benz", price=110, year=2019, mileage=None),
]


@pytest.fixture
def memory_index():
    return InMemoryListingIndex(CORPUS)


@pytest.fixture
def sql_index(test_session):
    db = test_session()
    for record in CORPUS:
        db.add(Listing(
            id=record.id, title=record.title, description=record.description,
            brand=record.brand, price=record.price, year=record.year, mileage=record.mileage,
            fuel_type=record.fuel_type, transmission=record.transmission,
            location=record.location, condition=record.condition,
        ))
    db.add(Listing(id="sold", title="Porsche 911 sold", brand="Porsche", price=90, year=2021, is_active=False))
    db.commit()
    db.close()
    return SqlListingIndex(test_session)


@pytest.fixture(params=["memory", "sql"])
def matcher(request, memory_index, sql_index):
    index = memory_index if request.param == "memory" else sql_index
    return Matcher(index)


class TestMatchSemantics:
    def test_empty_filters_return_every_listing(self, matcher):
        assert matcher.evaluate(FilterSpec()) == {"p1", "p2", "p3", "b1", "m1"}

    def test_price_range_inclusive_on_both_bounds(self, matcher):
        result = matcher.evaluate(FilterSpec(price_range=(50, 150)))
        assert {"p1", "p2"} <= result
        assert "p3" not in result

    def test_year_range_inclusive(self, matcher):
        assert matcher.evaluate(FilterSpec(year_range=(2018, 2019))) == {"p1", "m1"}

    def test_constraints_are_anded(self, matcher):
        spec = FilterSpec(brands=["Porsche"], price_range=(50, 150), year_range=(2020, 2024))
        assert matcher.evaluate(spec) == {"p2"}

    def test_search_query_is_case_insensitive_substring(self, matcher):
        assert matcher.evaluate(FilterSpec(search_query="cayenne")) == {"p2"}
        assert matcher.evaluate(FilterSpec(search_query="911 CAR")) == {"p1"}

    def test_search_query_matches_description(self, matcher):
        assert matcher.evaluate(FilterSpec(search_query="sport chrono")) == {"p1"}

    def test_search_query_is_not_fuzzy(self, matcher):
        assert matcher.evaluate(FilterSpec(search_query="Porshe")) == set()

    def test_membership_is_case_insensitive(self, matcher):
        assert matcher.evaluate(FilterSpec(brands=["bmw"])) == {"b1"}
        assert matcher.evaluate(FilterSpec(transmissions=["manual"])) == {"b1"}

    def test_condition_and_location(self, matcher):
        assert matcher.evaluate(FilterSpec(condition=["New"])) == {"p2"}
        assert matcher.evaluate(FilterSpec(locations=["Kandy"])) == {"p3"}

    def test_missing_listing_data_does_not_match_range(self, matcher):
        result = matcher.evaluate(FilterSpec(mileage_range=(0, 50000)))
        assert "m1" not in result
        assert "p1" in result

    def test_like_wildcards_are_literal(self, matcher):
        assert matcher.evaluate(FilterSpec(search_query="%")) == set()


class TestIndexes:
    def test_inactive_listings_never_match_in_sql(self, sql_index):
        assert "sold" not in sql_index.query(FilterSpec(brands=["Porsche"]))

    def test_listing_updated_at(self, memory_index, sql_index):
        assert memory_index.listing_updated_at("p1") is not None
        assert sql_index.listing_updated_at("p1") is not None
        assert memory_index.listing_updated_at("nope") is None
        assert sql_index.listing_updated_at("nope") is None

    def test_offline_memory_index_raises(self, memory_index):
        memory_index.available = False
        with pytest.raises(IndexUnavailableError):
            Matcher(memory_index).evaluate(FilterSpec())

    def test_predicate_on_single_listing(self):
        listing = CORPUS[0]
        assert listing_matches(listing, FilterSpec(brands=["PORSCHE"], price_range=(50, 50)))
        assert not listing_matches(listing, FilterSpec(fuel_types=["Diesel"]))
