from datetime import date, datetime

import pytest

from cmsclient.domain.models.query import (
    UNSET,
    FieldList,
    NestedSpec,
    Pagination,
    PopulateSpec,
    QueryDescription,
    Wildcard,
)
from cmsclient.infrastructure.http.query_serializer import (
    build_query_pairs,
    describe_query,
    serialize_query,
)


def test_empty_query_serializes_to_empty_string():
    assert serialize_query(None) == ""
    assert serialize_query(QueryDescription()) == ""
    assert serialize_query({}) == ""


def test_equality_filter():
    query = QueryDescription(filters={"slug": {"$eq": "my-post"}})
    assert serialize_query(query) == "filters[slug][$eq]=my-post"


def test_logical_operator_with_list_of_conditions():
    query = QueryDescription(filters={"$or": [
        {"title": {"$contains": "x"}},
        {"description": {"$contains": "y"}},
    ]})
    assert serialize_query(query) == (
        "filters[$or][0][title][$contains]=x&filters[$or][1][description][$contains]=y"
    )


def test_in_operator_indexes_each_value():
    query = QueryDescription(filters={"id": {"$in": [1, 2, 3]}})
    assert serialize_query(query) == (
        "filters[id][$in][0]=1&filters[id][$in][1]=2&filters[id][$in][2]=3"
    )


def test_sort_single_token_and_list():
    assert serialize_query(QueryDescription(sort="publishedAt:desc")) == "sort=publishedAt:desc"
    assert serialize_query(QueryDescription(sort=["viewCount:desc", "publishedAt:desc"])) == (
        "sort=viewCount:desc,publishedAt:desc"
    )


def test_page_based_pagination():
    query = QueryDescription(pagination=Pagination(page=2, page_size=10))
    assert serialize_query(query) == "pagination[page]=2&pagination[pageSize]=10"


def test_offset_pagination():
    query = QueryDescription(pagination={"start": 20, "limit": 4})
    assert serialize_query(query) == "pagination[start]=20&pagination[limit]=4"


def test_page_based_pagination_wins_over_offset():
    query = QueryDescription(pagination=Pagination(page=1, page_size=5, start=10, limit=3))
    assert serialize_query(query) == "pagination[page]=1&pagination[pageSize]=5"


def test_populate_wildcard():
    assert serialize_query(QueryDescription(populate="*")) == "populate=*"
    assert serialize_query(QueryDescription(populate=Wildcard())) == "populate=*"


def test_populate_field_list():
    query = QueryDescription(populate=["author", "cover"])
    assert serialize_query(query) == "populate[0]=author&populate[1]=cover"


def test_populate_nested_spec():
    query = QueryDescription(populate={
        "author": {"fields": ["name"], "populate": ["avatar"]},
        "category": True,
    })
    assert serialize_query(query) == (
        "populate[author][fields][0]=name"
        "&populate[author][populate][0]=avatar"
        "&populate[category]=true"
    )


def test_populate_nested_spec_with_sort_and_filters():
    query = QueryDescription(populate=NestedSpec({
        "comments": PopulateSpec(sort="createdAt:desc", filters={"approved": {"$eq": True}}),
    }))
    assert serialize_query(query) == (
        "populate[comments][sort]=createdAt:desc"
        "&populate[comments][filters][approved][$eq]=true"
    )


def test_empty_populate_spec_still_populates_relation():
    query = QueryDescription(populate=NestedSpec({"seo": PopulateSpec()}))
    assert serialize_query(query) == "populate[seo]=true"


def test_deeply_nested_populate():
    query = QueryDescription(populate=NestedSpec({
        "relatedArticles": PopulateSpec(populate=NestedSpec({
            "author": PopulateSpec(populate=FieldList(["avatar"])),
        })),
    }))
    assert serialize_query(query) == (
        "populate[relatedArticles][populate][author][populate][0]=avatar"
    )


def test_fields_projection():
    query = QueryDescription(fields=["title", "slug"])
    assert serialize_query(query) == "fields[0]=title&fields[1]=slug"


def test_sections_come_out_in_fixed_order():
    query = QueryDescription(
        status="published",
        locale="en",
        fields=["title"],
        populate="*",
        pagination=Pagination(limit=1),
        sort="id:asc",
        filters={"featured": {"$eq": True}},
        publication_state="live",
    )
    assert serialize_query(query) == (
        "filters[featured][$eq]=true&sort=id:asc&pagination[limit]=1&populate=*"
        "&fields[0]=title&locale=en&publicationState=live&status=published"
    )


def test_scalar_values():
    query = QueryDescription(filters={
        "featured": {"$eq": False},
        "viewCount": {"$gt": 10},
        "rating": {"$gte": 4.5},
        "publishedAt": {"$gte": datetime(2024, 1, 2, 3, 4, 5)},
        "day": {"$eq": date(2024, 1, 2)},
    })
    assert serialize_query(query) == (
        "filters[featured][$eq]=false"
        "&filters[viewCount][$gt]=10"
        "&filters[rating][$gte]=4.5"
        "&filters[publishedAt][$gte]=2024-01-02T03:04:05"
        "&filters[day][$eq]=2024-01-02"
    )


def test_none_is_sent_as_empty_value():
    query = QueryDescription(filters={"publishedAt": {"$eq": None}})
    assert serialize_query(query) == "filters[publishedAt][$eq]="


def test_none_and_empty_string_share_a_wire_form():
    as_null = QueryDescription(filters={"title": {"$eq": None}})
    as_empty = QueryDescription(filters={"title": {"$eq": ""}})
    assert serialize_query(as_null) == serialize_query(as_empty) == "filters[title][$eq]="


def test_unset_values_are_skipped():
    query = QueryDescription(filters={"slug": UNSET, "title": {"$eq": "x", "$ne": UNSET}})
    assert serialize_query(query) == "filters[title][$eq]=x"


def test_unset_items_are_dropped_before_indexing():
    query = QueryDescription(fields=["title", UNSET, "slug"])
    assert serialize_query(query) == "fields[0]=title&fields[1]=slug"


def test_values_are_percent_encoded_keys_keep_brackets():
    query = QueryDescription(filters={"title": {"$containsi": "hello world&more/ü"}})
    assert serialize_query(query) == "filters[title][$containsi]=hello%20world%26more%2F%C3%BC"


def test_equal_descriptions_serialize_identically():
    def build():
        return QueryDescription(
            filters={"slug": {"$eq": "a"}, "status": {"$eq": "published"}},
            populate={"author": {"fields": ["name"]}},
            sort=["publishedAt:desc"],
        )
    assert serialize_query(build()) == serialize_query(build())
    assert serialize_query(build()) == serialize_query({
        "filters": {"slug": {"$eq": "a"}, "status": {"$eq": "published"}},
        "populate": {"author": {"fields": ["name"]}},
        "sort": ["publishedAt:desc"],
    })


def test_unknown_populate_variant_raises_type_error():
    with pytest.raises(TypeError):
        serialize_query({"populate": 42})


def test_unknown_query_key_raises_value_error():
    with pytest.raises(ValueError):
        serialize_query({"filter": {"slug": {"$eq": "a"}}})


def test_build_query_pairs_and_describe_query_are_unencoded():
    query = QueryDescription(filters={"title": {"$eq": "a b"}}, sort="id:asc")
    assert build_query_pairs(query) == [("filters[title][$eq]", "a b"), ("sort", "id:asc")]
    assert describe_query(query) == "filters[title][$eq]=a b&sort=id:asc"
    assert describe_query(None) == ""
