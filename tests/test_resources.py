"""
Tests for odata_engine.resources (resource kinds, requests, responses).
"""

import asyncio
from decimal import Decimal

import pytest

from odata_engine.core.errors import ODataConfigurationError, ODataIdentityError
from odata_engine.resources.kinds import (
    ActionResource,
    CountResource,
    EntityResource,
    EntitySetResource,
    FunctionResource,
    NavigationPropertyResource,
    PropertyResource,
    SingletonResource,
)
from odata_engine.resources.responses import ODataEntities, ODataEntity, ODataResponse

from conftest import SERVICE_ROOT, FakeTransport


class TestScenarios:
    """End-to-end request/response flows through a fake transport."""

    def test_entity_by_key(self, make_api):
        transport = FakeTransport(ODataResponse(body={"id": 1, "name": "Ann"}))
        api = make_api(transport)

        person = api.entity_set("People").entity(1)
        assert person.path() == "People(1)"

        result = asyncio.run(person.get())
        assert isinstance(result, ODataEntity)
        assert result.entity == {"id": 1, "name": "Ann"}
        assert transport.last.url == f"{SERVICE_ROOT}People(1)"
        assert transport.last.method == "GET"

    def test_derived_type_payload(self, make_api):
        body = {"@odata.type": "#Acme.Employee", "id": 2, "name": "Bob", "salary": "1200.75"}
        api = make_api(FakeTransport(ODataResponse(body=body)))

        result = asyncio.run(api.entity_set("People").entity(2).get())
        assert result.entity["name"] == "Bob"
        assert result.entity["id"] == 2
        assert result.entity["salary"] == Decimal("1200.75")
        assert result.meta.type == "Acme.Employee"

    def test_unbound_function_uses_configured_path(self, make_api):
        transport = FakeTransport(ODataResponse(body={"id": 3, "name": "Cy"}))
        api = make_api(transport)

        function = api.function("GetTopPerson")
        assert isinstance(function, FunctionResource)
        assert function.path() == "TopPerson"
        assert function.params() == {}

        people = api.entity_set("People").select(["name"]).filter({"id": {"gt": 1}}).top(3)
        bound = people.function("GetTopPerson")
        assert bound.path() == "People/TopPerson"
        assert bound.params() == {}

        result = asyncio.run(function.get())
        assert result.entity == {"id": 3, "name": "Cy"}
        assert transport.last.url_with_params == f"{SERVICE_ROOT}TopPerson"


class TestEntitySetResource:
    """Tests for collection resources."""

    def test_fluent_calls_do_not_mutate_parent(self, api):
        people = api.entity_set("People")
        filtered = people.filter("age gt 30").top(5)
        assert people.params() == {}
        assert filtered.params() == {"$filter": "age gt 30", "$top": "5"}
        assert str(filtered) == "People?$filter=age%20gt%2030&$top=5"

    def test_query_property_mutates_in_place(self, api):
        people = api.entity_set("People")
        people.query.option("select").add("id", "name")
        assert people.params() == {"$select": "id,name"}

    def test_type_lookup(self, api):
        assert api.entity_set("People").type() == "Acme.Person"
        assert api.entity_set("Unknown").type() is None
        assert api.entity_set("Unknown", "Acme.Person").type() == "Acme.Person"

    def test_count_keeps_filter_only(self, api):
        count = api.entity_set("People").filter("age gt 3").search("ann").top(5).select("id").count()
        assert isinstance(count, CountResource)
        assert count.path() == "People/$count"
        assert count.params() == {"$filter": "age gt 3", "$search": "ann"}

    def test_cast(self, api):
        employees = api.entity_set("People").top(2).cast("Acme.Employee")
        assert employees.path() == "People/Acme.Employee"
        assert employees.params() == {"$top": "2"}
        assert employees.entity(4).path() == "People/Acme.Employee(4)"

    def test_equality_and_clone(self, api):
        a = api.entity_set("People").top(1)
        b = api.entity_set("People").top(1)
        assert a == b
        assert a.clone() == a
        assert a != a.top(2)

    def test_get_with_count(self, make_api):
        body = {
            "@odata.count": 10,
            "@odata.nextLink": f"{SERVICE_ROOT}People?$skip=2",
            "value": [{"id": "1"}, {"id": "2", "@odata.type": "#Acme.Employee", "salary": 5}],
        }
        transport = FakeTransport(ODataResponse(body=body))
        api = make_api(transport)

        result = asyncio.run(api.entity_set("People").top(2).get(with_count=True))
        assert isinstance(result, ODataEntities)
        assert [e["id"] for e in result] == [1, 2]
        assert result.entities[1]["salary"] == Decimal(5)
        assert result.meta.count == 10
        assert result.meta.skip == 2
        assert transport.last.params == {"$top": "2", "$count": "true"}

    def test_post(self, make_api):
        transport = FakeTransport(ODataResponse(status=201, body={"id": 7, "favoriteColor": "Red"}))
        api = make_api(transport)

        created = asyncio.run(api.entity_set("People").post({"name": "New", "favoriteColor": 3}))
        assert created.entity == {"id": 7, "favoriteColor": 1}
        assert transport.last.method == "POST"
        assert transport.last.body == {"name": "New", "favoriteColor": "Red, Green"}
        assert transport.last.headers["Content-Type"] == "application/json"


class TestEntityResource:
    """Tests for keyed entities."""

    def test_entity_keeps_shape_options(self, api):
        entity = api.entity_set("People").select(["id"]).expand("friends").filter("x").top(1).custom({"a": "1"}).entity(1)
        assert isinstance(entity, EntityResource)
        assert entity.params() == {"$select": "id", "$expand": "friends", "a": "1"}

    def test_string_and_composite_keys(self, api):
        assert api.entity_set("Airports").entity("KSFO").path() == "Airports('KSFO')"
        assert api.entity_set("Airports").entity("O'Hare").path() == "Airports('O''Hare')"
        line = api.entity_set("OrderLines").entity({"orderId": 1, "lineNo": 2})
        assert line.path() == "OrderLines(orderId=1,lineNo=2)"
        assert line.key() == {"orderId": 1, "lineNo": 2}

    def test_key_resolved_from_attributes(self, api):
        entity = api.entity_set("People").entity({"id": 5, "name": "x"})
        assert entity.path() == "People(5)"
        assert entity.key() == 5
        airport = api.entity_set("Airports").entity({"location": {"code": "LAX"}})
        assert airport.path() == "Airports('LAX')"

    def test_key_copy(self, api):
        entity = api.entity_set("People").entity()
        assert not entity.has_key()
        keyed = entity.key(9)
        assert keyed.path() == "People(9)"
        assert entity.path() == "People"

    def test_missing_key_raises_before_transport(self, api, transport):
        entity = api.entity_set("People").entity()
        with pytest.raises(ODataIdentityError):
            entity.get()
        with pytest.raises(ODataIdentityError):
            entity.put({"name": "x"})
        with pytest.raises(ODataIdentityError):
            entity.patch({"name": "x"})
        with pytest.raises(ODataIdentityError):
            entity.delete()
        assert transport.calls == 0

    def test_incomplete_composite_key_raises(self, api):
        line = api.entity_set("OrderLines").entity({"orderId": 1})
        assert not line.has_key()
        with pytest.raises(ODataIdentityError, match="OrderLines"):
            line.get()

    def test_patch_sends_etag(self, api, transport):
        entity = api.entity_set("People").entity(1)
        asyncio.run(entity.patch({"name": "Ann", "@odata.etag": 'W/"5"'}))
        assert transport.last.method == "PATCH"
        assert transport.last.headers["If-Match"] == 'W/"5"'

    def test_delete_without_etag_omits_header(self, api, transport):
        asyncio.run(api.entity_set("People").entity(1).delete())
        assert transport.last.method == "DELETE"
        assert "If-Match" not in transport.last.headers

    def test_etag_from_response_header(self, make_api):
        api = make_api(FakeTransport(ODataResponse(body={"id": 1}, headers={"etag": 'W/"9"'})))
        result = asyncio.run(api.entity_set("People").entity(1).get())
        assert result.meta.etag == 'W/"9"'

    def test_fetch_returns_value(self, make_api):
        api = make_api(FakeTransport(ODataResponse(body={"id": "1"})))
        assert asyncio.run(api.entity_set("People").entity(1).fetch()) == {"id": 1}

    def test_cast_keeps_key(self, api):
        employee = api.entity_set("People").entity(1).cast("Acme.Employee")
        assert employee.path() == "People(1)/Acme.Employee"
        assert employee.has_key()
        assert employee.member_type("salary") == "Edm.Decimal"

    def test_ref_and_value(self, api):
        entity = api.entity_set("People").select("id").entity(1)
        assert entity.ref().path() == "People(1)/$ref"
        assert entity.ref().params() == {}
        assert entity.value().path() == "People(1)/$value"


class TestNavigationAndProperties:
    """Tests for navigation properties and structural properties."""

    def test_navigation_property(self, api):
        friends = api.entity_set("People").entity(1).select("id").navigation_property("friends")
        assert isinstance(friends, NavigationPropertyResource)
        assert friends.path() == "People(1)/friends"
        assert friends.params() == {}
        assert friends.type() == "Acme.Person"
        assert friends.is_collection()
        friend = friends.entity(2)
        assert friend.path() == "People(1)/friends(2)"
        assert not friend.is_collection()
        assert friends.count().path() == "People(1)/friends/$count"
        assert friend.ref().path() == "People(1)/friends(2)/$ref"

    def test_single_valued_navigation(self, api):
        manager = api.entity_set("People").entity(1).navigation_property("manager")
        assert not manager.is_collection()
        assert manager.navigation_property("friends").path() == "People(1)/manager/friends"

    def test_navigation_get_shapes(self, make_api):
        transport = FakeTransport(
            ODataResponse(body={"value": [{"id": "2"}]}),
            ODataResponse(body={"id": "3"}),
        )
        api = make_api(transport)
        person = api.entity_set("People").entity(1)
        friends = asyncio.run(person.navigation_property("friends").fetch())
        manager = asyncio.run(person.navigation_property("manager").fetch())
        assert friends == [{"id": 2}]
        assert manager == {"id": 3}

    def test_property(self, make_api):
        transport = FakeTransport(ODataResponse(body={"value": "Red, Blue"}))
        api = make_api(transport)
        color = api.entity_set("People").entity(1).format("json").select("id").property("favoriteColor")
        assert isinstance(color, PropertyResource)
        assert color.path() == "People(1)/favoriteColor"
        assert color.params() == {"$format": "json"}
        assert asyncio.run(color.fetch()) == 5
        assert color.value().path() == "People(1)/favoriteColor/$value"

    def test_nested_property(self, api):
        city = api.entity_set("People").entity(1).property("address").property("city")
        assert city.path() == "People(1)/address/city"
        assert city.type() == "Edm.String"

    def test_property_put(self, api, transport):
        asyncio.run(api.entity_set("People").entity(1).property("favoriteColor").put(4))
        assert transport.last.method == "PUT"
        assert transport.last.body == {"value": "Blue"}

    def test_singleton(self, api):
        me = api.singleton("Me").select("id")
        assert me.params() == {"$select": "id"}
        assert isinstance(me, SingletonResource)
        assert me.path() == "Me"
        assert me.type() == "Acme.Person"
        assert me.navigation_property("friends").path() == "Me/friends"
        assert me.property("name").path() == "Me/name"


class TestCallables:
    """Tests for action and function resources."""

    def test_function_parameters(self, api):
        nearby = api.function("GetNearby").parameters({"lat": 1.5, "lon": 2, "city": "O'Hare"})
        assert nearby.path() == "GetNearby(lat=1.5,lon=2.0,city='O''Hare')"
        assert api.function("GetNearby").parameters({}).path() == "GetNearby()"
        assert nearby.parameters(None).path() == "GetNearby"

    def test_function_parameters_v2(self, make_api):
        api = make_api(version="2.0")
        nearby = api.function("GetNearby").parameters({"lat": 1.5})
        assert nearby.path() == "GetNearby"
        assert nearby.params() == {"lat": "1.5"}

    def test_composable_function(self, api):
        nearby = api.function("GetNearby").parameters({"lat": 1})
        assert nearby.count().path() == "GetNearby(lat=1.0)/$count"
        assert nearby.property("name").path() == "GetNearby(lat=1.0)/name"

    def test_non_composable_function(self, api):
        with pytest.raises(TypeError, match="not composable"):
            api.function("GetTopPerson").count()

    def test_function_returns_collection(self, make_api):
        transport = FakeTransport(ODataResponse(body={"value": [{"id": "1"}, {"id": "2"}]}))
        api = make_api(transport)
        people = asyncio.run(api.function("GetNearby").call({"lat": 1.0, "lon": 2.0}))
        assert people == [{"id": 1}, {"id": 2}]
        assert transport.last.path == "GetNearby(lat=1.0,lon=2.0)"

    def test_bound_function_returns_primitive(self, make_api):
        api = make_api(FakeTransport(ODataResponse(body={"value": "4"})))
        count = api.entity_set("People").entity(1).function("CountFriends")
        assert count.path() == "People(1)/Acme.CountFriends"
        assert asyncio.run(count.call({})) == 4

    def test_bound_action(self, api, transport):
        share = api.entity_set("People").select("id").entity(1).action("ShareTrip")
        assert isinstance(share, ActionResource)
        assert share.path() == "People(1)/Acme.ShareTrip"
        assert share.params() == {}
        asyncio.run(share.post({"userName": "ann", "color": 1}))
        assert transport.last.method == "POST"
        assert transport.last.body == {"userName": "ann", "color": "Red"}
        assert transport.last.response_type is None

    def test_unknown_callable_uses_name(self, api):
        assert api.action("Unknown").path() == "Unknown"
        assert api.action("ResetData").path() == "ResetData"


class TestTerminalResources:
    """Tests for $count, $ref, $value and $metadata."""

    def test_count_get(self, make_api):
        transport = FakeTransport(ODataResponse(body="42", headers={"Content-Type": "text/plain"}))
        api = make_api(transport)
        assert asyncio.run(api.entity_set("People").count().get()) == 42
        assert transport.last.headers["Accept"] == "text/plain"

    def test_reference_post(self, api, transport):
        ref = api.entity_set("People").entity(1).navigation_property("friends").ref()
        target = api.entity_set("People").entity(2)
        asyncio.run(ref.post(target))
        assert transport.last.path == "People(1)/friends/$ref"
        assert transport.last.body == {"@odata.id": f"{SERVICE_ROOT}People(2)"}

    def test_reference_delete_with_id(self, api, transport):
        ref = api.entity_set("People").entity(1).navigation_property("friends").ref()
        asyncio.run(ref.delete(api.entity_set("People").entity(2)))
        assert transport.last.method == "DELETE"
        assert transport.last.params == {"$id": f"{SERVICE_ROOT}People(2)"}

    def test_reference_v2_body(self, make_api):
        transport = FakeTransport()
        api = make_api(transport, version="2.0")
        ref = api.entity_set("People").entity(1).navigation_property("manager").ref()
        asyncio.run(ref.put(api.entity_set("People").entity(2)))
        assert transport.last.body == {"uri": f"{SERVICE_ROOT}People(2)"}

    def test_value_get(self, make_api):
        api = make_api(FakeTransport(ODataResponse(body=b"\x89PNG")))
        assert asyncio.run(api.entity_set("People").entity(1).value().get()) == b"\x89PNG"

    def test_metadata_fetch(self, make_api, sample_metadata_xml):
        transport = FakeTransport(ODataResponse(body=sample_metadata_xml.encode("utf-8")))
        api = make_api(transport)
        metadata = asyncio.run(api.metadata().fetch())
        assert metadata.entity_sets() == ["TestEntities", "TestItems"]
        assert transport.last.url == f"{SERVICE_ROOT}$metadata"
        assert transport.last.headers["Accept"] == "application/xml"


class TestRequestBuilding:
    """Tests for header and parameter merging."""

    def test_v4_headers(self, api):
        request = api.build_request("GET", api.entity_set("People"))
        assert request.headers["OData-Version"] == "4.0"
        assert request.headers["OData-MaxVersion"] == "4.0"
        assert "Content-Type" not in request.headers

    def test_v2_headers_and_inline_count(self, make_api):
        api = make_api(version="2.0")
        request = api.build_request("GET", api.entity_set("People"), with_count=True)
        assert request.headers["DataServiceVersion"] == "2.0"
        assert request.params == {"$inlinecount": "allpages"}

    def test_api_defaults_and_overrides(self, make_api):
        api = make_api(params={"client-id": "100"}, headers={"X-Tenant": "t1"})
        request = api.build_request(
            "get",
            api.entity_set("People").top(1),
            params={"$top": "2"},
            headers={"X-Tenant": "t2"},
        )
        assert request.method == "GET"
        assert request.params == {"client-id": "100", "$top": "2"}
        assert request.headers["X-Tenant"] == "t2"
        assert request.url_with_params == f"{SERVICE_ROOT}People?client-id=100&$top=2"

    def test_root_with_query_string_rejected(self, make_api):
        with pytest.raises(ODataConfigurationError, match="query string"):
            make_api(serviceRootUrl="https://x.example.com/svc?a=1")

    def test_root_normalised(self, make_api):
        api = make_api(serviceRootUrl="https://x.example.com/svc")
        assert api.service_root_url == "https://x.example.com/svc/"
        assert api.metadata_url == "https://x.example.com/svc/$metadata"
