"""
Example: Basic OData usage with odata_engine
============================================

This example shows how to describe a service, build resources and run
requests against it.
"""

import asyncio

from odata_engine import (
    ConnectionContext,
    ODataApi,
    ODataAuth,
    ODataMetadata,
    RequestsTransport,
    SessionConfig,
)

TRIPPIN_SCHEMA = {
    "namespace": "Trippin",
    "enums": [
        {"name": "PersonGender", "members": {"Male": 0, "Female": 1, "Unknown": 2}},
    ],
    "entities": [
        {
            "name": "Person",
            "fields": {
                "UserName": {"type": "Edm.String", "key": True, "nullable": False},
                "FirstName": {"type": "Edm.String", "maxLength": 80},
                "Gender": {"type": "Trippin.PersonGender"},
                "Friends": {"type": "Trippin.Person", "collection": True, "navigation": True},
            },
        },
        {
            "name": "Employee",
            "base": "Trippin.Person",
            "fields": {"Cost": {"type": "Edm.Int64"}},
        },
    ],
    "callables": [
        {
            "name": "GetNearestAirport",
            "kind": "function",
            "parameters": {"lat": {"type": "Edm.Double"}, "lon": {"type": "Edm.Double"}},
            "returnType": {"type": "Trippin.Airport"},
        },
    ],
    "containers": [
        {"name": "Container", "entitySets": [{"name": "People", "entityType": "Trippin.Person"}]},
    ],
}


def example_basic_query():
    """Basic query example."""

    transport = RequestsTransport(SessionConfig(
        auth=ODataAuth("basic", ("USER", "PASSWORD")),
        timeout=30.0,
    ))
    api = ODataApi(
        {"serviceRootUrl": "https://services.example.com/TripPin/", "schemas": [TRIPPIN_SCHEMA]},
        transport=transport,
    ).configure()

    async def run():
        people = api.entity_set("People")

        # Resources are immutable; each call returns a new one
        query = people.select(["UserName", "FirstName"]).filter({"FirstName": {"startswith": "R"}}).top(10)
        print("URL:", query)

        page = await query.get(with_count=True)
        print(f"Found {page.meta.count} people, first page {len(page)}")

        russell = await people.entity("russellwhyte").fetch()
        print("Russell:", russell)

        friends = await people.entity("russellwhyte").navigation_property("Friends").fetch()
        print("Friends:", [f["UserName"] for f in friends])

        airport = await api.function("GetNearestAirport").call({"lat": 33.0, "lon": -118.0})
        print("Nearest airport:", airport)

    with transport:
        asyncio.run(run())


def example_connection_context():
    """Using ConnectionContext with a schema imported from $metadata."""

    # Reads ODATA_SERVICE_ROOT, ODATA_USER, ODATA_PASS (or ODATA_BEARER_TOKEN)
    with ConnectionContext() as conn:
        bootstrap = conn.get_api(name="bootstrap")
        metadata: ODataMetadata = asyncio.run(bootstrap.metadata().fetch())
        print("Entity Sets:", metadata.entity_sets())

        api = conn.get_api(metadata.schemas, name="service")
        first = metadata.entity_sets()[0]
        print("Fields:", metadata.properties(first))
        rows = asyncio.run(api.entity_set(first).top(5).fetch())
        print(f"Found {len(rows)} rows")


if __name__ == "__main__":
    # Uncomment the example you want to run
    # example_basic_query()
    # example_connection_context()

    print("Set up your environment variables and uncomment an example to run.")
    print("Required: ODATA_SERVICE_ROOT, optionally ODATA_USER/ODATA_PASS or ODATA_BEARER_TOKEN")
